import os
import tempfile

os.environ.setdefault("SECRET_KEY", "test-secret-key")

from .settings import *  # noqa: E402,F401,F403

DEBUG = False

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    },
}

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "qr-tests",
    }
}

MEDIA_ROOT = tempfile.mkdtemp(prefix="qr-media-")

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

JWT_SECRET_KEY = "test-jwt-secret"

QR_PROVISIONING = {
    **QR_PROVISIONING,  # noqa: F405
    "BASE_URL": "https://qr.example.test",
    "DEFAULT_LOGO_URL": "",
    "APPLICATION_NAME": "Scan this QR",
}
