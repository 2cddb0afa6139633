from django.conf import settings

DEFAULTS = {
    "BASE_URL": "http://localhost:8000",
    "DEFAULT_LOGO_URL": "",
    "APPLICATION_NAME": "SCAN THIS QR",
    "IMAGE_SIZE": 512,
    "PREVIEW_SIZES": {"landscape": 200, "portrait": 250},
    "MAX_SEATS_PER_BATCH": 100,
    "LOGO_FETCH_TIMEOUT": 15,
    "SUBMISSION_LOCK_SECONDS": 300,
    "INDEX_CACHE_TIMEOUT": 300,
    "STORAGE_PREFIX": "qr-codes",
}


def qr_setting(name: str):
    """Lee una clave de settings.QR_PROVISIONING con su valor por defecto."""
    conf = getattr(settings, "QR_PROVISIONING", {}) or {}
    if name in conf:
        return conf[name]
    return DEFAULTS[name]
