import os

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "web.settings")

from django.conf import settings
from django.apps import apps
from django.core.wsgi import get_wsgi_application

# ⚙️ FastAPI y middlewares
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.wsgi import WSGIMiddleware
from fastapi.staticfiles import StaticFiles
import mimetypes

apps.populate(settings.INSTALLED_APPS)

from app_qr.router import router as router_qr


def get_application() -> FastAPI:
    app = FastAPI(
        title=getattr(settings, "PROJECT_NAME", "FastAPI + Django"),
        debug=getattr(settings, "DEBUG", False),
        openapi_url="/api/v1/openapi.json"
    )

    # 🌍 CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_HOSTS or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # 📦 API de aprovisionamiento de QR
    app.include_router(router_qr, prefix="/api/qr")

    # 🗂️ Archivos estáticos
    mimetypes.add_type("application/javascript", ".js")
    mimetypes.add_type("text/css", ".css")

    if os.path.isdir(str(settings.STATIC_ROOT)):
        app.mount(
            settings.STATIC_URL,
            StaticFiles(directory=str(settings.STATIC_ROOT)),
            name="static_files_collected"
        )

    # 🧬 Django embebido (admin y media)
    app.mount("/", WSGIMiddleware(get_wsgi_application()))

    return app


app = get_application()
