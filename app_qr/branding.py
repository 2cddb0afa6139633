import base64
import binascii
import logging
from urllib.parse import unquote_to_bytes

import requests
from django.conf import settings
from django.core.exceptions import SuspiciousOperation
from django.core.files.storage import default_storage

from .conf import qr_setting
from .exceptions import BrandingLoadFailure

logger = logging.getLogger(__name__)

LOGO_TYPES = ("default", "theater", "custom")


def resolve_logo_url(logo_type: str, logo_url: str = "", theater=None) -> str:
    """URL del logo según el tipo elegido por el operador."""
    if logo_type == "default":
        return logo_url or qr_setting("DEFAULT_LOGO_URL") or ""
    if logo_type == "theater":
        return (getattr(theater, "logo_url", "") or "") if theater is not None else ""
    if logo_type == "custom":
        return logo_url or ""
    return ""


def _decode_data_url(url: str) -> bytes:
    header, sep, data = url.partition(",")
    if not sep:
        raise BrandingLoadFailure(url, "malformed data URL")
    if header.endswith(";base64"):
        try:
            return base64.b64decode(data, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise BrandingLoadFailure(url, "invalid base64 payload") from exc
    return unquote_to_bytes(data)


def _download(url: str) -> bytes:
    try:
        resp = requests.get(url, timeout=qr_setting("LOGO_FETCH_TIMEOUT"))
        resp.raise_for_status()
    except requests.RequestException as exc:
        raise BrandingLoadFailure(url, str(exc)) from exc
    return resp.content


def _read_storage(name: str) -> bytes:
    try:
        with default_storage.open(name, "rb") as fh:
            return fh.read()
    except (OSError, ValueError, SuspiciousOperation) as exc:
        # rutas fuera de MEDIA_ROOT también cuentan como logo no disponible
        raise BrandingLoadFailure(name, str(exc)) from exc


def fetch_logo(url: str) -> bytes:
    """
    Devuelve los bytes del logo. Acepta:
      - data:image/...;base64,...
      - http(s)://...
      - gs://bucket/objeto (se lee por la URL pública del bucket)
      - /media/... (almacenamiento local) u otra ruta absoluta relativa a BASE_URL
      - nombre de archivo en default_storage
    Cualquier fallo se señala con BrandingLoadFailure.
    """
    if not url:
        raise BrandingLoadFailure("", "empty logo URL")
    if url.startswith("data:"):
        return _decode_data_url(url)
    if url.startswith(("http://", "https://")):
        return _download(url)
    if url.startswith("gs://"):
        return _download("https://storage.googleapis.com/" + url[len("gs://"):])
    media_url = getattr(settings, "MEDIA_URL", "/media/") or "/media/"
    if url.startswith(media_url):
        return _read_storage(url[len(media_url):])
    if url.startswith("/"):
        return _download(qr_setting("BASE_URL").rstrip("/") + url)
    return _read_storage(url)
