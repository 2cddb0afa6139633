import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from django.conf import settings
from django.core.exceptions import SuspiciousOperation
from django.core.files.base import ContentFile
from django.core.files.storage import default_storage
from qrcode.exceptions import DataOverflowError

from .compositor import Branding, PillowSurface, add_caption, caption_lines, composite, to_png
from .conf import qr_setting
from .payload import QR_TYPE_SCREEN, QR_TYPE_SINGLE, build_payload, image_path

logger = logging.getLogger(__name__)

# Errores de dibujo o de almacenamiento de una unidad; cualquier otro se propaga
RENDER_ERRORS = (OSError, ValueError, DataOverflowError, SuspiciousOperation)


@dataclass(frozen=True)
class RenderedCode:
    """Imagen ya guardada para una unidad (código single o una butaca)."""
    seat: Optional[str]
    qr_code_url: str
    qr_code_data: str
    logo_url: str
    storage_name: str


def render_png(theater_id: str, qr_name: str, seat: Optional[str] = None, logo_url: str = "", size: Optional[int] = None, caption: bool = True) -> tuple[str, bytes]:
    """Devuelve (payload, png) sin guardar nada."""
    qr_type = QR_TYPE_SCREEN if seat else QR_TYPE_SINGLE
    payload = build_payload(qr_setting("BASE_URL"), theater_id, qr_name, qr_type, seat)
    surface = composite(
        payload,
        size or qr_setting("IMAGE_SIZE"),
        Branding(logo_url) if logo_url else None,
        surface_factory=PillowSurface,
    )
    image = surface.image
    if caption:
        image = add_caption(image, *caption_lines(qr_name, seat))
    return payload, to_png(image)


def render_unit(theater, qr_name: str, seat_class: str, seat: Optional[str] = None, logo_url: str = "", ts: Optional[int] = None) -> RenderedCode:
    payload, png = render_png(theater.pk, qr_name, seat, logo_url)
    path = image_path(qr_setting("STORAGE_PREFIX"), theater.name, qr_name, seat_class, seat, ts)
    name = default_storage.save(path, ContentFile(png))
    return RenderedCode(
        seat=str(seat) if seat else None,
        qr_code_url=default_storage.url(name),
        qr_code_data=payload,
        logo_url=logo_url,
        storage_name=name,
    )


def discard(rendered: Iterable[RenderedCode]) -> None:
    """Borra imágenes guardadas de una operación que no llegó a persistirse."""
    for item in rendered:
        delete_stored(item.storage_name)


def storage_name_from_url(url: str) -> Optional[str]:
    media_url = getattr(settings, "MEDIA_URL", "") or ""
    if media_url and url.startswith(media_url):
        return url[len(media_url):]
    return None


def delete_stored(name: Optional[str]) -> None:
    if not name:
        return
    try:
        default_storage.delete(name)
    except OSError as exc:
        logger.warning("No se pudo borrar la imagen QR %s: %s", name, exc)
