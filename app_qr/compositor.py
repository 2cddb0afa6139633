"""
Composición de la imagen del QR.

El QR se dibuja sobre una superficie (`RasterSurface`) con fondo blanco y
corrección de errores H, para que el logo centrado no lo vuelva ilegible.
Si hay logo se dibuja un halo blanco doble y el logo recortado en círculo.
Un logo que no carga no rompe nada: se devuelve el QR sin logo.
"""
import abc
import io
import logging
from dataclasses import dataclass

import qrcode
from PIL import Image, ImageChops, ImageDraw, ImageFont

from .branding import fetch_logo
from .conf import qr_setting
from .exceptions import BrandingLoadFailure

logger = logging.getLogger(__name__)

ERROR_CORRECTION = qrcode.constants.ERROR_CORRECT_H
QUIET_ZONE = 2
LOGO_RATIO = 0.30
OUTER_BORDER = 8
INNER_BORDER = 4


@dataclass(frozen=True)
class Branding:
    image_url: str


class RasterSurface(abc.ABC):
    """Operaciones de dibujo que necesita el compositor."""

    size: int

    @abc.abstractmethod
    def fill_matrix(self, matrix) -> None:
        """Pinta la matriz (lista de filas de bool, margen incluido) ocupando todo el lienzo."""

    @abc.abstractmethod
    def draw_circle(self, cx: int, cy: int, radius: int, fill: str = "white") -> None:
        ...

    @abc.abstractmethod
    def load_image(self, data: bytes):
        """Decodifica una imagen; lanza BrandingLoadFailure si no se puede."""

    @abc.abstractmethod
    def draw_image_in_circle(self, image, cx: int, cy: int, radius: int) -> None:
        """Recorta `image` a un círculo de `radius` y la dibuja centrada en (cx, cy)."""

    @abc.abstractmethod
    def encode(self, fmt: str = "PNG") -> bytes:
        ...


class PillowSurface(RasterSurface):

    def __init__(self, size: int, background: str = "white"):
        self.size = int(size)
        self.image = Image.new("RGB", (self.size, self.size), background)
        self._draw = ImageDraw.Draw(self.image)

    def fill_matrix(self, matrix) -> None:
        n = len(matrix)
        scale = self.size / n
        for y, row in enumerate(matrix):
            for x, dark in enumerate(row):
                if not dark:
                    continue
                x0, y0 = round(x * scale), round(y * scale)
                x1, y1 = round((x + 1) * scale) - 1, round((y + 1) * scale) - 1
                self._draw.rectangle([x0, y0, x1, y1], fill="black")

    def draw_circle(self, cx, cy, radius, fill="white") -> None:
        self._draw.ellipse([cx - radius, cy - radius, cx + radius, cy + radius], fill=fill)

    def load_image(self, data: bytes):
        try:
            img = Image.open(io.BytesIO(data))
            img.load()
        except (OSError, Image.DecompressionBombError) as exc:
            raise BrandingLoadFailure("<image data>", str(exc)) from exc
        return img.convert("RGBA")

    def draw_image_in_circle(self, image, cx, cy, radius) -> None:
        d = radius * 2
        if d <= 0:
            return
        logo = image.resize((d, d), Image.Resampling.LANCZOS)
        mask = Image.new("L", (d, d), 0)
        ImageDraw.Draw(mask).ellipse([0, 0, d - 1, d - 1], fill=255)
        mask = ImageChops.multiply(logo.getchannel("A"), mask)
        self.image.paste(logo, (cx - radius, cy - radius), mask)

    def encode(self, fmt: str = "PNG") -> bytes:
        buf = io.BytesIO()
        self.image.save(buf, format=fmt)
        return buf.getvalue()


def qr_matrix(payload: str):
    qr = qrcode.QRCode(version=None, error_correction=ERROR_CORRECTION, border=QUIET_ZONE)
    qr.add_data(payload)
    qr.make(fit=True)
    return qr.get_matrix()


def composite(payload: str, size: int, branding=None, *, surface_factory=PillowSurface, loader=fetch_logo) -> RasterSurface:
    """
    Dibuja `payload` como QR de `size` x `size` y, si hay `branding`
    (Branding o URL), superpone el logo circular con halo blanco.
    """
    surface = surface_factory(size)
    surface.fill_matrix(qr_matrix(payload))

    url = branding.image_url if isinstance(branding, Branding) else branding
    if not url:
        return surface

    try:
        image = surface.load_image(loader(url))
    except BrandingLoadFailure as exc:
        logger.warning("QR generado sin logo: %s", exc.message)
        return surface

    logo_size = int(size * LOGO_RATIO)
    radius = logo_size // 2
    center = surface.size // 2
    surface.draw_circle(center, center, radius + OUTER_BORDER, "white")
    surface.draw_circle(center, center, radius + INNER_BORDER, "white")
    surface.draw_image_in_circle(image, center, center, radius)
    return surface


def preview_size(orientation: str) -> int:
    sizes = qr_setting("PREVIEW_SIZES")
    return sizes.get(orientation, sizes.get("landscape", 200))


def caption_lines(qr_name: str, seat: str | None = None):
    top = (qr_setting("APPLICATION_NAME") or "SCAN THIS QR").upper()
    bottom = f"{qr_name} | {seat}" if seat else qr_name
    return top, bottom


def add_caption(image: Image.Image, top: str, bottom: str) -> Image.Image:
    """Devuelve una imagen nueva con una franja de texto arriba y otra abajo."""
    width, height = image.size
    band = max(height // 8, 24)
    font = ImageFont.load_default(size=max(band // 2, 10))

    out = Image.new("RGB", (width, height + band * 2), "white")
    out.paste(image.convert("RGB"), (0, band))
    draw = ImageDraw.Draw(out)
    for text, y in ((top, band // 2), (bottom, height + band + band // 2)):
        if not text:
            continue
        draw.text((width // 2, y), text, fill="black", font=font, anchor="mm")
    return out


def to_png(image: Image.Image) -> bytes:
    buf = io.BytesIO()
    image.save(buf, format="PNG")
    return buf.getvalue()
