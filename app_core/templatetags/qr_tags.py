from django import template
import base64

from app_qr.compositor import Branding, composite

register = template.Library()


@register.simple_tag
def qr_data_uri(data, size=200, logo_url=""):
    """
    Genera un data URI PNG con el QR del texto 'data' (con logo si se indica).
    Si el logo no carga, el QR sale igual sin logo.
    """
    if not data:
        return ""
    surface = composite(str(data), int(size), Branding(logo_url) if logo_url else None)
    encoded = base64.b64encode(surface.encode("PNG")).decode("ascii")
    return f"data:image/png;base64,{encoded}"
