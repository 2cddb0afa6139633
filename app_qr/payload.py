import re
import time
from urllib.parse import quote, urlencode

QR_TYPE_SINGLE = "single"
QR_TYPE_SCREEN = "screen"

_UNSAFE = re.compile(r"[^a-zA-Z0-9\-_]")


def build_payload(base_url: str, theater_id: str, qr_name: str, qr_type: str, seat: str | None = None) -> str:
    """URL que codifica el QR: menú del teatro con nombre, tipo y butaca."""
    params = {"qrName": qr_name, "type": qr_type}
    if seat:
        params["seat"] = str(seat)
    return f"{base_url.rstrip('/')}/menu/{theater_id}?{urlencode(params, quote_via=quote)}"


def sanitize(value) -> str:
    return _UNSAFE.sub("_", str(value or ""))


def image_path(prefix: str, theater_name: str, qr_name: str, seat_class: str, seat: str | None = None, ts: int | None = None) -> str:
    ts = int(time.time() * 1000) if ts is None else ts
    theater, name, klass = sanitize(theater_name), sanitize(qr_name), sanitize(seat_class)
    if seat:
        return f"{prefix}/screen/{theater}/{name}/{name}_{klass}_{sanitize(seat)}_{ts}.png"
    return f"{prefix}/single/{theater}/{name}_{klass}_{ts}.png"
