"""
Operaciones de persistencia del motor (registro de nombres, códigos
aprovisionados y sus butacas) sobre el ORM de Django.

La unicidad (theater, qr_name) y (code, seat) la garantiza la base de
datos; aquí solo se traduce el IntegrityError al error del dominio.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Set

from django.core.cache import cache
from django.db import IntegrityError, transaction
from django.db.models import F, Max
from django.utils import timezone

from .conf import qr_setting
from .exceptions import (
    CodeNotFound,
    DuplicateNameConflict,
    InvalidSeatFormat,
    PartialSeatOperationFailure,
    ProvisioningError,
)
from .generation import RENDER_ERRORS, RenderedCode, delete_stored, render_unit, storage_name_from_url
from .models import ProvisionedCode, ProvisionedSeat, QRName, Theater
from .payload import QR_TYPE_SCREEN, QR_TYPE_SINGLE
from .seats import parse

logger = logging.getLogger(__name__)

UNAVAILABLE_MESSAGE = "Oops! This service is not available right now."
SEAT_PATCH_FIELDS = ("seat", "active", "qr_code_url", "qr_code_data")


@dataclass
class CodeData:
    qr_type: str
    qr_name: str
    seat_class: str
    logo_type: str = ""
    logo_url: str = ""
    orientation: str = "landscape"
    qr_code_url: str = ""
    qr_code_data: str = ""


def _index_key(theater_id) -> str:
    return f"qr_existing_names:{theater_id}"


# --------------------------
# Lecturas
# --------------------------
def get_theater(theater_id) -> Theater:
    try:
        return Theater.objects.get(pk=theater_id)
    except Theater.DoesNotExist:
        raise CodeNotFound("Theater not found")


def list_qr_names(theater_id, active_only: bool = True) -> List[QRName]:
    qs = QRName.objects.filter(theater_id=theater_id)
    if active_only:
        qs = qs.filter(active=True)
    return list(qs.order_by("order", "qr_name"))


def list_provisioned_codes(theater_id):
    return ProvisionedCode.objects.filter(theater_id=theater_id).prefetch_related("seats")


def existing_code_names(theater_id) -> Set[str]:
    """Índice (cacheado) de nombres que ya tienen código en el teatro."""
    key = _index_key(theater_id)
    names = cache.get(key)
    if names is None:
        names = sorted(ProvisionedCode.objects.filter(theater_id=theater_id).values_list("qr_name", flat=True))
        cache.set(key, names, qr_setting("INDEX_CACHE_TIMEOUT"))
    return set(names)


def invalidate_theater_cache(theater_id) -> None:
    cache.delete(_index_key(theater_id))


def get_code(theater_id, code_id) -> ProvisionedCode:
    try:
        return ProvisionedCode.objects.get(pk=code_id, theater_id=theater_id)
    except ProvisionedCode.DoesNotExist:
        raise CodeNotFound()


def _get_seat(code: ProvisionedCode, seat_id) -> ProvisionedSeat:
    try:
        return code.seats.get(pk=seat_id)
    except ProvisionedSeat.DoesNotExist:
        raise PartialSeatOperationFailure("Seat not found", 404)


# --------------------------
# Alta del código (una sola escritura por nombre)
# --------------------------
def create_provisioned_code(theater_id, data: CodeData, seats: Sequence[RenderedCode] = (), user=None) -> ProvisionedCode:
    theater = get_theater(theater_id)
    if data.qr_type == QR_TYPE_SINGLE and seats:
        raise ProvisioningError("Single QR codes do not have seats", 400, "seats")
    if data.qr_type == QR_TYPE_SCREEN and not seats:
        raise ProvisioningError("At least one seat is required for screen QR codes", 400, "seats")
    labels = [s.seat for s in seats]
    if len(set(labels)) != len(labels):
        raise ProvisioningError("Seat list contains duplicates", 400, "seats")

    try:
        with transaction.atomic():
            code = ProvisionedCode.objects.create(
                theater=theater,
                qr_type=data.qr_type,
                qr_name=data.qr_name,
                seat_class=data.seat_class,
                logo_type=data.logo_type,
                logo_url=data.logo_url,
                orientation=data.orientation,
                qr_code_url=data.qr_code_url,
                qr_code_data=data.qr_code_data,
                generated_by=user if getattr(user, "pk", None) else None,
            )
            ProvisionedSeat.objects.bulk_create([
                ProvisionedSeat(
                    code=code,
                    seat=item.seat,
                    qr_code_url=item.qr_code_url,
                    qr_code_data=item.qr_code_data,
                    logo_url=item.logo_url,
                    logo_type=data.logo_type,
                    order=idx,
                )
                for idx, item in enumerate(seats, start=1)
            ])
    except IntegrityError as exc:
        logger.warning("Nombre QR duplicado %r en teatro %s: %s", data.qr_name, theater_id, exc)
        raise DuplicateNameConflict(data.qr_name) from exc

    invalidate_theater_cache(theater_id)
    logger.info("Código QR %r creado en teatro %s con %d butacas", code.qr_name, theater_id, len(seats))
    return code


# --------------------------
# Butacas (cada operación es independiente)
# --------------------------
def _seat_label(value) -> str:
    try:
        return str(parse(value))
    except InvalidSeatFormat as exc:
        raise InvalidSeatFormat(exc.token, field="seat")


def _render_seat(renderer, code: ProvisionedCode, label: str, logo_url: str) -> RenderedCode:
    try:
        return renderer(code.theater, code.qr_name, code.seat_class, label, logo_url)
    except RENDER_ERRORS as exc:
        logger.warning("Fallo generando QR de la butaca %s en %r: %s", label, code.qr_name, exc)
        raise PartialSeatOperationFailure(f"Could not generate QR for seat {label}") from exc


def add_seat(theater_id, code_id, seat, renderer=render_unit) -> ProvisionedSeat:
    code = get_code(theater_id, code_id)
    if not code.is_screen:
        raise PartialSeatOperationFailure("Seats can only be added to screen QR codes")
    label = _seat_label(seat)
    if code.seats.filter(seat=label).exists():
        raise PartialSeatOperationFailure(f"Seat {label} already exists in this screen")

    # mismo logo que el resto de butacas de la sala
    reference = code.seats.exclude(logo_url="").first()
    logo_url = reference.logo_url if reference else code.logo_url
    rendered = _render_seat(renderer, code, label, logo_url)

    next_order = (code.seats.aggregate(m=Max("order"))["m"] or 0) + 1
    try:
        with transaction.atomic():
            obj = ProvisionedSeat.objects.create(
                code=code,
                seat=label,
                qr_code_url=rendered.qr_code_url,
                qr_code_data=rendered.qr_code_data,
                logo_url=rendered.logo_url,
                logo_type=code.logo_type,
                order=next_order,
            )
    except IntegrityError as exc:
        delete_stored(rendered.storage_name)
        raise PartialSeatOperationFailure(f"Seat {label} already exists in this screen") from exc
    return obj


def update_seat(theater_id, code_id, seat_id, patch: dict, renderer=render_unit) -> ProvisionedSeat:
    code = get_code(theater_id, code_id)
    obj = _get_seat(code, seat_id)
    unknown = set(patch) - set(SEAT_PATCH_FIELDS)
    if unknown:
        raise PartialSeatOperationFailure(f"Unsupported seat fields: {', '.join(sorted(unknown))}")

    fields = []
    old_image = new_image = None
    if "seat" in patch:
        label = _seat_label(patch["seat"])
        if label != obj.seat:
            if code.seats.filter(seat=label).exclude(pk=obj.pk).exists():
                raise PartialSeatOperationFailure(f"Seat {label} already exists in this screen")
            obj.seat = label
            fields.append("seat")
            if "qr_code_url" not in patch:
                # la butaca cambia: el QR debe apuntar a la nueva
                rendered = _render_seat(renderer, code, label, obj.logo_url)
                old_image = storage_name_from_url(obj.qr_code_url)
                new_image = rendered.storage_name
                obj.qr_code_url = rendered.qr_code_url
                obj.qr_code_data = rendered.qr_code_data
                fields += ["qr_code_url", "qr_code_data"]
    if "active" in patch:
        obj.active = bool(patch["active"])
        fields.append("active")
    for name in ("qr_code_url", "qr_code_data"):
        if name in patch:
            setattr(obj, name, patch[name] or "")
            fields.append(name)

    if not fields:
        return obj
    try:
        with transaction.atomic():
            obj.save(update_fields=list(dict.fromkeys(fields)) + ["updated_at"])
    except IntegrityError as exc:
        delete_stored(new_image)
        raise PartialSeatOperationFailure(f"Seat {obj.seat} already exists in this screen") from exc
    delete_stored(old_image)
    return obj


def delete_seat(theater_id, code_id, seat_id) -> None:
    code = get_code(theater_id, code_id)
    obj = _get_seat(code, seat_id)
    image = storage_name_from_url(obj.qr_code_url)
    obj.delete()
    delete_stored(image)


def delete_provisioned_code(theater_id, code_id) -> None:
    code = get_code(theater_id, code_id)
    urls = [code.qr_code_url] + list(code.seats.values_list("qr_code_url", flat=True))
    code.delete()
    for url in urls:
        delete_stored(storage_name_from_url(url or ""))
    logger.info("Código QR %r eliminado del teatro %s", code.qr_name, theater_id)


# --------------------------
# Escaneos y verificación pública
# --------------------------
def record_scan(theater_id, code_id, seat_id=None):
    code = get_code(theater_id, code_id)
    now = timezone.now()
    if seat_id is None:
        ProvisionedCode.objects.filter(pk=code.pk).update(scan_count=F("scan_count") + 1, last_scanned_at=now)
        code.refresh_from_db()
        return code
    obj = _get_seat(code, seat_id)
    ProvisionedSeat.objects.filter(pk=obj.pk).update(scan_count=F("scan_count") + 1, last_scanned_at=now)
    obj.refresh_from_db()
    return obj


def verify_code(qr_name: str, theater_id=None, seat: Optional[str] = None) -> dict:
    qs = ProvisionedCode.objects.select_related("theater").filter(qr_name=qr_name)
    if theater_id:
        qs = qs.filter(theater_id=theater_id)
    code = qs.first()
    if code is None or not code.active or not code.theater.active:
        return {"valid": False, "message": UNAVAILABLE_MESSAGE}

    out = {
        "valid": True,
        "theater_id": code.theater_id,
        "theater_name": code.theater.name,
        "qr_name": code.qr_name,
        "qr_type": code.qr_type,
        "seat_class": code.seat_class,
        "seat": None,
    }
    if seat:
        obj = code.seats.filter(seat=seat).first()
        if obj is None or not obj.active:
            return {"valid": False, "message": UNAVAILABLE_MESSAGE}
        out["seat"] = obj.seat
    return out
