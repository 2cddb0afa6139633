from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from pydantic import BaseModel, Field

from django.contrib.auth import get_user_model

from web.auth_jwt import get_current_user, require_theater_access, session_key_for

from . import services
from .branding import resolve_logo_url
from .compositor import preview_size
from .eligibility import eligible_names
from .exceptions import DuplicateNameConflict, ProvisioningError
from .generation import render_png
from .orchestrator import ProvisioningOrchestrator, ProvisioningRequest, ProvisioningState
from .seats import range_from_input
from .selection import SelectionState, group_by_row

logger = logging.getLogger(__name__)

router = APIRouter(tags=["QR"])


# --------------------------
# Modelos de request/response
# --------------------------
class RangeModel(BaseModel):
    start: str
    end: str


class SelectionModel(BaseModel):
    ranges: List[RangeModel] = Field(default_factory=list)
    selected: List[str] = Field(default_factory=list)


class AddRangeIn(BaseModel):
    state: SelectionModel = Field(default_factory=SelectionModel)
    start: str = ""
    end: str = ""


class DeleteRowIn(BaseModel):
    state: SelectionModel = Field(default_factory=SelectionModel)
    row: str


class ToggleSeatIn(BaseModel):
    state: SelectionModel = Field(default_factory=SelectionModel)
    seat: str


class ProvisionIn(BaseModel):
    qr_type: str
    qr_name: str
    logo_type: str = ""
    logo_url: str = ""
    orientation: str = "landscape"
    seats: List[str] = Field(default_factory=list)
    editing: Optional[str] = None


class SeatIn(BaseModel):
    seat: str


class SeatPatchIn(BaseModel):
    seat: Optional[str] = None
    active: Optional[bool] = None
    qr_code_url: Optional[str] = None
    qr_code_data: Optional[str] = None


# --------------------------
# Utilidades
# --------------------------
def _resp(status_ok: bool, message: str, *, item: Any, **extra) -> Dict[str, Any]:
    data: Dict[str, Any] = {"status": status_ok, "message": message, "item": item}
    data.update(extra)
    return data


def _user_from_token(current_user: dict):
    user_id = current_user.get("user_id") or current_user.get("sub")
    try:
        return get_user_model().objects.filter(pk=user_id).first()
    except (TypeError, ValueError):
        return None


def _http_error(exc: ProvisioningError) -> HTTPException:
    detail = {"message": exc.message, "code": exc.code}
    if exc.field:
        detail["field"] = exc.field
    return HTTPException(status_code=exc.status_code, detail=detail)


def _seat_out(seat) -> Dict[str, Any]:
    return {
        "id": seat.pk,
        "seat": seat.seat,
        "qr_code_url": seat.qr_code_url,
        "qr_code_data": seat.qr_code_data,
        "logo_url": seat.logo_url,
        "active": seat.active,
        "scan_count": seat.scan_count,
        "last_scanned_at": seat.last_scanned_at,
    }


def _code_out(code) -> Dict[str, Any]:
    return {
        "id": code.pk,
        "theater_id": code.theater_id,
        "qr_type": code.qr_type,
        "qr_name": code.qr_name,
        "seat_class": code.seat_class,
        "logo_type": code.logo_type,
        "logo_url": code.logo_url,
        "orientation": code.orientation,
        "qr_code_url": code.qr_code_url,
        "qr_code_data": code.qr_code_data,
        "active": code.active,
        "scan_count": code.scan_count,
        "last_scanned_at": code.last_scanned_at,
        "generated_at": code.created_at,
        "version": code.version,
        "seats": [_seat_out(s) for s in code.seats.all()],
    }


def _selection_out(state: SelectionState) -> Dict[str, Any]:
    return {
        "state": state.to_dict(),
        "seat_map": [{"row": row, "seats": [str(s) for s in seats]} for row, seats in state.seat_map()],
        "selected_map": [{"row": row, "seats": [str(s) for s in seats]} for row, seats in state.selected_map()],
        "count": len(state.selected),
    }


# --------------------------
# Selección de butacas (sin estado en servidor)
# --------------------------
@router.post("/selection/expand", summary="Expand a seat range")
def selection_expand(body: AddRangeIn, current_user: dict = Depends(get_current_user)):
    try:
        rng = range_from_input(body.start, body.end)
    except ProvisioningError as exc:
        raise _http_error(exc)
    seats = rng.seats()
    return _resp(True, "Success", item={
        "range": rng.to_dict(),
        "seats": [str(s) for s in seats],
        "seat_map": [{"row": row, "seats": [str(s) for s in items]} for row, items in group_by_row(seats)],
    })


@router.post("/selection/add-range", summary="Add a seat range to a selection")
def selection_add_range(body: AddRangeIn, current_user: dict = Depends(get_current_user)):
    try:
        state = SelectionState.from_dict(body.state.model_dump()).add_range(body.start, body.end)
    except ProvisioningError as exc:
        raise _http_error(exc)
    return _resp(True, "Success", item=_selection_out(state))


@router.post("/selection/delete-row", summary="Remove a row from a selection")
def selection_delete_row(body: DeleteRowIn, current_user: dict = Depends(get_current_user)):
    try:
        state = SelectionState.from_dict(body.state.model_dump()).delete_row(body.row)
    except ProvisioningError as exc:
        raise _http_error(exc)
    return _resp(True, "Success", item=_selection_out(state))


@router.post("/selection/toggle", summary="Select or deselect one seat")
def selection_toggle(body: ToggleSeatIn, current_user: dict = Depends(get_current_user)):
    try:
        state = SelectionState.from_dict(body.state.model_dump()).toggle(body.seat)
    except ProvisioningError as exc:
        raise _http_error(exc)
    return _resp(True, "Success", item=_selection_out(state))


# --------------------------
# Registro de nombres y códigos
# --------------------------
@router.get("/theaters/{theater_id}/names", summary="QR names (optionally only the eligible ones)")
def list_names(
    theater_id: str,
    eligible: bool = Query(False),
    editing: Optional[str] = Query(None),
    current_user: dict = Depends(get_current_user),
):
    require_theater_access(current_user, theater_id)
    names = services.list_qr_names(theater_id)
    if eligible:
        names = eligible_names(names, services.existing_code_names(theater_id), editing)
    items = [
        {"id": n.pk, "qr_name": n.qr_name, "seat_class": n.seat_class, "description": n.description, "order": n.order}
        for n in names
    ]
    return _resp(True, "Success", item=items)


@router.get("/theaters/{theater_id}/codes", summary="Provisioned QR codes")
def list_codes(theater_id: str, current_user: dict = Depends(get_current_user)):
    require_theater_access(current_user, theater_id)
    return _resp(True, "Success", item=[_code_out(c) for c in services.list_provisioned_codes(theater_id)])


@router.post("/theaters/{theater_id}/codes", status_code=status.HTTP_201_CREATED, summary="Generate QR codes")
def create_codes(theater_id: str, body: ProvisionIn, current_user: dict = Depends(get_current_user)):
    require_theater_access(current_user, theater_id)
    request = ProvisioningRequest(theater_id=theater_id, **body.model_dump())
    orchestrator = ProvisioningOrchestrator(session_key_for(current_user), user=_user_from_token(current_user))
    try:
        result = orchestrator.submit(request)
    except ProvisioningError as exc:
        raise _http_error(exc)

    progress = [p.to_dict() for p in result.progress]
    if result.state != ProvisioningState.SUCCEEDED:
        conflict = result.error_code == DuplicateNameConflict.code
        logger.info("Generación de QR %r terminó en %s", request.qr_name, result.state.value)
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT if conflict else status.HTTP_400_BAD_REQUEST,
            detail={
                "message": "QR code generation failed",
                "state": result.state.value,
                "errors": result.errors,
                "failed_units": result.failed_units,
                "request": asdict(request),
                "progress": progress,
            },
        )
    return _resp(
        True,
        progress[-1]["message"],
        item=_code_out(result.code),
        progress=progress,
        eligible_names=result.eligible_names,
    )


@router.delete("/theaters/{theater_id}/codes/{code_id}", summary="Delete a QR code and its seats")
def delete_code(theater_id: str, code_id: str, current_user: dict = Depends(get_current_user)):
    require_theater_access(current_user, theater_id)
    try:
        services.delete_provisioned_code(theater_id, code_id)
    except ProvisioningError as exc:
        raise _http_error(exc)
    return _resp(True, "QR code deleted", item=None)


# --------------------------
# Butacas
# --------------------------
@router.post("/theaters/{theater_id}/codes/{code_id}/seats", status_code=status.HTTP_201_CREATED, summary="Add a seat")
def add_seat(theater_id: str, code_id: str, body: SeatIn, current_user: dict = Depends(get_current_user)):
    require_theater_access(current_user, theater_id)
    try:
        seat = services.add_seat(theater_id, code_id, body.seat)
    except ProvisioningError as exc:
        raise _http_error(exc)
    return _resp(True, "Seat added", item=_seat_out(seat))


@router.patch("/theaters/{theater_id}/codes/{code_id}/seats/{seat_id}", summary="Update a seat")
def update_seat(theater_id: str, code_id: str, seat_id: str, body: SeatPatchIn, current_user: dict = Depends(get_current_user)):
    require_theater_access(current_user, theater_id)
    patch = body.model_dump(exclude_none=True)
    try:
        seat = services.update_seat(theater_id, code_id, seat_id, patch)
    except ProvisioningError as exc:
        raise _http_error(exc)
    return _resp(True, "Seat updated", item=_seat_out(seat))


@router.delete("/theaters/{theater_id}/codes/{code_id}/seats/{seat_id}", summary="Delete a seat")
def delete_seat(theater_id: str, code_id: str, seat_id: str, current_user: dict = Depends(get_current_user)):
    require_theater_access(current_user, theater_id)
    try:
        services.delete_seat(theater_id, code_id, seat_id)
    except ProvisioningError as exc:
        raise _http_error(exc)
    return _resp(True, "Seat deleted", item=None)


@router.get("/preview", summary="PNG preview of a QR code")
def preview(
    theater_id: str,
    qr_name: str,
    seat: Optional[str] = Query(None),
    orientation: str = Query("landscape"),
    logo_type: str = Query(""),
    logo_url: str = Query(""),
    current_user: dict = Depends(get_current_user),
):
    require_theater_access(current_user, theater_id)
    try:
        theater = services.get_theater(theater_id)
    except ProvisioningError as exc:
        raise _http_error(exc)
    url = resolve_logo_url(logo_type, logo_url, theater)
    _, png = render_png(theater.pk, qr_name, seat, url, size=preview_size(orientation), caption=False)
    return Response(content=png, media_type="image/png")


# --------------------------
# Público: escaneo y verificación
# --------------------------
@router.post("/theaters/{theater_id}/codes/{code_id}/scan", summary="Record a scan")
def scan_code(theater_id: str, code_id: str, seat_id: Optional[str] = Query(None)):
    try:
        obj = services.record_scan(theater_id, code_id, seat_id)
    except ProvisioningError as exc:
        raise _http_error(exc)
    return _resp(True, "Scan recorded", item={"id": obj.pk, "scan_count": obj.scan_count})


@router.get("/verify", summary="Check that a QR code is active")
def verify(qr_name: str, theater_id: Optional[str] = Query(None), seat: Optional[str] = Query(None)):
    data = services.verify_code(qr_name, theater_id, seat)
    if not data["valid"]:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=data["message"])
    return _resp(True, "QR code is active", item=data)
