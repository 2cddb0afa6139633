"""
Orquestador de generación por lotes.

Estados: idle -> validating -> submitting -> succeeded | partially_failed | failed.

Las imágenes se generan y guardan antes de enviar; luego se hace una única
escritura por nombre de QR (todas las butacas juntas). Si algo falla se
borran las imágenes ya guardadas y no se persiste nada parcial.
"""
import logging
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence

from django.core.cache import cache

from . import services
from .branding import resolve_logo_url
from .conf import qr_setting
from .eligibility import eligible_names, require_eligible
from .exceptions import NoEligibleNames, ProvisioningError, SubmissionInProgress
from .forms import ProvisioningForm
from .generation import RENDER_ERRORS, discard, render_unit
from .payload import QR_TYPE_SCREEN

logger = logging.getLogger(__name__)


class ProvisioningState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    SUBMITTING = "submitting"
    SUCCEEDED = "succeeded"
    PARTIALLY_FAILED = "partially_failed"
    FAILED = "failed"


@dataclass(frozen=True)
class Progress:
    current: int
    total: int
    message: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ProvisioningRequest:
    theater_id: str
    qr_type: str
    qr_name: str
    logo_type: str = ""
    logo_url: str = ""
    orientation: str = "landscape"
    seats: Sequence[str] = ()
    editing: Optional[str] = None

    def as_form_data(self) -> dict:
        return {
            "theater": self.theater_id,
            "qr_type": self.qr_type,
            "qr_name": self.qr_name,
            "logo_type": self.logo_type,
            "logo_url": self.logo_url,
            "orientation": self.orientation,
            "seats": list(self.seats),
        }


@dataclass
class ProvisioningResult:
    state: ProvisioningState
    request: ProvisioningRequest
    code: object = None
    errors: Dict[str, List[str]] = field(default_factory=dict)
    failed_units: Dict[str, str] = field(default_factory=dict)
    error_code: Optional[str] = None
    progress: List[Progress] = field(default_factory=list)
    eligible_names: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.state == ProvisioningState.SUCCEEDED


class ProvisioningOrchestrator:

    def __init__(self, session_key: str, user=None, on_progress: Optional[Callable[[Progress], None]] = None, renderer=render_unit):
        self.session_key = session_key
        self.user = user
        self.on_progress = on_progress
        self.renderer = renderer
        self.state = ProvisioningState.IDLE
        self._progress: List[Progress] = []

    @property
    def lock_key(self) -> str:
        return f"qr_provisioning_lock:{self.session_key}"

    def submit(self, request: ProvisioningRequest) -> ProvisioningResult:
        # una sola petición en curso por sesión de operador
        if not cache.add(self.lock_key, True, qr_setting("SUBMISSION_LOCK_SECONDS")):
            raise SubmissionInProgress()
        try:
            return self._run(request)
        finally:
            cache.delete(self.lock_key)

    # --------------------------
    # Internos
    # --------------------------
    def _report(self, current: int, total: int, message: str) -> None:
        item = Progress(current, total, message)
        self._progress.append(item)
        if self.on_progress is not None:
            self.on_progress(item)

    def _finish(self, state, request, **kwargs) -> ProvisioningResult:
        self.state = state
        return ProvisioningResult(state=state, request=request, progress=list(self._progress), **kwargs)

    def _eligible(self, theater_id, editing=None):
        return eligible_names(
            services.list_qr_names(theater_id),
            services.existing_code_names(theater_id),
            editing,
        )

    def _run(self, request: ProvisioningRequest) -> ProvisioningResult:
        self._progress = []
        self.state = ProvisioningState.VALIDATING

        eligible = self._eligible(request.theater_id, request.editing)
        form = ProvisioningForm(request.as_form_data(), eligible=eligible)
        if not form.is_valid():
            errors = {name: [str(m) for m in msgs] for name, msgs in form.errors.items()}
            try:
                require_eligible(eligible)
            except NoEligibleNames as exc:
                errors[exc.field] = [exc.message]
            return self._finish(ProvisioningState.FAILED, request, errors=errors)

        cd = form.cleaned_data
        theater = cd["theater"]
        is_screen = cd["qr_type"] == QR_TYPE_SCREEN
        seats = cd["seats"] if is_screen else []
        total = len(seats) if is_screen else 1
        logo_url = resolve_logo_url(cd["logo_type"], cd["logo_url"], theater)

        if is_screen:
            self._report(0, total, f"Preparing to generate {total} QR codes...")
        else:
            self._report(0, total, "Generating single QR code...")

        rendered, failed = [], {}
        try:
            for seat in (seats if is_screen else [None]):
                try:
                    rendered.append(self.renderer(theater, cd["qr_name"], cd["seat_class"], seat, logo_url))
                except RENDER_ERRORS as exc:
                    logger.warning("Fallo generando QR %s/%s: %s", cd["qr_name"], seat or "-", exc)
                    failed[seat or cd["qr_name"]] = str(exc)
        except Exception:
            # un error inesperado no deja imágenes huérfanas
            discard(rendered)
            raise
        if failed:
            discard(rendered)
            return self._finish(
                ProvisioningState.PARTIALLY_FAILED, request,
                errors={"seats": [f"{len(failed)} of {total} QR images could not be generated"]},
                failed_units=failed,
            )

        self.state = ProvisioningState.SUBMITTING
        self._report(0, total, "Sending request to server...")
        data = services.CodeData(
            qr_type=cd["qr_type"],
            qr_name=cd["qr_name"],
            seat_class=cd["seat_class"],
            logo_type=cd["logo_type"],
            logo_url=logo_url,
            orientation=cd["orientation"],
            qr_code_url="" if is_screen else rendered[0].qr_code_url,
            qr_code_data="" if is_screen else rendered[0].qr_code_data,
        )
        try:
            code = services.create_provisioned_code(theater.pk, data, rendered if is_screen else (), self.user)
        except ProvisioningError as exc:
            discard(rendered)
            logger.warning("Generación rechazada para %r: %s", cd["qr_name"], exc.message)
            return self._finish(
                ProvisioningState.FAILED, request,
                errors={exc.field or "__all__": [exc.message]},
                error_code=exc.code,
            )

        self._report(0, total, "Processing server response...")
        services.invalidate_theater_cache(theater.pk)
        refreshed = [n.qr_name for n in self._eligible(theater.pk)]
        self._report(total, total, "QR codes generated successfully!")
        logger.info("Generados %d QR para %r (teatro %s)", total, code.qr_name, theater.pk)
        return self._finish(ProvisioningState.SUCCEEDED, request, code=code, eligible_names=refreshed)
