class ProvisioningError(Exception):
    """Base de los errores del motor de aprovisionamiento QR.

    `field` indica el campo del formulario al que pertenece el error
    (None si es general) y `status_code` el código HTTP con que se expone.
    """

    code = "provisioning_error"

    def __init__(self, message: str, status_code: int = 400, field: str | None = None) -> None:
        self.message = message
        self.status_code = status_code
        self.field = field
        super().__init__(message)


class InvalidSeatFormat(ProvisioningError, ValueError):
    code = "invalid_seat_format"

    def __init__(self, token, field: str | None = None) -> None:
        self.token = token
        super().__init__(f"Invalid seat format: {token!r} (expected e.g. A1)", 400, field)


class RangeOrderError(ProvisioningError, ValueError):
    code = "range_order"

    def __init__(self, start, end, field: str | None = "seat_end") -> None:
        self.start = start
        self.end = end
        super().__init__(f"Start seat {start} must not come after end seat {end}", 400, field)


class OversizedBatch(ProvisioningError):
    code = "oversized_batch"

    def __init__(self, count: int, limit: int) -> None:
        self.count = count
        self.limit = limit
        super().__init__(f"Maximum {limit} seats allowed per batch ({count} selected)", 400, "seats")


class NoEligibleNames(ProvisioningError):
    code = "no_eligible_names"

    def __init__(self) -> None:
        super().__init__(
            "All QR names already have generated codes. Add new names under QR name management.",
            409,
            "qr_name",
        )


class BrandingLoadFailure(ProvisioningError):
    """No es fatal: el compositor devuelve la imagen sin logo."""

    code = "branding_load_failure"

    def __init__(self, source: str, reason: str = "") -> None:
        self.source = source
        detail = f": {reason}" if reason else ""
        super().__init__(f"Could not load branding image {source[:80]!r}{detail}", 502, "logo_url")


class DuplicateNameConflict(ProvisioningError):
    code = "duplicate_name"

    def __init__(self, qr_name: str) -> None:
        self.qr_name = qr_name
        super().__init__(f"QR code with name {qr_name!r} already exists for this theater", 409, "qr_name")


class PartialSeatOperationFailure(ProvisioningError):
    code = "seat_operation_failed"

    def __init__(self, message: str, status_code: int = 400) -> None:
        super().__init__(message, status_code, "seat")


class SubmissionInProgress(ProvisioningError):
    code = "submission_in_progress"

    def __init__(self) -> None:
        super().__init__("Another QR generation request is still in progress", 409)


class CodeNotFound(ProvisioningError):
    code = "not_found"

    def __init__(self, message: str = "QR code not found") -> None:
        super().__init__(message, 404)
