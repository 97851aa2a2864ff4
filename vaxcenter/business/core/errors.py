"""
Error taxonomy for the vaccination core.

Business managers raise these; the service facade turns them into
``ActionResult`` values and the HTTP layer into status codes.

- ValidationError: malformed input, raised before any state is touched
- NotFound: a referenced record does not exist
- ConflictError: expected, recoverable business outcome
- InvalidTransition: appointment state machine guard
- InternalInconsistency: ledger invariant violated (a bug, never contention)
- Unavailable: lock or persistence timeout, caller should retry
"""


class VaccinationError(Exception):
    """Base class for every error raised by the vaccination core"""

    code = "error"
    http_status = 400

    def __init__(self, message=None, **details):
        self.message = message or self.default_message()
        self.details = details
        super().__init__(self.message)

    def default_message(self):
        return self.code.replace("_", " ").capitalize()

    def to_dict(self):
        payload = {"error_code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(VaccinationError, ValueError):
    code = "validation_error"
    http_status = 400


# Not found

class NotFound(VaccinationError):
    code = "not_found"
    http_status = 404


class CenterNotFound(NotFound):
    code = "center_not_found"


class CitizenNotFound(NotFound):
    code = "citizen_not_found"


class AppointmentNotFound(NotFound):
    code = "appointment_not_found"


class StockEntryNotFound(NotFound):
    code = "stock_entry_not_found"


class StaffNotFound(NotFound):
    code = "staff_not_found"


# Business conflicts

class ConflictError(VaccinationError):
    code = "conflict"
    http_status = 409


class CenterUnverified(ConflictError):
    code = "center_unverified"


class CapacityExceeded(ConflictError):
    code = "capacity_exceeded"


class VaccineUnavailable(ConflictError):
    code = "vaccine_unavailable"


class OutOfStock(ConflictError):
    code = "out_of_stock"


class InsufficientStock(ConflictError):
    code = "insufficient_stock"


class AlreadyExists(ConflictError):
    code = "already_exists"


class InvalidMovement(ConflictError):
    code = "invalid_movement"


class CenterInUse(ConflictError):
    code = "center_in_use"


class InvalidTransition(VaccinationError):
    code = "invalid_transition"
    http_status = 409


class InternalInconsistency(VaccinationError):
    code = "internal_inconsistency"
    http_status = 500


class Unavailable(VaccinationError):
    code = "unavailable"
    http_status = 503
