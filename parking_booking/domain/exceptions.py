"""Error kinds raised by the booking core.

Each kind is an expected, recoverable condition that callers act on. Storage
failures surface as ``InternalError`` and never carry storage details.
"""
from typing import Any, Optional


class BookingError(Exception):
    kind = "booking_error"

    def __init__(self, message: str, **detail: Any):
        super().__init__(message)
        self.message = message
        self.detail = detail

    def to_dict(self) -> dict:
        return {"error": self.kind, "message": self.message, "detail": self.detail}


class NotFoundError(BookingError):
    kind = "not_found"


class InvalidStateError(BookingError):
    kind = "invalid_state"


class SlotUnavailableError(BookingError):
    kind = "slot_unavailable"


class ValidationError(BookingError):
    kind = "validation_error"

    def __init__(self, message: str, field: Optional[str] = None, **detail: Any):
        if field is not None:
            detail["field"] = field
        super().__init__(message, **detail)


class ForbiddenError(BookingError):
    kind = "forbidden"


class InternalError(BookingError):
    kind = "internal_error"

    def __init__(self, message: str = "Internal error"):
        super().__init__(message)
