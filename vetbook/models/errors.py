"""Booking error taxonomy.

Every failure the core reports to the request layer is a ``BookingError``
subclass tagged with an ``ErrorType``. The HTTP layer turns them into an
``ErrorResponse`` body and a status code.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class ErrorType(str, Enum):
    """Kinds of booking failures."""

    DOCTOR_UNAVAILABLE = "doctor_unavailable"  # missing, inactive or unverified
    PET_NOT_OWNED = "pet_not_owned"  # missing, inactive or someone else's pet
    DAY_NOT_WORKING = "day_not_working"
    SLOT_NOT_FOUND = "slot_not_found"
    SLOT_UNAVAILABLE = "slot_unavailable"
    INVALID_TRANSITION = "invalid_transition"
    NOT_AUTHORIZED = "not_authorized"
    RESERVATION_NOT_FOUND = "reservation_not_found"
    CALENDAR_CONFLICT = "calendar_conflict"  # day edit would drop a held slot


class BookingError(Exception):
    """Base class for recoverable booking failures."""

    error_type: ErrorType
    default_message = "Booking failed."

    def __init__(self, message: str | None = None, **details: Any):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class DoctorUnavailable(BookingError):
    error_type = ErrorType.DOCTOR_UNAVAILABLE
    default_message = "Doctor not found or not available."


class PetNotOwned(BookingError):
    error_type = ErrorType.PET_NOT_OWNED
    default_message = (
        "Pet not found or you don't have permission to book for this pet."
    )


class DayNotWorking(BookingError):
    error_type = ErrorType.DAY_NOT_WORKING
    default_message = "Doctor is not available on the selected date."


class SlotUnavailable(BookingError):
    error_type = ErrorType.SLOT_UNAVAILABLE
    default_message = "The selected time slot is not available."


class SlotNotFound(SlotUnavailable):
    """No slot starts at the requested time.

    Subclasses ``SlotUnavailable`` so callers that only care whether the
    slot can be booked catch both.
    """

    error_type = ErrorType.SLOT_NOT_FOUND
    default_message = "The selected time slot does not exist."


class InvalidTransition(BookingError):
    error_type = ErrorType.INVALID_TRANSITION
    default_message = "Invalid status transition."


class NotAuthorized(BookingError):
    error_type = ErrorType.NOT_AUTHORIZED
    default_message = "Unauthorized action."


class ReservationNotFound(BookingError):
    error_type = ErrorType.RESERVATION_NOT_FOUND
    default_message = "Reservation not found."


class CalendarConflict(BookingError):
    error_type = ErrorType.CALENDAR_CONFLICT
    default_message = "The change would drop a slot that is already booked."


class ErrorResponse(BaseModel):
    """JSON body returned for a ``BookingError``."""

    error: str = Field(description="Human-readable error message")
    type: ErrorType = Field(description="Category of error")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    details: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_exception(cls, e: BookingError) -> "ErrorResponse":
        """Build the response body for a booking error."""
        return cls(
            error=e.message,
            type=e.error_type,
            details={k: str(v) for k, v in e.details.items()},
        )
