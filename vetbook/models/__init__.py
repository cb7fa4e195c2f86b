"""Domain models and the booking error taxonomy."""

from vetbook.models.errors import (
    BookingError,
    CalendarConflict,
    DayNotWorking,
    DoctorUnavailable,
    ErrorResponse,
    ErrorType,
    InvalidTransition,
    NotAuthorized,
    PetNotOwned,
    ReservationNotFound,
    SlotNotFound,
    SlotUnavailable,
)
from vetbook.models.schemas import (
    AppointmentType,
    AvailabilityUpdate,
    BookingRequest,
    CalendarDay,
    Cancellation,
    DoctorProfile,
    DoctorStatistics,
    Fees,
    Pagination,
    PaymentStatus,
    PetProfile,
    Principal,
    RescheduleRequest,
    Reservation,
    ReservationPage,
    ReservationSnapshot,
    ReservationStatus,
    Slot,
    SlotInput,
    StatusUpdate,
    Urgency,
    WorkingHours,
)

__all__ = [
    # Errors
    "BookingError",
    "CalendarConflict",
    "DayNotWorking",
    "DoctorUnavailable",
    "ErrorResponse",
    "ErrorType",
    "InvalidTransition",
    "NotAuthorized",
    "PetNotOwned",
    "ReservationNotFound",
    "SlotNotFound",
    "SlotUnavailable",
    # Calendar
    "CalendarDay",
    "Slot",
    "SlotInput",
    "WorkingHours",
    # Collaborators
    "DoctorProfile",
    "DoctorStatistics",
    "PetProfile",
    "Principal",
    # Reservations
    "AppointmentType",
    "Cancellation",
    "Fees",
    "Pagination",
    "PaymentStatus",
    "Reservation",
    "ReservationPage",
    "ReservationSnapshot",
    "ReservationStatus",
    "Urgency",
    # Requests
    "AvailabilityUpdate",
    "BookingRequest",
    "RescheduleRequest",
    "StatusUpdate",
]
