"""Vetbook - appointment slot booking for veterinary clinics.

Doctors publish calendar days made of fixed-length slots; users book a slot
for one of their pets; reservations then move through a small status state
machine that releases the slot on cancellation.
"""

from vetbook.booking import BookingEngine, ReservationStateMachine
from vetbook.config import Settings
from vetbook.models import (
    BookingError,
    BookingRequest,
    CalendarDay,
    ErrorType,
    Reservation,
    ReservationStatus,
    Slot,
)
from vetbook.scheduling import generate_slots
from vetbook.storage import CalendarStore, Directory, ReservationStore, VetBookDB

__all__ = [
    # Core
    "BookingEngine",
    "ReservationStateMachine",
    "generate_slots",
    # Storage
    "CalendarStore",
    "Directory",
    "ReservationStore",
    "VetBookDB",
    # Models
    "BookingError",
    "BookingRequest",
    "CalendarDay",
    "ErrorType",
    "Reservation",
    "ReservationStatus",
    "Slot",
    # Config
    "Settings",
]
