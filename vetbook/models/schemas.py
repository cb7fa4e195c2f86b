"""Pydantic models for calendars, slots and reservations.

Field names are snake_case in Python and camelCase on the wire
(``reservation_id`` <-> ``reservationId``).
"""

from datetime import date, datetime, timezone
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


WEEKDAYS = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)

Weekday = Literal[
    "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"
]


class CamelModel(BaseModel):
    """Base model serialized with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# Enums
# =============================================================================


class ReservationStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no-show"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset(
    {
        ReservationStatus.COMPLETED,
        ReservationStatus.CANCELLED,
        ReservationStatus.NO_SHOW,
    }
)


class AppointmentType(str, Enum):
    CONSULTATION = "consultation"
    CHECKUP = "checkup"
    VACCINATION = "vaccination"
    SURGERY = "surgery"
    EMERGENCY = "emergency"


class Urgency(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    EMERGENCY = "emergency"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    REFUNDED = "refunded"


# =============================================================================
# Calendar
# =============================================================================


class SlotInput(CamelModel):
    """A slot window supplied by a doctor when overriding a day."""

    start_time: str = Field(pattern=TIME_PATTERN)
    end_time: str = Field(pattern=TIME_PATTERN)

    @model_validator(mode="after")
    def _check_order(self) -> "SlotInput":
        if self.start_time >= self.end_time:
            raise ValueError(
                f"startTime {self.start_time} must be before endTime {self.end_time}"
            )
        return self


class Slot(SlotInput):
    """A bookable window within a doctor's calendar day."""

    is_available: bool = True
    reservation_id: str | None = None

    @model_validator(mode="after")
    def _check_claim(self) -> "Slot":
        if self.is_available == (self.reservation_id is not None):
            raise ValueError("isAvailable must be false exactly when reservationId is set")
        return self


class CalendarDay(CamelModel):
    """One doctor's slots for one calendar date."""

    doctor_id: str
    date: date
    is_working_day: bool = True
    slots: list[Slot] = Field(default_factory=list)
    note: str = ""

    def find_slot(self, start_time: str) -> Slot | None:
        return next((s for s in self.slots if s.start_time == start_time), None)

    @property
    def available_slots(self) -> list[Slot]:
        if not self.is_working_day:
            return []
        return [s for s in self.slots if s.is_available]


class WorkingHours(CamelModel):
    """A recurring weekly working-hours entry."""

    day: Weekday
    start_time: str = Field(pattern=TIME_PATTERN)
    end_time: str = Field(pattern=TIME_PATTERN)
    is_available: bool = True


# =============================================================================
# Collaborator facts
# =============================================================================


class DoctorStatistics(CamelModel):
    total_reservations: int = 0
    completed_reservations: int = 0
    total_patients: int = 0


class DoctorProfile(CamelModel):
    """Doctor facts the booking core depends on."""

    id: str
    user_id: str
    name: str = ""
    clinic_name: str = ""
    consultation_fee: float = Field(default=0, ge=0)
    is_active: bool = True
    is_verified: bool = False
    working_hours: list[WorkingHours] = Field(default_factory=list)
    statistics: DoctorStatistics = Field(default_factory=DoctorStatistics)

    @property
    def is_bookable(self) -> bool:
        return self.is_active and self.is_verified


class PetProfile(CamelModel):
    id: str
    owner_id: str
    name: str = ""
    species: str = ""
    is_active: bool = True


class Principal(CamelModel):
    """The authenticated caller, as reported by the auth layer."""

    id: str
    role: Literal["user", "doctor"]


# =============================================================================
# Reservations
# =============================================================================


class Fees(CamelModel):
    consultation_fee: float = Field(ge=0)
    additional_charges: float = Field(default=0, ge=0)
    total_amount: float = Field(ge=0)
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payment_method: str | None = None

    @classmethod
    def for_consultation(
        cls, consultation_fee: float, additional_charges: float = 0
    ) -> "Fees":
        return cls(
            consultation_fee=consultation_fee,
            additional_charges=additional_charges,
            total_amount=consultation_fee + additional_charges,
        )


class Cancellation(CamelModel):
    cancelled_by: str
    cancelled_at: datetime = Field(default_factory=utc_now)
    reason: str


class Reservation(CamelModel):
    """A booking that holds exactly one slot while active."""

    id: str
    user_id: str
    doctor_id: str
    pet_id: str
    appointment_date: date
    appointment_time: str = Field(pattern=TIME_PATTERN)
    duration: int = Field(default=30, gt=0)
    status: ReservationStatus = ReservationStatus.PENDING
    type: AppointmentType
    reason: str
    symptoms: list[str] = Field(default_factory=list)
    urgency: Urgency = Urgency.MEDIUM
    notes: str = ""
    fees: Fees
    cancellation: Cancellation | None = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    def snapshot(self) -> "ReservationSnapshot":
        return ReservationSnapshot(
            id=self.id,
            status=self.status,
            appointment_date=self.appointment_date,
            appointment_time=self.appointment_time,
            type=self.type,
            total_amount=self.fees.total_amount,
        )


class ReservationSnapshot(CamelModel):
    """Summary returned to the caller after booking or a status change."""

    id: str
    status: ReservationStatus
    appointment_date: date
    appointment_time: str
    type: AppointmentType
    total_amount: float


class Pagination(CamelModel):
    current_page: int
    total_pages: int
    total_reservations: int
    has_next: bool
    has_prev: bool


class ReservationPage(CamelModel):
    reservations: list[Reservation]
    pagination: Pagination


# =============================================================================
# Request models
# =============================================================================


class BookingRequest(CamelModel):
    """Request to book a slot."""

    doctor_id: str
    pet_id: str
    appointment_date: date
    appointment_time: str = Field(pattern=TIME_PATTERN)
    type: AppointmentType
    reason: str = Field(min_length=1)
    symptoms: list[str] = Field(default_factory=list)
    urgency: Urgency = Urgency.MEDIUM
    notes: str = ""


class StatusUpdate(CamelModel):
    status: ReservationStatus
    cancellation_reason: str | None = None


class RescheduleRequest(CamelModel):
    appointment_date: date
    appointment_time: str = Field(pattern=TIME_PATTERN)


class AvailabilityUpdate(CamelModel):
    """Doctor's upsert of one calendar day."""

    date: date
    time_slots: list[SlotInput] | None = None
    is_working_day: bool = True
    special_notes: str = ""
    generate_from_working_hours: bool = False
