"""Booking engine: turns a booking request into a claimed slot and a reservation.

The slot is claimed before the reservation row is written. If writing the
reservation fails, the claim is released before the error propagates, so a
slot is never left held by a reservation that does not exist.
"""

import logging
import math
from datetime import date, datetime

from vetbook.booking.state_machine import resolve_actor
from vetbook.config import Settings
from vetbook.models.errors import (
    DayNotWorking,
    DoctorUnavailable,
    InvalidTransition,
    NotAuthorized,
    PetNotOwned,
    ReservationNotFound,
)
from vetbook.models.schemas import (
    AvailabilityUpdate,
    BookingRequest,
    CalendarDay,
    DoctorProfile,
    Fees,
    Pagination,
    Principal,
    Reservation,
    ReservationPage,
    ReservationSnapshot,
    ReservationStatus,
    Slot,
)
from vetbook.scheduling.slot_generator import (
    normalize_day,
    parse_time,
    slots_for_date,
    slots_from_input,
)
from vetbook.storage.calendar_store import CalendarStore, SlotGenerator
from vetbook.storage.database import VetBookDB, generate_id
from vetbook.storage.directory import Directory
from vetbook.storage.reservations import ReservationStore

logger = logging.getLogger(__name__)

RESCHEDULABLE = frozenset({ReservationStatus.PENDING, ReservationStatus.CONFIRMED})


def _check_reschedulable(reservation: Reservation) -> None:
    if reservation.status not in RESCHEDULABLE:
        raise InvalidTransition(
            "Only pending or confirmed reservations can be rescheduled.",
            current=reservation.status.value,
        )


class BookingEngine:
    """Books, reschedules and lists reservations."""

    def __init__(
        self,
        calendar: CalendarStore,
        reservations: ReservationStore,
        directory: Directory,
        settings: Settings | None = None,
    ):
        self.calendar = calendar
        self.reservations = reservations
        self.directory = directory
        self.settings = settings or Settings()

    @classmethod
    def from_db(cls, db: VetBookDB) -> "BookingEngine":
        """Build an engine whose stores share one database."""
        return cls(
            CalendarStore(db),
            ReservationStore(db),
            Directory(db),
            settings=db.settings,
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    def slot_generator(self, doctor: DoctorProfile, day: date) -> SlotGenerator:
        """Generator that expands the doctor's weekly hours for ``day``."""
        return lambda: slots_for_date(
            doctor.working_hours, day, self.settings.slot_duration_minutes
        )

    def _bookable_doctor(self, doctor_id: str) -> DoctorProfile:
        doctor = self.directory.get_doctor(doctor_id)
        if doctor is None or not doctor.is_bookable:
            raise DoctorUnavailable(doctor_id=doctor_id)
        return doctor

    def _working_day(self, doctor: DoctorProfile, day: date) -> CalendarDay:
        calendar_day = self.calendar.ensure_day(
            doctor.id, day, self.slot_generator(doctor, day)
        )
        if not calendar_day.is_working_day:
            raise DayNotWorking(doctor_id=doctor.id, date=day.isoformat())
        return calendar_day

    def _slot_duration(self, calendar_day: CalendarDay, start_time: str) -> int:
        slot: Slot | None = calendar_day.find_slot(start_time)
        if slot is None:
            return self.settings.slot_duration_minutes
        return parse_time(slot.end_time) - parse_time(slot.start_time)

    def _load(self, reservation_id: str) -> Reservation:
        reservation = self.reservations.get(reservation_id)
        if reservation is None:
            raise ReservationNotFound(reservation_id=reservation_id)
        return reservation

    # =========================================================================
    # Booking
    # =========================================================================

    def book(
        self, principal: Principal, request: BookingRequest
    ) -> ReservationSnapshot:
        """Claim the requested slot and create a pending reservation.

        Args:
            principal: The caller; must be a regular user.
            request: Doctor, pet, date, time and visit details.

        Returns:
            Snapshot of the new reservation.

        Raises:
            NotAuthorized: Caller is not a regular user.
            DoctorUnavailable: Doctor missing, inactive or unverified.
            PetNotOwned: Pet missing, inactive or owned by someone else.
            DayNotWorking: The doctor does not work that day.
            SlotNotFound: No slot starts at the requested time.
            SlotUnavailable: The slot is already held.
        """
        if principal.role != "user":
            raise NotAuthorized("Only regular users can make reservations.")

        doctor = self._bookable_doctor(request.doctor_id)

        pet = self.directory.get_pet(request.pet_id)
        if pet is None or not pet.is_active or pet.owner_id != principal.id:
            raise PetNotOwned(pet_id=request.pet_id)

        day = normalize_day(request.appointment_date, self.settings.timezone)
        calendar_day = self._working_day(doctor, day)

        reservation_id = generate_id("res")
        reservation = Reservation(
            id=reservation_id,
            user_id=principal.id,
            doctor_id=doctor.id,
            pet_id=pet.id,
            appointment_date=day,
            appointment_time=request.appointment_time,
            duration=self._slot_duration(calendar_day, request.appointment_time),
            type=request.type,
            reason=request.reason,
            symptoms=request.symptoms,
            urgency=request.urgency,
            notes=request.notes,
            fees=Fees.for_consultation(doctor.consultation_fee),
        )

        self.calendar.claim_slot(
            doctor.id, day, request.appointment_time, reservation_id
        )

        try:
            with self.reservations.db.transaction():
                self.reservations.insert(reservation)
                self.directory.increment_stats(doctor.id, total_reservations=1)
        except Exception:
            logger.warning(
                f"Saving reservation {reservation_id} failed; releasing its slot"
            )
            self.calendar.release_slot(
                doctor.id,
                reservation_id,
                day=day,
                start_time=request.appointment_time,
            )
            raise

        logger.info(
            f"Booked {reservation_id}: doctor={doctor.id} pet={pet.id} "
            f"{day} {request.appointment_time}"
        )
        return reservation.snapshot()

    def reschedule(
        self,
        principal: Principal,
        reservation_id: str,
        new_date: date | datetime | str,
        new_time: str,
    ) -> ReservationSnapshot:
        """Move a pending or confirmed reservation to another slot.

        The new slot is claimed first, then the reservation is updated and
        the old slot released. The reservation goes back to pending.

        Raises:
            ReservationNotFound, NotAuthorized, InvalidTransition,
            DoctorUnavailable, DayNotWorking, SlotNotFound, SlotUnavailable
        """
        reservation = self._load(reservation_id)
        actor = resolve_actor(self.directory, principal, reservation)
        _check_reschedulable(reservation)

        day = normalize_day(new_date, self.settings.timezone)
        old_day, old_time = reservation.appointment_date, reservation.appointment_time
        if (day, new_time) == (old_day, old_time):
            return reservation.snapshot()

        doctor = self._bookable_doctor(reservation.doctor_id)
        self._working_day(doctor, day)
        self.calendar.claim_slot(doctor.id, day, new_time, reservation.id)

        try:
            with self.reservations.db.transaction():
                # status and schedule may have changed since the first load
                reservation = self._load(reservation_id)
                _check_reschedulable(reservation)
                old_day = reservation.appointment_date
                old_time = reservation.appointment_time
                reservation.appointment_date = day
                reservation.appointment_time = new_time
                reservation.status = ReservationStatus.PENDING
                self.reservations.update(reservation)
                self.calendar.release_slot(
                    doctor.id, reservation.id, day=old_day, start_time=old_time
                )
        except Exception:
            logger.warning(
                f"Rescheduling {reservation_id} failed; releasing {day} {new_time}"
            )
            self.calendar.release_slot(
                doctor.id, reservation_id, day=day, start_time=new_time
            )
            raise

        logger.info(
            f"Rescheduled {reservation.id} by {actor.value}: "
            f"{old_day} {old_time} -> {day} {new_time}"
        )
        return reservation.snapshot()

    # =========================================================================
    # Availability
    # =========================================================================

    def update_availability(
        self, principal: Principal, update: AvailabilityUpdate
    ) -> CalendarDay:
        """Create or overwrite one of the calling doctor's calendar days.

        Slots come from the weekly working hours when
        ``generate_from_working_hours`` is set, otherwise from the explicit
        ``time_slots`` list (empty for a day off).

        Raises:
            NotAuthorized: Caller is not a doctor.
            DoctorUnavailable: Caller has no doctor profile.
            DayNotWorking: Generation requested but no hours for the weekday.
            CalendarConflict: The change would drop a booked slot.
            ValueError: Explicit slots overlap.
        """
        if principal.role != "doctor":
            raise NotAuthorized("Only doctors can manage availability.")
        doctor = self.directory.get_doctor_by_user(principal.id)
        if doctor is None:
            raise DoctorUnavailable("Doctor profile not found.")

        day = normalize_day(update.date, self.settings.timezone)
        if update.generate_from_working_hours and update.is_working_day:
            slots = slots_for_date(
                doctor.working_hours, day, self.settings.slot_duration_minutes
            )
        else:
            slots = slots_from_input(update.time_slots or [])

        return self.calendar.set_day(
            doctor.id,
            day,
            slots,
            is_working_day=update.is_working_day,
            note=update.special_notes,
        )

    def list_availability(
        self, doctor_id: str, start: date, end: date
    ) -> list[CalendarDay]:
        """Calendar days already recorded for a doctor in ``[start, end]``."""
        return self.calendar.list_days(doctor_id, start, end)

    # =========================================================================
    # Reads
    # =========================================================================

    def get_reservation(self, principal: Principal, reservation_id: str) -> Reservation:
        """Return a reservation visible to its owner or assigned doctor."""
        reservation = self._load(reservation_id)
        resolve_actor(self.directory, principal, reservation)
        return reservation

    def list_reservations(
        self,
        principal: Principal,
        status: ReservationStatus | None = None,
        page: int = 1,
        limit: int | None = None,
    ) -> ReservationPage:
        """Page through the caller's reservations.

        Users see the reservations they made; doctors see the ones assigned
        to them.
        """
        page = max(page, 1)
        limit = min(
            max(limit or self.settings.default_page_size, 1),
            self.settings.max_page_size,
        )

        filters: dict[str, str] = {}
        if principal.role == "doctor":
            doctor = self.directory.get_doctor_by_user(principal.id)
            if doctor is None:
                raise DoctorUnavailable("Doctor profile not found.")
            filters["doctor_id"] = doctor.id
        else:
            filters["user_id"] = principal.id

        reservations, total = self.reservations.list_for(
            status=status,
            offset=(page - 1) * limit,
            limit=limit,
            **filters,
        )
        total_pages = math.ceil(total / limit)
        return ReservationPage(
            reservations=reservations,
            pagination=Pagination(
                current_page=page,
                total_pages=total_pages,
                total_reservations=total,
                has_next=page < total_pages,
                has_prev=page > 1,
            ),
        )
