"""Concurrent booking, rescheduling and cancellation.

Many callers race for the same slot; exactly one may win. A reservation
never ends up holding more than one slot, and a cancelled one holds none.
"""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from vetbook.models.errors import BookingError, SlotUnavailable
from vetbook.models.schemas import ReservationStatus

ATTEMPTS = 20


def _race(engine, owner, request, attempts=ATTEMPTS):
    barrier = threading.Barrier(attempts)

    def attempt(_):
        barrier.wait()
        try:
            return engine.book(owner, request)
        except SlotUnavailable as e:
            return e

    with ThreadPoolExecutor(max_workers=attempts) as pool:
        return list(pool.map(attempt, range(attempts)))


class TestConcurrentBooking:
    """Tests for mutual exclusion on slot claims."""

    def test_exactly_one_winner(self, engine, owner, doctor, make_request):
        results = _race(engine, owner, make_request())

        winners = [r for r in results if not isinstance(r, Exception)]
        losers = [r for r in results if isinstance(r, SlotUnavailable)]
        assert len(winners) == 1
        assert len(losers) == ATTEMPTS - 1

        slot = engine.calendar.get_day(doctor.id, winners[0].appointment_date).find_slot(
            "09:00"
        )
        assert slot.reservation_id == winners[0].id

    def test_only_winner_is_persisted(self, engine, owner, doctor, make_request):
        _race(engine, owner, make_request())

        page = engine.list_reservations(owner)
        assert page.pagination.total_reservations == 1
        assert engine.directory.get_doctor(doctor.id).statistics.total_reservations == 1

    def test_different_slots_all_succeed(self, engine, owner, make_request):
        requests = [make_request(time="09:00"), make_request(time="09:30")]
        barrier = threading.Barrier(len(requests))

        def attempt(request):
            barrier.wait()
            return engine.book(owner, request)

        with ThreadPoolExecutor(max_workers=len(requests)) as pool:
            results = list(pool.map(attempt, requests))

        assert {r.appointment_time for r in results} == {"09:00", "09:30"}
        assert all(r.status is ReservationStatus.PENDING for r in results)

    @pytest.mark.parametrize("attempts", [2, 8])
    def test_cancel_and_rebook_race(
        self, engine, state_machine, owner, make_request, attempts
    ):
        """After a cancellation the slot is claimable exactly once again."""
        first = engine.book(owner, make_request())
        state_machine.transition(owner, first.id, ReservationStatus.CANCELLED)

        results = _race(engine, owner, make_request(), attempts=attempts)

        assert sum(not isinstance(r, Exception) for r in results) == 1


def _held_slots(db, reservation_id):
    rows = db.fetch_all(
        """SELECT d.day, s.start_time FROM slots s
           JOIN calendar_days d ON d.id = s.day_id
           WHERE s.reservation_id = ?""",
        (reservation_id,),
    )
    return [(row["day"], row["start_time"]) for row in rows]


def _run_together(*calls):
    """Start every call at the same moment; BookingErrors become results."""
    barrier = threading.Barrier(len(calls))

    def run(call):
        barrier.wait()
        try:
            return call()
        except BookingError as e:
            return e

    with ThreadPoolExecutor(max_workers=len(calls)) as pool:
        return list(pool.map(run, calls))


class TestConcurrentReschedule:
    """Tests for reschedule racing cancel and other reschedules."""

    @pytest.mark.parametrize("rounds", range(5))
    def test_reschedule_and_cancel(
        self, db, engine, state_machine, owner, make_request, rounds
    ):
        booked = engine.book(owner, make_request())

        _run_together(
            lambda: engine.reschedule(owner, booked.id, "2026-01-06", "11:00"),
            lambda: state_machine.transition(
                owner, booked.id, ReservationStatus.CANCELLED
            ),
        )

        stored = engine.reservations.get(booked.id)
        assert stored.status is ReservationStatus.CANCELLED
        assert stored.cancellation is not None
        assert _held_slots(db, booked.id) == []

    @pytest.mark.parametrize("rounds", range(5))
    def test_two_reschedules(self, db, engine, owner, make_request, rounds):
        booked = engine.book(owner, make_request())

        results = _run_together(
            lambda: engine.reschedule(owner, booked.id, "2026-01-06", "11:00"),
            lambda: engine.reschedule(owner, booked.id, "2026-01-05", "09:30"),
        )

        assert any(not isinstance(r, Exception) for r in results)
        stored = engine.reservations.get(booked.id)
        assert stored.status is ReservationStatus.PENDING
        assert _held_slots(db, booked.id) == [
            (stored.appointment_date.isoformat(), stored.appointment_time)
        ]
