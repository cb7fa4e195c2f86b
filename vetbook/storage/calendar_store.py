"""Per-doctor calendar days and their slots.

A day is keyed by (doctor_id, date). Claiming a slot is a single
conditional UPDATE, so two bookers racing for the same slot can never both
succeed.
"""

import logging
from collections.abc import Callable, Sequence
from datetime import date

from vetbook.models.errors import (
    CalendarConflict,
    DayNotWorking,
    SlotNotFound,
    SlotUnavailable,
)
from vetbook.models.schemas import CalendarDay, Slot
from vetbook.storage.database import VetBookDB, generate_id

logger = logging.getLogger(__name__)

SlotGenerator = Callable[[], list[Slot]]


class CalendarStore:
    """Read/write access to DoctorCalendarDay records."""

    def __init__(self, db: VetBookDB):
        self.db = db

    # =========================================================================
    # Reads
    # =========================================================================

    def get_day(self, doctor_id: str, day: date) -> CalendarDay | None:
        """Return the doctor's calendar day, or None if it was never created."""
        row = self.db.fetch_one(
            "SELECT * FROM calendar_days WHERE doctor_id = ? AND day = ?",
            (doctor_id, day.isoformat()),
        )
        if row is None:
            return None
        return self._load_day(row)

    def list_days(self, doctor_id: str, start: date, end: date) -> list[CalendarDay]:
        """List the doctor's days in ``[start, end]`` ordered by date."""
        rows = self.db.fetch_all(
            """SELECT * FROM calendar_days
               WHERE doctor_id = ? AND day >= ? AND day <= ?
               ORDER BY day""",
            (doctor_id, start.isoformat(), end.isoformat()),
        )
        return [self._load_day(row) for row in rows]

    def _load_day(self, row) -> CalendarDay:
        slot_rows = self.db.fetch_all(
            "SELECT * FROM slots WHERE day_id = ? ORDER BY start_time",
            (row["id"],),
        )
        return CalendarDay(
            doctor_id=row["doctor_id"],
            date=date.fromisoformat(row["day"]),
            is_working_day=bool(row["is_working_day"]),
            note=row["note"],
            slots=[
                Slot(
                    start_time=s["start_time"],
                    end_time=s["end_time"],
                    is_available=bool(s["is_available"]),
                    reservation_id=s["reservation_id"],
                )
                for s in slot_rows
            ],
        )

    # =========================================================================
    # Day creation
    # =========================================================================

    def ensure_day(
        self, doctor_id: str, day: date, generator: SlotGenerator
    ) -> CalendarDay:
        """Return the existing day, or create it from ``generator``.

        A generator that raises ``DayNotWorking`` yields a non-working day
        with no slots. Concurrent callers agree on a single record: the
        insert is ignored when another caller created the day first.
        """
        existing = self.get_day(doctor_id, day)
        if existing is not None:
            return existing

        try:
            slots = generator()
            is_working_day = True
        except DayNotWorking:
            slots, is_working_day = [], False

        with self.db.transaction() as conn:
            day_id = generate_id("day")
            cursor = conn.execute(
                """INSERT OR IGNORE INTO calendar_days
                   (id, doctor_id, day, is_working_day, note)
                   VALUES (?, ?, ?, ?, '')""",
                (day_id, doctor_id, day.isoformat(), int(is_working_day)),
            )
            if cursor.rowcount == 1:
                self._insert_slots(conn, day_id, slots)
                logger.info(
                    f"Created calendar day {doctor_id}/{day} "
                    f"({len(slots)} slots, working={is_working_day})"
                )

        return self.get_day(doctor_id, day)

    def set_day(
        self,
        doctor_id: str,
        day: date,
        slots: Sequence[Slot],
        is_working_day: bool = True,
        note: str = "",
    ) -> CalendarDay:
        """Create or overwrite a day's slot list.

        Slots held by a reservation keep their claim when the new list still
        has a slot starting at the same time.

        Raises:
            CalendarConflict: The new list drops a held slot, or marks a day
                with held slots as non-working.
        """
        with self.db.transaction() as conn:
            existing = self.get_day(doctor_id, day)
            held = {}
            if existing is not None:
                held = {
                    s.start_time: s.reservation_id
                    for s in existing.slots
                    if not s.is_available
                }

            new_starts = {s.start_time for s in slots}
            dropped = sorted(t for t in held if t not in new_starts)
            if dropped or (held and not is_working_day):
                raise CalendarConflict(
                    date=day.isoformat(),
                    booked=", ".join(dropped or sorted(held)),
                )

            conn.execute(
                """INSERT INTO calendar_days (id, doctor_id, day, is_working_day, note)
                   VALUES (?, ?, ?, ?, ?)
                   ON CONFLICT(doctor_id, day) DO UPDATE SET
                    is_working_day = excluded.is_working_day,
                    note = excluded.note""",
                (
                    generate_id("day"),
                    doctor_id,
                    day.isoformat(),
                    int(is_working_day),
                    note,
                ),
            )
            day_id = conn.execute(
                "SELECT id FROM calendar_days WHERE doctor_id = ? AND day = ?",
                (doctor_id, day.isoformat()),
            ).fetchone()["id"]

            conn.execute("DELETE FROM slots WHERE day_id = ?", (day_id,))
            carried = [
                Slot(
                    start_time=s.start_time,
                    end_time=s.end_time,
                    is_available=s.start_time not in held,
                    reservation_id=held.get(s.start_time),
                )
                for s in slots
            ]
            self._insert_slots(conn, day_id, carried)

        logger.info(
            f"Set calendar day {doctor_id}/{day} "
            f"({len(slots)} slots, working={is_working_day})"
        )
        return self.get_day(doctor_id, day)

    @staticmethod
    def _insert_slots(conn, day_id: str, slots: Sequence[Slot]) -> None:
        conn.executemany(
            """INSERT INTO slots
               (day_id, start_time, end_time, is_available, reservation_id)
               VALUES (?, ?, ?, ?, ?)""",
            [
                (
                    day_id,
                    s.start_time,
                    s.end_time,
                    int(s.is_available),
                    s.reservation_id,
                )
                for s in slots
            ],
        )

    # =========================================================================
    # Claim / release
    # =========================================================================

    def claim_slot(
        self, doctor_id: str, day: date, start_time: str, reservation_id: str
    ) -> None:
        """Atomically hand the slot starting at ``start_time`` to a reservation.

        Raises:
            SlotNotFound: The day or the slot does not exist.
            DayNotWorking: The day is marked non-working.
            SlotUnavailable: Another reservation already holds the slot.
        """
        with self.db.transaction() as conn:
            cursor = conn.execute(
                """UPDATE slots SET is_available = 0, reservation_id = ?
                   WHERE start_time = ? AND is_available = 1
                     AND day_id = (
                        SELECT id FROM calendar_days
                        WHERE doctor_id = ? AND day = ? AND is_working_day = 1
                     )""",
                (reservation_id, start_time, doctor_id, day.isoformat()),
            )
            if cursor.rowcount == 1:
                logger.info(
                    f"Claimed slot {doctor_id}/{day} {start_time} for {reservation_id}"
                )
                return

            row = conn.execute(
                """SELECT d.is_working_day, s.start_time
                   FROM calendar_days d
                   LEFT JOIN slots s ON s.day_id = d.id AND s.start_time = ?
                   WHERE d.doctor_id = ? AND d.day = ?""",
                (start_time, doctor_id, day.isoformat()),
            ).fetchone()

        context = {"doctor_id": doctor_id, "date": day.isoformat(), "time": start_time}
        if row is None or (row["is_working_day"] and row["start_time"] is None):
            raise SlotNotFound(**context)
        if not row["is_working_day"]:
            raise DayNotWorking(**context)
        raise SlotUnavailable(**context)

    def release_slot(
        self,
        doctor_id: str,
        reservation_id: str,
        day: date | None = None,
        start_time: str | None = None,
    ) -> bool:
        """Return the slot held by ``reservation_id`` to the pool.

        Searches all of the doctor's days unless ``day``/``start_time``
        narrow it down. Releasing a slot nobody holds is a no-op.

        Returns:
            True if a slot was released.
        """
        query = """UPDATE slots SET is_available = 1, reservation_id = NULL
                   WHERE reservation_id = ?
                     AND day_id IN (
                        SELECT id FROM calendar_days WHERE doctor_id = ?{day_filter}
                     ){time_filter}"""
        params: list = [reservation_id, doctor_id]
        day_filter = time_filter = ""
        if day is not None:
            day_filter = " AND day = ?"
            params.append(day.isoformat())
        if start_time is not None:
            time_filter = " AND start_time = ?"
            params.append(start_time)

        with self.db.transaction() as conn:
            cursor = conn.execute(
                query.format(day_filter=day_filter, time_filter=time_filter),
                params,
            )

        released = cursor.rowcount > 0
        if released:
            logger.info(f"Released slot(s) of {reservation_id} for doctor {doctor_id}")
        else:
            logger.debug(f"No slot held by {reservation_id}; nothing to release")
        return released
