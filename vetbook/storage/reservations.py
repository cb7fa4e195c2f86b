"""Reservation persistence.

Reservations are append-mostly: rows are inserted once and afterwards only
their status, schedule and cancellation fields change.
"""

import json
import sqlite3
from datetime import date, datetime

from vetbook.models.schemas import (
    Cancellation,
    Fees,
    Reservation,
    ReservationStatus,
    utc_now,
)
from vetbook.storage.database import VetBookDB


def _reservation_from_row(row: sqlite3.Row) -> Reservation:
    cancellation = row["cancellation"]
    return Reservation(
        id=row["id"],
        user_id=row["user_id"],
        doctor_id=row["doctor_id"],
        pet_id=row["pet_id"],
        appointment_date=date.fromisoformat(row["appointment_date"]),
        appointment_time=row["appointment_time"],
        duration=row["duration"],
        status=ReservationStatus(row["status"]),
        type=row["type"],
        reason=row["reason"],
        symptoms=json.loads(row["symptoms"]),
        urgency=row["urgency"],
        notes=row["notes"],
        fees=Fees.model_validate_json(row["fees"]),
        cancellation=(
            Cancellation.model_validate_json(cancellation) if cancellation else None
        ),
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


class ReservationStore:
    """CRUD (minus delete) for reservations."""

    def __init__(self, db: VetBookDB):
        self.db = db

    def insert(self, reservation: Reservation) -> Reservation:
        """Persist a new reservation."""
        with self.db.transaction() as conn:
            conn.execute(
                """INSERT INTO reservations
                   (id, user_id, doctor_id, pet_id, appointment_date,
                    appointment_time, duration, status, type, reason, symptoms,
                    urgency, notes, fees, cancellation, created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    reservation.id,
                    reservation.user_id,
                    reservation.doctor_id,
                    reservation.pet_id,
                    reservation.appointment_date.isoformat(),
                    reservation.appointment_time,
                    reservation.duration,
                    reservation.status.value,
                    reservation.type.value,
                    reservation.reason,
                    json.dumps(reservation.symptoms),
                    reservation.urgency.value,
                    reservation.notes,
                    reservation.fees.model_dump_json(),
                    (
                        reservation.cancellation.model_dump_json()
                        if reservation.cancellation
                        else None
                    ),
                    reservation.created_at.isoformat(),
                    reservation.updated_at.isoformat(),
                ),
            )
        return reservation

    def get(self, reservation_id: str) -> Reservation | None:
        """Get reservation by ID."""
        row = self.db.fetch_one(
            "SELECT * FROM reservations WHERE id = ?", (reservation_id,)
        )
        return None if row is None else _reservation_from_row(row)

    def update(self, reservation: Reservation) -> Reservation:
        """Write back the mutable fields of a reservation."""
        reservation.updated_at = utc_now()
        with self.db.transaction() as conn:
            conn.execute(
                """UPDATE reservations SET
                    status = ?, appointment_date = ?, appointment_time = ?,
                    fees = ?, cancellation = ?, updated_at = ?
                   WHERE id = ?""",
                (
                    reservation.status.value,
                    reservation.appointment_date.isoformat(),
                    reservation.appointment_time,
                    reservation.fees.model_dump_json(),
                    (
                        reservation.cancellation.model_dump_json()
                        if reservation.cancellation
                        else None
                    ),
                    reservation.updated_at.isoformat(),
                    reservation.id,
                ),
            )
        return reservation

    def list_for(
        self,
        *,
        user_id: str | None = None,
        doctor_id: str | None = None,
        status: ReservationStatus | None = None,
        offset: int = 0,
        limit: int = 10,
    ) -> tuple[list[Reservation], int]:
        """List reservations with optional filters, newest appointment first.

        Returns:
            The requested page and the total number of matches.
        """
        where = "WHERE 1=1"
        params: list = []

        if user_id:
            where += " AND user_id = ?"
            params.append(user_id)
        if doctor_id:
            where += " AND doctor_id = ?"
            params.append(doctor_id)
        if status:
            where += " AND status = ?"
            params.append(status.value)

        total = self.db.fetch_one(
            f"SELECT COUNT(*) AS n FROM reservations {where}", tuple(params)
        )["n"]
        rows = self.db.fetch_all(
            f"""SELECT * FROM reservations {where}
                ORDER BY appointment_date DESC, appointment_time DESC
                LIMIT ? OFFSET ?""",
            (*params, limit, offset),
        )
        return [_reservation_from_row(row) for row in rows], total
