"""Doctor and pet facts consumed by the booking core.

Profiles are owned by the profile service; this directory keeps the subset
the core needs (activity flags, fee, working hours, ownership) plus the
doctor's booking statistics.
"""

import json
import sqlite3

from vetbook.models.schemas import (
    DoctorProfile,
    DoctorStatistics,
    PetProfile,
    WorkingHours,
)
from vetbook.storage.database import VetBookDB

_STAT_COLUMNS = frozenset(
    {"total_reservations", "completed_reservations", "total_patients"}
)


def _doctor_from_row(row: sqlite3.Row) -> DoctorProfile:
    return DoctorProfile(
        id=row["id"],
        user_id=row["user_id"],
        name=row["name"],
        clinic_name=row["clinic_name"],
        consultation_fee=row["consultation_fee"],
        is_active=bool(row["is_active"]),
        is_verified=bool(row["is_verified"]),
        working_hours=[
            WorkingHours.model_validate(wh) for wh in json.loads(row["working_hours"])
        ],
        statistics=DoctorStatistics(
            total_reservations=row["total_reservations"],
            completed_reservations=row["completed_reservations"],
            total_patients=row["total_patients"],
        ),
    )


def _pet_from_row(row: sqlite3.Row) -> PetProfile:
    return PetProfile(
        id=row["id"],
        owner_id=row["owner_id"],
        name=row["name"],
        species=row["species"],
        is_active=bool(row["is_active"]),
    )


class Directory:
    """Read/write access to doctor and pet facts."""

    def __init__(self, db: VetBookDB):
        self.db = db

    # =========================================================================
    # Doctors
    # =========================================================================

    def save_doctor(self, doctor: DoctorProfile) -> DoctorProfile:
        """Insert or replace a doctor's profile facts.

        Statistics already recorded for the doctor are kept.
        """
        working_hours = json.dumps(
            [wh.model_dump(by_alias=True) for wh in doctor.working_hours]
        )
        with self.db.transaction() as conn:
            conn.execute(
                """INSERT INTO doctors
                   (id, user_id, name, clinic_name, consultation_fee,
                    is_active, is_verified, working_hours)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                   ON CONFLICT(id) DO UPDATE SET
                    user_id = excluded.user_id,
                    name = excluded.name,
                    clinic_name = excluded.clinic_name,
                    consultation_fee = excluded.consultation_fee,
                    is_active = excluded.is_active,
                    is_verified = excluded.is_verified,
                    working_hours = excluded.working_hours""",
                (
                    doctor.id,
                    doctor.user_id,
                    doctor.name,
                    doctor.clinic_name,
                    doctor.consultation_fee,
                    int(doctor.is_active),
                    int(doctor.is_verified),
                    working_hours,
                ),
            )
        return self.get_doctor(doctor.id)

    def get_doctor(self, doctor_id: str) -> DoctorProfile | None:
        """Get doctor by ID."""
        row = self.db.fetch_one(
            "SELECT * FROM doctors WHERE id = ?", (doctor_id,)
        )
        return None if row is None else _doctor_from_row(row)

    def get_doctor_by_user(self, user_id: str) -> DoctorProfile | None:
        """Get the doctor profile belonging to a user account."""
        row = self.db.fetch_one(
            "SELECT * FROM doctors WHERE user_id = ?", (user_id,)
        )
        return None if row is None else _doctor_from_row(row)

    def increment_stats(self, doctor_id: str, **increments: int) -> None:
        """Add to one or more of the doctor's statistics counters."""
        unknown = set(increments) - _STAT_COLUMNS
        if unknown:
            raise ValueError(f"Unknown statistics: {sorted(unknown)}")
        if not increments:
            return
        assignments = ", ".join(f"{col} = {col} + ?" for col in increments)
        with self.db.transaction() as conn:
            conn.execute(
                f"UPDATE doctors SET {assignments} WHERE id = ?",
                (*increments.values(), doctor_id),
            )

    # =========================================================================
    # Pets
    # =========================================================================

    def save_pet(self, pet: PetProfile) -> PetProfile:
        """Insert or replace a pet."""
        with self.db.transaction() as conn:
            conn.execute(
                """INSERT OR REPLACE INTO pets (id, owner_id, name, species, is_active)
                   VALUES (?, ?, ?, ?, ?)""",
                (pet.id, pet.owner_id, pet.name, pet.species, int(pet.is_active)),
            )
        return pet

    def get_pet(self, pet_id: str) -> PetProfile | None:
        """Get pet by ID."""
        row = self.db.fetch_one(
            "SELECT * FROM pets WHERE id = ?", (pet_id,)
        )
        return None if row is None else _pet_from_row(row)
