"""Shared test fixtures for vetbook tests."""

from datetime import date
from typing import Generator

import pytest
from fastapi.testclient import TestClient

from vetbook.api.app import create_app
from vetbook.booking.engine import BookingEngine
from vetbook.booking.state_machine import ReservationStateMachine
from vetbook.config import Settings
from vetbook.models.schemas import (
    BookingRequest,
    DoctorProfile,
    PetProfile,
    Principal,
    WorkingHours,
)
from vetbook.storage.database import VetBookDB

# 2026-01-05 is a Monday
MONDAY = date(2026, 1, 5)
TUESDAY = date(2026, 1, 6)
SUNDAY = date(2026, 1, 4)

DOCTOR_ID = "doc_smith"
DOCTOR_USER_ID = "user_dr_smith"
OWNER_ID = "user_alice"
PET_ID = "pet_rex"


@pytest.fixture
def settings() -> Settings:
    """Settings backed by an in-memory database."""
    return Settings.for_testing()


@pytest.fixture
def db(settings) -> Generator[VetBookDB, None, None]:
    """Create in-memory database for testing."""
    database = VetBookDB(settings)
    database.init_schema()
    yield database
    database.close()


@pytest.fixture
def engine(db) -> BookingEngine:
    return BookingEngine.from_db(db)


@pytest.fixture
def state_machine(engine) -> ReservationStateMachine:
    return ReservationStateMachine(
        engine.reservations, engine.calendar, engine.directory
    )


@pytest.fixture
def doctor(engine) -> DoctorProfile:
    """Verified doctor working Monday 09:00-10:00 and Tuesday 09:00-17:00."""
    return engine.directory.save_doctor(
        DoctorProfile(
            id=DOCTOR_ID,
            user_id=DOCTOR_USER_ID,
            name="Dr. Smith",
            clinic_name="Riverside Animal Clinic",
            consultation_fee=150,
            is_verified=True,
            working_hours=[
                WorkingHours(day="Monday", start_time="09:00", end_time="10:00"),
                WorkingHours(day="Tuesday", start_time="09:00", end_time="17:00"),
                WorkingHours(
                    day="Sunday",
                    start_time="10:00",
                    end_time="12:00",
                    is_available=False,
                ),
            ],
        )
    )


@pytest.fixture
def pet(engine) -> PetProfile:
    return engine.directory.save_pet(
        PetProfile(id=PET_ID, owner_id=OWNER_ID, name="Rex", species="dog")
    )


@pytest.fixture
def owner() -> Principal:
    return Principal(id=OWNER_ID, role="user")


@pytest.fixture
def doctor_principal() -> Principal:
    return Principal(id=DOCTOR_USER_ID, role="doctor")


@pytest.fixture
def stranger() -> Principal:
    return Principal(id="user_mallory", role="user")


@pytest.fixture
def make_request(doctor, pet):
    """Factory for booking requests against the seeded doctor and pet."""

    def _make(day: date = MONDAY, time: str = "09:00", **overrides) -> BookingRequest:
        values = {
            "doctor_id": doctor.id,
            "pet_id": pet.id,
            "appointment_date": day,
            "appointment_time": time,
            "type": "checkup",
            "reason": "Annual checkup",
        }
        values.update(overrides)
        return BookingRequest(**values)

    return _make


@pytest.fixture
def client(db, doctor, pet) -> TestClient:
    """Test client over the seeded in-memory database."""
    app = create_app(db=db)
    return TestClient(app)


@pytest.fixture
def user_headers() -> dict[str, str]:
    return {"X-User-Id": OWNER_ID, "X-User-Role": "user"}


@pytest.fixture
def doctor_headers() -> dict[str, str]:
    return {"X-User-Id": DOCTOR_USER_ID, "X-User-Role": "doctor"}
