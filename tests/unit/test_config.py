"""Tests for vetbook.config module."""

import pytest
from pydantic import ValidationError

from vetbook.booking.engine import BookingEngine
from vetbook.config import (
    AVAILABILITY_WINDOW_DAYS,
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    PACKAGE_ROOT,
    SLOT_DURATION_MINUTES,
    Settings,
)
from vetbook.storage.database import VetBookDB


class TestPaths:
    """Tests for path configuration."""

    def test_package_root_exists(self):
        """Package root directory should exist."""
        assert PACKAGE_ROOT.exists()
        assert PACKAGE_ROOT.is_dir()
        assert (PACKAGE_ROOT / "config.py").exists()


class TestDefaults:
    """Tests for default values."""

    def test_page_sizes_are_sane(self):
        assert 1 <= DEFAULT_PAGE_SIZE <= MAX_PAGE_SIZE

    def test_slot_duration_positive(self):
        assert SLOT_DURATION_MINUTES > 0

    def test_availability_window_positive(self):
        assert AVAILABILITY_WINDOW_DAYS > 0


class TestSettings:
    """Tests for the Settings model."""

    def test_defaults_follow_module_constants(self):
        settings = Settings()

        assert settings.slot_duration_minutes == SLOT_DURATION_MINUTES
        assert settings.default_page_size == DEFAULT_PAGE_SIZE

    def test_for_testing_uses_memory_database(self):
        assert Settings.for_testing().database_path == ":memory:"

    def test_for_testing_overrides(self):
        settings = Settings.for_testing(slot_duration_minutes=15, timezone="Europe/Helsinki")

        assert settings.slot_duration_minutes == 15
        assert settings.timezone == "Europe/Helsinki"
        assert settings.database_path == ":memory:"

    @pytest.mark.parametrize("minutes", [0, 4, 481])
    def test_slot_duration_bounds(self, minutes):
        with pytest.raises(ValidationError):
            Settings.for_testing(slot_duration_minutes=minutes)

    def test_shorter_slots_change_generated_day(self, doctor, pet, owner, make_request):
        """The engine should expand working hours with the configured length."""
        db = VetBookDB(Settings.for_testing(slot_duration_minutes=15))
        db.init_schema()
        engine = BookingEngine.from_db(db)
        engine.directory.save_doctor(doctor)
        engine.directory.save_pet(pet)

        request = make_request(time="09:45")
        engine.book(owner, request)

        day = engine.calendar.get_day(doctor.id, request.appointment_date)
        assert [s.start_time for s in day.slots] == ["09:00", "09:15", "09:30", "09:45"]
        db.close()
