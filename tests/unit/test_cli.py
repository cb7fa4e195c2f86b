"""Tests for vetbook.cli module."""

import argparse
import os

import pytest

from vetbook.cli import create_parser
from vetbook.cli.commands import (
    cmd_init_db,
    cmd_seed,
    cmd_serve,
    cmd_slots,
    load_seed,
)
from vetbook.config import PACKAGE_ROOT, Settings
from vetbook.storage.database import VetBookDB
from vetbook.storage.directory import Directory

SEED_YAML = """
doctors:
  - id: doc_1
    userId: user_dr_1
    consultationFee: 120
    isVerified: true
    workingHours:
      - {day: Monday, startTime: "09:00", endTime: "12:00"}
pets:
  - {id: pet_1, ownerId: user_alice, name: Rex, species: dog}
"""


class TestParser:
    """Tests for create_parser."""

    def test_slots_command(self):
        args = create_parser().parse_args(["slots", "-s", "09:00", "-e", "12:00"])

        assert args.command == "slots"
        assert args.start == "09:00"
        assert args.duration == 30
        assert args.func is cmd_slots

    def test_global_db_option(self):
        args = create_parser().parse_args(["--db", "/tmp/x.db", "init-db"])

        assert args.db == "/tmp/x.db"
        assert args.func is cmd_init_db

    def test_serve_defaults(self):
        args = create_parser().parse_args(["serve"])

        assert args.port == 8000
        assert args.reload is False

    def test_slots_requires_window(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args(["slots", "--start", "09:00"])


class TestCmdSlots:
    """Tests for cmd_slots output."""

    def _args(self, start="09:00", end="10:00", duration=30):
        return argparse.Namespace(start=start, end=end, duration=duration)

    def test_prints_slots(self, capsys):
        cmd_slots(self._args())

        out = capsys.readouterr().out
        assert "09:00-09:30" in out
        assert "09:30-10:00" in out
        assert "2 slots" in out

    def test_empty_window(self, capsys):
        cmd_slots(self._args(end="09:10"))

        assert "No slots fit" in capsys.readouterr().out

    def test_bad_time(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            cmd_slots(self._args(start="9am"))

        assert exc_info.value.code == 1


class TestSeed:
    """Tests for seed loading."""

    def test_load_seed(self, tmp_path):
        path = tmp_path / "seed.yaml"
        path.write_text(SEED_YAML)

        doctors, pets = load_seed(path)

        assert doctors[0].consultation_fee == 120
        assert doctors[0].working_hours[0].start_time == "09:00"
        assert pets[0].owner_id == "user_alice"

    def test_load_seed_rejects_list(self, tmp_path):
        path = tmp_path / "seed.yaml"
        path.write_text("- just\n- a list\n")

        with pytest.raises(ValueError):
            load_seed(path)

    def test_cmd_seed_writes_database(self, tmp_path, capsys):
        seed = tmp_path / "seed.yaml"
        seed.write_text(SEED_YAML)
        db_path = tmp_path / "vetbook.db"

        cmd_seed(argparse.Namespace(seed_file=str(seed), db=str(db_path)))

        assert "Seeded 1 doctors, 1 pets" in capsys.readouterr().out
        db = VetBookDB(Settings(database_path=str(db_path)))
        directory = Directory(db)
        assert directory.get_doctor("doc_1").is_bookable is True
        assert directory.get_pet("pet_1").name == "Rex"
        db.close()

    def test_cmd_seed_missing_file(self, tmp_path):
        with pytest.raises(SystemExit) as exc_info:
            cmd_seed(
                argparse.Namespace(
                    seed_file=str(tmp_path / "nope.yaml"), db=str(tmp_path / "x.db")
                )
            )

        assert exc_info.value.code == 1

    def test_cmd_seed_invalid_entry(self, tmp_path, capsys):
        seed = tmp_path / "seed.yaml"
        seed.write_text("doctors:\n  - {name: no id}\n")

        with pytest.raises(SystemExit):
            cmd_seed(argparse.Namespace(seed_file=str(seed), db=str(tmp_path / "x.db")))

        assert "Invalid seed file" in capsys.readouterr().out

    def test_demo_seed_file_is_valid(self):
        doctors, pets = load_seed(PACKAGE_ROOT.parent / "seeds" / "demo_clinic.yaml")

        assert {d.id for d in doctors} == {"doc_smith", "doc_jones"}
        assert len(pets) == 3


class TestInitDb:
    def test_creates_schema(self, tmp_path, capsys):
        db_path = tmp_path / "vetbook.db"

        cmd_init_db(argparse.Namespace(db=str(db_path)))

        assert db_path.exists()
        assert "Database initialized" in capsys.readouterr().out


class TestServe:
    """Tests for cmd_serve."""

    @pytest.fixture
    def uvicorn_calls(self, monkeypatch):
        import uvicorn

        calls = []
        monkeypatch.setattr(
            uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs))
        )
        return calls

    def test_db_option_reaches_app(self, monkeypatch, tmp_path, uvicorn_calls):
        """Should export --db as VETBOOK_DB_PATH before starting uvicorn."""
        monkeypatch.setenv("VETBOOK_DB_PATH", "unused.db")
        db_path = str(tmp_path / "served.db")
        args = create_parser().parse_args(["--db", db_path, "serve", "-p", "9000"])

        cmd_serve(args)

        assert os.environ["VETBOOK_DB_PATH"] == db_path
        app, kwargs = uvicorn_calls[0]
        assert app == "vetbook.main:app"
        assert kwargs["port"] == 9000

    def test_without_db_keeps_environment(self, monkeypatch, uvicorn_calls):
        monkeypatch.setenv("VETBOOK_DB_PATH", "from_env.db")

        cmd_serve(create_parser().parse_args(["serve"]))

        assert os.environ["VETBOOK_DB_PATH"] == "from_env.db"
        assert len(uvicorn_calls) == 1
