"""CLI command implementations.

Contains all cmd_* functions for CLI subcommands.
"""

import logging
import os
import sys
from argparse import Namespace
from pathlib import Path

import yaml
from pydantic import ValidationError

from vetbook.config import Settings
from vetbook.models.schemas import DoctorProfile, PetProfile
from vetbook.scheduling.slot_generator import generate_slots
from vetbook.storage.database import VetBookDB
from vetbook.storage.directory import Directory

logger = logging.getLogger(__name__)


def _settings(args: Namespace) -> Settings:
    if getattr(args, "db", None):
        return Settings(database_path=args.db)
    return Settings()


def load_seed(path: Path) -> tuple[list[DoctorProfile], list[PetProfile]]:
    """Parse a seed YAML file with ``doctors`` and ``pets`` lists.

    Raises:
        ValueError: If the file is not a mapping or an entry is invalid.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping with 'doctors' and 'pets'")

    doctors = [DoctorProfile.model_validate(d) for d in data.get("doctors", [])]
    pets = [PetProfile.model_validate(p) for p in data.get("pets", [])]
    return doctors, pets


def cmd_init_db(args: Namespace) -> None:
    """Create the database schema."""
    db = VetBookDB(_settings(args))
    db.init_schema()
    db.close()
    print(f"✅ Database initialized: {db.db_path}")


def cmd_seed(args: Namespace) -> None:
    """Load doctors and pets from a YAML file."""
    path = Path(args.seed_file)
    if not path.exists():
        print(f"❌ Seed file not found: {path}")
        sys.exit(1)

    try:
        doctors, pets = load_seed(path)
    except (ValueError, ValidationError, yaml.YAMLError) as e:
        print(f"❌ Invalid seed file: {e}")
        sys.exit(1)

    db = VetBookDB(_settings(args))
    db.init_schema()
    directory = Directory(db)
    for doctor in doctors:
        directory.save_doctor(doctor)
    for pet in pets:
        directory.save_pet(pet)
    db.close()

    logger.info(f"Seeded {len(doctors)} doctors and {len(pets)} pets from {path}")
    print(f"✅ Seeded {len(doctors)} doctors, {len(pets)} pets")


def cmd_slots(args: Namespace) -> None:
    """Print the slots a working-hours window expands to."""
    try:
        slots = generate_slots(args.start, args.end, args.duration)
    except ValueError as e:
        print(f"❌ {e}")
        sys.exit(1)

    if not slots:
        print("No slots fit in that window.")
        return
    for slot in slots:
        print(f"   {slot.start_time}-{slot.end_time}")
    print(f"\n📅 {len(slots)} slots")


def cmd_serve(args: Namespace) -> None:
    """Run the HTTP API with uvicorn.

    ``--db`` reaches the app through ``VETBOOK_DB_PATH``, which the
    reloader subprocess inherits as well.
    """
    import uvicorn

    if getattr(args, "db", None):
        os.environ["VETBOOK_DB_PATH"] = args.db
        logger.info(f"Serving database {args.db}")
    uvicorn.run(
        "vetbook.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
    )
