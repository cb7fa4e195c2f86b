"""Centralized configuration for the vetbook package.

Module constants are read once from the environment (and a ``.env`` file in
the working directory). ``Settings`` bundles them so the database, stores,
engine and app can be built with explicit values in tests.
"""

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field

# Package root (vetbook/ directory)
PACKAGE_ROOT = Path(__file__).parent

# Working directory (where the service is started from)
WORKING_DIR = Path.cwd()

load_dotenv(WORKING_DIR / ".env")

# Storage
DATABASE_PATH = os.getenv("VETBOOK_DB_PATH", str(WORKING_DIR / "vetbook.db"))

# Scheduling
SLOT_DURATION_MINUTES = int(os.getenv("VETBOOK_SLOT_DURATION", "30"))
REFERENCE_TIMEZONE = os.getenv("VETBOOK_TIMEZONE", "UTC")
AVAILABILITY_WINDOW_DAYS = int(os.getenv("VETBOOK_AVAILABILITY_WINDOW_DAYS", "30"))

# Listing
DEFAULT_PAGE_SIZE = int(os.getenv("VETBOOK_PAGE_SIZE", "10"))
MAX_PAGE_SIZE = int(os.getenv("VETBOOK_MAX_PAGE_SIZE", "100"))

# Logging
LOG_LEVEL = os.getenv("VETBOOK_LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


class Settings(BaseModel):
    """Runtime settings passed into the storage, engine and API layers."""

    database_path: str = Field(default=DATABASE_PATH)
    slot_duration_minutes: int = Field(default=SLOT_DURATION_MINUTES, ge=5, le=480)
    timezone: str = Field(default=REFERENCE_TIMEZONE)
    availability_window_days: int = Field(default=AVAILABILITY_WINDOW_DAYS, ge=1)
    default_page_size: int = Field(default=DEFAULT_PAGE_SIZE, ge=1)
    max_page_size: int = Field(default=MAX_PAGE_SIZE, ge=1)
    log_level: str = Field(default=LOG_LEVEL)

    @classmethod
    def for_testing(cls, **overrides) -> "Settings":
        """Settings backed by an in-memory database."""
        values = {"database_path": ":memory:"}
        values.update(overrides)
        return cls(**values)
