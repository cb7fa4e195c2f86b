"""SQLite database layer for the booking core.

Owns the connection, the schema, and the transaction boundary shared by the
calendar, reservation and directory stores.
"""

import logging
import sqlite3
import threading
import uuid
from collections.abc import Iterator
from contextlib import contextmanager

from vetbook.config import Settings

logger = logging.getLogger(__name__)

SCHEMA = """
    -- Collaborator facts
    CREATE TABLE IF NOT EXISTS doctors (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL UNIQUE,
        name TEXT NOT NULL DEFAULT '',
        clinic_name TEXT NOT NULL DEFAULT '',
        consultation_fee REAL NOT NULL DEFAULT 0 CHECK(consultation_fee >= 0),
        is_active INTEGER NOT NULL DEFAULT 1,
        is_verified INTEGER NOT NULL DEFAULT 0,
        working_hours TEXT NOT NULL DEFAULT '[]',
        total_reservations INTEGER NOT NULL DEFAULT 0,
        completed_reservations INTEGER NOT NULL DEFAULT 0,
        total_patients INTEGER NOT NULL DEFAULT 0
    );

    CREATE TABLE IF NOT EXISTS pets (
        id TEXT PRIMARY KEY,
        owner_id TEXT NOT NULL,
        name TEXT NOT NULL DEFAULT '',
        species TEXT NOT NULL DEFAULT '',
        is_active INTEGER NOT NULL DEFAULT 1
    );

    -- Calendar days, one per (doctor, date)
    CREATE TABLE IF NOT EXISTS calendar_days (
        id TEXT PRIMARY KEY,
        doctor_id TEXT NOT NULL,
        day TEXT NOT NULL,
        is_working_day INTEGER NOT NULL DEFAULT 1,
        note TEXT NOT NULL DEFAULT '',
        UNIQUE(doctor_id, day)
    );

    CREATE TABLE IF NOT EXISTS slots (
        day_id TEXT NOT NULL REFERENCES calendar_days(id) ON DELETE CASCADE,
        start_time TEXT NOT NULL,
        end_time TEXT NOT NULL,
        is_available INTEGER NOT NULL DEFAULT 1,
        reservation_id TEXT,
        PRIMARY KEY (day_id, start_time),
        CHECK (start_time < end_time),
        CHECK ((is_available = 1) = (reservation_id IS NULL))
    );
    CREATE INDEX IF NOT EXISTS idx_slots_reservation
        ON slots(reservation_id);

    -- Reservations are never deleted
    CREATE TABLE IF NOT EXISTS reservations (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        doctor_id TEXT NOT NULL,
        pet_id TEXT NOT NULL,
        appointment_date TEXT NOT NULL,
        appointment_time TEXT NOT NULL,
        duration INTEGER NOT NULL DEFAULT 30,
        status TEXT NOT NULL DEFAULT 'pending' CHECK(status IN (
            'pending', 'confirmed', 'in-progress',
            'completed', 'cancelled', 'no-show'
        )),
        type TEXT NOT NULL,
        reason TEXT NOT NULL,
        symptoms TEXT NOT NULL DEFAULT '[]',
        urgency TEXT NOT NULL DEFAULT 'medium',
        notes TEXT NOT NULL DEFAULT '',
        fees TEXT NOT NULL,
        cancellation TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    );
    CREATE INDEX IF NOT EXISTS idx_reservations_user
        ON reservations(user_id, appointment_date);
    CREATE INDEX IF NOT EXISTS idx_reservations_doctor
        ON reservations(doctor_id, appointment_date);
"""


def generate_id(prefix: str) -> str:
    """Generate a prefixed UUID."""
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


class VetBookDB:
    """SQLite connection shared by the stores.

    One connection serves all threads; ``transaction()`` serializes access
    with a re-entrant lock and commits only when the outermost block exits.

    Example:
        db = VetBookDB(Settings.for_testing())
        db.init_schema()
        with db.transaction() as conn:
            conn.execute(...)
    """

    def __init__(self, settings: Settings | None = None):
        """Initialize database connection.

        Args:
            settings: Runtime settings. ``database_path`` may be ":memory:".
                      Defaults to values from the environment.
        """
        self.settings = settings or Settings()
        self.db_path = self.settings.database_path
        self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA foreign_keys = ON")
        self._lock = threading.RLock()
        self._depth = 0

    def init_schema(self) -> None:
        """Create tables if they don't exist."""
        with self._lock:
            self.conn.executescript(SCHEMA)
            self.conn.commit()
        logger.debug(f"Schema ready: {self.db_path}")

    def close(self) -> None:
        """Close database connection."""
        with self._lock:
            self.conn.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Run a block atomically.

        Nested blocks join the outer transaction. Any exception rolls back
        the whole outermost transaction and propagates.

        Yields:
            The shared connection.
        """
        with self._lock:
            outermost = self._depth == 0
            self._depth += 1
            try:
                yield self.conn
            except BaseException:
                if outermost:
                    self.conn.rollback()
                raise
            else:
                if outermost:
                    self.conn.commit()
            finally:
                self._depth -= 1

    def fetch_one(self, sql: str, params: tuple = ()) -> sqlite3.Row | None:
        """Run a read query and return the first row."""
        with self._lock:
            return self.conn.execute(sql, params).fetchone()

    def fetch_all(self, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        """Run a read query and return all rows."""
        with self._lock:
            return self.conn.execute(sql, params).fetchall()
