"""SQLite-backed stores for calendars, reservations and collaborator facts."""

from vetbook.storage.calendar_store import CalendarStore
from vetbook.storage.database import VetBookDB, generate_id
from vetbook.storage.directory import Directory
from vetbook.storage.reservations import ReservationStore

__all__ = [
    "CalendarStore",
    "Directory",
    "ReservationStore",
    "VetBookDB",
    "generate_id",
]
