"""Slot generation from weekly working hours.

Everything here is pure: a day's slots are a deterministic function of the
working-hours window and the slot duration.
"""

from collections.abc import Iterable, Sequence
from datetime import date, datetime
from zoneinfo import ZoneInfo

from vetbook.models.errors import DayNotWorking
from vetbook.models.schemas import WEEKDAYS, Slot, SlotInput, WorkingHours

DEFAULT_SLOT_DURATION = 30


def parse_time(value: str) -> int:
    """Convert ``HH:MM`` to minutes after midnight.

    Raises:
        ValueError: If the value is not a valid 24-hour ``HH:MM`` time.
    """
    try:
        hours, minutes = value.split(":")
        if len(hours) != 2 or len(minutes) != 2:
            raise ValueError
        h, m = int(hours), int(minutes)
    except ValueError:
        raise ValueError(f"Invalid time '{value}', expected HH:MM") from None
    if not (0 <= h < 24 and 0 <= m < 60):
        raise ValueError(f"Invalid time '{value}', expected HH:MM")
    return h * 60 + m


def format_time(minutes: int) -> str:
    """Convert minutes after midnight to ``HH:MM``."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def generate_slots(
    start_time: str,
    end_time: str,
    duration: int = DEFAULT_SLOT_DURATION,
) -> list[Slot]:
    """Split ``[start_time, end_time)`` into consecutive slots.

    A trailing remainder shorter than ``duration`` is dropped rather than
    clipped, so 09:00-10:45 with 30 minute slots yields three slots ending
    at 10:30.

    Args:
        start_time: Window start, ``HH:MM``
        end_time: Window end, ``HH:MM``
        duration: Slot length in minutes

    Returns:
        Available slots ordered by start time.

    Raises:
        ValueError: On malformed times or a non-positive duration.
    """
    if duration <= 0:
        raise ValueError(f"Slot duration must be positive, got {duration}")

    start = parse_time(start_time)
    end = parse_time(end_time)

    slots = []
    cursor = start
    while cursor + duration <= end:
        slots.append(
            Slot(
                start_time=format_time(cursor),
                end_time=format_time(cursor + duration),
            )
        )
        cursor += duration
    return slots


def weekday_name(day: date) -> str:
    return WEEKDAYS[day.weekday()]


def working_hours_for(
    working_hours: Iterable[WorkingHours], day: date
) -> WorkingHours | None:
    """Return the enabled working-hours entry for the date's weekday."""
    name = weekday_name(day)
    return next(
        (wh for wh in working_hours if wh.day == name and wh.is_available),
        None,
    )


def slots_from_input(slots: Sequence[SlotInput]) -> list[Slot]:
    """Validate an explicit slot list and return it sorted by start time.

    Raises:
        ValueError: If two slots overlap or share a start time.
    """
    ordered = sorted(slots, key=lambda s: s.start_time)
    for previous, current in zip(ordered, ordered[1:]):
        if current.start_time < previous.end_time:
            raise ValueError(
                f"Slot {current.start_time}-{current.end_time} overlaps "
                f"{previous.start_time}-{previous.end_time}"
            )
    return [Slot(start_time=s.start_time, end_time=s.end_time) for s in ordered]


def slots_for_date(
    working_hours: Iterable[WorkingHours],
    day: date,
    duration: int = DEFAULT_SLOT_DURATION,
    explicit: Sequence[SlotInput] | None = None,
) -> list[Slot]:
    """Produce a day's slots from an explicit list or the weekly schedule.

    Raises:
        DayNotWorking: No explicit list and no enabled entry for the weekday.
    """
    if explicit is not None:
        return slots_from_input(explicit)

    entry = working_hours_for(working_hours, day)
    if entry is None:
        raise DayNotWorking(
            "No working hours defined for this day.",
            weekday=weekday_name(day),
        )
    return generate_slots(entry.start_time, entry.end_time, duration)


def normalize_day(value: date | datetime | str, timezone: str = "UTC") -> date:
    """Reduce a date, datetime or ISO string to a calendar day.

    Aware datetimes are converted to ``timezone`` first so a booking made
    late in the evening elsewhere lands on the clinic's day.
    """
    if isinstance(value, str):
        value = datetime.fromisoformat(value) if "T" in value else date.fromisoformat(value)
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(ZoneInfo(timezone))
        return value.date()
    return value
