"""Pure scheduling helpers: slot generation and day normalization."""

from vetbook.scheduling.slot_generator import (
    DEFAULT_SLOT_DURATION,
    format_time,
    generate_slots,
    normalize_day,
    parse_time,
    slots_for_date,
    slots_from_input,
    weekday_name,
    working_hours_for,
)

__all__ = [
    "DEFAULT_SLOT_DURATION",
    "format_time",
    "generate_slots",
    "normalize_day",
    "parse_time",
    "slots_for_date",
    "slots_from_input",
    "weekday_name",
    "working_hours_for",
]
