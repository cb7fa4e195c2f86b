"""Booking engine and reservation state machine."""

from vetbook.booking.engine import BookingEngine
from vetbook.booking.state_machine import (
    TRANSITIONS,
    Actor,
    ReservationStateMachine,
    allowed_targets,
    check_transition,
    resolve_actor,
)

__all__ = [
    "TRANSITIONS",
    "Actor",
    "BookingEngine",
    "ReservationStateMachine",
    "allowed_targets",
    "check_transition",
    "resolve_actor",
]
