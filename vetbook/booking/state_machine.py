"""Reservation status state machine.

pending -> confirmed -> in-progress -> completed is the normal path. The
assigned doctor may also jump from pending or confirmed straight to
completed or no-show. Only the owning user may cancel, and only while the
reservation is pending or confirmed. completed, cancelled and no-show are
terminal.
"""

import logging
from enum import Enum

from vetbook.models.errors import (
    InvalidTransition,
    NotAuthorized,
    ReservationNotFound,
)
from vetbook.models.schemas import (
    Cancellation,
    Principal,
    Reservation,
    ReservationStatus,
)
from vetbook.storage.calendar_store import CalendarStore
from vetbook.storage.directory import Directory
from vetbook.storage.reservations import ReservationStore

logger = logging.getLogger(__name__)


class Actor(str, Enum):
    """Who is acting on a reservation, relative to that reservation."""

    OWNER = "owner"
    DOCTOR = "doctor"


S = ReservationStatus
_DOCTOR = frozenset({Actor.DOCTOR})
_OWNER = frozenset({Actor.OWNER})

# current status -> target status -> actors allowed to make the move
TRANSITIONS: dict[ReservationStatus, dict[ReservationStatus, frozenset[Actor]]] = {
    S.PENDING: {
        S.CONFIRMED: _DOCTOR,
        S.IN_PROGRESS: _DOCTOR,
        S.COMPLETED: _DOCTOR,
        S.NO_SHOW: _DOCTOR,
        S.CANCELLED: _OWNER,
    },
    S.CONFIRMED: {
        S.IN_PROGRESS: _DOCTOR,
        S.COMPLETED: _DOCTOR,
        S.NO_SHOW: _DOCTOR,
        S.CANCELLED: _OWNER,
    },
    S.IN_PROGRESS: {
        S.COMPLETED: _DOCTOR,
    },
}

DEFAULT_CANCELLATION_REASON = "Cancelled by user"


def allowed_targets(
    current: ReservationStatus, actor: Actor | None = None
) -> set[ReservationStatus]:
    """Statuses reachable in one step, optionally only those ``actor`` may set."""
    targets = TRANSITIONS.get(current, {})
    return {
        target
        for target, actors in targets.items()
        if actor is None or actor in actors
    }


def check_transition(
    current: ReservationStatus, target: ReservationStatus, actor: Actor
) -> None:
    """Raise ``InvalidTransition`` unless ``actor`` may move current -> target."""
    if current.is_terminal:
        raise InvalidTransition(
            f"Reservation is already {current.value}.",
            current=current.value,
            target=target.value,
        )
    if target not in allowed_targets(current, actor):
        raise InvalidTransition(
            f"The {actor.value} cannot change a {current.value} reservation "
            f"to {target.value}.",
            current=current.value,
            target=target.value,
        )


def resolve_actor(
    directory: Directory, principal: Principal, reservation: Reservation
) -> Actor:
    """Work out whether the principal owns or is assigned to the reservation.

    Raises:
        NotAuthorized: The principal is neither.
    """
    if principal.role == "user" and principal.id == reservation.user_id:
        return Actor.OWNER
    if principal.role == "doctor":
        doctor = directory.get_doctor_by_user(principal.id)
        if doctor is not None and doctor.id == reservation.doctor_id:
            return Actor.DOCTOR
    raise NotAuthorized(
        "You can only access reservations you made or that are assigned to you.",
        reservation_id=reservation.id,
    )


class ReservationStateMachine:
    """Applies status changes and their side effects."""

    def __init__(
        self,
        reservations: ReservationStore,
        calendar: CalendarStore,
        directory: Directory,
    ):
        self.reservations = reservations
        self.calendar = calendar
        self.directory = directory

    def transition(
        self,
        principal: Principal,
        reservation_id: str,
        target: ReservationStatus,
        cancellation_reason: str | None = None,
    ) -> Reservation:
        """Move a reservation to ``target``.

        Cancelling releases the held slot and records who cancelled and
        why. Completing bumps the doctor's completed and patient counters.
        The read, check and writes happen in one transaction.

        Raises:
            ReservationNotFound: Unknown reservation.
            NotAuthorized: Caller is neither owner nor assigned doctor.
            InvalidTransition: The move is not allowed for this caller.
        """
        with self.reservations.db.transaction():
            reservation = self.reservations.get(reservation_id)
            if reservation is None:
                raise ReservationNotFound(reservation_id=reservation_id)

            actor = resolve_actor(self.directory, principal, reservation)
            previous = reservation.status
            check_transition(previous, target, actor)

            reservation.status = target
            if target is ReservationStatus.CANCELLED:
                reservation.cancellation = Cancellation(
                    cancelled_by=principal.id,
                    reason=cancellation_reason or DEFAULT_CANCELLATION_REASON,
                )
                self.calendar.release_slot(reservation.doctor_id, reservation.id)
            elif target is ReservationStatus.COMPLETED:
                self.directory.increment_stats(
                    reservation.doctor_id,
                    completed_reservations=1,
                    total_patients=1,
                )

            self.reservations.update(reservation)

        logger.info(
            f"Reservation {reservation.id}: {previous.value} -> {target.value} "
            f"by {actor.value}"
        )
        return reservation
