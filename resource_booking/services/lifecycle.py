"""Allowed status transitions of a booking."""

from ..core.errors import InvalidTransition
from ..db import models
from ..db.models.booking import BookingStatus

TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.pending: frozenset(
        {BookingStatus.approved, BookingStatus.rejected, BookingStatus.cancelled}
    ),
    BookingStatus.approved: frozenset(
        # completed straight from approved is a no-show
        {BookingStatus.checked_in, BookingStatus.cancelled, BookingStatus.completed}
    ),
    BookingStatus.checked_in: frozenset({BookingStatus.completed}),
    BookingStatus.rejected: frozenset(),
    BookingStatus.cancelled: frozenset(),
    BookingStatus.completed: frozenset(),
}

TERMINAL_STATUSES = frozenset(status for status, targets in TRANSITIONS.items() if not targets)


def can_transition(current: BookingStatus, target: BookingStatus) -> bool:
    return target in TRANSITIONS.get(BookingStatus(current), frozenset())


def ensure_transition(booking: models.Booking, target: BookingStatus) -> None:
    current = BookingStatus(booking.status)
    if not can_transition(current, target):
        raise InvalidTransition(booking.id, current.value, target.value)


def is_terminal(status: BookingStatus) -> bool:
    return BookingStatus(status) in TERMINAL_STATUSES
