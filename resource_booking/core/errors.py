from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


class BookingError(Exception):
    pass


class ValidationError(BookingError):
    """Malformed interval, misaligned duration or a window that already started."""


class NotFound(BookingError):
    pass


class PermissionDenied(BookingError):
    pass


class InvalidTransition(BookingError):
    def __init__(self, booking_id: int, current: str, target: str) -> None:
        super().__init__(f"Cannot move booking {booking_id} from {current} to {target}")
        self.booking_id = booking_id
        self.current = current
        self.target = target


class OutsideCheckInWindow(BookingError):
    def __init__(self, opens_at: datetime, closes_at: datetime) -> None:
        super().__init__(
            f"Check-in is only possible between {opens_at.isoformat()} and {closes_at.isoformat()}"
        )
        self.opens_at = opens_at
        self.closes_at = closes_at


@dataclass(frozen=True, slots=True)
class ConflictingWindow:
    booking_id: int
    start: datetime
    end: datetime


class ConflictError(BookingError):
    """The requested window intersects a live booking on the same resource."""

    def __init__(self, resource_id: int, conflicts: list[ConflictingWindow]) -> None:
        super().__init__("Requested time overlaps an existing booking")
        self.resource_id = resource_id
        self.conflicts = conflicts


class ReservationTimeout(BookingError):
    def __init__(self, resource_id: int, timeout: float) -> None:
        super().__init__(f"Timed out after {timeout:g}s waiting for resource {resource_id}")
        self.resource_id = resource_id
        self.timeout = timeout


__all__ = [
    "BookingError",
    "ValidationError",
    "NotFound",
    "PermissionDenied",
    "InvalidTransition",
    "OutsideCheckInWindow",
    "ConflictingWindow",
    "ConflictError",
    "ReservationTimeout",
]
