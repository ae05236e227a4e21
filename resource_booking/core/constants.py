"""Common application-wide constants."""

from ..db.models.booking import BookingStatus

# Bookings in these states hold their interval and count toward non-overlap
LIVE_BOOKING_STATUSES = frozenset(
    {BookingStatus.pending, BookingStatus.approved, BookingStatus.checked_in}
)

# Audit reason for sweep-driven completion
AUTO_COMPLETE_REASON = "end_passed"

# Storage-level non-overlap guard, see migration 0002
BOOKING_OVERLAP_CONSTRAINT = "ex_booking_resource_no_overlap"


__all__ = [
    "LIVE_BOOKING_STATUSES",
    "AUTO_COMPLETE_REASON",
    "BOOKING_OVERLAP_CONSTRAINT",
]
