from .resource import Resource, ResourceList, Availability, AvailabilitySlot
from .booking import (
    Booking,
    BookingCreate,
    BookingReview,
    BookingList,
    BookingConflict,
    BookingResourceSummary,
    ConflictSuggestions,
    ConflictWindow,
    SuggestedSlot,
)
from .user import User
