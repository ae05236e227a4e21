from . import (
    auth,
    resources,
    bookings,
    misc,
)

__all__ = [
    "auth",
    "resources",
    "bookings",
    "misc",
]
