from . import (
    availability_service,
    booking_service,
    conflict_service,
    lifecycle,
    resource_directory,
    selection,
)

__all__ = [
    "availability_service",
    "booking_service",
    "conflict_service",
    "lifecycle",
    "resource_directory",
    "selection",
]
