from datetime import datetime
from typing import Literal
from pydantic import BaseModel, Field


class BookingCreate(BaseModel):
    resource_id: int
    start_time: datetime
    end_time: datetime


class BookingReview(BaseModel):
    status: Literal["approved", "rejected"]
    admin_note: str | None = Field(default=None, max_length=2000)


class BookingResourceSummary(BaseModel):
    id: int
    name: str
    resource_type: str
    location: str | None = None

    class Config:
        from_attributes = True


class Booking(BaseModel):
    id: int
    resource_id: int
    user_id: int
    start_time: datetime
    end_time: datetime
    status: str
    admin_note: str | None = None
    checked_in_at: datetime | None = None
    cancelled_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    resource: BookingResourceSummary | None = None

    class Config:
        from_attributes = True


class BookingList(BaseModel):
    bookings: list[Booking]
    total: int
    limit: int
    offset: int
    has_more: bool


class ConflictWindow(BaseModel):
    booking_id: int
    start: datetime
    end: datetime


class SuggestedSlot(BaseModel):
    start: datetime
    end: datetime


class ConflictSuggestions(BaseModel):
    available_resources: list[BookingResourceSummary]
    available_slots: list[SuggestedSlot]


class BookingConflict(BaseModel):
    errors: list[str]
    conflicts: list[ConflictWindow]
    suggestions: ConflictSuggestions
