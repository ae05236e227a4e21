from datetime import date, datetime
from typing import Any
from pydantic import BaseModel


class Resource(BaseModel):
    id: int
    name: str
    resource_type: str
    location: str | None = None
    description: str | None = None
    is_active: bool
    properties: dict[str, Any] = {}

    class Config:
        from_attributes = True


class ResourceList(BaseModel):
    resources: list[Resource]
    total: int


class AvailabilitySlot(BaseModel):
    index: int
    start_time: datetime
    end_time: datetime
    status: str
    available: bool


class Availability(BaseModel):
    resource_id: int
    resource_name: str
    query_date: date
    slot_duration_minutes: int
    available_slots: list[AvailabilitySlot]
