"""Discretized day grid of bookable windows for a single resource."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from enum import Enum as PyEnum
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..config import get_settings
from ..core.clock import ensure_utc, utc_now
from ..core.constants import LIVE_BOOKING_STATUSES
from ..core.errors import ValidationError
from ..db import models


class SlotStatus(str, PyEnum):
    available = "available"
    taken = "taken"
    past = "past"


@dataclass(frozen=True, slots=True)
class TimeSlot:
    index: int
    start: datetime
    end: datetime
    status: SlotStatus

    @property
    def selectable(self) -> bool:
        return self.status == SlotStatus.available


@dataclass(frozen=True, slots=True)
class AvailabilityWindow:
    resource_id: int
    day: date
    slot_minutes: int
    slots: tuple[TimeSlot, ...]


def operating_window(day: date) -> tuple[datetime, datetime]:
    """UTC bounds of the bookable part of ``day`` in the configured timezone."""
    settings = get_settings()
    if settings.operating_start_hour >= settings.operating_end_hour:
        raise ValidationError("Operating hours are misconfigured")
    tz = ZoneInfo(settings.timezone)
    midnight = datetime.combine(day, time(0), tzinfo=tz)
    opens = midnight + timedelta(hours=settings.operating_start_hour)
    closes = midnight + timedelta(hours=settings.operating_end_hour)
    return opens.astimezone(timezone.utc), closes.astimezone(timezone.utc)


def check_slot_minutes(slot_minutes: int) -> None:
    base = get_settings().slot_duration_minutes
    if slot_minutes <= 0 or slot_minutes % base != 0:
        raise ValidationError(f"Slot duration must be a positive multiple of {base} minutes")


def _live_intervals(
    db: Session, resource_id: int, start: datetime, end: datetime
) -> list[tuple[datetime, datetime]]:
    rows = db.execute(
        select(models.Booking.start_time, models.Booking.end_time)
        .where(
            models.Booking.resource_id == resource_id,
            models.Booking.status.in_(LIVE_BOOKING_STATUSES),
            models.Booking.start_time < end,
            models.Booking.end_time > start,
        )
        .order_by(models.Booking.start_time)
    ).all()
    return [(ensure_utc(row.start_time), ensure_utc(row.end_time)) for row in rows]


def build_slots(
    window_start: datetime,
    window_end: datetime,
    slot_minutes: int,
    busy: list[tuple[datetime, datetime]],
    now: datetime,
) -> tuple[TimeSlot, ...]:
    step = timedelta(minutes=slot_minutes)
    slots: list[TimeSlot] = []
    cursor = window_start
    while cursor + step <= window_end:
        slot_end = cursor + step
        if any(busy_start < slot_end and busy_end > cursor for busy_start, busy_end in busy):
            status = SlotStatus.taken
        elif slot_end <= now:
            status = SlotStatus.past
        else:
            status = SlotStatus.available
        slots.append(TimeSlot(index=len(slots), start=cursor, end=slot_end, status=status))
        cursor = slot_end
    return tuple(slots)


def compute_availability(
    db: Session,
    resource: models.Resource,
    day: date,
    slot_minutes: int | None = None,
    *,
    now: datetime | None = None,
) -> AvailabilityWindow:
    if slot_minutes is None:
        slot_minutes = get_settings().slot_duration_minutes
    check_slot_minutes(slot_minutes)
    now = ensure_utc(now or utc_now())
    window_start, window_end = operating_window(day)
    busy = _live_intervals(db, resource.id, window_start, window_end)
    return AvailabilityWindow(
        resource_id=resource.id,
        day=day,
        slot_minutes=slot_minutes,
        slots=build_slots(window_start, window_end, slot_minutes, busy, now),
    )
