"""Alternatives offered after a reservation attempt lost to an existing booking.

Suggestions are advisory: nothing is held, so reserving one of them can
itself conflict.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
import logging
from zoneinfo import ZoneInfo

from sqlalchemy.orm import Session

from ..config import get_settings
from ..core.clock import ensure_utc, utc_now
from ..db import models
from . import booking_service, resource_directory
from .availability_service import operating_window

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ConflictSuggestion:
    available_resources: list[models.Resource] = field(default_factory=list)
    available_slots: list[tuple[datetime, datetime]] = field(default_factory=list)


def alternative_resources(
    db: Session, resource: models.Resource, start: datetime, end: datetime
) -> list[models.Resource]:
    candidates = resource_directory.list_active(db, resource.resource_type)
    return [
        candidate
        for candidate in candidates
        if candidate.id != resource.id
        and booking_service.is_window_free(db, candidate.id, start, end)
    ]


def alternative_slots(
    db: Session,
    resource: models.Resource,
    start: datetime,
    end: datetime,
    now: datetime,
) -> list[tuple[datetime, datetime]]:
    settings = get_settings()
    step = timedelta(minutes=settings.slot_duration_minutes)
    duration = end - start
    horizon = timedelta(hours=settings.suggestion_horizon_hours)

    local_day = start.astimezone(ZoneInfo(settings.timezone)).date()
    day_start, day_end = operating_window(local_day)
    lower = max(day_start, start - horizon, now)
    upper = min(day_end, end + horizon)

    busy = [
        (ensure_utc(booking.start_time), ensure_utc(booking.end_time))
        for booking in booking_service.find_overlapping(db, resource.id, lower, upper)
    ]

    candidates: list[tuple[datetime, datetime]] = []
    offset = step
    while start - offset >= lower or end + offset <= upper:
        for candidate_start in (start - offset, start + offset):
            candidate_end = candidate_start + duration
            if candidate_start < lower or candidate_end > upper:
                continue
            if any(b_start < candidate_end and b_end > candidate_start for b_start, b_end in busy):
                continue
            candidates.append((candidate_start, candidate_end))
        offset += step

    candidates.sort(key=lambda window: (abs(window[0] - start), window[0]))
    return candidates[: settings.suggestion_limit]


def suggest(
    db: Session,
    resource: models.Resource,
    start: datetime,
    end: datetime,
    *,
    now: datetime | None = None,
) -> ConflictSuggestion:
    now = ensure_utc(now or utc_now())
    start = ensure_utc(start)
    end = ensure_utc(end)
    suggestion = ConflictSuggestion(
        available_resources=alternative_resources(db, resource, start, end),
        available_slots=alternative_slots(db, resource, start, end, now),
    )
    logger.info(
        "Built %d resource and %d slot alternatives",
        len(suggestion.available_resources),
        len(suggestion.available_slots),
        extra={"resource_id": resource.id},
    )
    return suggestion
