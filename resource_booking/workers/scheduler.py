import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from ..config import get_settings
from ..db.session import SessionLocal
from ..services import booking_service

logger = logging.getLogger(__name__)


def complete_elapsed_bookings() -> int:
    with SessionLocal() as db:
        completed = booking_service.complete_elapsed(db)
    if completed:
        logger.info("Completed %d elapsed bookings", completed)
    return completed


def get_scheduler() -> AsyncIOScheduler:
    settings = get_settings()
    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        complete_elapsed_bookings,
        "interval",
        minutes=settings.completion_sweep_minutes,
        id="complete_elapsed_bookings",
        coalesce=True,
        max_instances=1,
    )
    return scheduler
