from datetime import datetime, timedelta
import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..config import get_settings
from ..core.clock import ensure_utc, utc_now
from ..core.constants import (
    AUTO_COMPLETE_REASON,
    BOOKING_OVERLAP_CONSTRAINT,
    LIVE_BOOKING_STATUSES,
)
from ..core.errors import (
    ConflictError,
    ConflictingWindow,
    NotFound,
    OutsideCheckInWindow,
    PermissionDenied,
    ValidationError,
)
from ..core.locks import resource_locks
from ..db import models
from ..db.models.audit_log import ActorType
from ..db.models.booking import BookingStatus
from .lifecycle import ensure_transition

logger = logging.getLogger(__name__)

COMPLETABLE_STATUSES = frozenset({BookingStatus.approved, BookingStatus.checked_in})


def validate_window(
    start: datetime, end: datetime, now: datetime, slot_minutes: int
) -> tuple[datetime, datetime]:
    start = ensure_utc(start)
    end = ensure_utc(end)
    if start >= end:
        raise ValidationError("start_time must be earlier than end_time")
    slot_seconds = slot_minutes * 60
    if int((end - start).total_seconds()) % slot_seconds != 0:
        raise ValidationError(f"Booking length must be a multiple of {slot_minutes} minutes")
    if start < ensure_utc(now):
        raise ValidationError("Cannot book a window that has already started")
    return start, end


def find_overlapping(
    db: Session, resource_id: int, start: datetime, end: datetime
) -> list[models.Booking]:
    """Live bookings on ``resource_id`` intersecting the half-open window."""
    stmt = (
        select(models.Booking)
        .where(
            models.Booking.resource_id == resource_id,
            models.Booking.status.in_(LIVE_BOOKING_STATUSES),
            models.Booking.start_time < ensure_utc(end),
            models.Booking.end_time > ensure_utc(start),
        )
        .order_by(models.Booking.start_time)
    )
    return list(db.execute(stmt).scalars().all())


def is_window_free(db: Session, resource_id: int, start: datetime, end: datetime) -> bool:
    return not find_overlapping(db, resource_id, start, end)


def _record(
    db: Session,
    booking: models.Booking,
    action: str,
    *,
    actor_type: ActorType,
    actor_id: int | None,
    **extra,
) -> None:
    payload = {
        "resource_id": booking.resource_id,
        "user_id": booking.user_id,
        "status": BookingStatus(booking.status).value,
        "start_time": ensure_utc(booking.start_time).isoformat(),
        "end_time": ensure_utc(booking.end_time).isoformat(),
    }
    payload.update(extra)
    db.add(
        models.AuditLog(
            actor_type=actor_type,
            actor_id=actor_id,
            action=action,
            booking_id=booking.id,
            payload=payload,
        )
    )


def _is_overlap_violation(exc: IntegrityError) -> bool:
    constraint = getattr(getattr(exc.orig, "diag", None), "constraint_name", None)
    return constraint == BOOKING_OVERLAP_CONSTRAINT or BOOKING_OVERLAP_CONSTRAINT in str(exc.orig)


def reserve(
    db: Session,
    resource_id: int,
    requester_id: int,
    start: datetime,
    end: datetime,
    *,
    now: datetime | None = None,
) -> models.Booking:
    settings = get_settings()
    now = ensure_utc(now or utc_now())
    start, end = validate_window(start, end, now, settings.slot_duration_minutes)

    with resource_locks.hold(resource_id, settings.lock_timeout_seconds):
        try:
            resource = db.execute(
                select(models.Resource)
                .where(models.Resource.id == resource_id)
                .with_for_update()
            ).scalar_one_or_none()
            if resource is None:
                raise NotFound(f"Resource {resource_id} not found")
            if not resource.is_active:
                raise ValidationError("Resource is not available for booking")

            overlapping = find_overlapping(db, resource_id, start, end)
            for existing in overlapping:
                if (
                    existing.user_id == requester_id
                    and ensure_utc(existing.start_time) == start
                    and ensure_utc(existing.end_time) == end
                ):
                    logger.info(
                        "Reservation already satisfied",
                        extra={"booking_id": existing.id, "resource_id": resource_id},
                    )
                    db.rollback()
                    return existing
            if overlapping:
                raise ConflictError(
                    resource_id,
                    [
                        ConflictingWindow(
                            booking_id=existing.id,
                            start=ensure_utc(existing.start_time),
                            end=ensure_utc(existing.end_time),
                        )
                        for existing in overlapping
                    ],
                )

            booking = models.Booking(
                resource_id=resource_id,
                user_id=requester_id,
                start_time=start,
                end_time=end,
                status=BookingStatus.pending,
            )
            db.add(booking)
            db.flush()
            _record(
                db,
                booking,
                "booking_reserved",
                actor_type=ActorType.user,
                actor_id=requester_id,
            )
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            if _is_overlap_violation(exc):
                logger.info("Storage rejected overlapping booking", extra={"resource_id": resource_id})
                raise ConflictError(resource_id, []) from exc
            raise
        except Exception:
            db.rollback()
            raise

    db.refresh(booking)
    logger.info(
        "Reserved resource %s for user %s",
        resource_id,
        requester_id,
        extra={"booking_id": booking.id, "resource_id": resource_id},
    )
    return booking


def get_booking(db: Session, booking_id: int) -> models.Booking:
    booking = db.get(models.Booking, booking_id)
    if booking is None:
        raise NotFound(f"Booking {booking_id} not found")
    return booking


def _locked_booking(db: Session, booking_id: int) -> models.Booking:
    booking = db.execute(
        select(models.Booking)
        .where(models.Booking.id == booking_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()
    if booking is None:
        raise NotFound(f"Booking {booking_id} not found")
    return booking


def _review(
    db: Session,
    booking_id: int,
    target: BookingStatus,
    note: str | None,
    actor_id: int | None,
) -> models.Booking:
    settings = get_settings()
    resource_id = get_booking(db, booking_id).resource_id
    with resource_locks.hold(resource_id, settings.lock_timeout_seconds):
        try:
            booking = _locked_booking(db, booking_id)
            ensure_transition(booking, target)
            booking.status = target
            booking.admin_note = note
            _record(
                db,
                booking,
                f"booking_{target.value}",
                actor_type=ActorType.admin,
                actor_id=actor_id,
                admin_note=note,
            )
            db.commit()
        except Exception:
            db.rollback()
            raise
    db.refresh(booking)
    logger.info("Booking %s %s", booking_id, target.value, extra={"booking_id": booking_id})
    return booking


def approve(db: Session, booking_id: int, note: str | None = None, *, actor_id: int | None = None) -> models.Booking:
    return _review(db, booking_id, BookingStatus.approved, note, actor_id)


def reject(db: Session, booking_id: int, note: str | None = None, *, actor_id: int | None = None) -> models.Booking:
    return _review(db, booking_id, BookingStatus.rejected, note, actor_id)


def check_in(
    db: Session,
    booking_id: int,
    requester_id: int,
    *,
    is_admin: bool = False,
    now: datetime | None = None,
) -> models.Booking:
    settings = get_settings()
    now = ensure_utc(now or utc_now())
    resource_id = get_booking(db, booking_id).resource_id
    with resource_locks.hold(resource_id, settings.lock_timeout_seconds):
        try:
            booking = _locked_booking(db, booking_id)
            if booking.user_id != requester_id and not is_admin:
                raise PermissionDenied("Only the requester can check in")
            ensure_transition(booking, BookingStatus.checked_in)

            opens_at = ensure_utc(booking.start_time) - timedelta(
                minutes=settings.check_in_grace_minutes
            )
            closes_at = ensure_utc(booking.end_time)
            if not opens_at <= now <= closes_at:
                raise OutsideCheckInWindow(opens_at, closes_at)

            booking.status = BookingStatus.checked_in
            booking.checked_in_at = now
            _record(
                db, booking, "booking_checked_in", actor_type=ActorType.user, actor_id=requester_id
            )
            db.commit()
        except Exception:
            db.rollback()
            raise
    db.refresh(booking)
    logger.info("Booking %s checked in", booking_id, extra={"booking_id": booking_id})
    return booking


def cancel(
    db: Session,
    booking_id: int,
    requester_id: int,
    *,
    is_admin: bool = False,
    now: datetime | None = None,
) -> models.Booking:
    settings = get_settings()
    now = ensure_utc(now or utc_now())
    resource_id = get_booking(db, booking_id).resource_id
    with resource_locks.hold(resource_id, settings.lock_timeout_seconds):
        try:
            booking = _locked_booking(db, booking_id)
            if booking.user_id != requester_id and not is_admin:
                raise PermissionDenied("Only the requester can cancel this booking")
            ensure_transition(booking, BookingStatus.cancelled)
            if now >= ensure_utc(booking.start_time):
                raise ValidationError("Bookings can only be cancelled before they start")
            booking.status = BookingStatus.cancelled
            booking.cancelled_at = now
            booking.cancelled_by = str(requester_id)
            _record(
                db,
                booking,
                "booking_cancelled",
                actor_type=ActorType.admin if is_admin else ActorType.user,
                actor_id=requester_id,
            )
            db.commit()
        except Exception:
            db.rollback()
            raise
    db.refresh(booking)
    logger.info("Booking %s cancelled", booking_id, extra={"booking_id": booking_id})
    return booking


def complete(db: Session, booking_id: int, *, now: datetime | None = None) -> models.Booking:
    settings = get_settings()
    now = ensure_utc(now or utc_now())
    resource_id = get_booking(db, booking_id).resource_id
    with resource_locks.hold(resource_id, settings.lock_timeout_seconds):
        try:
            booking = _locked_booking(db, booking_id)
            ensure_transition(booking, BookingStatus.completed)
            if now < ensure_utc(booking.end_time):
                raise ValidationError("Booking has not ended yet")
            _mark_completed(db, booking)
            db.commit()
        except Exception:
            db.rollback()
            raise
    db.refresh(booking)
    return booking


def _mark_completed(db: Session, booking: models.Booking) -> None:
    no_show = BookingStatus(booking.status) == BookingStatus.approved
    booking.status = BookingStatus.completed
    _record(
        db,
        booking,
        "booking_completed",
        actor_type=ActorType.system,
        actor_id=None,
        reason=AUTO_COMPLETE_REASON,
        no_show=no_show,
    )


def complete_elapsed(db: Session, *, now: datetime | None = None) -> int:
    """Complete every approved or checked-in booking whose end has passed.

    Candidates are re-read under their resource lock, so a booking cancelled
    or completed elsewhere in the meantime is skipped.
    """
    settings = get_settings()
    now = ensure_utc(now or utc_now())
    candidates = db.execute(
        select(models.Booking.id, models.Booking.resource_id)
        .where(
            models.Booking.status.in_(COMPLETABLE_STATUSES),
            models.Booking.end_time <= now,
        )
        .order_by(models.Booking.id)
    ).all()
    db.rollback()

    completed = 0
    for booking_id, resource_id in candidates:
        with resource_locks.hold(resource_id, settings.lock_timeout_seconds):
            try:
                booking = _locked_booking(db, booking_id)
                if (
                    BookingStatus(booking.status) not in COMPLETABLE_STATUSES
                    or ensure_utc(booking.end_time) > now
                ):
                    db.rollback()
                    continue
                _mark_completed(db, booking)
                db.commit()
            except Exception:
                db.rollback()
                raise
        completed += 1
    return completed
