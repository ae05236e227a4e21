from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session, selectinload
from ...api import deps
from ...core.clock import Clock, get_clock
from ...core.errors import (
    BookingError,
    ConflictError,
    InvalidTransition,
    NotFound,
    OutsideCheckInWindow,
    PermissionDenied,
    ReservationTimeout,
    ValidationError,
)
from ...db.session import get_db
from ...db import models, schemas
from ...db.models.booking import BookingStatus
from ...services import booking_service, conflict_service

router = APIRouter(prefix="/bookings", tags=["bookings"])

ERROR_STATUS = {
    ValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    NotFound: status.HTTP_404_NOT_FOUND,
    PermissionDenied: status.HTTP_403_FORBIDDEN,
    InvalidTransition: status.HTTP_400_BAD_REQUEST,
    OutsideCheckInWindow: status.HTTP_400_BAD_REQUEST,
    ReservationTimeout: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def _http_error(exc: BookingError) -> HTTPException:
    for error_type, status_code in ERROR_STATUS.items():
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


def _conflict_response(
    db: Session, exc: ConflictError, payload: schemas.BookingCreate, clock: Clock
) -> JSONResponse:
    resource = db.get(models.Resource, payload.resource_id)
    suggestion = conflict_service.suggest(
        db, resource, payload.start_time, payload.end_time, now=clock()
    )
    body = schemas.BookingConflict(
        errors=[str(exc)],
        conflicts=[
            schemas.ConflictWindow(booking_id=window.booking_id, start=window.start, end=window.end)
            for window in exc.conflicts
        ],
        suggestions=schemas.ConflictSuggestions(
            available_resources=[
                schemas.BookingResourceSummary.model_validate(resource)
                for resource in suggestion.available_resources
            ],
            available_slots=[
                schemas.SuggestedSlot(start=start, end=end)
                for start, end in suggestion.available_slots
            ],
        ),
    )
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content=jsonable_encoder(body))


def _visible_booking(db: Session, booking_id: int, user: models.User) -> models.Booking:
    booking = db.get(models.Booking, booking_id)
    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found")
    if booking.user_id != user.id and not deps.is_admin(user):
        raise HTTPException(status_code=404, detail="Booking not found")
    return booking


@router.get("", response_model=schemas.BookingList)
def list_bookings(
    booking_status: BookingStatus | None = Query(None, alias="status"),
    resource_id: int | None = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    user: models.User = Depends(deps.get_current_user),
):
    booking_service.complete_elapsed(db, now=clock())
    query = db.query(models.Booking).options(selectinload(models.Booking.resource))
    if not deps.is_admin(user):
        query = query.filter(models.Booking.user_id == user.id)
    if booking_status:
        query = query.filter(models.Booking.status == booking_status)
    if resource_id:
        query = query.filter(models.Booking.resource_id == resource_id)
    total = query.count()
    bookings = (
        query.order_by(models.Booking.start_time.desc(), models.Booking.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return {
        "bookings": bookings,
        "total": total,
        "limit": limit,
        "offset": offset,
        "has_more": offset + len(bookings) < total,
    }


@router.post("", response_model=schemas.Booking, status_code=status.HTTP_201_CREATED)
def create_booking(
    payload: schemas.BookingCreate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    user: models.User = Depends(deps.get_current_user),
):
    try:
        return booking_service.reserve(
            db,
            payload.resource_id,
            user.id,
            payload.start_time,
            payload.end_time,
            now=clock(),
        )
    except ConflictError as exc:
        return _conflict_response(db, exc, payload, clock)
    except BookingError as exc:
        raise _http_error(exc) from exc


@router.get("/{booking_id}", response_model=schemas.Booking)
def get_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    user: models.User = Depends(deps.get_current_user),
):
    return _visible_booking(db, booking_id, user)


@router.patch("/{booking_id}", response_model=schemas.Booking)
def review_booking(
    booking_id: int,
    payload: schemas.BookingReview,
    db: Session = Depends(get_db),
    admin: models.User = Depends(deps.require_roles("admin")),
):
    review = booking_service.approve if payload.status == "approved" else booking_service.reject
    try:
        return review(db, booking_id, payload.admin_note, actor_id=admin.id)
    except BookingError as exc:
        raise _http_error(exc) from exc


@router.post("/{booking_id}/check_in", response_model=schemas.Booking)
def check_in_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    user: models.User = Depends(deps.get_current_user),
):
    try:
        return booking_service.check_in(
            db, booking_id, user.id, is_admin=deps.is_admin(user), now=clock()
        )
    except BookingError as exc:
        raise _http_error(exc) from exc


@router.delete("/{booking_id}", response_model=schemas.Booking)
def cancel_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    user: models.User = Depends(deps.get_current_user),
):
    try:
        return booking_service.cancel(
            db, booking_id, user.id, is_admin=deps.is_admin(user), now=clock()
        )
    except BookingError as exc:
        raise _http_error(exc) from exc
