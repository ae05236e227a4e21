from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from ...api import deps
from ...core.clock import Clock, get_clock
from ...core.errors import NotFound, ValidationError
from ...db.session import get_db
from ...db import models, schemas
from ...db.models.resource import ResourceType
from ...services import availability_service, resource_directory

router = APIRouter(prefix="/resources", tags=["resources"])


@router.get("", response_model=schemas.ResourceList)
def list_resources(
    resource_type: ResourceType | None = None,
    is_active: bool | None = None,
    db: Session = Depends(get_db),
    _: models.User = Depends(deps.get_current_user),
):
    query = db.query(models.Resource)
    if resource_type is not None:
        query = query.filter(models.Resource.resource_type == resource_type)
    if is_active is not None:
        query = query.filter(models.Resource.is_active.is_(is_active))
    resources = query.order_by(models.Resource.id).all()
    return {"resources": resources, "total": len(resources)}


@router.get("/{resource_id}", response_model=schemas.Resource)
def get_resource(
    resource_id: int,
    db: Session = Depends(get_db),
    _: models.User = Depends(deps.get_current_user),
):
    try:
        resource = resource_directory.get(db, resource_id)
    except NotFound as exc:
        raise HTTPException(status_code=404, detail="Resource not found") from exc
    return resource


@router.get("/{resource_id}/availability", response_model=schemas.Availability)
def get_availability(
    resource_id: int,
    query_date: date = Query(..., alias="date"),
    duration: int | None = Query(None, description="Slot length in minutes"),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    _: models.User = Depends(deps.get_current_user),
):
    try:
        resource = resource_directory.get(db, resource_id)
    except NotFound as exc:
        raise HTTPException(status_code=404, detail="Resource not found") from exc
    try:
        window = availability_service.compute_availability(
            db, resource, query_date, duration, now=clock()
        )
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc
    return {
        "resource_id": resource.id,
        "resource_name": resource.name,
        "query_date": window.day,
        "slot_duration_minutes": window.slot_minutes,
        "available_slots": [
            {
                "index": slot.index,
                "start_time": slot.start,
                "end_time": slot.end,
                "status": slot.status.value,
                "available": slot.selectable,
            }
            for slot in window.slots
        ],
    }
