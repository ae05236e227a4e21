from sqlalchemy import select
from sqlalchemy.orm import Session

from ..core.errors import NotFound
from ..db import models
from ..db.models.resource import ResourceType


def list_active(db: Session, resource_type: ResourceType | None = None) -> list[models.Resource]:
    stmt = select(models.Resource).where(models.Resource.is_active.is_(True))
    if resource_type is not None:
        stmt = stmt.where(models.Resource.resource_type == resource_type)
    return list(db.execute(stmt.order_by(models.Resource.id)).scalars().all())


def get(db: Session, resource_id: int) -> models.Resource:
    resource = db.get(models.Resource, resource_id)
    if resource is None:
        raise NotFound(f"Resource {resource_id} not found")
    return resource
