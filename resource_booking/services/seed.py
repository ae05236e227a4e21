from sqlalchemy.orm import Session
from ..db.session import SessionLocal
from ..db import models
from ..config import get_settings
from .admin import ensure_admin_exists

DEMO_RESOURCES = [
    ("Board Room", models.ResourceType.meeting_room, "Floor 3", {"capacity": 12, "has_projector": True}),
    ("Huddle Room", models.ResourceType.meeting_room, "Floor 2", {"capacity": 4, "has_projector": False}),
    ("Pixel 8", models.ResourceType.phone, "IT desk", {"brand": "Google", "os": "Android"}),
    ("iPhone 15", models.ResourceType.phone, "IT desk", {"brand": "Apple", "os": "iOS"}),
    ("ThinkPad X1", models.ResourceType.laptop, "IT desk", {"brand": "Lenovo", "os": "Linux"}),
    ("Main Turf", models.ResourceType.turf, "Campus grounds", {"surface": "artificial"}),
]


def seed(session: Session) -> None:
    settings = get_settings()
    ensure_admin_exists(session, settings.default_admin_email, settings.default_admin_password)
    if session.query(models.Resource).count() == 0:
        for name, resource_type, location, properties in DEMO_RESOURCES:
            session.add(
                models.Resource(
                    name=name,
                    resource_type=resource_type,
                    location=location,
                    properties=properties,
                )
            )
    session.commit()


if __name__ == "__main__":
    with SessionLocal() as session:
        seed(session)
        print("Seed data created")
