import os

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("TIMEZONE", "UTC")

from datetime import datetime, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from resource_booking.db.session import Base
from resource_booking.db import models

NOW = datetime(2030, 1, 15, 8, 0, tzinfo=timezone.utc)


@pytest.fixture()
def db_session():
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    TestingSessionLocal = sessionmaker(
        bind=engine, autoflush=False, autocommit=False, expire_on_commit=False
    )
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture()
def now():
    return NOW


@pytest.fixture()
def make_user(db_session):
    counter = {"n": 0}

    def factory(role=models.UserRole.employee, **kwargs):
        counter["n"] += 1
        user = models.User(
            email=kwargs.pop("email", f"user{counter['n']}@example.com"),
            full_name=kwargs.pop("full_name", f"User {counter['n']}"),
            role=role,
            **kwargs,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return factory


@pytest.fixture()
def make_resource(db_session):
    def factory(resource_type=models.ResourceType.meeting_room, name="Room", **kwargs):
        resource = models.Resource(name=name, resource_type=resource_type, **kwargs)
        db_session.add(resource)
        db_session.commit()
        db_session.refresh(resource)
        return resource

    return factory
