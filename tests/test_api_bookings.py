from datetime import datetime, timezone

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from resource_booking.api import deps
from resource_booking.api.routes import bookings, resources
from resource_booking.core.clock import get_clock
from resource_booking.core.errors import ReservationTimeout
from resource_booking.db import models
from resource_booking.db.session import Base, get_db
from resource_booking.services import booking_service

NOW = datetime(2030, 1, 15, 8, 0, tzinfo=timezone.utc)


def iso(hour, minute=0):
    return datetime(2030, 1, 15, hour, minute, tzinfo=timezone.utc).isoformat()


@pytest.fixture()
def api_client():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    TestingSessionLocal = sessionmaker(
        bind=engine,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
        future=True,
    )
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    admin = models.User(email="admin@example.com", role=models.UserRole.admin)
    alice = models.User(email="alice@example.com", role=models.UserRole.employee)
    bob = models.User(email="bob@example.com", role=models.UserRole.employee)
    db.add_all(
        [
            admin,
            alice,
            bob,
            models.Resource(name="Board Room", resource_type=models.ResourceType.meeting_room),
            models.Resource(name="Huddle Room", resource_type=models.ResourceType.meeting_room),
            models.Resource(name="Pixel", resource_type=models.ResourceType.phone),
        ]
    )
    db.commit()
    users = {"admin": admin, "alice": alice, "bob": bob}
    db.close()

    current = {"user": alice}
    clock = {"now": NOW}

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    test_app = FastAPI()
    test_app.include_router(resources.router, prefix="/api/v1")
    test_app.include_router(bookings.router, prefix="/api/v1")

    test_app.dependency_overrides[get_db] = override_get_db
    test_app.dependency_overrides[deps.get_current_user] = lambda: current["user"]
    test_app.dependency_overrides[get_clock] = lambda: (lambda: clock["now"])

    def act_as(name):
        current["user"] = users[name]

    with TestClient(test_app) as client:
        yield client, act_as, clock

    test_app.dependency_overrides.clear()


def reserve(client, resource_id, start, end):
    return client.post(
        "/api/v1/bookings",
        json={"resource_id": resource_id, "start_time": start, "end_time": end},
    )


def test_reserve_and_conflict_with_suggestions(api_client):
    client, act_as, _ = api_client

    created = reserve(client, 1, iso(10), iso(11))
    assert created.status_code == 201
    assert created.json()["status"] == "pending"

    act_as("bob")
    conflict = reserve(client, 1, iso(10, 30), iso(11, 30))
    assert conflict.status_code == 409
    body = conflict.json()
    assert body["errors"]
    assert body["conflicts"][0]["booking_id"] == created.json()["id"]
    assert [r["id"] for r in body["suggestions"]["available_resources"]] == [2]
    assert body["suggestions"]["available_resources"][0]["resource_type"] == "meeting-room"
    slots = body["suggestions"]["available_slots"]
    assert slots
    for slot in slots:
        start = datetime.fromisoformat(slot["start"])
        end = datetime.fromisoformat(slot["end"])
        assert not (start < datetime.fromisoformat(iso(11)) and end > datetime.fromisoformat(iso(10)))

    back_to_back = reserve(client, 1, iso(11), iso(11, 30))
    assert back_to_back.status_code == 201


def test_identical_retry_is_not_duplicated(api_client):
    client, _, _ = api_client
    first = reserve(client, 1, iso(12), iso(13))
    second = reserve(client, 1, iso(12), iso(13))
    assert second.status_code == 201
    assert second.json()["id"] == first.json()["id"]
    listing = client.get("/api/v1/bookings").json()
    assert listing["total"] == 1


def test_validation_errors(api_client):
    client, _, _ = api_client
    assert reserve(client, 1, iso(11), iso(10)).status_code == 422
    assert reserve(client, 1, iso(10), iso(10, 45)).status_code == 422
    assert reserve(client, 1, iso(7), iso(8)).status_code == 422
    assert reserve(client, 99, iso(10), iso(11)).status_code == 404


def test_lock_timeout_maps_to_service_unavailable(api_client, monkeypatch):
    client, _, _ = api_client

    def timed_out(*_args, **_kwargs):
        raise ReservationTimeout(1, 5)

    monkeypatch.setattr(booking_service, "reserve", timed_out)
    assert reserve(client, 1, iso(10), iso(11)).status_code == 503


def test_review_requires_admin(api_client):
    client, act_as, _ = api_client
    booking_id = reserve(client, 1, iso(10), iso(11)).json()["id"]

    denied = client.patch(f"/api/v1/bookings/{booking_id}", json={"status": "approved"})
    assert denied.status_code == 403

    act_as("admin")
    approved = client.patch(
        f"/api/v1/bookings/{booking_id}",
        json={"status": "approved", "admin_note": "Projector is ready"},
    )
    assert approved.status_code == 200
    assert approved.json()["status"] == "approved"
    assert approved.json()["admin_note"] == "Projector is ready"

    again = client.patch(f"/api/v1/bookings/{booking_id}", json={"status": "rejected"})
    assert again.status_code == 400


def test_check_in_window_over_http(api_client):
    client, act_as, clock = api_client
    booking_id = reserve(client, 1, iso(10), iso(11)).json()["id"]
    act_as("admin")
    client.patch(f"/api/v1/bookings/{booking_id}", json={"status": "approved"})
    act_as("alice")

    clock["now"] = datetime(2030, 1, 15, 9, 40, tzinfo=timezone.utc)
    early = client.post(f"/api/v1/bookings/{booking_id}/check_in")
    assert early.status_code == 400

    clock["now"] = datetime(2030, 1, 15, 9, 50, tzinfo=timezone.utc)
    on_time = client.post(f"/api/v1/bookings/{booking_id}/check_in")
    assert on_time.status_code == 200
    assert on_time.json()["status"] == "checked_in"
    assert on_time.json()["checked_in_at"] is not None


def test_cancel_frees_the_window(api_client):
    client, act_as, _ = api_client
    booking_id = reserve(client, 1, iso(14), iso(15)).json()["id"]

    act_as("bob")
    assert client.delete(f"/api/v1/bookings/{booking_id}").status_code == 403
    assert reserve(client, 1, iso(14), iso(15)).status_code == 409

    act_as("alice")
    cancelled = client.delete(f"/api/v1/bookings/{booking_id}")
    assert cancelled.status_code == 200
    assert cancelled.json()["status"] == "cancelled"

    act_as("bob")
    assert reserve(client, 1, iso(14), iso(15)).status_code == 201


def test_listing_is_scoped_and_completes_elapsed(api_client):
    client, act_as, clock = api_client
    booking_id = reserve(client, 1, iso(9), iso(10)).json()["id"]
    act_as("bob")
    reserve(client, 2, iso(9), iso(10))
    assert client.get("/api/v1/bookings").json()["total"] == 1

    act_as("admin")
    client.patch(f"/api/v1/bookings/{booking_id}", json={"status": "approved"})
    assert client.get("/api/v1/bookings").json()["total"] == 2

    clock["now"] = datetime(2030, 1, 15, 10, 30, tzinfo=timezone.utc)
    completed = client.get("/api/v1/bookings", params={"status": "completed"}).json()
    assert [booking["id"] for booking in completed["bookings"]] == [booking_id]
    assert completed["has_more"] is False


def test_availability_endpoint(api_client):
    client, _, _ = api_client
    reserve(client, 1, iso(10), iso(11))

    response = client.get("/api/v1/resources/1/availability", params={"date": "2030-01-15", "duration": 60})
    assert response.status_code == 200
    body = response.json()
    assert body["resource_name"] == "Board Room"
    assert body["slot_duration_minutes"] == 60
    slots = body["available_slots"]
    assert len(slots) == 24
    assert slots[7]["status"] == "past"
    assert slots[10]["status"] == "taken"
    assert slots[10]["available"] is False
    assert slots[11]["status"] == "available"
    assert slots[11]["available"] is True

    bad = client.get("/api/v1/resources/1/availability", params={"date": "2030-01-15", "duration": 45})
    assert bad.status_code == 422


def test_resource_listing_filters_by_type(api_client):
    client, _, _ = api_client
    response = client.get("/api/v1/resources", params={"resource_type": "meeting-room"})
    assert response.status_code == 200
    assert [r["name"] for r in response.json()["resources"]] == ["Board Room", "Huddle Room"]
    assert client.get("/api/v1/resources/99").status_code == 404
    assert client.get("/api/v1/resources/99/availability", params={"date": "2030-01-15"}).status_code == 404
