from datetime import timedelta

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from resource_booking.api.routes import auth, misc
from resource_booking.core import security
from resource_booking.db import models
from resource_booking.db.session import Base, get_db


@pytest.fixture()
def auth_client():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    TestingSessionLocal = sessionmaker(
        bind=engine, autoflush=False, autocommit=False, expire_on_commit=False, future=True
    )
    Base.metadata.create_all(bind=engine)
    with TestingSessionLocal() as db:
        db.add_all(
            [
                models.User(
                    email="alice@example.com",
                    full_name="Alice",
                    password_hash=security.get_password_hash("secret"),
                ),
                models.User(
                    email="gone@example.com",
                    password_hash=security.get_password_hash("secret"),
                    is_active=False,
                ),
            ]
        )
        db.commit()

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    test_app = FastAPI()
    test_app.include_router(auth.router, prefix="/api/v1")
    test_app.dependency_overrides[get_db] = override_get_db
    with TestClient(test_app) as client:
        yield client
    test_app.dependency_overrides.clear()


def login(client, email, password):
    return client.post("/api/v1/auth/login", data={"username": email, "password": password})


def test_login_and_me(auth_client):
    response = login(auth_client, "alice@example.com", "secret")
    assert response.status_code == 200
    body = response.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["email"] == "alice@example.com"

    me = auth_client.get(
        "/api/v1/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"}
    )
    assert me.status_code == 200
    assert me.json()["role"] == "employee"


def test_login_rejects_bad_credentials(auth_client):
    assert login(auth_client, "alice@example.com", "wrong").status_code == 400
    assert login(auth_client, "nobody@example.com", "secret").status_code == 400
    assert login(auth_client, "gone@example.com", "secret").status_code == 400


def test_me_requires_a_valid_token(auth_client):
    assert auth_client.get("/api/v1/auth/me").status_code == 401
    expired = security.create_access_token(1, "employee", expires_delta=timedelta(minutes=-1))
    response = auth_client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {expired}"})
    assert response.status_code == 401


def test_token_round_trip():
    token = security.create_access_token(7, "admin")
    claims = security.decode_access_token(token)
    assert claims["sub"] == "7"
    assert claims["role"] == "admin"


def test_health_reports_database_and_clock():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    TestingSessionLocal = sessionmaker(bind=engine, future=True)

    def override_get_db():
        with TestingSessionLocal() as db:
            yield db

    test_app = FastAPI()
    test_app.include_router(misc.router, prefix="/api/v1")
    test_app.dependency_overrides[get_db] = override_get_db
    with TestClient(test_app) as client:
        response = client.get("/api/v1/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.json()["timezone"] == "UTC"
