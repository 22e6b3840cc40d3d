import os

# Must be set before fleethub is imported: settings and the engine are module level
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SEED_DEMO_DATA"] = "false"
os.environ["AUTO_CREATE_DB"] = "false"

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from fleethub.db import Base, SessionLocal, engine
from fleethub.main import app
from fleethub.services.store import Store
from fleethub.services.users import create_user
from fleethub.services.vehicles import create_vehicle


PASSWORD = "secret-pass"


def days_from_now(days: float) -> datetime:
    return datetime.now(timezone.utc) + timedelta(days=days)


@pytest.fixture(autouse=True)
def reset_database():
    """Fresh schema for every test"""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def store(db):
    return Store(db)


@pytest.fixture
def client():
    # Not used as a context manager so the startup hook stays out of tests
    return TestClient(app)


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(username=None, role="driver", **extra):
        counter["n"] += 1
        fields = {
            "username": username or f"user{counter['n']}",
            "password": PASSWORD,
            "name": f"User {counter['n']}",
            "role": role,
        }
        fields.update(extra)
        return create_user(db, fields)

    return _make


@pytest.fixture
def make_vehicle(db):
    counter = {"n": 0}

    def _make(**extra):
        counter["n"] += 1
        fields = {
            "name": f"Truck #{counter['n']}",
            "type": "truck",
            "vin": f"VIN{counter['n']:014d}",
            "make": "Ford",
            "model": "F-150",
            "year": 2020,
            "mileage": 10000,
        }
        fields.update(extra)
        return create_vehicle(db, fields)

    return _make


@pytest.fixture
def make_part(store):
    counter = {"n": 0}

    def _make(**extra):
        counter["n"] += 1
        fields = {
            "name": f"Part {counter['n']}",
            "sku": f"SKU-{counter['n']:04d}",
            "category": "Filters",
            "price": 10.0,
            "quantity": 50,
            "minimum_stock": 10,
        }
        fields.update(extra)
        return store.parts.create(fields)

    return _make


@pytest.fixture
def auth_headers(client, make_user):
    """Bearer headers for a freshly created user of the given role"""

    def _headers(role="company_admin"):
        user = make_user(role=role)
        response = client.post("/api/auth/login", json={"username": user.username, "password": PASSWORD})
        token = response.json()["access_token"]
        return {"Authorization": f"Bearer {token}"}

    return _headers
