"""
Test configuration and fixtures.

Unit tests work against an InMemoryRecordStore with a fixed clock; HTTP
tests build the app with create_app() around that same store so fixtures can
seed records directly.
"""

from datetime import date, datetime, time, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from marketplace.core.config import Settings
from marketplace.main import create_app
from marketplace.services.lifecycle import BookingLifecycle
from marketplace.store.memory import InMemoryRecordStore

NOW = datetime(2026, 3, 18, 9, 30, tzinfo=timezone.utc)

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "admin-secret"


@pytest.fixture
def store():
    return InMemoryRecordStore()


@pytest.fixture
def lifecycle(store):
    return BookingLifecycle(store, clock=lambda: NOW)


@pytest.fixture
def catalog(store):
    """One category, two services and an approved provider offering the first."""
    category = store.create("service_categories", {"id": "cat-clean", "name": "Cleaning"})
    deep_clean = store.create(
        "services",
        {
            "id": "svc-clean",
            "name": "Deep Cleaning",
            "description": "Whole-home deep clean",
            "category_id": category["id"],
            "price": Decimal("80.00"),
            "duration": 180,
            "is_active": True,
        },
    )
    plumbing = store.create(
        "services",
        {
            "id": "svc-plumb",
            "name": "Pipe Repair",
            "description": "Leaks and blocked drains",
            "category_id": None,
            "price": Decimal("120.00"),
            "duration": 60,
            "is_active": True,
        },
    )
    store.create("users", {"id": "cust-1", "email": "cara@example.com", "display_name": "Cara", "role": "customer", "password_hash": "x"})
    store.create("users", {"id": "prov-1", "email": "pat@example.com", "display_name": "Pat", "role": "provider", "password_hash": "x"})
    profile = store.create(
        "providers",
        {
            "id": "profile-1",
            "user_id": "prov-1",
            "business_name": "Pat's Home Care",
            "services": [deep_clean["id"]],
            "review_count": 0,
            "total_jobs": 0,
            "is_available": True,
            "status": "approved",
        },
    )
    return {"category": category, "service": deep_clean, "other_service": plumbing, "provider": profile}


@pytest.fixture
def pending_booking(lifecycle, catalog):
    return lifecycle.create(
        customer_id="cust-1",
        service_id=catalog["service"]["id"],
        provider_id="prov-1",
        scheduled_date=date(2026, 3, 20),
        scheduled_time=time(10, 0),
        address="12 Elm Street",
        notes="Ring twice",
    )


@pytest.fixture
def settings():
    return Settings(
        STORE_BACKEND="memory",
        SECRET_KEY="test-secret-key",
        ADMIN_EMAIL=ADMIN_EMAIL,
        ADMIN_PASSWORD=ADMIN_PASSWORD,
        LOG_LEVEL="WARNING",
        ENVIRONMENT="test",
    )


@pytest.fixture
def client(settings, store):
    app = create_app(settings, store=store)
    with TestClient(app) as test_client:
        yield test_client


def login(client, email, password):
    response = client.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


def register(client, email, password="password1", role="customer", display_name=None):
    response = client.post(
        "/api/auth/register",
        json={"email": email, "password": password, "role": role, "display_name": display_name},
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def admin_headers(client):
    return login(client, ADMIN_EMAIL, ADMIN_PASSWORD)


@pytest.fixture
def customer(client):
    user = register(client, "dana@example.com", display_name="Dana Customer")
    return {"user": user, "headers": login(client, "dana@example.com", "password1")}


@pytest.fixture
def provider(client, store, catalog, admin_headers):
    """A registered provider, approved by the admin, offering the deep clean."""
    user = register(client, "sam@example.com", role="provider", display_name="Sam Fixit")
    profile = store.list("providers", where={"user_id": user["id"]})[0]
    response = client.put(f"/admin/providers/{profile['id']}/approve", headers=admin_headers)
    assert response.status_code == 200, response.text
    store.update("providers", profile["id"], {"services": [catalog["service"]["id"]]})
    return {"user": user, "profile": profile, "headers": login(client, "sam@example.com", "password1")}


@pytest.fixture
def login_as(client):
    return lambda email, password="password1": login(client, email, password)


@pytest.fixture
def register_user(client):
    def _register(email, password="password1", role="customer", display_name=None):
        return register(client, email, password=password, role=role, display_name=display_name)

    return _register
