"""Pytest configuration and fixtures for the SPOG Inventory Tracker tests."""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from spog.models.base import Base
from spog.utils.config import reset_config

TEST_PASSWORD = "Passw0rd!"


@pytest.fixture(autouse=True)
def test_environment(monkeypatch):
    """Run every test against the test configuration."""
    monkeypatch.setenv("SPOG_ENV", "test")
    monkeypatch.delenv("SPOG_DATABASE_URL", raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture(scope="function")
def test_db():
    """Provide a clean test database for each test function.

    This fixture:
    1. Creates an in-memory SQLite database on a single shared connection
       (API requests are served from worker threads)
    2. Creates all tables
    3. Points every service at it by replacing get_session_factory()
    4. Drops all tables after the test completes
    """
    engine = create_engine(
        "sqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    import spog.services.database as db_module

    db_module._import_models()
    Base.metadata.create_all(engine)

    Session = sessionmaker(bind=engine, expire_on_commit=False)

    original_get_session_factory = db_module.get_session_factory
    db_module.get_session_factory = lambda: Session

    yield Session

    Base.metadata.drop_all(engine)
    engine.dispose()
    db_module.get_session_factory = original_get_session_factory


# ============================================================================
# Users
# ============================================================================


def _make_user(email, role, first_name="Test", last_name="User"):
    from spog.services import user_service

    return user_service.create_user(
        {
            "email": email,
            "password": TEST_PASSWORD,
            "first_name": first_name,
            "last_name": last_name,
            "role": role,
        }
    )


@pytest.fixture
def admin_user(test_db):
    return _make_user("admin@example.com", "admin", "Ada", "Admin")


@pytest.fixture
def manager_user(test_db):
    return _make_user("manager@example.com", "manager", "Max", "Manager")


@pytest.fixture
def regular_user(test_db):
    return _make_user("tech@example.com", "user", "Terry", "Technician")


# ============================================================================
# Inventory
# ============================================================================


@pytest.fixture
def sample_location(test_db):
    from spog.services import location_service

    return location_service.create_location("Hangar 1 Paint Store", description="Flammables")


@pytest.fixture
def sample_item(test_db, sample_location):
    """10 L of sealant, fully stocked."""
    from spog.services import inventory_service

    return inventory_service.create_item(
        {
            "name": "PR-1422 B2 Sealant",
            "category": "Sealant",
            "unit": "L",
            "consumption_unit": "mL",
            "original_amount": 10,
            "minimum_quantity": 2,
            "location_id": sample_location.id,
        }
    )


# ============================================================================
# API
# ============================================================================


@pytest.fixture
def client(test_db):
    from fastapi.testclient import TestClient

    from spog.api.app import create_app

    with TestClient(create_app()) as test_client:
        yield test_client


def _login(client, email):
    response = client.post("/api/auth/login", json={"email": email, "password": TEST_PASSWORD})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture
def admin_headers(client, admin_user):
    return _login(client, admin_user.email)


@pytest.fixture
def manager_headers(client, manager_user):
    return _login(client, manager_user.email)


@pytest.fixture
def user_headers(client, regular_user):
    return _login(client, regular_user.email)
