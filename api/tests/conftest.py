"""Pytest fixtures for API testing."""
import os

# The application engine must never touch a file database during tests
os.environ["DATABASE_URL"] = "sqlite:///:memory:"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from emoc.main import app
from emoc.core.database import get_db
from emoc.core.reference_data import default_directory
from emoc.core.request_store import build_initial_state
from emoc.core.time import utc_now
from emoc.models.base import Base
from emoc.schemas.moc_request import MOCRequestCreate

# In-memory SQLite for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    """Override database dependency for testing."""
    try:
        db = TestingSessionLocal()
        yield db
    finally:
        db.close()


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    yield db
    db.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """Test client with database override.

    Note: db_session already created tables, so we don't need to create them again.
    """
    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def make_intake(**overrides) -> dict:
    """A complete, valid intake form for a Normal priority permanent plant change."""
    data = {
        "requester_name": "Robert Chen",
        "title": "Replace feed pump P-101",
        "area_id": "area-1",
        "unit_id": "unit-1-2",
        "priority_id": "priority-1",
        "length_of_change": "length-1",
        "type_of_change": "type-1",
        "estimated_start": "2026-11-01",
        "estimated_end": "2026-12-15",
        "tpm_loss_type_id": "tpm-4",
        "detail_of_change": "Replace pump with higher capacity model",
        "reason_for_change": "Existing pump cannot meet demand",
        "scope_of_work": "Mechanical installation and piping tie-in",
        "estimated_cost": 120000,
        "estimated_benefit": 300000,
        "benefits": ["benefit-6"],
        "risk_before": {"severity": 4, "probability": 3},
        "risk_after": {"severity": 2, "probability": 1},
        "attachments": [
            {
                "category": "Technical Information",
                "file_name": "pump-datasheet.pdf",
                "file_size": 204800,
                "file_type": "application/pdf",
            }
        ],
    }
    data.update(overrides)
    return data


@pytest.fixture
def intake_data():
    return make_intake()


@pytest.fixture
def intake_form():
    """Validated intake model, for tests that call the core modules directly."""
    return MOCRequestCreate(**make_intake())


@pytest.fixture
def created_request(client, intake_data):
    """A request submitted through the API, still at Initiation task 0."""
    response = client.post("/moc-requests/", json=intake_data)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def now():
    return utc_now()


@pytest.fixture
def moc_state(intake_form, now):
    """In-memory snapshot of a fresh request, for pure engine tests."""
    return build_initial_state(1, intake_form, default_directory, now)


@pytest.fixture
def intake_factory():
    """Build intake form data with selected fields overridden."""
    return make_intake
