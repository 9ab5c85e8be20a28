"""
Shared pytest configuration for all tests.
Seeds test environment variables and provides in-memory repositories that
stand in for Neo4j.
"""
import copy
import os
import sys
import uuid
from datetime import date, datetime, timezone
from pathlib import Path
from unittest.mock import patch

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

# Load test environment variables before any imports
from dotenv import load_dotenv

test_env_path = Path(__file__).parent.parent / ".env.test"
if test_env_path.exists():
    load_dotenv(test_env_path, override=True)
else:
    os.environ["NEO4J_URI"] = "bolt://localhost:7688"
    os.environ["NEO4J_USER"] = "neo4j"
    os.environ["NEO4J_PASSWORD"] = "testpassword123"
    os.environ["API_KEY"] = "test-api-key"
    os.environ["BACKGROUND_CHECK_DELAY_SECONDS"] = "0"

from models.application import ApplicationStatus, ConsentKind
from models.log_entry import EntityType, StatusTransitionContext
from repositories.log_repository import EntityNotFoundError


class InMemoryStore:
    """Rows per entity type, shared by the fake repositories."""

    def __init__(self):
        self.tables = {entity_type: {} for entity_type in EntityType}


def _new_row(data):
    now = datetime.now(timezone.utc).isoformat()
    data.update({
        "id": str(uuid.uuid4()),
        "created_at": now,
        "updated_at": now,
        "logs": [],
    })
    return data


class FakeApplicationRepository:
    def __init__(self, store):
        self.rows = store.tables[EntityType.DRIVER_APPLICATIONS]

    def create(self, application, status=ApplicationStatus.NEW):
        data = _new_row(application.model_dump(mode="json"))
        data.update({
            "status": ApplicationStatus(status).value,
            "background_check_status": "pending",
            "background_check_results": None,
        })
        self.rows[data["id"]] = data
        return copy.deepcopy(data)

    def get_by_id(self, application_id):
        row = self.rows.get(application_id)
        return copy.deepcopy(row) if row else None

    def get_all(self, skip=0, limit=100, filters=None):
        rows = list(self.rows.values())
        for key, value in (filters or {}).items():
            if key in ("status", "company_id"):
                rows = [row for row in rows if row.get(key) == value]
        return copy.deepcopy(rows[skip:skip + limit])

    def update(self, application_id, updates):
        if application_id not in self.rows:
            return None
        self.rows[application_id].update(copy.deepcopy(updates))
        return self.get_by_id(application_id)

    def exists(self, application_id):
        return application_id in self.rows

    def get_status_counts(self, company_id=None):
        counts = {}
        for row in self.rows.values():
            if company_id is None or row.get("company_id") == company_id:
                counts[row["status"]] = counts.get(row["status"], 0) + 1
        return counts


class FakeDriverRepository:
    def __init__(self, store):
        self.rows = store.tables[EntityType.DRIVERS]

    def create(self, driver):
        data = _new_row(driver.model_dump(mode="json"))
        self.rows[data["id"]] = data
        return copy.deepcopy(data)

    def get_by_id(self, driver_id):
        row = self.rows.get(driver_id)
        return copy.deepcopy(row) if row else None

    def get_by_application(self, application_id):
        for row in self.rows.values():
            if row["application_id"] == application_id:
                return copy.deepcopy(row)
        return None

    def get_all(self, skip=0, limit=100, filters=None):
        rows = list(self.rows.values())
        for key, value in (filters or {}).items():
            rows = [row for row in rows if row.get(key) == value]
        return copy.deepcopy(rows[skip:skip + limit])

    def update(self, driver_id, updates):
        if driver_id not in self.rows:
            return None
        self.rows[driver_id].update(copy.deepcopy(updates))
        return self.get_by_id(driver_id)


class FakeCompanyRepository:
    def __init__(self, store):
        self.rows = store.tables[EntityType.COMPANIES]

    def create(self, company):
        data = _new_row(company.model_dump(mode="json"))
        self.rows[data["id"]] = data
        return copy.deepcopy(data)

    def get_by_id(self, company_id):
        row = self.rows.get(company_id)
        return copy.deepcopy(row) if row else None

    def get_by_slug(self, slug):
        for row in self.rows.values():
            if row["slug"] == slug:
                return copy.deepcopy(row)
        return None

    def get_all(self, skip=0, limit=100):
        return copy.deepcopy(list(self.rows.values())[skip:skip + limit])

    def exists(self, company_id):
        return company_id in self.rows

    def slug_exists(self, slug):
        return self.get_by_slug(slug) is not None


class FakeLogRepository:
    def __init__(self, store):
        self.store = store

    def append(self, entity_type, entity_id, entry):
        rows = self.store.tables[EntityType(entity_type)]
        if entity_id not in rows:
            raise EntityNotFoundError(f"{entity_type} {entity_id} not found")
        new_entry = {
            **copy.deepcopy(entry),
            "id": str(uuid.uuid4()),
            "created_at": datetime.now(timezone.utc).isoformat(),
        }
        rows[entity_id]["logs"].append(new_entry)
        return new_entry

    def get_logs(self, entity_type, entity_id):
        rows = self.store.tables[EntityType(entity_type)]
        if entity_id not in rows:
            raise EntityNotFoundError(f"{entity_type} {entity_id} not found")
        return copy.deepcopy(rows[entity_id]["logs"])


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def application_repo(store):
    return FakeApplicationRepository(store)


@pytest.fixture
def driver_repo(store):
    return FakeDriverRepository(store)


@pytest.fixture
def company_repo(store):
    return FakeCompanyRepository(store)


@pytest.fixture
def log_repo(store):
    return FakeLogRepository(store)


@pytest.fixture
def operator_context():
    return StatusTransitionContext(
        user_id="user-42",
        user_email="recruiter@example.com",
        ip_address="203.0.113.7",
    )


@pytest.fixture
def application_payload():
    """Factory for a complete applicant payload; keyword arguments override fields."""
    def make(**overrides):
        today = date.today()
        payload = {
            "first_name": "Dana",
            "last_name": "Reyes",
            "dob": "1985-04-12",
            "phone": "417-555-0134",
            "email": "dana.reyes@example.com",
            "current_address": "1200 Main St",
            "current_city": "Joplin",
            "current_state": "MO",
            "current_zip": "64801",
            "current_address_from_month": 3,
            "current_address_from_year": 2015,
            "license_number": "R123456789",
            "license_state": "MO",
            "license_expiration_date": "2029-04-12",
            "medical_card_expiration_date": "2027-01-31",
            "position_applied_for": "OTR Driver",
            "addresses": [{
                "address": "88 Oak Ave",
                "city": "Neosho",
                "state": "MO",
                "zip": "64850",
                "from_month": 1,
                "from_year": 2010,
                "to_month": 2,
                "to_year": 2015,
            }],
            "jobs": [{
                "employer_name": "Midwest Freight LLC",
                "position_held": "OTR Driver",
                "from_month": 1,
                "from_year": today.year - 5,
                "to_month": today.month,
                "to_year": today.year,
            }],
            "consents": {
                kind.value: {
                    "consent_given": True,
                    "signature": {"uploaded": True, "path": f"signatures/{kind.value}.png"},
                }
                for kind in ConsentKind
            },
        }
        payload.update(overrides)
        return payload
    return make


@pytest.fixture
def api_client(store, application_repo, driver_repo, company_repo, log_repo):
    """TestClient with every route module wired to the in-memory store."""
    from fastapi.testclient import TestClient

    from main import app
    from services.background_check_service import BackgroundCheckService

    background_checks = BackgroundCheckService(application_repo, delay_seconds=0)
    with patch("routes.application_routes.application_repo", application_repo), \
            patch("routes.application_routes.company_repo", company_repo), \
            patch("routes.application_routes.driver_repo", driver_repo), \
            patch("routes.application_routes.log_repo", log_repo), \
            patch("routes.application_routes.background_check_service", background_checks), \
            patch("routes.driver_routes.repo", driver_repo), \
            patch("routes.driver_routes.log_repo", log_repo), \
            patch("routes.company_routes.repo", company_repo), \
            patch("routes.company_routes.application_repo", application_repo), \
            patch("routes.company_routes.log_repo", log_repo):
        yield TestClient(app)
