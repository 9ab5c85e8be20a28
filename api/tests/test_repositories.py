"""
Unit tests for the Neo4j repositories.

Queries are not run; ``execute_query`` is mocked and the tests check the
parameters sent to Neo4j and how returned nodes are decoded.
"""

import json
import pytest
from unittest.mock import patch
from datetime import date, datetime, timezone

from database import BaseRepository
from models.application import ApplicationStatus, ConsentKind, DriverApplication, DriverApplicationCreate
from models.driver import DriverStatus
from models.log_entry import EntityType
from repositories.application_repository import ApplicationRepository
from repositories.log_repository import EntityNotFoundError, LogRepository


def echo_node(alias):
    """Return the properties a CREATE/SET query was given as the stored node."""
    def run(query, parameters):
        return [{alias: dict(parameters["props"])}]
    return run


class TestPropertyEncoding:

    class AuditedRepository(BaseRepository):
        json_fields = ("logs",)

    def test_nested_values_become_json_text(self):
        repo = self.AuditedRepository()

        props = repo.to_properties({
            "logs": [{"action": "created", "at": date(2024, 1, 15), "status": DriverStatus.ACTIVE}],
            "hire_date": datetime(2024, 1, 15, 9, 30, tzinfo=timezone.utc),
            "status": DriverStatus.OUT_OF_DUTY,
            "first_name": "Dana",
        })

        assert json.loads(props["logs"]) == [{"action": "created", "at": "2024-01-15", "status": "active"}]
        assert props["hire_date"] == "2024-01-15T09:30:00+00:00"
        assert props["status"] == "out_of_duty"
        assert props["first_name"] == "Dana"

    def test_missing_json_field_stays_null(self):
        repo = self.AuditedRepository()

        assert repo.to_properties({"logs": None}) == {"logs": None}
        assert repo.from_properties({"id": "d-1", "logs": None}) == {"id": "d-1", "logs": None}
        assert repo.from_properties(None) is None


class TestApplicationRepository:

    @pytest.fixture
    def repo(self):
        return ApplicationRepository()

    def test_create_round_trips_nested_fields(self, repo, application_payload):
        application = DriverApplicationCreate(**application_payload())

        with patch.object(repo, 'execute_query', side_effect=echo_node("a")):
            result = repo.create(application)

            query, params = repo.execute_query.call_args[0]
            assert "CREATE (a:DriverApplication)" in query
            assert "MERGE (c)-[:RECEIVED]->(a)" in query

        props = params["props"]
        assert isinstance(props["consents"], str)
        assert isinstance(props["jobs"], str)
        assert props["status"] == "New"
        assert props["dob"] == "1985-04-12"
        assert props["submitted_at"] is not None

        assert result["addresses"][0]["city"] == "Neosho"
        assert result["logs"] == []
        assert result["background_check_results"] is None

        stored = DriverApplication(**result)
        assert stored.status == ApplicationStatus.NEW
        assert stored.dob == date(1985, 4, 12)
        assert stored.consent(ConsentKind.MOTOR_VEHICLE_RECORD).signature.uploaded is True
        assert set(stored.consents) == set(ConsentKind)

    def test_draft_is_not_submitted(self, repo, application_payload):
        application = DriverApplicationCreate(**application_payload())

        with patch.object(repo, 'execute_query', side_effect=echo_node("a")):
            result = repo.create(application, ApplicationStatus.DRAFT)

        assert result["status"] == "draft"
        assert result["submitted_at"] is None

    def test_update_sets_partial_properties(self, repo, application_payload):
        jobs = application_payload()["jobs"]

        with patch.object(repo, 'execute_query', side_effect=echo_node("a")):
            result = repo.update("app-1", {"status": "Under Review", "jobs": jobs})

            query, params = repo.execute_query.call_args[0]
            assert "SET a += $props" in query
            assert params["id"] == "app-1"

        assert json.loads(params["props"]["jobs"]) == jobs
        assert params["props"]["updated_at"]
        assert result["jobs"] == jobs
        assert result["status"] == "Under Review"

    def test_update_unknown_application(self, repo):
        with patch.object(repo, 'execute_query', return_value=[]):
            assert repo.update("missing", {"status": "Rejected"}) is None

    def test_status_filter(self, repo):
        with patch.object(repo, 'execute_query', return_value=[]):
            repo.get_all(filters={"status": "Approved", "company_id": "c-1"})

            query, params = repo.execute_query.call_args[0]
            assert "a.status = $status" in query
            assert "a.company_id = $company_id" in query
            assert params["status"] == "Approved"


class TestLogRepository:

    @pytest.fixture
    def repo(self):
        return LogRepository()

    def test_append_writes_existing_entries_and_new_one(self, repo):
        existing = {"id": "log-1", "action": "created", "created_at": "2024-01-15T09:30:00+00:00"}
        responses = [[{"logs": json.dumps([existing])}], [{"id": "app-1"}]]

        with patch.object(repo, 'execute_query', side_effect=responses):
            entry = repo.append(EntityType.DRIVER_APPLICATIONS, "app-1", {"action": "status_changed"})

            assert repo.execute_query.call_count == 2
            query, params = repo.execute_query.call_args[0]
            assert "MATCH (n:DriverApplication {id: $id})" in query
            assert "SET n.logs = $logs" in query

        assert json.loads(params["logs"]) == [existing, entry]
        assert entry["action"] == "status_changed"
        assert entry["id"] and entry["created_at"]

    def test_append_to_entity_without_logs(self, repo):
        responses = [[{"logs": None}], [{"id": "d-1"}]]

        with patch.object(repo, 'execute_query', side_effect=responses):
            entry = repo.append("drivers", "d-1", {"action": "created"})

            query, params = repo.execute_query.call_args[0]
            assert "MATCH (n:Driver {id: $id})" in query

        assert json.loads(params["logs"]) == [entry]

    def test_append_to_missing_entity_raises(self, repo):
        with patch.object(repo, 'execute_query', return_value=[]):
            with pytest.raises(EntityNotFoundError):
                repo.append(EntityType.COMPANIES, "missing", {"action": "created"})

            repo.execute_query.assert_called_once()

    def test_append_raises_when_entity_disappears(self, repo):
        with patch.object(repo, 'execute_query', side_effect=[[{"logs": "[]"}], []]):
            with pytest.raises(EntityNotFoundError):
                repo.append(EntityType.DRIVER_APPLICATIONS, "app-1", {"action": "hired"})
