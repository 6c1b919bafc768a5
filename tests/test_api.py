"""HTTP API tests using FastAPI's TestClient against a temporary database."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from luxembourg_law.main import app
from luxembourg_law.repository.db import get_db_session


@pytest.fixture
def client(engine):
    def _session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_db_session] = _session
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


class TestHealth:

    def test_built_database_is_ok(self, sample_corpus, client):
        response = client.get("/api/v1/health")
        assert response.status_code == 200

        body = response.json()
        assert body["status"] == "ok"
        assert body["server"] == "luxembourg-legal-citations"
        assert body["data"]["schema_version"] == "2"
        assert body["data"]["days_old"] == 0
        assert body["data"]["counts"]["legal_provisions"] == 4
        assert body["data_freshness"]["is_stale"] is False
        assert body["capabilities"] == ["statutes", "eu_cross_references"]

    def test_empty_database_is_degraded(self, build, client):
        build()
        body = client.get("/api/v1/health").json()
        assert body["status"] == "degraded"
        assert body["data"]["counts"]["legal_documents"] == 0

    def test_unbuilt_database_is_degraded(self, client):
        body = client.get("/api/v1/health").json()
        assert body["status"] == "degraded"
        assert body["data"]["built_at"] == "unknown"
        assert body["data"]["days_old"] == -1


class TestVersion:

    def test_version(self, sample_corpus, client):
        body = client.get("/version").json()
        assert body["name"] == "luxembourg-legal-citations"
        assert body["transport"] == ["stdio", "http"]
        assert body["tier"] == "free"
        assert body["source_schema_version"] == "2"


class TestTools:

    def test_list_tools(self, client):
        tools = client.get("/api/v1/tools").json()["tools"]
        assert len(tools) == 10
        assert tools[0]["name"] == "search_legislation"

    def test_run_tool(self, sample_corpus, client):
        response = client.post(
            "/api/v1/tools/get_provision",
            json={"document_id": "loi-2002-08-02-n2", "provision_ref": "art3"},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["results"]["provision_ref"] == "art3"
        assert body["_metadata"]["jurisdiction"] == "LU"

    def test_run_tool_without_body(self, sample_corpus, client):
        response = client.post("/api/v1/tools/about")
        assert response.status_code == 200
        assert response.json()["results"]["dataset"]["counts"]["legal_documents"] == 3

    def test_invalid_arguments_use_error_envelope(self, sample_corpus, client):
        response = client.post(
            "/api/v1/tools/search_legislation",
            json={"query": ""},
            headers={"X-Request-ID": "req-123"},
        )
        assert response.status_code == 400
        assert response.headers["X-Request-ID"] == "req-123"

        body = response.json()
        assert body["error"] == "InvalidInput"
        assert body["message"] == "query is required"
        assert body["request_id"] == "req-123"
        assert body["timestamp"]

    def test_unknown_tool(self, client):
        response = client.post("/api/v1/tools/build_legal_stance", json={})
        assert response.status_code == 404

        body = response.json()
        assert body["error"] == "NotFound"
        assert "search_legislation" in body["details"]["available_tools"]
        assert body["request_id"] == response.headers["X-Request-ID"]

    def test_non_object_body_is_rejected(self, client):
        response = client.post("/api/v1/tools/about", json=["not", "an", "object"])
        assert response.status_code == 400
        assert response.json()["error"] == "ValidationError"


class TestUpdates:

    def test_no_check_has_run(self, client):
        body = client.get("/api/v1/updates").json()
        assert body["enabled"] is False
        assert body["schedule"] == "0 3 * * 1"
        assert body["jobs"] == []
        assert body["last_check"] is None
        assert body["has_changes"] is None
