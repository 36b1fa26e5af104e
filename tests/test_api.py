"""
Tests for the HTTP and WebSocket surfaces.
"""

import pytest
from fastapi.testclient import TestClient

from notionflow.app import dependencies
from notionflow.app.dependencies import get_llm_provider, get_notion_factory
from notionflow.app.main import app

API_KEY = "test-api-key"
AUTH = {"Authorization": f"Bearer {API_KEY}"}


@pytest.fixture
def client(settings, notion_stub, monkeypatch):
    monkeypatch.setenv("NOTIONFLOW_API_KEY", API_KEY)
    monkeypatch.setenv("NOTIONFLOW_ENVIRONMENT", "test")
    monkeypatch.setenv("NOTIONFLOW_DATABASE_URL", settings.database_url.get_secret_value())
    dependencies.get_settings.cache_clear()

    app.dependency_overrides[get_notion_factory] = lambda: notion_stub.factory
    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    dependencies.get_settings.cache_clear()


class TestPublicEndpoints:
    """Tests for root and health."""

    def test_root_lists_endpoints(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["endpoints"]["stream"] == "/mcp/stream/{flow_id}"

    def test_health(self, client):
        body = client.get("/health").json()
        assert body["success"] is True
        assert body["data"]["status"] == "ok"
        assert body["data"]["environment"] == "test"
        assert body["data"]["database"] == "connected"

    def test_openapi_document(self, client):
        response = client.get("/openapi")
        assert response.status_code == 200
        assert "/api/flows/searchAndTag" in response.json()["paths"]


class TestAuthentication:
    """Tests for bearer authentication."""

    def test_missing_header(self, client):
        response = client.get("/monitor")
        assert response.status_code == 401
        assert response.json()["error"] == "Unauthorized - Missing Authorization header"
        assert response.json()["success"] is False

    def test_wrong_key(self, client):
        response = client.get("/monitor", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401
        assert response.json()["error"] == "Unauthorized - Invalid API key"

    def test_rejected_flow_creates_no_run(self, client):
        client.post("/api/flows/searchAndTag", json={})
        flows = client.get("/monitor/flows", headers=AUTH).json()["data"]
        assert flows == []

    def test_stream_requires_credential(self, client):
        response = client.get("/mcp/stream/1")
        assert response.status_code == 401
        assert response.json()["error"] == "Unauthorized"

    def test_stream_rejects_wrong_query_key(self, client):
        response = client.get("/mcp/stream/1", params={"apiKey": "nope"})
        assert response.status_code == 401


class TestRawApi:
    """Tests for the raw passthrough endpoints."""

    def test_missing_notion_token(self, client):
        response = client.get("/api/raw/pages/p1", headers=AUTH)
        assert response.status_code == 400
        assert response.json()["error"] == "Missing x-notion-token header"

    def test_retrieve_page(self, client, notion_stub):
        notion_stub.on("GET", r"/pages/p1", {"object": "page", "id": "p1"})

        response = client.get("/api/raw/pages/p1", headers={**AUTH, "x-notion-token": "secret"})

        assert response.status_code == 200
        assert response.json()["data"] == {"object": "page", "id": "p1"}
        assert notion_stub.tokens == ["secret"]

    def test_invalid_body_is_500(self, client, notion_stub):
        response = client.post(
            "/api/raw/pages",
            json={"properties": {}},
            headers={**AUTH, "x-notion-token": "secret"},
        )
        assert response.status_code == 500
        assert "parent" in response.json()["error"]
        assert notion_stub.requests == []

    def test_notion_error_is_500_with_message(self, client, notion_stub):
        notion_stub.on(
            "POST", r"/search",
            lambda request, match: notion_stub.error(401, "unauthorized", "API token is invalid."),
        )

        response = client.post(
            "/api/raw/search", json={"query": "x"}, headers={**AUTH, "x-notion-token": "bad"}
        )

        assert response.status_code == 500
        assert response.json()["error"] == "API token is invalid."

    def test_query_database_page_size_bounds(self, client, notion_stub):
        response = client.post(
            "/api/raw/databases/d1/query",
            json={"page_size": 500},
            headers={**AUTH, "x-notion-token": "secret"},
        )
        assert response.status_code == 500
        assert notion_stub.requests == []


class TestFlowEndpoints:
    """Tests for the flow endpoints."""

    def test_create_page_with_blocks(self, client, notion_stub):
        notion_stub.on("POST", r"/pages", {"object": "page", "id": "NEW"})
        notion_stub.on("PATCH", r"/blocks/NEW/children", {"object": "list", "results": []})

        response = client.post(
            "/api/flows/createPageWithBlocks",
            json={
                "notion_token": "secret",
                "parent": {"page_id": "P"},
                "title": "T",
                "blocks": [{"type": "paragraph", "paragraph": {"rich_text": []}}],
            },
            headers=AUTH,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["flowRunId"] == 1
        assert body["data"]["page"]["id"] == "NEW"
        assert body["data"]["blocks"] == {"object": "list", "results": []}
        assert "timestamp" in body

    def test_invalid_input_is_500_and_recorded(self, client):
        response = client.post("/api/flows/cloneDatabaseSchema", json={"notion_token": "s"}, headers=AUTH)

        assert response.status_code == 500
        assert response.json()["success"] is False

        (run,) = client.get("/monitor/flows", headers=AUTH).json()["data"]
        assert run["status"] == "failed"
        assert run["flow_name"] == "cloneDatabaseSchema"

    def test_non_json_body_is_recorded(self, client):
        response = client.post(
            "/api/flows/searchAndTag",
            content="not json",
            headers={**AUTH, "Content-Type": "application/json"},
        )

        assert response.status_code == 500
        (run,) = client.get("/monitor/flows", headers=AUTH).json()["data"]
        assert run["input_data"] is None

    def test_markdown_flow_uses_configured_llm(self, client, scripted_llm):
        app.dependency_overrides[get_llm_provider] = lambda: scripted_llm(["[]"])

        response = client.post(
            "/api/flows/orchestrateMarkdownToPages",
            json={"notion_token": "s", "markdown_content": "# Hi", "base_parent_page_id": "B"},
            headers=AUTH,
        )

        assert response.status_code == 200
        assert response.json()["data"]["createdPages"] == []

    def test_progress_reaches_websocket(self, client, notion_stub):
        notion_stub.on("POST", r"/pages", {"object": "page", "id": "NEW"})

        with client.websocket_connect("/ws/flow-updates/1") as ws:
            client.post(
                "/api/flows/createPageWithBlocks",
                json={"notion_token": "s", "parent": {"page_id": "P"}, "title": "T"},
                headers=AUTH,
            )
            types = [ws.receive_json()["type"] for _ in range(3)]

        assert types == ["flow_started", "page_created", "flow_completed"]


class TestMonitor:
    """Tests for the monitor endpoints."""

    def _make_runs(self, client, count):
        for _ in range(count):
            client.post("/api/flows/searchAndTag", json={"notion_token": "s"}, headers=AUTH)

    def test_limit_returns_newest_runs(self, client):
        self._make_runs(client, 5)

        response = client.get("/monitor", params={"limit": 2}, headers=AUTH)

        assert response.status_code == 200
        data = response.json()["data"]
        assert [run["id"] for run in data["flowRuns"]] == [5, 4]
        assert "logs" in data
        assert "timestamp" in data

    def test_invalid_limit_uses_default(self, client):
        self._make_runs(client, 3)

        data = client.get("/monitor", params={"limit": "lots"}, headers=AUTH).json()["data"]

        assert len(data["flowRuns"]) == 3

    def test_limit_is_clamped(self, client):
        self._make_runs(client, 2)

        data = client.get("/monitor", params={"limit": 0}, headers=AUTH).json()["data"]

        assert len(data["flowRuns"]) == 1

    def test_request_logs_are_recorded(self, client):
        client.get("/health")
        client.get("/health")
        client.portal.call(dependencies.get_background_work().drain)

        logs = client.get("/monitor/logs", headers=AUTH).json()["data"]

        assert any(entry["path"] == "/health" for entry in logs)


class TestFlowUpdates:
    """Tests for direct broadcasts and WebSocket observers."""

    def test_invalid_payload(self, client):
        response = client.post("/api/flow-updates/9", json=["not", "an", "object"], headers=AUTH)
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid broadcast payload"

    def test_missing_type(self, client):
        response = client.post("/api/flow-updates/9", json={"text": "hi"}, headers=AUTH)
        assert response.status_code == 400

    def test_broadcast_reaches_websocket(self, client):
        with client.websocket_connect("/ws/flow-updates/9") as ws:
            response = client.post("/api/flow-updates/9", json={"type": "note", "text": "hi"}, headers=AUTH)
            message = ws.receive_json()

        assert response.status_code == 202
        assert message["type"] == "note"
        assert message["text"] == "hi"
        assert message["flowRunId"] == "9"
        assert "timestamp" in message

    def test_websocket_messages_are_rebroadcast(self, client):
        with client.websocket_connect("/ws/flow-updates/9") as sender:
            with client.websocket_connect("/ws/flow-updates/9") as listener:
                sender.send_text("not json")
                sender.send_json({"type": "ping"})
                assert listener.receive_json()["type"] == "ping"
                assert sender.receive_json()["type"] == "ping"
