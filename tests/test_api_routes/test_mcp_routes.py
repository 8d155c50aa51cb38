"""
Mock-based unit tests for MCP route handlers.
Tests the HTTP layer with a mocked task store; no Notion calls are made.
"""
import pytest
from fastapi.testclient import TestClient

from taskflow.app.factory import create_app
from taskflow.exceptions.errors import TaskNotFoundError


@pytest.fixture
def app(services):
    """Create the application around the mocked services."""
    return create_app(services=services)


@pytest.fixture
def client(app):
    """Create a test client."""
    return TestClient(app)


class TestJsonRpcEndpoint:
    """Test POST /mcp endpoint."""

    def test_initialize(self, client):
        """Test JSON-RPC initialize over HTTP."""
        response = client.post("/mcp", json={"jsonrpc": "2.0", "id": 7, "method": "initialize"})

        assert response.status_code == 200
        assert response.json()["id"] == 7
        assert response.json()["result"]["protocolVersion"] == "2024-11-05"
        assert "X-Request-ID" in response.headers

    def test_notification_accepted(self, client):
        """Test notifications get 202 with no body."""
        response = client.post("/mcp", json={"jsonrpc": "2.0", "method": "notifications/initialized"})
        assert response.status_code == 202

    def test_sse_post(self, client):
        """Test POST /mcp/sse answers with JSON."""
        response = client.post("/mcp/sse", json={"jsonrpc": "2.0", "id": 1, "method": "ping"})
        assert response.json()["result"] == {}

    def test_sse_get(self, client):
        """Test GET /mcp/sse streams the function list."""
        response = client.get("/mcp/sse")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        assert "process_tasks" in response.text

    def test_functions(self, client):
        """Test GET /mcp/functions lists the tool definitions."""
        names = [f["name"] for f in client.get("/mcp/functions").json()["functions"]]
        assert names == ["process_tasks", "query_tasks", "get_task", "add_comment", "update_task"]


class TestToolRoutes:
    """Test the REST-style POST /mcp/<tool> endpoints."""

    def test_process_tasks(self, client, mock_store, make_task):
        """Test processing via the REST route."""
        mock_store.list_tagged_tasks.return_value = [make_task(tags=["to-do"])]

        response = client.post("/mcp/process_tasks", json={"limit": 2, "preview_only": True})

        assert response.status_code == 200
        data = response.json()
        assert data["tasks_processed"] == 1
        assert data["results"][0]["processed_tags"][0]["note"] == "Would add to todo list"
        mock_store.list_tagged_tasks.assert_awaited_once_with(2)

    def test_process_tasks_invalid_filter(self, client):
        """Test service validation errors are visible to agents as success: False."""
        response = client.post("/mcp/process_tasks", json={"tag_filter": "random"})

        assert response.status_code == 200
        assert response.json()["success"] is False
        assert "Invalid tag_filter" in response.json()["error"]

    def test_query_tasks(self, client, mock_store, make_task):
        """Test querying by status."""
        mock_store.list_tasks_by_status.return_value = [make_task()]

        response = client.post("/mcp/query_tasks", json={"status": "Ready"})

        assert response.json()["tasks"][0]["id"] == "task-1"

    def test_get_task_not_found(self, client, mock_store):
        """Test store errors return 200 with success: False on MCP routes."""
        mock_store.get_task.side_effect = TaskNotFoundError("Could not find page", status_code=404)

        response = client.post("/mcp/get_task", json={"task_id": "missing"})

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is False
        assert data["error_type"] == "TaskNotFoundError"

    def test_add_comment(self, client, mock_store):
        """Test adding a comment."""
        response = client.post("/mcp/add_comment", json={"task_id": "task-1", "comment": "Nice"})

        assert response.json()["success"] is True
        mock_store.add_comment.assert_awaited_once_with("task-1", "Nice")

    def test_add_comment_missing_field(self, client):
        """Test missing body fields are validation errors."""
        response = client.post("/mcp/add_comment", json={"task_id": "task-1"})
        assert response.status_code == 422

    def test_update_task(self, client, mock_store):
        """Test updating status and removing tags."""
        response = client.post(
            "/mcp/update_task",
            json={"task_id": "task-1", "status": "Done", "remove_tags": ["confirm"]},
        )

        assert response.json()["updated_fields"] == ["status", "tags"]
        mock_store.set_status.assert_awaited_once_with("task-1", "Done")
        mock_store.remove_tag.assert_awaited_once_with("task-1", "confirm")

    def test_update_task_invalid_status(self, client, mock_store):
        """Test an invalid status is reported without touching the store."""
        response = client.post("/mcp/update_task", json={"task_id": "task-1", "status": "Archived"})

        assert response.json()["success"] is False
        mock_store.set_status.assert_not_awaited()
