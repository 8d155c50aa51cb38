"""
Tests for NotionTaskStore against a mocked Notion API (httpx.MockTransport).
"""
import json

import httpx
import pytest
from unittest.mock import AsyncMock

from taskflow.exceptions.errors import (
    StoreAuthorizationError,
    StoreValidationError,
    TaskNotFoundError,
    TransientStoreError,
)
from taskflow.models.task_models import TaskPriority, TaskStatus
from taskflow.storage.notion_store import NotionTaskStore
from taskflow.storage.retry import RetryPolicy


def _rich(content):
    return [{"type": "text", "plain_text": content, "text": {"content": content}}]


def _page(page_id="page-1", tags=("code",), description="Do it", status="Ready", priority="High", title="Build it"):
    return {
        "id": page_id,
        "url": f"https://www.notion.so/{page_id}",
        "created_time": "2024-01-01T00:00:00.000Z",
        "last_edited_time": "2024-01-02T00:00:00.000Z",
        "properties": {
            "Name": {"type": "title", "title": _rich(title)},
            "Description": {"type": "rich_text", "rich_text": _rich(description) if description else []},
            "Status": {"type": "status", "status": {"name": status} if status else None},
            "Priority": {"type": "select", "select": {"name": priority} if priority else None},
            "MCP": {"type": "multi_select", "multi_select": [{"id": f"id-{t}", "name": t} for t in tags]},
        },
    }


class FakeNotion:
    """Records requests and answers them from a handler map."""

    def __init__(self):
        self.requests = []
        self.routes = {}

    def on(self, method, path, *responses):
        self.routes[(method, path)] = list(responses)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        responses = self.routes.get((request.method, request.url.path))
        if not responses:
            return httpx.Response(404, json={"object": "error", "code": "object_not_found", "message": "Not found"})
        response = responses.pop(0) if len(responses) > 1 else responses[0]
        if isinstance(response, Exception):
            raise response
        return response

    def bodies(self, method, path):
        return [json.loads(r.content) for r in self.requests if r.method == method and r.url.path == path]


@pytest.fixture
def notion():
    return FakeNotion()


@pytest.fixture
def fake_sleep():
    return AsyncMock()


@pytest.fixture
def store(config, notion, fake_sleep):
    """NotionTaskStore wired to the fake Notion API."""
    client = httpx.AsyncClient(base_url=config.api_url, transport=httpx.MockTransport(notion.handler))
    return NotionTaskStore(config, client=client, retry_policy=RetryPolicy(sleep=fake_sleep))


EMPTY_BLOCKS = httpx.Response(200, json={"results": [], "has_more": False, "next_cursor": None})


class TestListTaggedTasks:
    """Tests for list_tagged_tasks."""

    @pytest.mark.asyncio
    async def test_query_and_conversion(self, store, notion):
        """Test the database query body and the Task conversion."""
        notion.on("POST", "/v1/databases/db-123/query",
                  httpx.Response(200, json={"results": [_page()], "has_more": False}))
        notion.on("GET", "/v1/blocks/page-1/children", httpx.Response(200, json={
            "results": [{"id": "b1", "type": "paragraph", "paragraph": {"rich_text": _rich("Body")}}],
            "has_more": False,
        }))

        tasks = await store.list_tagged_tasks(5, status="Ready", tag="code")

        body = notion.bodies("POST", "/v1/databases/db-123/query")[0]
        assert body["page_size"] == 5
        assert body["filter"]["and"] == [
            {"property": "MCP", "multi_select": {"is_not_empty": True}},
            {"property": "Status", "status": {"equals": "Ready"}},
            {"property": "MCP", "multi_select": {"contains": "code"}},
        ]
        assert body["sorts"] == [
            {"property": "Priority", "direction": "descending"},
            {"property": "Status", "direction": "ascending"},
        ]
        task = tasks[0]
        assert task.id == "page-1"
        assert task.title == "Build it"
        assert task.description == "Do it"
        assert task.status == TaskStatus.READY
        assert task.priority == TaskPriority.HIGH
        assert task.tags == ["code"]
        assert task.full_content == "Body\n"

    @pytest.mark.asyncio
    async def test_missing_status_and_priority(self, store, notion):
        """Test defaults for missing status and priority."""
        notion.on("POST", "/v1/databases/db-123/query",
                  httpx.Response(200, json={"results": [_page(status=None, priority=None)], "has_more": False}))
        notion.on("GET", "/v1/blocks/page-1/children", EMPTY_BLOCKS)

        task = (await store.list_tagged_tasks(1))[0]

        assert task.status == TaskStatus.UNKNOWN
        assert task.priority == TaskPriority.MEDIUM

    @pytest.mark.asyncio
    async def test_headers(self, store, notion):
        """Test auth and version headers are sent."""
        notion.on("POST", "/v1/databases/db-123/query", httpx.Response(200, json={"results": []}))

        await store.list_tagged_tasks(1)

        request = notion.requests[0]
        assert request.headers["Authorization"] == "Bearer ntn_test_token"
        assert request.headers["Notion-Version"] == "2022-06-28"


class TestRemoveTag:
    """Tests for remove_tag."""

    @pytest.mark.asyncio
    async def test_removes_only_named_tag(self, store, notion):
        """Test the update keeps every other tag."""
        notion.on("GET", "/v1/pages/page-1", httpx.Response(200, json=_page(tags=("code", "rewrite", "think like QA"))))
        notion.on("PATCH", "/v1/pages/page-1", httpx.Response(200, json={}))

        await store.remove_tag("page-1", "rewrite")

        body = notion.bodies("PATCH", "/v1/pages/page-1")[0]
        assert body == {"properties": {"MCP": {"multi_select": [{"name": "code"}, {"name": "think like QA"}]}}}

    @pytest.mark.asyncio
    async def test_absent_tag_is_noop(self, store, notion):
        """Test no update is sent when the tag is not on the task."""
        notion.on("GET", "/v1/pages/page-1", httpx.Response(200, json=_page(tags=("code",))))

        await store.remove_tag("page-1", "rewrite")

        assert notion.bodies("PATCH", "/v1/pages/page-1") == []


class TestDescription:
    """Tests for set_description and append_description."""

    @pytest.mark.asyncio
    async def test_append_is_verbatim(self, store, notion):
        """Test appended text is concatenated without an added separator."""
        notion.on("GET", "/v1/pages/page-1", httpx.Response(200, json=_page(description="Original")))
        notion.on("PATCH", "/v1/pages/page-1", httpx.Response(200, json={}))

        await store.append_description("page-1", "\n\n---\n\nStories")

        body = notion.bodies("PATCH", "/v1/pages/page-1")[0]
        content = "".join(t["text"]["content"] for t in body["properties"]["Description"]["rich_text"])
        assert content == "Original\n\n---\n\nStories"

    @pytest.mark.asyncio
    async def test_content_property_fallback(self, store, notion):
        """Test the Content property is used when Description is absent."""
        page = _page()
        page["properties"]["Content"] = page["properties"].pop("Description")
        notion.on("GET", "/v1/pages/page-1", httpx.Response(200, json=page))
        notion.on("PATCH", "/v1/pages/page-1", httpx.Response(200, json={}))

        await store.set_description("page-1", "New")

        body = notion.bodies("PATCH", "/v1/pages/page-1")[0]
        assert list(body["properties"]) == ["Content"]

    @pytest.mark.asyncio
    async def test_missing_description_property(self, store, notion):
        """Test a database without a description property is a validation error."""
        page = _page()
        del page["properties"]["Description"]
        notion.on("GET", "/v1/pages/page-1", httpx.Response(200, json=page))

        with pytest.raises(StoreValidationError, match="description property"):
            await store.set_description("page-1", "New")


class TestMutations:
    """Tests for status, comments and page body."""

    @pytest.mark.asyncio
    async def test_set_status(self, store, notion):
        """Test status updates send the status property."""
        notion.on("PATCH", "/v1/pages/page-1", httpx.Response(200, json={}))

        await store.set_status("page-1", "Done")

        assert notion.bodies("PATCH", "/v1/pages/page-1")[0] == {"properties": {"Status": {"status": {"name": "Done"}}}}

    @pytest.mark.asyncio
    async def test_add_comment(self, store, notion):
        """Test comments are created on the page."""
        notion.on("POST", "/v1/comments", httpx.Response(200, json={"object": "comment"}))

        await store.add_comment("page-1", "Looks good")

        body = notion.bodies("POST", "/v1/comments")[0]
        assert body["parent"] == {"page_id": "page-1"}
        assert body["rich_text"][0]["text"]["content"] == "Looks good"

    @pytest.mark.asyncio
    async def test_append_to_page_body(self, store, notion):
        """Test content is appended as paragraph blocks."""
        notion.on("PATCH", "/v1/blocks/page-1/children", httpx.Response(200, json={}))

        await store.append_to_page_body("page-1", "One\n\nTwo")

        body = notion.bodies("PATCH", "/v1/blocks/page-1/children")[0]
        assert [b["type"] for b in body["children"]] == ["paragraph", "paragraph"]

    @pytest.mark.asyncio
    async def test_append_empty_body_is_noop(self, store, notion):
        """Test blank content sends nothing."""
        await store.append_to_page_body("page-1", "  \n\n ")
        assert notion.requests == []


class TestErrors:
    """Tests for error mapping and retries."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status,error", [
        (404, TaskNotFoundError),
        (400, StoreValidationError),
        (401, StoreAuthorizationError),
        (403, StoreAuthorizationError),
    ])
    async def test_permanent_errors(self, store, notion, fake_sleep, status, error):
        """Test permanent failures map to their error and are not retried."""
        notion.on("GET", "/v1/pages/page-1", httpx.Response(status, json={"code": "x", "message": "nope"}))

        with pytest.raises(error, match="nope"):
            await store.get_task("page-1")

        fake_sleep.assert_not_awaited()
        assert len(notion.requests) == 1

    @pytest.mark.asyncio
    async def test_rate_limit_retried(self, store, notion, fake_sleep):
        """Test a 429 is retried and the call then succeeds."""
        notion.on("PATCH", "/v1/pages/page-1",
                  httpx.Response(429, json={"code": "rate_limited", "message": "slow down"}),
                  httpx.Response(200, json={}))

        await store.set_status("page-1", "Done")

        assert len(notion.requests) == 2
        fake_sleep.assert_awaited_once_with(1.0)

    @pytest.mark.asyncio
    async def test_network_error_exhausts_retries(self, store, notion, fake_sleep):
        """Test transport errors become TransientStoreError after all attempts."""
        notion.on("POST", "/v1/comments", httpx.ConnectError("refused"))

        with pytest.raises(TransientStoreError):
            await store.add_comment("page-1", "hi")

        assert len(notion.requests) == 3
        assert [c.args[0] for c in fake_sleep.await_args_list] == [1.0, 2.0]
