"""
Notion implementation of the task store.

Talks to the Notion REST API with httpx. Every public operation runs through
the injected RetryPolicy; only TransientStoreError is retried.
"""
import logging
from typing import Optional, List, Dict, Any, Callable, Awaitable

import httpx

from taskflow.config import TaskflowConfig
from taskflow.exceptions.errors import (
    StoreError,
    TaskNotFoundError,
    StoreValidationError,
    StoreAuthorizationError,
    TransientStoreError,
)
from taskflow.models.task_models import Task, parse_status, parse_priority
from taskflow.monitoring import record_store_request, record_store_retry
from taskflow.storage.blocks import format_block, render_content, paragraph_blocks, plain_text, rich_text
from taskflow.storage.interface import TaskStore
from taskflow.storage.retry import RetryPolicy
from taskflow.tracing import trace_span, add_span_attribute

logger = logging.getLogger(__name__)

DESCRIPTION_PROPERTIES = ("Description", "Content")
NOTION_PAGE_SIZE = 100
TRANSIENT_STATUS_CODES = (409, 429, 500, 502, 503, 504)


def _error_from_response(response: httpx.Response) -> StoreError:
    """Map a failed Notion response to the store error taxonomy."""
    try:
        body = response.json()
    except ValueError:
        body = {}
    message = body.get("message") or response.text or f"HTTP {response.status_code}"
    code = body.get("code")
    status = response.status_code

    if status == 404:
        return TaskNotFoundError(message, status_code=status, code=code)
    if status in (401, 403):
        return StoreAuthorizationError(message, status_code=status, code=code)
    if status in TRANSIENT_STATUS_CODES:
        return TransientStoreError(message, status_code=status, code=code)
    if status in (400, 422):
        return StoreValidationError(message, status_code=status, code=code)
    return StoreError(message, status_code=status, code=code)


def _extract_title(properties: Dict[str, Any]) -> str:
    for prop in properties.values():
        if prop.get("type") == "title":
            title = plain_text(prop.get("title"))
            return title or "Untitled"
    return "Untitled"


def _extract_description(properties: Dict[str, Any]) -> str:
    for name in DESCRIPTION_PROPERTIES:
        prop = properties.get(name)
        if prop and prop.get("rich_text"):
            return plain_text(prop["rich_text"])
    return ""


class NotionTaskStore(TaskStore):
    """Task store backed by a Notion database."""

    def __init__(
        self,
        config: TaskflowConfig,
        client: Optional[httpx.AsyncClient] = None,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        self.config = config
        self.database_id = config.database_id
        self.tag_property = config.tag_property
        self._client = client or httpx.AsyncClient(
            base_url=config.api_url,
            timeout=config.http_timeout,
        )
        self._headers = {
            "Authorization": f"Bearer {config.notion_token}",
            "Notion-Version": config.notion_version,
            "Content-Type": "application/json",
        }
        self.retry_policy = retry_policy or RetryPolicy(
            max_attempts=config.retry_attempts,
            base_delay=config.retry_base_delay,
            on_retry=lambda name, attempt, exc: record_store_retry(name),
        )

    async def close(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------
    # HTTP plumbing
    # ------------------------------------------------------------------

    async def _request(self, method: str, path: str, json: Optional[Dict[str, Any]] = None,
                       params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        try:
            response = await self._client.request(method, path, json=json, params=params, headers=self._headers)
        except httpx.TransportError as e:
            raise TransientStoreError(f"Network error calling Notion {method} {path}: {e}")
        if response.status_code >= 400:
            raise _error_from_response(response)
        return response.json() if response.content else {}

    async def _run(self, name: str, operation: Callable[[], Awaitable[Any]], **attributes) -> Any:
        with trace_span(f"notion.{name}", attributes={f"notion.{k}": v for k, v in attributes.items()}):
            try:
                result = await self.retry_policy.call(operation, name=name)
            except StoreError as e:
                record_store_request(name, type(e).__name__)
                logger.error(f"Notion {name} failed: {e}", exc_info=True)
                raise
            record_store_request(name, "success")
            return result

    async def _query_database(self, filter_: Dict[str, Any], sorts: List[Dict[str, Any]], limit: int) -> List[Dict[str, Any]]:
        pages: List[Dict[str, Any]] = []
        cursor = None
        while len(pages) < limit:
            body: Dict[str, Any] = {
                "filter": filter_,
                "sorts": sorts,
                "page_size": min(limit - len(pages), NOTION_PAGE_SIZE),
            }
            if cursor:
                body["start_cursor"] = cursor
            data = await self._request("POST", f"/databases/{self.database_id}/query", json=body)
            pages.extend(data.get("results", []))
            if not data.get("has_more") or not data.get("next_cursor"):
                break
            cursor = data["next_cursor"]
        return pages[:limit]

    async def _list_blocks(self, page_id: str) -> List[Dict[str, Any]]:
        blocks: List[Dict[str, Any]] = []
        cursor = None
        while True:
            params: Dict[str, Any] = {"page_size": NOTION_PAGE_SIZE}
            if cursor:
                params["start_cursor"] = cursor
            data = await self._request("GET", f"/blocks/{page_id}/children", params=params)
            blocks.extend(data.get("results", []))
            if not data.get("has_more") or not data.get("next_cursor"):
                return blocks
            cursor = data["next_cursor"]

    async def _retrieve_page(self, page_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/pages/{page_id}")

    async def _update_properties(self, page_id: str, properties: Dict[str, Any]) -> None:
        await self._request("PATCH", f"/pages/{page_id}", json={"properties": properties})

    # ------------------------------------------------------------------
    # Page -> Task
    # ------------------------------------------------------------------

    def _extract_tags(self, properties: Dict[str, Any]) -> List[str]:
        prop = properties.get(self.tag_property) or {}
        return [t.get("name", "") for t in prop.get("multi_select") or []]

    def page_to_task(self, page: Dict[str, Any], raw_blocks: Optional[List[Dict[str, Any]]] = None) -> Task:
        """Convert a Notion page (and optionally its blocks) to a Task."""
        properties = page.get("properties") or {}
        status_prop = properties.get("Status") or {}
        priority_prop = properties.get("Priority") or {}
        formatted = [format_block(b) for b in raw_blocks or []]
        return Task(
            id=page["id"],
            url=page.get("url"),
            title=_extract_title(properties),
            description=_extract_description(properties),
            status=parse_status((status_prop.get("status") or {}).get("name")),
            priority=parse_priority((priority_prop.get("select") or {}).get("name")),
            tags=self._extract_tags(properties),
            blocks=formatted,
            full_content=render_content(formatted),
            created_time=page.get("created_time"),
            last_edited_time=page.get("last_edited_time"),
        )

    async def _with_blocks(self, pages: List[Dict[str, Any]]) -> List[Task]:
        tasks = []
        for page in pages:
            blocks = await self._list_blocks(page["id"])
            tasks.append(self.page_to_task(page, blocks))
        return tasks

    # ------------------------------------------------------------------
    # TaskStore
    # ------------------------------------------------------------------

    async def list_tagged_tasks(
        self,
        limit: int = 100,
        status: Optional[str] = None,
        tag: Optional[str] = None,
    ) -> List[Task]:
        conditions: List[Dict[str, Any]] = [
            {"property": self.tag_property, "multi_select": {"is_not_empty": True}},
        ]
        if status:
            conditions.append({"property": "Status", "status": {"equals": status}})
        if tag:
            conditions.append({"property": self.tag_property, "multi_select": {"contains": tag}})
        sorts = [
            {"property": "Priority", "direction": "descending"},
            {"property": "Status", "direction": "ascending"},
        ]

        async def operation():
            pages = await self._query_database({"and": conditions}, sorts, limit)
            return await self._with_blocks(pages)

        tasks = await self._run("list_tagged_tasks", operation, limit=limit, status=status, tag=tag)
        add_span_attribute("notion.tasks_count", len(tasks))
        return tasks

    async def list_tasks_by_status(self, status: str, tagged_only: bool = True) -> List[Task]:
        if tagged_only:
            return await self.list_tagged_tasks(NOTION_PAGE_SIZE, status=status)

        async def operation():
            pages = await self._query_database(
                {"property": "Status", "status": {"equals": status}},
                [{"property": "Priority", "direction": "descending"}],
                NOTION_PAGE_SIZE,
            )
            return await self._with_blocks(pages)

        return await self._run("list_tasks_by_status", operation, status=status)

    async def get_task(self, task_id: str) -> Task:
        async def operation():
            page = await self._retrieve_page(task_id)
            blocks = await self._list_blocks(task_id)
            return self.page_to_task(page, blocks)

        return await self._run("get_task", operation, task_id=task_id)

    async def remove_tag(self, task_id: str, tag_name: str) -> None:
        async def operation():
            page = await self._retrieve_page(task_id)
            current = (page.get("properties", {}).get(self.tag_property) or {}).get("multi_select") or []
            remaining = [t for t in current if t.get("name") != tag_name]
            if len(remaining) == len(current):
                logger.debug(f"Tag '{tag_name}' already absent from task {task_id}")
                return
            await self._update_properties(task_id, {
                self.tag_property: {"multi_select": [{"name": t["name"]} for t in remaining]},
            })
            logger.info(f"Removed tag '{tag_name}' from task {task_id}")

        await self._run("remove_tag", operation, task_id=task_id, tag=tag_name)

    def _description_property(self, page: Dict[str, Any]) -> str:
        properties = page.get("properties") or {}
        for name in DESCRIPTION_PROPERTIES:
            prop = properties.get(name)
            if prop is not None and prop.get("type", "rich_text") == "rich_text":
                return name
        raise StoreValidationError(
            f"Could not find description property (tried: {', '.join(DESCRIPTION_PROPERTIES)})"
        )

    async def set_description(self, task_id: str, text: str) -> None:
        async def operation():
            page = await self._retrieve_page(task_id)
            prop_name = self._description_property(page)
            await self._update_properties(task_id, {prop_name: {"rich_text": rich_text(text)}})

        await self._run("set_description", operation, task_id=task_id)

    async def append_description(self, task_id: str, text: str) -> None:
        async def operation():
            page = await self._retrieve_page(task_id)
            prop_name = self._description_property(page)
            current = plain_text(page["properties"][prop_name].get("rich_text"))
            await self._update_properties(task_id, {prop_name: {"rich_text": rich_text(current + text)}})

        await self._run("append_description", operation, task_id=task_id)

    async def set_status(self, task_id: str, status: str) -> None:
        async def operation():
            await self._update_properties(task_id, {"Status": {"status": {"name": status}}})

        await self._run("set_status", operation, task_id=task_id, status=status)

    async def add_comment(self, task_id: str, text: str) -> None:
        async def operation():
            await self._request("POST", "/comments", json={
                "parent": {"page_id": task_id},
                "rich_text": rich_text(text),
            })

        await self._run("add_comment", operation, task_id=task_id)

    async def append_to_page_body(self, task_id: str, content: str) -> None:
        children = paragraph_blocks(content)
        if not children:
            return

        async def operation():
            await self._request("PATCH", f"/blocks/{task_id}/children", json={"children": children})

        await self._run("append_to_page_body", operation, task_id=task_id)
