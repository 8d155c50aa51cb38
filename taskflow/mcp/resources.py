"""
MCP resources - read-only views of tasks.
"""
import json
import logging
import re
from typing import Any, Dict, List

from taskflow.models.task_models import TaskStatus
from taskflow.storage.interface import TaskStore

logger = logging.getLogger(__name__)

TASK_URI_PATTERN = re.compile(r"^notion://task/(.+)$")

COLLECTION_RESOURCES: List[Dict[str, str]] = [
    {
        "uri": "notion://tasks/ready",
        "name": "Ready Tasks with Workflow Tags",
        "description": "Tasks in Ready status that carry workflow tags",
        "mimeType": "application/json",
    },
    {
        "uri": "notion://tasks/in-progress",
        "name": "In Progress Tasks with Workflow Tags",
        "description": "Tasks currently In Progress that carry workflow tags",
        "mimeType": "application/json",
    },
    {
        "uri": "notion://tasks/with-tags",
        "name": "All Tasks with Workflow Tags",
        "description": "Tasks with workflow tags regardless of status",
        "mimeType": "application/json",
    },
]

# Earlier name of the with-tags collection, still readable
LEGACY_TAGGED_URI = "notion://tasks/with-mcp-tags"

_STATUS_FOR_URI = {
    "notion://tasks/ready": TaskStatus.READY.value,
    "notion://tasks/in-progress": TaskStatus.IN_PROGRESS.value,
}


def _summary(description: str, length: int = 100) -> str:
    if len(description) > length:
        return description[:length] + "..."
    return description


async def list_resources(store: TaskStore) -> List[Dict[str, str]]:
    """List collection resources plus one resource per tagged task."""
    try:
        tasks = await store.list_tagged_tasks(100)
    except Exception as e:
        logger.error(f"Error listing task resources: {e}", exc_info=True)
        return list(COLLECTION_RESOURCES)

    task_resources = [
        {
            "uri": f"notion://task/{task.id}",
            "name": task.title,
            "description": f"{task.status.value} | Tags: {', '.join(task.tags)} | {_summary(task.description)}",
            "mimeType": "application/json",
        }
        for task in tasks
    ]
    return list(COLLECTION_RESOURCES) + task_resources


async def _read_data(uri: str, store: TaskStore) -> Any:
    match = TASK_URI_PATTERN.match(uri)
    if match:
        task = await store.get_task(match.group(1))
        return task.model_dump(mode="json")
    if uri in _STATUS_FOR_URI:
        tasks = await store.list_tasks_by_status(_STATUS_FOR_URI[uri], tagged_only=True)
    elif uri in ("notion://tasks/with-tags", LEGACY_TAGGED_URI):
        tasks = await store.list_tagged_tasks(100)
    else:
        raise ValueError(f"Unknown resource URI: {uri}")
    return [t.model_dump(mode="json") for t in tasks]


async def read_resource(uri: str, store: TaskStore) -> List[Dict[str, str]]:
    """
    Read a resource and return its contents list.

    Failures are returned as a single ``text/plain`` content starting with
    ``Error:``.
    """
    try:
        data = await _read_data(uri, store)
    except Exception as e:
        logger.warning(f"Failed to read resource {uri}: {e}")
        return [{"uri": uri, "mimeType": "text/plain", "text": f"Error: {e}"}]
    return [{"uri": uri, "mimeType": "application/json", "text": json.dumps(data, indent=2)}]
