"""
Task service - business logic for task operations.
This layer contains no HTTP framework or MCP dependencies.
"""
import logging
from typing import Optional, Dict, Any, List

from taskflow.models.task_models import QueryTasksRequest, UpdateTaskRequest
from taskflow.storage.interface import TaskStore
from taskflow.workflow.engine import WorkflowEngine

logger = logging.getLogger(__name__)


class TaskService:
    """Service for task queries, updates and workflow processing."""

    def __init__(self, store: TaskStore, engine: Optional[WorkflowEngine] = None):
        """Initialize task service with store dependency."""
        self.store = store
        self.engine = engine or WorkflowEngine(store)

    async def process_tasks(
        self,
        limit: int = 10,
        preview_only: bool = False,
        tag_filter: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Run the tag workflow over tagged tasks.

        Returns:
            Batch report as dictionary

        Raises:
            ValueError: If limit or tag_filter is invalid
        """
        report = await self.engine.process_batch(limit=limit, preview_only=preview_only, tag_filter=tag_filter)
        return report.to_dict()

    async def query_tasks(self, query: QueryTasksRequest) -> List[Dict[str, Any]]:
        """
        Query tasks by status and tag.

        Without a status, tagged tasks of any status are returned. With a
        status, ``has_tags`` decides whether untagged tasks are included.
        """
        if query.status:
            tasks = await self.store.list_tasks_by_status(query.status, tagged_only=query.has_tags)
            if query.tag:
                tasks = [t for t in tasks if query.tag in t.tags]
            tasks = tasks[:query.limit]
        else:
            tasks = await self.store.list_tagged_tasks(query.limit, tag=query.tag)
        logger.debug(f"query_tasks returned {len(tasks)} tasks")
        return [t.model_dump(mode="json") for t in tasks]

    async def get_task(self, task_id: str) -> Dict[str, Any]:
        """
        Get a task with its content blocks.

        Raises:
            ValueError: If task_id is empty
            TaskNotFoundError: If the task does not exist
        """
        if not task_id or not task_id.strip():
            raise ValueError("task_id is required")
        task = await self.store.get_task(task_id)
        return task.model_dump(mode="json")

    async def add_comment(self, task_id: str, comment: str) -> Dict[str, Any]:
        """
        Add a comment to a task.

        Raises:
            ValueError: If the comment is empty
        """
        if not comment or not comment.strip():
            raise ValueError("Comment cannot be empty or contain only whitespace")
        await self.store.add_comment(task_id, comment)
        logger.info(f"Added comment to task {task_id}")
        return {"success": True, "task_id": task_id, "message": "Comment added successfully"}

    async def update_task(self, update: UpdateTaskRequest) -> Dict[str, Any]:
        """
        Apply description, status and tag changes to a task, in that order.

        Raises:
            ValueError: If no change was requested, or both description and
                append_description were given
        """
        if update.description is not None and update.append_description is not None:
            raise ValueError("Provide either description or append_description, not both")
        if (
            update.description is None
            and update.append_description is None
            and update.status is None
            and not update.remove_tags
        ):
            raise ValueError("No changes requested. Provide description, append_description, status or remove_tags")

        updated: List[str] = []
        if update.description is not None:
            await self.store.set_description(update.task_id, update.description)
            updated.append("description")
        if update.append_description is not None:
            await self.store.append_description(update.task_id, update.append_description)
            updated.append("description")
        if update.status is not None:
            await self.store.set_status(update.task_id, update.status)
            updated.append("status")
        for tag in update.remove_tags:
            await self.store.remove_tag(update.task_id, tag)
        if update.remove_tags:
            updated.append("tags")

        logger.info(f"Updated task {update.task_id}: {', '.join(updated)}")
        return {
            "success": True,
            "task_id": update.task_id,
            "updated_fields": updated,
            "removed_tags": list(update.remove_tags),
            "message": "Task updated successfully",
        }
