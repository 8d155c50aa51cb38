"""
Storage interface - defines the contract the workflow engine and services consume.
"""
from abc import ABC, abstractmethod
from typing import Optional, List

from taskflow.models.task_models import Task


class TaskStore(ABC):
    """
    Abstract interface for task store operations.

    Every operation may raise a StoreError subclass: TaskNotFoundError,
    StoreValidationError, StoreAuthorizationError or TransientStoreError.
    Implementations retry only transient failures.
    """

    # Queries
    @abstractmethod
    async def list_tagged_tasks(
        self,
        limit: int = 100,
        status: Optional[str] = None,
        tag: Optional[str] = None,
    ) -> List[Task]:
        """List tasks with a non-empty tag set, priority-sorted, optionally filtered by status or a single tag."""
        pass

    @abstractmethod
    async def list_tasks_by_status(self, status: str, tagged_only: bool = True) -> List[Task]:
        """List tasks with the given status."""
        pass

    @abstractmethod
    async def get_task(self, task_id: str) -> Task:
        """Get a single task including its content blocks."""
        pass

    # Mutations
    @abstractmethod
    async def remove_tag(self, task_id: str, tag_name: str) -> None:
        """Remove one named tag from a task. No-op if the tag is absent."""
        pass

    @abstractmethod
    async def set_description(self, task_id: str, text: str) -> None:
        """Replace the task description."""
        pass

    @abstractmethod
    async def append_description(self, task_id: str, text: str) -> None:
        """Append text verbatim to the task description."""
        pass

    @abstractmethod
    async def set_status(self, task_id: str, status: str) -> None:
        """Set the task status."""
        pass

    @abstractmethod
    async def add_comment(self, task_id: str, text: str) -> None:
        """Add a comment to the task."""
        pass

    @abstractmethod
    async def append_to_page_body(self, task_id: str, content: str) -> None:
        """Append content to the task page as paragraph blocks."""
        pass

    async def close(self) -> None:
        """Release any underlying connections."""
        pass
