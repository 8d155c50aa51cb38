"""
Shared fixtures for the taskflow test suite.
"""
import pytest
from unittest.mock import AsyncMock, MagicMock

from taskflow.config import TaskflowConfig
from taskflow.models.task_models import Task, TaskStatus, TaskPriority
from taskflow.storage.interface import TaskStore


@pytest.fixture
def config(tmp_path):
    """Configuration pointing at a fake Notion database."""
    return TaskflowConfig(
        notion_token="ntn_test_token",
        database_id="db-123",
        image_cache_dir=tmp_path / "images",
    )


@pytest.fixture
def make_task():
    """Factory for Task objects."""
    def _make(task_id="task-1", tags=None, **kwargs):
        kwargs.setdefault("title", f"Task {task_id}")
        kwargs.setdefault("status", TaskStatus.READY)
        kwargs.setdefault("priority", TaskPriority.HIGH)
        kwargs.setdefault("url", f"https://www.notion.so/{task_id}")
        return Task(id=task_id, tags=list(tags or []), **kwargs)
    return _make


@pytest.fixture
def mock_store():
    """A TaskStore whose async methods are AsyncMocks."""
    store = MagicMock(spec=TaskStore)
    for name in (
        "list_tagged_tasks",
        "list_tasks_by_status",
        "get_task",
        "remove_tag",
        "set_description",
        "append_description",
        "set_status",
        "add_comment",
        "append_to_page_body",
        "close",
    ):
        setattr(store, name, AsyncMock())
    store.list_tagged_tasks.return_value = []
    store.list_tasks_by_status.return_value = []
    return store


@pytest.fixture
def mock_images():
    """An ImageService stand-in that never downloads anything."""
    images = MagicMock()
    images.download_task_images = AsyncMock(return_value=[])
    images.close = AsyncMock()
    return images


@pytest.fixture
def services(config, mock_store, mock_images):
    """A real ServiceContainer wired to the mocked store."""
    from taskflow.dependencies.services import ServiceContainer
    return ServiceContainer(config, store=mock_store, images=mock_images)
