"""
Service container for dependency injection.
Centralizes service initialization and provides access to all services.
"""
import logging
from typing import Optional

from taskflow.config import TaskflowConfig
from taskflow.services.image_service import ImageService
from taskflow.services.task_service import TaskService
from taskflow.storage.interface import TaskStore
from taskflow.storage.notion_store import NotionTaskStore
from taskflow.workflow.engine import WorkflowEngine

logger = logging.getLogger(__name__)


class ServiceContainer:
    """Container for all application services."""

    def __init__(
        self,
        config: TaskflowConfig,
        store: Optional[TaskStore] = None,
        images: Optional[ImageService] = None,
    ):
        self.config = config
        self.store = store or NotionTaskStore(config)
        self.images = images or ImageService(config.image_cache_dir, timeout=config.http_timeout)
        self.engine = WorkflowEngine(self.store)
        self.task_service = TaskService(self.store, self.engine)
        logger.info(f"Services initialized ({config!r})")

    async def close(self) -> None:
        """Close the store and image clients."""
        await self.store.close()
        await self.images.close()


def get_services(request) -> ServiceContainer:
    """Get the service container attached to the running application."""
    return request.app.state.services
