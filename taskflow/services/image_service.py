"""
Image cache for task pages.

Images embedded in a task are downloaded once to a local directory so that
prompts can point an agent with vision at local files.
"""
import logging
from pathlib import Path
from typing import List, Optional

import httpx

from taskflow.models.task_models import Task

logger = logging.getLogger(__name__)


def _write_atomic(path: Path, data: bytes) -> None:
    """Write to a sibling temp file and rename it over ``path``; a failed write leaves no file."""
    tmp = path.with_name(path.name + ".part")
    try:
        tmp.write_bytes(data)
        tmp.replace(path)
    except OSError:
        tmp.unlink(missing_ok=True)
        raise


class ImageService:
    """Downloads task images into ``cache_dir``, reusing files already there."""

    def __init__(self, cache_dir: Path, client: Optional[httpx.AsyncClient] = None, timeout: float = 30.0):
        self.cache_dir = Path(cache_dir)
        self._client = client or httpx.AsyncClient(follow_redirects=True, timeout=timeout)

    def cache_path(self, task_id: str, index: int) -> Path:
        return self.cache_dir / f"{task_id.replace('-', '')}_{index}.png"

    async def download_task_images(self, task: Task) -> List[Path]:
        """
        Download the task's images and return their local paths.

        Any failure is logged and yields an empty list.
        """
        urls = task.image_urls()
        if not urls:
            return []

        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            paths = []
            for index, url in enumerate(urls):
                path = self.cache_path(task.id, index)
                if not path.exists():
                    response = await self._client.get(url)
                    response.raise_for_status()
                    _write_atomic(path, response.content)
                    logger.debug(f"Cached image {index} of task {task.id} at {path}")
                paths.append(path)
            return paths
        except (httpx.HTTPError, OSError) as e:
            logger.error(f"Failed to download images for task {task.id}: {e}")
            return []

    async def close(self) -> None:
        await self._client.aclose()
