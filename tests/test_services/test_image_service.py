"""
Unit tests for ImageService.
"""
from pathlib import Path
from unittest.mock import patch

import httpx
import pytest

from taskflow.services.image_service import ImageService


def _image_block(url):
    return {"id": "img", "type": "image", "url": url, "caption": ""}


@pytest.fixture
def requests_seen():
    return []


@pytest.fixture
def client(requests_seen):
    def handler(request):
        requests_seen.append(str(request.url))
        if request.url.path == "/missing.png":
            return httpx.Response(404)
        if request.url.path == "/moved.png":
            return httpx.Response(302, headers={"Location": "https://files.example.com/real.png"})
        return httpx.Response(200, content=b"PNGDATA")
    return httpx.AsyncClient(transport=httpx.MockTransport(handler), follow_redirects=True)


class TestDownloadTaskImages:
    """Tests for download_task_images."""

    @pytest.mark.asyncio
    async def test_downloads_and_names_files(self, tmp_path, client, make_task):
        """Test images are saved as <id without dashes>_<index>.png."""
        service = ImageService(tmp_path, client=client)
        task = make_task("ab-cd", blocks=[_image_block("https://files.example.com/a.png"), _image_block("https://files.example.com/moved.png")])

        paths = await service.download_task_images(task)

        assert paths == [tmp_path / "abcd_0.png", tmp_path / "abcd_1.png"]
        assert all(p.read_bytes() == b"PNGDATA" for p in paths)

    @pytest.mark.asyncio
    async def test_uses_cache(self, tmp_path, client, make_task, requests_seen):
        """Test cached files are not downloaded again."""
        (tmp_path / "abcd_0.png").write_bytes(b"cached")
        service = ImageService(tmp_path, client=client)

        paths = await service.download_task_images(make_task("ab-cd", blocks=[_image_block("https://files.example.com/a.png")]))

        assert paths == [tmp_path / "abcd_0.png"]
        assert requests_seen == []

    @pytest.mark.asyncio
    async def test_failure_returns_empty(self, tmp_path, client, make_task):
        """Test a failed download yields an empty list instead of raising."""
        service = ImageService(tmp_path, client=client)

        paths = await service.download_task_images(make_task(blocks=[_image_block("https://files.example.com/missing.png")]))

        assert paths == []

    @pytest.mark.asyncio
    async def test_no_images(self, tmp_path, client, make_task):
        """Test tasks without images need no downloads."""
        service = ImageService(tmp_path / "never", client=client)

        assert await service.download_task_images(make_task()) == []
        assert not (tmp_path / "never").exists()

    @pytest.mark.asyncio
    async def test_interrupted_write_is_not_cached(self, tmp_path, client, make_task, requests_seen):
        """Test a write that fails partway leaves no file, so the next call downloads again."""
        service = ImageService(tmp_path, client=client)
        task = make_task("ab-cd", blocks=[_image_block("https://files.example.com/a.png")])
        real_write_bytes = Path.write_bytes

        def truncated_write(self, data):
            real_write_bytes(self, data[:3])
            raise OSError("No space left on device")

        with patch.object(Path, "write_bytes", truncated_write):
            assert await service.download_task_images(task) == []

        assert list(tmp_path.iterdir()) == []

        paths = await service.download_task_images(task)

        assert paths == [tmp_path / "abcd_0.png"]
        assert paths[0].read_bytes() == b"PNGDATA"
        assert len(requests_seen) == 2
