"""Image manager for fetching or copying post images."""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import aiofiles
import aiofiles.os
import aiohttp

from config_loader import get_nested
from models import Post
from url_utils import encode_url, filename_from_url, url_to_local_path

from .path_planner import PathPlanner


class MissingLocalImageError(FileNotFoundError):
    """A local image source does not exist."""
    pass


class ImageManager:
    """
    Builds the image batch and loads image bytes.

    Images are downloaded over HTTP unless ``images.from_folder`` names a
    local copy of the uploads folder, in which case files are read from it.
    Use as an async context manager so downloads share one HTTP session.
    """

    def __init__(
        self,
        config: Dict[str, Any],
        planner: PathPlanner,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the image manager.

        Args:
            config: Configuration dictionary
            planner: Path planner for destinations
            logger: Logger instance
        """
        self.planner = planner
        self.logger = logger or logging.getLogger('wordpress_markdown_exporter.exporters.imagemanager')
        self.from_folder = get_nested(config, 'images.from_folder', '') or ''
        self.timeout = aiohttp.ClientTimeout(total=get_nested(config, 'images.request_timeout', 30))
        self.session: Optional[aiohttp.ClientSession] = None

        self.stats = {
            'downloaded_bytes': 0,
            'local_copies': 0,
        }

    async def __aenter__(self) -> 'ImageManager':
        if not self.from_folder:
            self.session = aiohttp.ClientSession(timeout=self.timeout)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self.session is not None:
            await self.session.close()
            self.session = None

    def candidates(self, posts: List[Post]) -> List[Tuple[str, Path, str]]:
        """Return (url, destination, filename) for every image of every post."""
        candidates = []
        for post in posts:
            for url in post.meta.image_urls:
                candidates.append((url, self.planner.image_path(post, url), filename_from_url(url)))
        return candidates

    async def load(self, url: str) -> bytes:
        """Loader used by the acquisition pipeline."""
        if self.from_folder:
            return await self.load_local(url)
        return await self.load_url(url)

    async def load_url(self, url: str) -> bytes:
        """
        Download ``url``.

        Raises:
            aiohttp.ClientError: On connection failure or an error status
        """
        if self.session is None:
            raise RuntimeError("ImageManager must be used as an async context manager to download")

        async with self.session.get(encode_url(url)) as response:
            response.raise_for_status()
            content = await response.read()

        self.stats['downloaded_bytes'] += len(content)
        return content

    async def load_local(self, url: str) -> bytes:
        """
        Read the local copy of ``url`` from the uploads folder.

        Raises:
            MissingLocalImageError: If the mapped file does not exist
        """
        local_path = url_to_local_path(url, self.from_folder)
        if not await aiofiles.os.path.isfile(local_path):
            raise MissingLocalImageError(
                f"Local path to {filename_from_url(url)} does not exist ({local_path})"
            )

        async with aiofiles.open(local_path, 'rb') as f:
            content = await f.read()

        self.stats['local_copies'] += 1
        return content

    def get_stats(self) -> Dict[str, int]:
        """Get image loading statistics."""
        return self.stats.copy()


__all__ = ['ImageManager', 'MissingLocalImageError']
