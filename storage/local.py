"""
Local filesystem storage backend.
"""
import asyncio
import os
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import quote, unquote, urlparse

import aiofiles
import aiofiles.os
import structlog

from storage.base import StorageBackend
from storage.errors import StorageBackendError
from storage.models import LocalFileStats, LocalLocation, StorageStats, UploadedFile
from storage.validation import (
    generate_file_name,
    normalize_category,
    thumbnail_category,
    validate_file,
    validate_thumbnail,
)

logger = structlog.get_logger()


class LocalStorageBackend(StorageBackend):
    """Local filesystem storage backend."""

    kind = "local"

    def __init__(self, config: Dict[str, Any]):
        """
        Initialize local storage backend.

        Args:
            config: Configuration with:
                - base_path: Root directory for uploads
                - url_prefix: URL path under which base_path is served
                - name: Backend name (optional)
        """
        super().__init__(config)
        self.base_path = Path(config.get("base_path", "./uploads")).resolve()
        self.url_prefix = "/" + config.get("url_prefix", "/uploads").strip("/")

        # Ensure base path exists
        self.base_path.mkdir(parents=True, exist_ok=True)

    def _resolve_path(self, path: str) -> Path:
        """
        Resolve and validate a path.

        Args:
            path: Relative path within the storage

        Returns:
            Absolute Path object

        Raises:
            ValueError: If path would escape base directory
        """
        if not path:
            return self.base_path

        full_path = (self.base_path / path).resolve()

        # Security check: ensure path is within base_path
        try:
            full_path.relative_to(self.base_path)
        except ValueError:
            raise ValueError(f"Path '{path}' would escape storage directory")

        return full_path

    def _path_from_url(self, url: str) -> Path:
        """
        Map a public URL such as ``/uploads/skill/<name>`` back to a file path.

        Raises:
            ValueError: If the URL is not under the upload prefix
        """
        if not url:
            raise ValueError("URL cannot be empty")

        url_path = unquote(urlparse(url).path)
        prefix = self.url_prefix + "/"
        if not url_path.startswith(prefix):
            raise ValueError(f"URL '{url}' is not under {self.url_prefix}")

        return self._resolve_path(url_path[len(prefix):])

    def _url_for(self, directory: str, file_name: str) -> str:
        return f"{self.url_prefix}/{quote(directory, safe='')}/{quote(file_name, safe='')}"

    async def ensure_dir(self, path: str) -> None:
        """Ensure directory exists."""
        if not path:
            return

        full_path = self._resolve_path(path)

        if not await aiofiles.os.path.exists(full_path):
            await aiofiles.os.makedirs(full_path, exist_ok=True)

    async def _write(self, directory: str, file: UploadedFile) -> str:
        """Write the whole payload to a freshly named file and return its name."""
        await self.ensure_dir(directory)

        file_name = generate_file_name(file)
        full_path = self._resolve_path(directory) / file_name

        try:
            async with aiofiles.open(full_path, "wb") as f:
                await f.write(file.content)
        except OSError as e:
            logger.error("Local write failed", path=str(full_path), error=str(e))
            # Don't leave a truncated file behind
            try:
                await aiofiles.os.remove(full_path)
            except OSError:
                pass
            raise StorageBackendError("Failed to store file") from e

        return file_name

    async def upload_file(self, file: Optional[UploadedFile], category: str) -> LocalLocation:
        """Store a primary media file under ``<category>/``."""
        file = validate_file(file, self.max_file_size)
        directory = normalize_category(category)

        try:
            file_name = await self._write(directory, file)
        except OSError as e:
            logger.error("Failed to create upload directory", directory=directory, error=str(e))
            raise StorageBackendError("Failed to store file") from e

        location = LocalLocation(
            url=self._url_for(directory, file_name),
            file_name=file_name,
            original_name=file.filename,
        )
        logger.info("File stored locally", url=location.url, size=file.size)
        return location

    async def upload_thumbnail(self, file: Optional[UploadedFile], category: str) -> LocalLocation:
        """Store a thumbnail under ``<category>-thumbnails/``."""
        file = validate_thumbnail(file, self.max_thumbnail_size)
        directory = thumbnail_category(category)

        try:
            file_name = await self._write(directory, file)
        except OSError as e:
            logger.error("Failed to create upload directory", directory=directory, error=str(e))
            raise StorageBackendError("Failed to store thumbnail") from e

        location = LocalLocation(url=self._url_for(directory, file_name), file_name=file_name)
        logger.info("Thumbnail stored locally", url=location.url, size=file.size)
        return location

    async def delete_file(self, url: str) -> bool:
        """Delete a file by its public URL."""
        try:
            full_path = self._path_from_url(url)

            if not await aiofiles.os.path.isfile(full_path):
                return False

            await aiofiles.os.remove(full_path)
            logger.info("File deleted", url=url)
            return True
        except (OSError, ValueError) as e:
            logger.error("Error deleting file", url=url, error=str(e))
            return False

    async def get_file_stats(self, url: str) -> Optional[LocalFileStats]:
        """Get file metadata."""
        try:
            full_path = self._path_from_url(url)

            if not await aiofiles.os.path.isfile(full_path):
                return None

            stat = await aiofiles.os.stat(full_path)
            created = getattr(stat, "st_birthtime", stat.st_ctime)

            return LocalFileStats(
                size=stat.st_size,
                created_at=datetime.fromtimestamp(created, tz=timezone.utc),
                modified_at=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
            )
        except (OSError, ValueError) as e:
            logger.error("Error getting file stats", url=url, error=str(e))
            return None

    async def read(self, url: str) -> Optional[bytes]:
        """Read a stored file by its public URL."""
        try:
            full_path = self._path_from_url(url)

            if not await aiofiles.os.path.isfile(full_path):
                return None

            async with aiofiles.open(full_path, "rb") as f:
                return await f.read()
        except (OSError, ValueError) as e:
            logger.error("Error reading file", url=url, error=str(e))
            return None

    def _scan(self) -> StorageStats:
        total_size = 0
        file_count = 0

        for root, dirs, filenames in os.walk(self.base_path):
            for filename in filenames:
                try:
                    total_size += os.path.getsize(os.path.join(root, filename))
                except OSError:
                    # Removed while walking
                    continue
                file_count += 1

        return StorageStats(total_size=total_size, file_count=file_count)

    async def get_storage_stats(self) -> StorageStats:
        """Walk the upload tree and total up file sizes."""
        try:
            return await asyncio.to_thread(self._scan)
        except OSError as e:
            logger.error("Error getting storage stats", error=str(e))
            return StorageStats()

    async def get_status(self) -> Dict[str, Any]:
        """Get backend status."""
        try:
            usage = await asyncio.to_thread(shutil.disk_usage, self.base_path)
            disk_info = {
                "total": usage.total,
                "used": usage.used,
                "free": usage.free,
                "percent_used": round((usage.used / usage.total) * 100, 2),
            }
        except OSError:
            disk_info = {"error": "Unable to get disk usage"}

        return {
            "name": self.name,
            "type": self.kind,
            "base_path": str(self.base_path),
            "url_prefix": self.url_prefix,
            "available": self.base_path.exists(),
            "disk": disk_info,
        }

    async def initialize(self) -> None:
        """Ensure the upload root exists."""
        await aiofiles.os.makedirs(self.base_path, exist_ok=True)
