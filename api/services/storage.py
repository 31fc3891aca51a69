"""
Storage service: one contract over the local and cloud backends.

The active backend is chosen from ENABLE_CLOUD_STORAGE at startup and can be
switched at runtime. The switch is a plain reference swap with no locking: a
single upload made while another task switches backends may land on either
one. Use :meth:`StorageService.upload_media` to keep a file and its thumbnail
together.
"""
from typing import Any, Dict, Optional, Union

import structlog
from prometheus_client import Counter

from api.config import Settings, settings as default_settings
from storage.base import ObjectStoreBackend, StorageBackend
from storage.factory import create_storage_backend
from storage.models import (
    CloudLocation,
    LocalFileStats,
    ObjectStats,
    StorageStats,
    StoredLocation,
    UploadedFile,
)

logger = structlog.get_logger()

UPLOADS_TOTAL = Counter(
    "storage_uploads_total",
    "Uploads accepted by the storage service",
    ["backend", "kind"],
)

Location = StoredLocation
FileStats = Union[LocalFileStats, ObjectStats]


class StorageService:
    """Dispatches storage operations to the active backend."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        local_backend: Optional[StorageBackend] = None,
        cloud_backend: Optional[ObjectStoreBackend] = None,
        use_cloud: Optional[bool] = None,
    ):
        self.settings = settings or default_settings
        self.local = local_backend or create_storage_backend(self.settings.local_storage_config)
        self.cloud = cloud_backend or create_storage_backend(self.settings.cloud_storage_config)

        if use_cloud is None:
            use_cloud = self.settings.ENABLE_CLOUD_STORAGE
        self._active: StorageBackend = self.cloud if use_cloud else self.local

    @property
    def backends(self) -> Dict[str, StorageBackend]:
        return {"local": self.local, "cloud": self.cloud}

    @property
    def use_cloud_storage(self) -> bool:
        return self._active is self.cloud

    @property
    def active_backend(self) -> StorageBackend:
        return self._active

    async def initialize(self) -> None:
        """Prepare every backend."""
        for backend in self.backends.values():
            await backend.initialize()

        logger.info("Storage initialized", backend=self.get_storage_backend())

    async def cleanup(self) -> None:
        for backend in self.backends.values():
            await backend.cleanup()

    async def upload_file(self, file: Optional[UploadedFile], category: str) -> Location:
        """Upload a primary media file to the active backend."""
        backend = self._active
        location = await backend.upload_file(file, category)
        UPLOADS_TOTAL.labels(backend=backend.kind, kind="file").inc()
        return location

    async def upload_thumbnail(self, file: Optional[UploadedFile], category: str) -> Location:
        """Upload a thumbnail to the active backend."""
        backend = self._active
        location = await backend.upload_thumbnail(file, category)
        UPLOADS_TOTAL.labels(backend=backend.kind, kind="thumbnail").inc()
        return location

    async def upload_media(
        self,
        file: Optional[UploadedFile],
        category: str,
        thumbnail: Optional[UploadedFile] = None,
    ) -> Dict[str, Optional[Location]]:
        """
        Upload a file and its optional thumbnail to the same backend.

        The backend is resolved once, so a concurrent switch cannot split the
        pair. If the thumbnail is rejected the already stored file is removed.
        """
        backend = self._active
        location = await backend.upload_file(file, category)
        UPLOADS_TOTAL.labels(backend=backend.kind, kind="file").inc()

        thumbnail_location = None
        if thumbnail is not None:
            try:
                thumbnail_location = await backend.upload_thumbnail(thumbnail, category)
            except Exception:
                await self.delete_location(location)
                raise
            UPLOADS_TOTAL.labels(backend=backend.kind, kind="thumbnail").inc()

        return {"file": location, "thumbnail": thumbnail_location}

    async def delete_file(self, file_url: str, key: Optional[str] = None) -> bool:
        """
        Delete a stored file.

        Goes to the cloud backend only when cloud storage is active and a key
        is given. A cloud object whose key was not retained cannot be deleted
        through this method.
        """
        if self.use_cloud_storage and key:
            return await self.cloud.delete_file(key)
        return await self.local.delete_file(file_url)

    async def get_file_stats(self, file_url: str, key: Optional[str] = None) -> Optional[FileStats]:
        """File metadata, or None when unknown. Same routing as delete_file."""
        if self.use_cloud_storage and key:
            return await self.cloud.get_file_stats(key)
        return await self.local.get_file_stats(file_url)

    async def delete_location(self, location: Location) -> bool:
        """Delete by descriptor; routed by where the descriptor says it lives."""
        if isinstance(location, CloudLocation):
            return await self.cloud.delete_file(location.key)
        return await self.local.delete_file(location.url)

    async def get_location_stats(self, location: Location) -> Optional[FileStats]:
        if isinstance(location, CloudLocation):
            return await self.cloud.get_file_stats(location.key)
        return await self.local.get_file_stats(location.url)

    async def get_storage_stats(self) -> StorageStats:
        """
        Usage of the active backend.

        For the cloud backend this scans the whole bucket; keep it off
        request-serving paths.
        """
        return await self._active.get_storage_stats()

    def switch_storage_backend(self, use_cloud: bool) -> None:
        """Select the backend for all subsequent calls."""
        previous = self.get_storage_backend()
        self._active = self.cloud if use_cloud else self.local
        logger.info("Storage backend switched", previous=previous, current=self.get_storage_backend())

    def get_storage_backend(self) -> str:
        return "cloud" if self.use_cloud_storage else "local"

    async def health_check(self) -> Dict[str, Any]:
        """Status of each backend."""
        backends = {}
        for name, backend in self.backends.items():
            try:
                backends[name] = await backend.get_status()
            except Exception as e:
                logger.error("Storage health check failed", backend=name, error=str(e))
                backends[name] = {"name": name, "available": False, "error": str(e)}

        active = backends[self.get_storage_backend()]
        return {
            "status": "healthy" if active.get("available") else "unhealthy",
            "active_backend": self.get_storage_backend(),
            "backends": backends,
        }
