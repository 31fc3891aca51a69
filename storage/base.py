"""
Abstract base classes for storage backends.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from storage.models import StorageStats, UploadedFile
from storage.validation import MAX_FILE_SIZE, MAX_THUMBNAIL_SIZE


class StorageBackend(ABC):
    """
    Capabilities shared by every storage backend.

    Generic callers should depend on this interface only. Object-store
    specific operations live on :class:`ObjectStoreBackend`.
    """

    kind = "unknown"
    enabled = True

    def __init__(self, config: Dict[str, Any]):
        """
        Initialize storage backend.

        Args:
            config: Backend configuration dictionary. Recognised keys common
                to all backends:
                - name: Backend name (optional)
                - max_file_size: Ceiling for primary media in bytes
                - max_thumbnail_size: Ceiling for thumbnails in bytes
        """
        self.config = config
        self.name = config.get("name", self.kind)
        self.max_file_size = int(config.get("max_file_size") or MAX_FILE_SIZE)
        self.max_thumbnail_size = int(config.get("max_thumbnail_size") or MAX_THUMBNAIL_SIZE)

    @abstractmethod
    async def upload_file(self, file: Optional[UploadedFile], category: str):
        """
        Store a primary media file under a category.

        Args:
            file: Payload to store
            category: Namespace tag, lower-cased before use

        Returns:
            Location descriptor for the stored file

        Raises:
            UploadValidationError: If the payload is missing or too large
            StorageBackendError: If the write fails
        """

    @abstractmethod
    async def upload_thumbnail(self, file: Optional[UploadedFile], category: str):
        """
        Store a thumbnail image under ``<category>-thumbnails``.

        Raises:
            UploadValidationError: If the payload is missing, not an allowed
                image type or too large
        """

    @abstractmethod
    async def delete_file(self, locator: str) -> bool:
        """
        Delete a stored file.

        Args:
            locator: URL for the local backend, object key for the cloud one

        Returns:
            True if deleted, False if absent or on error
        """

    @abstractmethod
    async def get_file_stats(self, locator: str):
        """Return file metadata, or None if missing or on error."""

    @abstractmethod
    async def get_storage_stats(self) -> StorageStats:
        """Total size and count of stored files. Zeros on error."""

    @abstractmethod
    async def read(self, locator: str) -> Optional[bytes]:
        """Return stored bytes, or None if missing or on error."""

    async def get_status(self) -> Dict[str, Any]:
        """
        Get backend status.

        Returns:
            Dictionary with backend status information
        """
        return {
            "name": self.name,
            "type": self.kind,
            "available": True,
        }

    async def initialize(self) -> None:
        """Prepare backend resources."""

    async def cleanup(self) -> None:
        """Clean up backend resources."""

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name}>"


class ObjectStoreBackend(StorageBackend):
    """Extended capabilities only an object store provides."""

    @abstractmethod
    async def list_files(self, prefix: str, max_keys: int = 100) -> List[str]:
        """List object keys under a prefix. Empty on error."""

    @abstractmethod
    async def get_signed_url(self, key: str, expiry_seconds: int = 3600) -> Optional[str]:
        """Time-limited private-access URL, or None."""

    @abstractmethod
    def get_distribution_url(self, key: str) -> Optional[str]:
        """CDN URL for a key, or None when no CDN is configured."""
