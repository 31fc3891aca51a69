"""
Storage backends for uploaded media.

Supports the local filesystem and S3-compatible object stores.
"""
from storage.base import ObjectStoreBackend, StorageBackend
from storage.errors import (
    StorageBackendError,
    StorageConfigurationError,
    StorageError,
    UploadValidationError,
)
from storage.factory import create_storage_backend
from storage.models import (
    CloudLocation,
    LocalFileStats,
    LocalLocation,
    ObjectStats,
    StorageStats,
    StoredLocation,
    UploadedFile,
)

__all__ = [
    "CloudLocation",
    "LocalFileStats",
    "LocalLocation",
    "ObjectStats",
    "ObjectStoreBackend",
    "StorageBackend",
    "StorageBackendError",
    "StorageConfigurationError",
    "StorageError",
    "StorageStats",
    "StoredLocation",
    "UploadValidationError",
    "UploadedFile",
    "create_storage_backend",
]
