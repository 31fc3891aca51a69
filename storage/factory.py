"""
Factory for creating storage backends.
"""
from typing import Any, Dict

from storage.base import StorageBackend


def create_storage_backend(config: Dict[str, Any]) -> StorageBackend:
    """
    Create a storage backend from configuration.

    Args:
        config: Backend configuration dictionary with at least:
            - type: Backend type (local, s3, minio)
            - name: Backend name for identification (optional)

    Returns:
        Configured StorageBackend instance

    Raises:
        ValueError: If backend type is unknown or missing
        StorageConfigurationError: If an enabled cloud backend lacks settings
    """
    backend_type = config.get("type", "").lower()

    if not backend_type:
        raise ValueError("Backend configuration must include 'type'")

    if backend_type in ("filesystem", "local", "file"):
        from storage.local import LocalStorageBackend
        return LocalStorageBackend(config)

    elif backend_type in ("s3", "aws", "cloud"):
        from storage.s3 import S3StorageBackend
        return S3StorageBackend(config)

    elif backend_type == "minio":
        from storage.s3 import S3StorageBackend
        return S3StorageBackend({**config, "use_minio": True})

    else:
        raise ValueError(f"Unknown storage backend type: {backend_type}")
