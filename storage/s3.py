"""
S3-compatible storage backend.

Supports AWS S3 and MinIO (path-style addressing against a custom endpoint).
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import aioboto3
import structlog
from botocore.config import Config

from storage.base import ObjectStoreBackend
from storage.errors import StorageBackendError, StorageConfigurationError
from storage.models import CloudLocation, ObjectStats, StorageStats, UploadedFile
from storage.validation import (
    dated_prefix,
    generate_file_name,
    normalize_category,
    thumbnail_category,
    validate_file,
    validate_thumbnail,
)

logger = structlog.get_logger()


class S3StorageBackend(ObjectStoreBackend):
    """S3-compatible storage backend."""

    kind = "cloud"

    def __init__(self, config: Dict[str, Any]):
        """
        Initialize S3 storage backend.

        Args:
            config: Configuration with:
                - enabled: Whether any operation may reach the store
                - bucket: S3 bucket name (required when enabled)
                - region: AWS region (optional)
                - access_key / secret_key: Credentials (optional, uses default
                  credential chain otherwise)
                - use_minio: Use path-style addressing against endpoint_url
                - endpoint_url: Custom endpoint for MinIO/compatible stores
                - cloudfront_domain: CDN domain for distribution URLs (optional)
        """
        super().__init__(config)
        self.enabled = bool(config.get("enabled", False))
        self.bucket = config.get("bucket")
        self.region = config.get("region") or "us-east-1"
        self.use_minio = bool(config.get("use_minio", False))
        self.endpoint_url = config.get("endpoint_url")
        self.cloudfront_domain = config.get("cloudfront_domain")

        if self.enabled and not self.bucket:
            raise StorageConfigurationError("Cloud storage requires a bucket name")
        if self.enabled and self.use_minio and not self.endpoint_url:
            raise StorageConfigurationError("MinIO storage requires an endpoint URL")

        self._session = None
        self._client_kwargs: Dict[str, Any] = {}

    async def _get_client(self):
        """Get an S3 client context manager."""
        if self._session is None:
            client_kwargs: Dict[str, Any] = {"region_name": self.region}

            if self.use_minio:
                client_kwargs["endpoint_url"] = self.endpoint_url
                client_kwargs["config"] = Config(
                    signature_version="s3v4",
                    s3={"addressing_style": "path"},
                )
            elif self.endpoint_url:
                client_kwargs["endpoint_url"] = self.endpoint_url

            # Check for explicit credentials in config
            if self.config.get("access_key") and self.config.get("secret_key"):
                client_kwargs["aws_access_key_id"] = self.config["access_key"]
                client_kwargs["aws_secret_access_key"] = self.config["secret_key"]

            self._session = aioboto3.Session()
            self._client_kwargs = client_kwargs

        return self._session.client("s3", **self._client_kwargs)

    def _require_enabled(self) -> None:
        if not self.enabled:
            raise StorageConfigurationError("Cloud storage is not enabled")

    def public_url(self, key: str) -> str:
        """Public location of an object written with public-read access."""
        quoted = quote(key, safe="/")
        if self.use_minio or self.endpoint_url:
            return f"{self.endpoint_url.rstrip('/')}/{self.bucket}/{quoted}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{quoted}"

    async def _put(self, key: str, file: UploadedFile, metadata: Dict[str, str]) -> None:
        async with await self._get_client() as client:
            await client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=file.content,
                ContentType=file.content_type,
                Metadata=metadata,
                # Public read access for CDN
                ACL="public-read",
            )

    async def upload_file(self, file: Optional[UploadedFile], category: str) -> CloudLocation:
        """Upload a primary media file under ``<category>/<year>/<month>/``."""
        file = validate_file(file, self.max_file_size)
        self._require_enabled()

        now = datetime.now(timezone.utc)
        file_name = generate_file_name(file)
        key = f"{dated_prefix(normalize_category(category), now)}/{file_name}"

        try:
            await self._put(key, file, {
                "original-name": _metadata_value(file.filename),
                "upload-date": now.isoformat(),
            })
        except Exception as e:
            logger.error("Cloud storage upload error", key=key, error=str(e))
            raise StorageBackendError("Failed to upload file to cloud storage") from e

        logger.info("File uploaded to cloud storage", key=key, size=file.size)
        return CloudLocation(
            url=self.public_url(key),
            file_name=file_name,
            original_name=file.filename,
            key=key,
        )

    async def upload_thumbnail(self, file: Optional[UploadedFile], category: str) -> CloudLocation:
        """Upload a thumbnail under ``<category>-thumbnails/<year>/<month>/``."""
        file = validate_thumbnail(file, self.max_thumbnail_size)
        self._require_enabled()

        file_name = generate_file_name(file)
        key = f"{dated_prefix(thumbnail_category(category))}/{file_name}"

        try:
            await self._put(key, file, {"original-name": _metadata_value(file.filename)})
        except Exception as e:
            logger.error("Cloud thumbnail upload error", key=key, error=str(e))
            raise StorageBackendError("Failed to upload thumbnail to cloud storage") from e

        logger.info("Thumbnail uploaded to cloud storage", key=key, size=file.size)
        return CloudLocation(url=self.public_url(key), file_name=file_name, key=key)

    async def delete_file(self, key: str) -> bool:
        """Delete an object."""
        if not self.enabled:
            return False

        try:
            async with await self._get_client() as client:
                await client.delete_object(Bucket=self.bucket, Key=key)
            logger.info("Object deleted", key=key)
            return True
        except Exception as e:
            logger.error("Cloud storage delete error", key=key, error=str(e))
            return False

    async def get_signed_url(self, key: str, expiry_seconds: int = 3600) -> Optional[str]:
        """Generate a presigned GET URL for private access."""
        if not self.enabled:
            return None

        try:
            async with await self._get_client() as client:
                return await client.generate_presigned_url(
                    "get_object",
                    Params={"Bucket": self.bucket, "Key": key},
                    ExpiresIn=expiry_seconds,
                )
        except Exception as e:
            logger.error("Error generating signed URL", key=key, error=str(e))
            return None

    async def get_file_stats(self, key: str) -> Optional[ObjectStats]:
        """Get object metadata."""
        if not self.enabled:
            return None

        try:
            async with await self._get_client() as client:
                response = await client.head_object(Bucket=self.bucket, Key=key)

            return ObjectStats(
                size=response.get("ContentLength", 0),
                last_modified=response.get("LastModified"),
                content_type=response.get("ContentType"),
            )
        except Exception as e:
            logger.error("Error getting file stats", key=key, error=str(e))
            return None

    async def read(self, key: str) -> Optional[bytes]:
        """Fetch object bytes."""
        if not self.enabled:
            return None

        try:
            async with await self._get_client() as client:
                response = await client.get_object(Bucket=self.bucket, Key=key)
                async with response["Body"] as stream:
                    return await stream.read()
        except Exception as e:
            logger.error("Error reading object", key=key, error=str(e))
            return None

    async def list_files(self, prefix: str, max_keys: int = 100) -> List[str]:
        """List up to ``max_keys`` object keys under a prefix."""
        if not self.enabled:
            return []

        try:
            async with await self._get_client() as client:
                result = await client.list_objects_v2(
                    Bucket=self.bucket,
                    Prefix=prefix,
                    MaxKeys=max_keys,
                )
            return [obj["Key"] for obj in result.get("Contents", [])]
        except Exception as e:
            logger.error("Error listing files", prefix=prefix, error=str(e))
            return []

    async def get_storage_stats(self) -> StorageStats:
        """
        Total size and object count for the whole bucket.

        Pages through every object, so latency grows with bucket size.
        """
        if not self.enabled:
            return StorageStats()

        total_size = 0
        file_count = 0
        pages = 0

        try:
            async with await self._get_client() as client:
                params: Dict[str, Any] = {"Bucket": self.bucket}

                while True:
                    result = await client.list_objects_v2(**params)
                    pages += 1

                    contents = result.get("Contents", [])
                    file_count += len(contents)
                    total_size += sum(obj.get("Size", 0) for obj in contents)

                    token = result.get("NextContinuationToken")
                    if not token:
                        break
                    params["ContinuationToken"] = token
        except Exception as e:
            logger.error("Error getting storage stats", error=str(e))
            return StorageStats()

        logger.debug("Bucket scanned", pages=pages, file_count=file_count)
        return StorageStats(total_size=total_size, file_count=file_count)

    def get_distribution_url(self, key: str) -> Optional[str]:
        """CloudFront URL for a key, if a distribution domain is configured."""
        if self.cloudfront_domain:
            return f"https://{self.cloudfront_domain}/{key}"
        return None

    async def get_status(self) -> Dict[str, Any]:
        """Get backend status."""
        available = False
        if self.enabled:
            try:
                async with await self._get_client() as client:
                    # Test access by listing bucket (limited to 1 object)
                    await client.list_objects_v2(Bucket=self.bucket, MaxKeys=1)
                    available = True
            except Exception as e:
                logger.warning("Cloud storage unreachable", bucket=self.bucket, error=str(e))

        return {
            "name": self.name,
            "type": self.kind,
            "enabled": self.enabled,
            "bucket": self.bucket,
            "region": self.region,
            "endpoint_url": self.endpoint_url,
            "available": available,
        }

    async def cleanup(self) -> None:
        """Drop the cached session."""
        self._session = None


def _metadata_value(value: str) -> str:
    # S3 user metadata must be ASCII
    return value.encode("ascii", "backslashreplace").decode("ascii")
