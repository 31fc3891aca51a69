"""
Shared fixtures for storage tests.
"""
import os
import tempfile
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock

# Keep import-time application setup away from the working directory
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="media_uploads_"))
os.environ.setdefault("ENABLE_CLOUD_STORAGE", "false")

import httpx
import pytest

from api.config import Settings
from api.main import create_application
from api.services.storage import StorageService
from storage.local import LocalStorageBackend
from storage.models import UploadedFile
from storage.s3 import S3StorageBackend

JPEG_HEADER = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00"
ADMIN_KEY = "test-admin-key"


def make_jpeg(size: int = 2048) -> bytes:
    return (JPEG_HEADER + bytes(range(256)) * (size // 256 + 1))[:size]


@pytest.fixture
def upload_dir(tmp_path):
    return tmp_path / "uploads"


@pytest.fixture
def local_backend(upload_dir):
    return LocalStorageBackend({"base_path": str(upload_dir), "url_prefix": "/uploads"})


@pytest.fixture
def s3_client():
    """Stand-in for an aioboto3 S3 client."""
    return AsyncMock()


def attach_client(backend: S3StorageBackend, client) -> S3StorageBackend:
    @asynccontextmanager
    async def _client_cm():
        yield client

    async def _get_client():
        return _client_cm()

    backend._get_client = _get_client
    return backend


@pytest.fixture
def cloud_config():
    return {
        "enabled": True,
        "bucket": "media-bucket",
        "region": "eu-west-1",
        "cloudfront_domain": "cdn.example.com",
    }


@pytest.fixture
def cloud_backend(cloud_config, s3_client):
    return attach_client(S3StorageBackend(cloud_config), s3_client)


@pytest.fixture
def disabled_cloud_backend(s3_client):
    return attach_client(S3StorageBackend({"enabled": False}), s3_client)


@pytest.fixture
def storage_service(local_backend, cloud_backend):
    return StorageService(
        settings=Settings(_env_file=None),
        local_backend=local_backend,
        cloud_backend=cloud_backend,
        use_cloud=False,
    )


@pytest.fixture
def test_settings(upload_dir):
    return Settings(
        _env_file=None,
        UPLOAD_DIR=str(upload_dir),
        ADMIN_API_KEYS=ADMIN_KEY,
        ENABLE_CLOUD_STORAGE=False,
        ENABLE_METRICS=False,
    )


@pytest.fixture
async def test_client(test_settings, storage_service):
    """HTTP client bound to an application using the test storage service."""
    app = create_application(test_settings, storage_service)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def jpeg_file():
    content = make_jpeg()
    return UploadedFile(content=content, content_type="image/jpeg", filename="cover.jpg")


@pytest.fixture
def video_file():
    content = b"\x00\x00\x00\x18ftypmp42" + os.urandom(4096)
    return UploadedFile(content=content, content_type="video/mp4", filename="lesson.mp4")
