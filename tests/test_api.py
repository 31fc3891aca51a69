"""
HTTP tests for the media and admin endpoints.
"""
import pytest
from botocore.exceptions import EndpointConnectionError

from tests.conftest import ADMIN_KEY, make_jpeg

ADMIN_HEADERS = {"X-API-Key": ADMIN_KEY}


class TestMediaEndpoints:

    @pytest.mark.asyncio
    async def test_upload_and_serve(self, test_client):
        video = b"\x00\x00\x00\x18ftypmp42" + b"\x01" * 512
        thumb = make_jpeg(2048)

        response = await test_client.post(
            "/api/v1/media/upload",
            data={"category": "Skill"},
            files={
                "file": ("lesson.mp4", video, "video/mp4"),
                "thumbnail": ("cover.jpg", thumb, "image/jpeg"),
            },
        )

        assert response.status_code == 201
        data = response.json()
        assert data["backend"] == "local"
        assert data["file"]["fileUrl"].startswith("/uploads/skill/")
        assert data["file"]["originalName"] == "lesson.mp4"
        assert "key" not in data["file"]
        assert data["thumbnail"]["thumbnailUrl"].startswith("/uploads/skill-thumbnails/")

        served = await test_client.get(data["thumbnail"]["thumbnailUrl"])
        assert served.status_code == 200
        assert served.content == thumb

    @pytest.mark.asyncio
    async def test_upload_without_file(self, test_client):
        response = await test_client.post("/api/v1/media/upload", data={"category": "skill"})

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "validation_error"
        assert error["message"] == "No file provided"

    @pytest.mark.asyncio
    async def test_thumbnail_wrong_type(self, test_client):
        response = await test_client.post(
            "/api/v1/media/thumbnail",
            data={"category": "skill"},
            files={"thumbnail": ("t.gif", b"GIF89a", "image/gif")},
        )

        assert response.status_code == 400
        assert "JPEG, PNG, and WebP" in response.json()["error"]["message"]

    @pytest.mark.asyncio
    async def test_thumbnail_upload(self, test_client):
        response = await test_client.post(
            "/api/v1/media/thumbnail",
            data={"category": "education"},
            files={"thumbnail": ("t.png", b"\x89PNG\r\n", "image/png")},
        )

        assert response.status_code == 201
        assert response.json()["thumbnailUrl"].startswith("/uploads/education-thumbnails/")

    @pytest.mark.asyncio
    async def test_missing_category(self, test_client):
        response = await test_client.post(
            "/api/v1/media/upload",
            files={"file": ("a.mp4", b"x", "video/mp4")},
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "request_validation_error"

    @pytest.mark.asyncio
    async def test_stats_and_delete(self, test_client):
        upload = await test_client.post(
            "/api/v1/media/upload",
            data={"category": "education"},
            files={"file": ("a.mp4", b"abcdef", "video/mp4")},
        )
        url = upload.json()["file"]["fileUrl"]

        stats = await test_client.get("/api/v1/media/files/stats", params={"url": url})
        assert stats.status_code == 200
        assert stats.json()["size"] == 6

        deleted = await test_client.delete("/api/v1/media/files", params={"url": url})
        assert deleted.json() == {"deleted": True}

        again = await test_client.delete("/api/v1/media/files", params={"url": url})
        assert again.json() == {"deleted": False}

        missing = await test_client.get("/api/v1/media/files/stats", params={"url": url})
        assert missing.status_code == 404
        assert missing.json()["error"]["code"] == "not_found"


class TestAdminEndpoints:

    @pytest.mark.asyncio
    async def test_requires_admin_key(self, test_client):
        response = await test_client.get("/api/v1/admin/storage")
        assert response.status_code == 401

        response = await test_client.get("/api/v1/admin/storage", headers={"X-API-Key": "nope"})
        assert response.status_code == 403
        assert response.json()["error"]["code"] == "access_denied"

    @pytest.mark.asyncio
    async def test_storage_status(self, test_client):
        await test_client.post(
            "/api/v1/media/upload",
            data={"category": "education"},
            files={"file": ("a.mp4", b"abcdef", "video/mp4")},
        )

        response = await test_client.get("/api/v1/admin/storage", headers=ADMIN_HEADERS)

        assert response.status_code == 200
        data = response.json()
        assert data["backend"] == "local"
        assert data["file_count"] == 1
        assert data["total_size"] == 6

    @pytest.mark.asyncio
    async def test_switch_backend(self, test_client, s3_client):
        response = await test_client.put(
            "/api/v1/admin/storage/backend", json={"use_cloud": True}, headers=ADMIN_HEADERS
        )
        assert response.json() == {"backend": "cloud"}

        upload = await test_client.post(
            "/api/v1/media/upload",
            data={"category": "education"},
            files={"file": ("a.mp4", b"abcdef", "video/mp4")},
        )
        assert upload.status_code == 201
        assert upload.json()["backend"] == "cloud"
        assert upload.json()["file"]["key"].startswith("education/")

        response = await test_client.put(
            "/api/v1/admin/storage/backend", json={"use_cloud": False}, headers=ADMIN_HEADERS
        )
        assert response.json() == {"backend": "local"}

    @pytest.mark.asyncio
    async def test_cloud_upload_failure_is_500(self, test_client, s3_client):
        await test_client.put("/api/v1/admin/storage/backend", json={"use_cloud": True}, headers=ADMIN_HEADERS)
        s3_client.put_object.side_effect = EndpointConnectionError(endpoint_url="http://s3")

        response = await test_client.post(
            "/api/v1/media/upload",
            data={"category": "education"},
            files={"file": ("a.mp4", b"abcdef", "video/mp4")},
        )

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "storage_error"

    @pytest.mark.asyncio
    async def test_signed_url(self, test_client, s3_client):
        s3_client.generate_presigned_url.return_value = "https://signed.example/k"

        response = await test_client.get(
            "/api/v1/admin/storage/signed-url",
            params={"key": "education/k.mp4", "expiry_seconds": 60},
            headers=ADMIN_HEADERS,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["url"] == "https://signed.example/k"
        assert data["distribution_url"] == "https://cdn.example.com/education/k.mp4"

    @pytest.mark.asyncio
    async def test_list_objects(self, test_client, s3_client):
        s3_client.list_objects_v2.return_value = {"Contents": [{"Key": "skill/a.png"}]}

        response = await test_client.get(
            "/api/v1/admin/storage/objects", params={"prefix": "skill/"}, headers=ADMIN_HEADERS
        )

        assert response.json() == {"prefix": "skill/", "keys": ["skill/a.png"]}


class TestHealthEndpoint:

    @pytest.mark.asyncio
    async def test_health(self, test_client):
        response = await test_client.get("/api/v1/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["components"]["storage"]["active_backend"] == "local"
