"""
Storage administration endpoints.

Backend status, usage statistics, runtime backend switching and the
object-store only operations (listing, signed URLs).
"""
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException, Query, status
from pydantic import BaseModel
import structlog
from typing_extensions import Annotated, Doc

from api.dependencies import AdminKey, Storage

logger = structlog.get_logger()
router = APIRouter()


class StorageStatusResponse(BaseModel):
    """Storage status response."""
    backend: Annotated[str, Doc("Active backend: local or cloud")]
    total_size: Annotated[int, Doc("Bytes stored on the active backend")]
    file_count: Annotated[int, Doc("Files stored on the active backend")]
    backends: Annotated[Dict[str, Dict[str, Any]], Doc("Status of each storage backend")]


class SwitchBackendRequest(BaseModel):
    use_cloud: Annotated[bool, Doc("Route subsequent uploads to the object store")]


class SwitchBackendResponse(BaseModel):
    backend: Annotated[str, Doc("Active backend after the switch")]


class ObjectListResponse(BaseModel):
    prefix: str
    keys: List[str]


class SignedUrlResponse(BaseModel):
    key: str
    url: str
    expires_in: int
    distribution_url: Optional[str] = None


@router.get(
    "/storage",
    response_model=StorageStatusResponse,
    summary="Get storage status",
    description="Active backend, its usage and the status of every backend. Scans the whole bucket when cloud storage is active.",
)
async def get_storage_status(storage: Storage, admin: AdminKey) -> StorageStatusResponse:
    stats = await storage.get_storage_stats()
    health = await storage.health_check()

    return StorageStatusResponse(
        backend=storage.get_storage_backend(),
        total_size=stats.total_size,
        file_count=stats.file_count,
        backends=health["backends"],
    )


@router.put(
    "/storage/backend",
    response_model=SwitchBackendResponse,
    summary="Switch storage backend",
)
async def switch_storage_backend(
    request: SwitchBackendRequest,
    storage: Storage,
    admin: AdminKey,
) -> SwitchBackendResponse:
    """
    Switch the active backend for all subsequent uploads.

    Switching to cloud storage while it is disabled is rejected.
    """
    if request.use_cloud and not storage.cloud.enabled:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"error": "configuration_error", "message": "Cloud storage is not enabled"},
        )

    storage.switch_storage_backend(request.use_cloud)
    return SwitchBackendResponse(backend=storage.get_storage_backend())


@router.get(
    "/storage/objects",
    response_model=ObjectListResponse,
    summary="List cloud objects",
)
async def list_objects(
    storage: Storage,
    admin: AdminKey,
    prefix: Annotated[str, Query(), Doc("Key prefix, e.g. skill/2026/")] = "",
    max_keys: Annotated[int, Query(ge=1, le=1000), Doc("Maximum keys to return")] = 100,
) -> ObjectListResponse:
    keys = await storage.cloud.list_files(prefix, max_keys)
    return ObjectListResponse(prefix=prefix, keys=keys)


@router.get(
    "/storage/signed-url",
    response_model=SignedUrlResponse,
    summary="Signed URL for a cloud object",
)
async def get_signed_url(
    storage: Storage,
    admin: AdminKey,
    key: Annotated[str, Query(), Doc("Object key returned by the upload")],
    expiry_seconds: Annotated[int, Query(ge=1, le=604800), Doc("URL lifetime in seconds")] = 3600,
) -> SignedUrlResponse:
    url = await storage.cloud.get_signed_url(key, expiry_seconds)
    if url is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "not_available", "message": "Signed URL not available"},
        )

    return SignedUrlResponse(
        key=key,
        url=url,
        expires_in=expiry_seconds,
        distribution_url=storage.cloud.get_distribution_url(key),
    )
