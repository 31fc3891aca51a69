"""
Media upload endpoints.

Thin HTTP wrapper over the storage service. Callers receive the location
descriptor and must keep the returned ``key`` when one is present: it is the
only handle for deleting or inspecting a cloud object later.
"""
from typing import Any, Dict, Optional

from fastapi import APIRouter, File, Form, HTTPException, Query, UploadFile, status
import structlog
from typing_extensions import Annotated, Doc

from api.dependencies import Storage
from storage.models import UploadedFile

logger = structlog.get_logger()

router = APIRouter()


async def to_payload(upload: Optional[UploadFile]) -> Optional[UploadedFile]:
    """Read a multipart part into a storage payload."""
    if upload is None:
        return None

    content = await upload.read()
    return UploadedFile(
        content=content,
        content_type=upload.content_type or "application/octet-stream",
        filename=upload.filename or "",
        size=len(content),
    )


@router.post(
    "/media/upload",
    status_code=status.HTTP_201_CREATED,
    summary="Upload media",
    description="Upload a media file and an optional thumbnail to the active storage backend.",
)
async def upload_media(
    storage: Storage,
    category: Annotated[str, Form(), Doc("Media category, e.g. education or skill")],
    file: Annotated[Optional[UploadFile], File(), Doc("Media file, up to 500MB")] = None,
    thumbnail: Annotated[Optional[UploadFile], File(), Doc("JPEG, PNG or WebP thumbnail, up to 10MB")] = None,
) -> Dict[str, Any]:
    result = await storage.upload_media(
        await to_payload(file),
        category,
        thumbnail=await to_payload(thumbnail),
    )

    thumbnail_location = result["thumbnail"]
    return {
        "backend": result["file"].backend,
        "file": result["file"].as_file(),
        "thumbnail": thumbnail_location.as_thumbnail() if thumbnail_location else None,
    }


@router.post(
    "/media/thumbnail",
    status_code=status.HTTP_201_CREATED,
    summary="Upload thumbnail",
)
async def upload_thumbnail(
    storage: Storage,
    category: Annotated[str, Form(), Doc("Media category")],
    thumbnail: Annotated[Optional[UploadFile], File(), Doc("JPEG, PNG or WebP image")] = None,
) -> Dict[str, Any]:
    location = await storage.upload_thumbnail(await to_payload(thumbnail), category)
    return {"backend": location.backend, **location.as_thumbnail()}


@router.delete(
    "/media/files",
    summary="Delete a stored file",
)
async def delete_file(
    storage: Storage,
    url: Annotated[str, Query(), Doc("Public URL returned by the upload")],
    key: Annotated[Optional[str], Query(), Doc("Object key, required for cloud objects")] = None,
) -> Dict[str, Any]:
    deleted = await storage.delete_file(url, key)
    return {"deleted": deleted}


@router.get(
    "/media/files/stats",
    summary="Stored file metadata",
)
async def get_file_stats(
    storage: Storage,
    url: Annotated[str, Query(), Doc("Public URL returned by the upload")],
    key: Annotated[Optional[str], Query(), Doc("Object key, required for cloud objects")] = None,
) -> Dict[str, Any]:
    stats = await storage.get_file_stats(url, key)
    if stats is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "not_found", "message": "File not found"},
        )
    return stats.model_dump(mode="json")
