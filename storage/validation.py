"""
Upload validation and naming helpers shared by all storage backends.
"""
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

import structlog

from storage.errors import UploadValidationError
from storage.models import UploadedFile

logger = structlog.get_logger()

MiB = 1024 * 1024

# Size ceilings
MAX_FILE_SIZE = 500 * MiB
MAX_THUMBNAIL_SIZE = 10 * MiB

ALLOWED_THUMBNAIL_TYPES = frozenset({"image/jpeg", "image/png", "image/webp"})

THUMBNAIL_SUFFIX = "-thumbnails"


def normalize_category(category: str) -> str:
    """
    Lower-case a category tag for use as a path or key segment.

    Raises:
        UploadValidationError: If the category is empty or would not be a
            single path segment
    """
    if not category or not category.strip():
        raise UploadValidationError("Category is required")

    normalized = category.lower()
    if "/" in normalized or "\\" in normalized or normalized in (".", "..") or "\x00" in normalized:
        raise UploadValidationError(f"Invalid category: {category}")

    return normalized


def thumbnail_category(category: str) -> str:
    """Namespace used for thumbnails of a category."""
    return f"{normalize_category(category)}{THUMBNAIL_SUFFIX}"


def validate_file(file: Optional[UploadedFile], max_size: int = MAX_FILE_SIZE) -> UploadedFile:
    """Validate a primary media payload."""
    if file is None:
        raise UploadValidationError("No file provided")

    size = payload_size(file)
    if size > max_size:
        logger.warning("Upload rejected: file too large", size=size, max_size=max_size)
        raise UploadValidationError(
            f"File size exceeds maximum limit of {_format_size(max_size)}"
        )

    return file


def validate_thumbnail(file: Optional[UploadedFile], max_size: int = MAX_THUMBNAIL_SIZE) -> UploadedFile:
    """Validate a thumbnail payload: image type first, then size."""
    if file is None:
        raise UploadValidationError("No thumbnail file provided")

    if file.content_type not in ALLOWED_THUMBNAIL_TYPES:
        logger.warning("Thumbnail rejected: unsupported type", content_type=file.content_type)
        raise UploadValidationError("Only JPEG, PNG, and WebP images are allowed for thumbnails")

    size = payload_size(file)
    if size > max_size:
        logger.warning("Thumbnail rejected: file too large", size=size, max_size=max_size)
        raise UploadValidationError(
            f"Thumbnail size exceeds maximum limit of {_format_size(max_size)}"
        )

    return file


def generate_file_name(file: UploadedFile) -> str:
    """Collision-resistant name: random token plus the original extension."""
    return f"{uuid4()}{file.extension}"


def dated_prefix(category_segment: str, now: Optional[datetime] = None) -> str:
    """Key prefix of the form ``<category>/<year>/<month>``."""
    now = now or datetime.now(timezone.utc)
    return f"{category_segment}/{now.year}/{now.month}"


def _format_size(size: int) -> str:
    if size % MiB == 0:
        return f"{size // MiB}MB"
    return f"{size} bytes"


def payload_size(file: UploadedFile) -> int:
    """Size used for limit checks: never less than the bytes actually held."""
    return max(file.size, len(file.content))
