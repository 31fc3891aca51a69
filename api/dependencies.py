"""
FastAPI dependencies for the storage service and admin authentication.
"""
import secrets
from typing import Optional

from fastapi import Depends, HTTPException, Header, Request, status
import structlog
from typing_extensions import Annotated, Doc

from api.config import Settings
from api.services.storage import StorageService

logger = structlog.get_logger()


def get_settings_dependency(request: Request) -> Settings:
    """Settings the running application was created with."""
    return request.app.state.settings


def get_storage_service(request: Request) -> StorageService:
    """Storage service owned by the running application."""
    return request.app.state.storage_service


Storage = Annotated[
    StorageService,
    Depends(get_storage_service),
    Doc("Storage service dispatching to the active backend"),
]

AppSettings = Annotated[
    Settings,
    Depends(get_settings_dependency),
    Doc("Application settings"),
]


async def get_api_key(
    x_api_key: Annotated[
        Optional[str],
        Header(alias="X-API-Key", description="API key for authentication"),
    ] = None,
    authorization: Annotated[
        Optional[str],
        Header(description="Bearer token authorization"),
    ] = None,
) -> Optional[str]:
    """
    Extract API key from request headers.

    Supports two authentication methods:
    1. X-API-Key header: Direct API key
    2. Authorization header: Bearer token format
    """
    if x_api_key:
        return x_api_key

    if authorization and authorization.startswith("Bearer "):
        return authorization[7:]

    return None


async def require_admin(
    request: Request,
    app_settings: AppSettings,
    api_key: Annotated[Optional[str], Depends(get_api_key)] = None,
) -> str:
    """
    Require an admin API key.

    Raises:
        HTTPException: 503 if no admin keys are configured
        HTTPException: 401 if the key is missing
        HTTPException: 403 if the key is not an admin key
    """
    admin_keys = app_settings.admin_api_keys

    if not admin_keys:
        logger.warning("No admin API keys configured - admin endpoints disabled")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"error": "not_configured", "message": "Admin functionality not configured"},
        )

    if not api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "authentication_required", "message": "API key required"},
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not any(secrets.compare_digest(api_key, key) for key in admin_keys):
        logger.warning(
            "Invalid admin key attempted",
            api_key_prefix=api_key[:8] + "..." if len(api_key) > 8 else api_key,
            client_ip=request.client.host if request.client else "unknown",
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"error": "access_denied", "message": "Admin access required"},
        )

    return api_key


AdminKey = Annotated[str, Depends(require_admin), Doc("Admin API key")]
