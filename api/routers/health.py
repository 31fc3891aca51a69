"""
Health check endpoints.

Provides service health monitoring without authentication requirement.
"""
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
import structlog

from api.dependencies import AppSettings, Storage

logger = structlog.get_logger()

router = APIRouter()


@router.get(
    "/health",
    response_model=Dict[str, Any],
    status_code=status.HTTP_200_OK,
    summary="Health check",
    description="Health of the service and its storage backends.",
    responses={503: {"description": "Active storage backend unavailable"}},
)
async def health_check(storage: Storage, app_settings: AppSettings):
    """
    Report whether the active storage backend can serve requests.

    The inactive backend is reported but does not affect the overall status.
    """
    health_status: Dict[str, Any] = {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": app_settings.VERSION,
        "components": {},
    }

    try:
        storage_health = await storage.health_check()
        health_status["components"]["storage"] = storage_health
        if storage_health["status"] != "healthy":
            health_status["status"] = "unhealthy"
    except Exception as e:
        logger.error("Storage health check failed", error=str(e))
        health_status["status"] = "unhealthy"
        health_status["components"]["storage"] = {
            "status": "unhealthy",
            "error": str(e),
        }

    if health_status["status"] == "unhealthy":
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=health_status,
        )

    return health_status
