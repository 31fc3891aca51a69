"""
Centralized exception handlers.

Every error response has the shape ``{"error": {"code": ..., "message": ...}}``.
"""
from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
import structlog

from storage.errors import StorageError

logger = structlog.get_logger()


def error_response(status_code: int, code: str, message: str, **extra) -> JSONResponse:
    body = {"error": {"code": code, "message": message}}
    if extra:
        body["error"].update(extra)
    return JSONResponse(status_code=status_code, content=body)


async def storage_exception_handler(request: Request, exc: StorageError) -> JSONResponse:
    """Map storage errors to their HTTP status."""
    if exc.status_code >= 500:
        logger.error(
            "Storage operation failed",
            path=request.url.path,
            code=exc.code,
            error=exc.message,
        )
    else:
        logger.info("Storage request rejected", path=request.url.path, code=exc.code, error=exc.message)
    return error_response(exc.status_code, exc.code, exc.message)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Request body/query validation failures."""
    return error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "request_validation_error",
        "Invalid request",
        details=jsonable_errors(exc),
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    detail = exc.detail
    if isinstance(detail, dict):
        return error_response(
            exc.status_code,
            detail.get("error", "http_error"),
            detail.get("message", ""),
        )
    return error_response(exc.status_code, "http_error", str(detail))


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception", path=request.url.path, error=str(exc))
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "internal_error",
        "An unexpected error occurred",
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]
