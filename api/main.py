"""
Media storage API.

Stores uploaded media on the local filesystem or an S3-compatible object
store, and serves locally stored files under the upload URL prefix.
"""
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

import structlog
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from prometheus_client import make_asgi_app

from api.config import Settings, settings as default_settings
from api.routers import admin, health, media
from api.services.storage import StorageService
from api.utils.error_handlers import (
    general_exception_handler,
    http_exception_handler,
    storage_exception_handler,
    validation_exception_handler,
)
from api.utils.logger import setup_logging
from storage.errors import StorageError

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown."""
    storage_service: StorageService = app.state.storage_service
    app_settings: Settings = app.state.settings

    logger.info("Starting media storage API", version=app_settings.VERSION)

    await storage_service.initialize()

    logger.info(
        "Configuration loaded",
        api_host=app_settings.API_HOST,
        api_port=app_settings.API_PORT,
        storage_backend=storage_service.get_storage_backend(),
        upload_dir=app_settings.UPLOAD_DIR,
        cloud_enabled=app_settings.ENABLE_CLOUD_STORAGE,
    )

    yield

    logger.info("Shutting down media storage API")
    await storage_service.cleanup()


def create_application(
    app_settings: Optional[Settings] = None,
    storage_service: Optional[StorageService] = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    app_settings = app_settings or default_settings

    application = FastAPI(
        title="Media Storage API",
        description="Upload, serve and manage media on local or S3-compatible storage",
        version=app_settings.VERSION,
        docs_url="/docs" if app_settings.DEBUG else None,
        redoc_url="/redoc" if app_settings.DEBUG else None,
        openapi_url="/openapi.json" if app_settings.DEBUG else None,
        lifespan=lifespan,
    )

    application.state.settings = app_settings
    application.state.storage_service = storage_service or StorageService(app_settings)

    _configure_middleware(application, app_settings)
    _configure_exception_handlers(application)
    _configure_routes(application, app_settings)

    if app_settings.ENABLE_METRICS:
        application.mount("/metrics", make_asgi_app())

    return application


def _configure_middleware(application: FastAPI, app_settings: Settings) -> None:
    application.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        max_age=600,  # Cache preflight requests
    )


def _configure_exception_handlers(application: FastAPI) -> None:
    """Configure centralized exception handling."""
    application.add_exception_handler(StorageError, storage_exception_handler)
    application.add_exception_handler(RequestValidationError, validation_exception_handler)
    application.add_exception_handler(HTTPException, http_exception_handler)
    application.add_exception_handler(Exception, general_exception_handler)


def _configure_routes(application: FastAPI, app_settings: Settings) -> None:
    application.include_router(health.router, prefix="/api/v1", tags=["health"])
    application.include_router(media.router, prefix="/api/v1", tags=["media"])
    application.include_router(admin.router, prefix="/api/v1/admin", tags=["administration"])

    # Locally stored uploads resolve here
    application.mount(
        app_settings.UPLOAD_URL_PREFIX,
        StaticFiles(directory=app_settings.UPLOAD_DIR, check_dir=False),
        name="uploads",
    )

    @application.get("/", tags=["root"], summary="API Information")
    async def root() -> Dict[str, Any]:
        return {
            "name": "Media Storage API",
            "version": app_settings.VERSION,
            "status": "operational",
            "storage_backend": application.state.storage_service.get_storage_backend(),
            "endpoints": {
                "health": "/api/v1/health",
                "upload": "/api/v1/media/upload",
                "uploads": app_settings.UPLOAD_URL_PREFIX,
            },
        }


def main() -> None:
    """Main entry point for production server."""
    import uvicorn

    setup_logging()

    uvicorn.run(
        "api.main:app",
        host=default_settings.API_HOST,
        port=default_settings.API_PORT,
        workers=1 if default_settings.DEBUG else default_settings.API_WORKERS,
        reload=default_settings.API_RELOAD,
        log_config=None,  # Use structured logging
        server_header=False,
    )


setup_logging()
app = create_application()


if __name__ == "__main__":
    main()
