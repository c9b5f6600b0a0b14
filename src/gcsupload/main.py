"""Main application entrypoint for the upload service."""

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from gcsupload.api.middleware import HTTPErrorLoggingMiddleware
from gcsupload.api.v1 import routes_health
from gcsupload.api.v1.routes_upload import router as upload_router
from gcsupload.core.config import Settings, settings as default_settings
from gcsupload.core.logging import setup_logging
from gcsupload.models.upload import ErrorResponse
from gcsupload.storage.base import StorageBackend
from gcsupload.storage.factory import get_storage_backend
from gcsupload.upload.exceptions import UploadError
from gcsupload.upload.orchestrator import UploadService
from gcsupload.upload.policy import UploadPolicy

logger = logging.getLogger(__name__)


def _error_response(status_code: int, message: str, details=None, headers=None) -> JSONResponse:
    body = ErrorResponse(code=status_code, message=message, details=details or [])
    return JSONResponse(status_code=status_code, content=body.model_dump(), headers=headers)


async def upload_error_handler(request: Request, exc: UploadError) -> JSONResponse:
    """Render pipeline errors; client faults map to 4xx, server faults to 5xx."""
    return _error_response(exc.status_code, exc.message, exc.details)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg', '')}"
        for error in exc.errors()
    ]
    return _error_response(400, "Invalid request", details)


def create_app(
    app_settings: Optional[Settings] = None,
    backend: Optional[StorageBackend] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        app_settings: Settings to use, defaults to the environment-loaded singleton
        backend: Storage backend, defaults to the one selected by STORAGE_BACKEND

    Returns:
        FastAPI: Configured FastAPI application instance

    Raises:
        ValueError: If the storage backend cannot be configured
    """
    app_settings = app_settings or default_settings

    setup_logging()

    app = FastAPI(
        title=app_settings.SERVICE_NAME,
        version=app_settings.SERVICE_VERSION,
    )

    # Immutable configuration, built once and shared by all requests
    app.state.settings = app_settings
    app.state.credentials = app_settings.credentials()
    app.state.upload_service = UploadService(
        backend=backend or get_storage_backend(app_settings),
        bucket=app_settings.bucket_name,
        policy=UploadPolicy(app_settings.upload_policy()),
        timeout=app_settings.UPLOAD_TIMEOUT_SECONDS,
    )

    if not app.state.credentials.configured:
        logger.warning("Basic auth credentials not configured; all uploads will be rejected")

    app.add_middleware(HTTPErrorLoggingMiddleware)
    app.add_exception_handler(UploadError, upload_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    app.include_router(routes_health.router, tags=["health"])
    app.include_router(upload_router)

    return app


# Export app instance for ASGI servers
app = create_app()
