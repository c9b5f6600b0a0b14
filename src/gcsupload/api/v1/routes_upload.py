"""Upload API routes."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.exceptions import RequestValidationError
from starlette.datastructures import UploadFile

from gcsupload.core.security import require_basic_auth
from gcsupload.models.upload import ErrorResponse, UploadResponse
from gcsupload.upload.exceptions import UploadError
from gcsupload.upload.orchestrator import UploadService

router = APIRouter(tags=["upload"])
logger = logging.getLogger(__name__)

# The multipart body is read inside the handler, after authentication
UPLOAD_REQUEST_BODY = {
    "required": True,
    "content": {
        "multipart/form-data": {
            "schema": {
                "type": "object",
                "properties": {"file": {"type": "string", "format": "binary"}},
                "required": ["file"],
            }
        }
    },
}


def get_upload_service(request: Request) -> UploadService:
    """Return the upload service built at application startup."""
    return request.app.state.upload_service


@router.post(
    "/upload",
    response_model=UploadResponse,
    status_code=201,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
    openapi_extra={"requestBody": UPLOAD_REQUEST_BODY},
)
async def upload_file(
    request: Request,
    response: Response,
    service: UploadService = Depends(get_upload_service),
    username: str = Depends(require_basic_auth),
) -> UploadResponse:
    """Upload a single file to the configured bucket.

    Credentials are checked before the body is parsed, so unauthenticated
    requests are rejected without spooling the upload.
    """
    response.headers["Access-Control-Allow-Origin"] = "*"

    async with request.form() as form:
        file = form.get("file")
        if not isinstance(file, UploadFile):
            raise RequestValidationError(
                [{"type": "missing", "loc": ("body", "file"), "msg": "Field required", "input": None}]
            )

        try:
            descriptor = await service.upload_file(
                filename=file.filename or "",
                content_type_hint=file.content_type,
                stream=file.file,
                declared_size=file.size,
            )
        except UploadError:
            raise
        except Exception as e:
            logger.error(f"Unexpected error during upload: {e}", exc_info=True)
            raise HTTPException(status_code=500, detail="Internal server error")

    logger.debug("Upload stored", extra={"username": username, "gcs_path": descriptor.uri})
    return UploadResponse.from_descriptor(descriptor)
