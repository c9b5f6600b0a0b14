"""HTTP client for the upload service."""

import logging
import mimetypes
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import httpx

logger = logging.getLogger(__name__)


class UploadClientError(Exception):
    """Exception raised when the service answers with an error response."""

    def __init__(self, status_code: int, message: str, details: Optional[List[str]] = None):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message
        self.details = details or []


async def upload_file(
    base_url: str,
    path: Union[str, Path],
    username: str,
    password: str,
    timeout: float = 30.0,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Dict[str, Any]:
    """
    Upload a local file to the service.

    Args:
        base_url: Base URL of the upload service (e.g. "http://localhost:8080")
        path: Path of the file to upload
        username: Basic auth username
        password: Basic auth password
        timeout: Request timeout in seconds
        transport: Optional httpx transport, used by tests

    Returns:
        Parsed success body (filename, fileSize, bucket, gcspath, uploadTime)

    Raises:
        UploadClientError: If the service returns a non-2xx response
        httpx.HTTPError: If the request cannot be sent
    """
    path = Path(path)
    content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"

    async with httpx.AsyncClient(
        base_url=base_url,
        auth=httpx.BasicAuth(username, password),
        timeout=timeout,
        transport=transport,
    ) as client:
        with path.open("rb") as f:
            logger.info(
                "Uploading file",
                extra={"path": str(path), "content_type": content_type, "base_url": base_url},
            )
            response = await client.post("/upload", files={"file": (path.name, f, content_type)})

    if response.is_success:
        return response.json()

    try:
        body = response.json()
    except ValueError:
        body = {}
    raise UploadClientError(
        status_code=response.status_code,
        message=body.get("message", response.reason_phrase),
        details=body.get("details") or [],
    )
