"""HTTP Basic authentication."""

import logging
import secrets
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from gcsupload.core.config import BasicCredentials

logger = logging.getLogger(__name__)

basic_auth = HTTPBasic(auto_error=False)


def verify_credentials(supplied: Optional[HTTPBasicCredentials], expected: BasicCredentials) -> bool:
    """Compare supplied credentials with the configured ones in constant time.

    Always fails when no credentials are configured.
    """
    if supplied is None or not expected.configured:
        return False
    username_ok = secrets.compare_digest(supplied.username.encode("utf-8"), expected.username.encode("utf-8"))
    password_ok = secrets.compare_digest(supplied.password.encode("utf-8"), expected.password.encode("utf-8"))
    return username_ok and password_ok


async def require_basic_auth(
    request: Request,
    credentials: Optional[HTTPBasicCredentials] = Depends(basic_auth),
) -> str:
    """FastAPI dependency returning the authenticated username.

    Raises:
        HTTPException: 401 if credentials are missing or wrong
    """
    expected: BasicCredentials = request.app.state.credentials
    if not verify_credentials(credentials, expected):
        logger.warning(
            "Authentication failed",
            extra={"username": credentials.username if credentials else None},
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Basic"},
        )
    return credentials.username
