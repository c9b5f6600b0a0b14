"""Custom exceptions for the upload pipeline.

Every failure is either a ClientError (the request is at fault, 4xx) or a
ServerError (the service is at fault, 5xx). The transport layer only needs
``status_code``, ``message`` and ``details`` to build the error response.
"""

from typing import Sequence


class UploadError(Exception):
    """Base exception for the upload pipeline."""

    status_code = 500

    def __init__(self, message: str, details: Sequence[str] | None = None):
        super().__init__(message)
        self.message = message
        self.details = list(details or [])


class ClientError(UploadError):
    """Exception raised when the request itself is at fault."""

    status_code = 400


class ServerError(UploadError):
    """Exception raised when the service failed to handle a valid request."""

    status_code = 500


class PolicyRejectionError(ClientError):
    """Exception raised when an upload falls outside the upload policy."""

    def __init__(self, message: str, reasons: Sequence[str], details: Sequence[str] | None = None):
        super().__init__(message, details)
        self.reasons = tuple(reasons)


class SizeLimitExceededError(PolicyRejectionError):
    """Exception raised when streamed bytes exceed the size limit mid-write."""

    def __init__(self, limit_bytes: int):
        super().__init__(
            f"File size exceeds maximum allowed size of {limit_bytes} bytes",
            reasons=("size-exceeded",),
            details=[f"max_bytes={limit_bytes}"],
        )
        self.limit_bytes = limit_bytes


class ClassificationError(ServerError):
    """Exception raised when the content type of a stream cannot be determined."""
    pass


class BackendWriteError(ServerError):
    """Exception raised when every write attempt to the backend failed."""

    def __init__(self, message: str, attempts: int):
        super().__init__(message)
        self.attempts = attempts


class UploadTimeoutError(ServerError):
    """Exception raised when an upload does not finish before its deadline."""

    status_code = 504
