"""
Upload orchestration.

Runs one upload through sanitize -> classify -> validate -> write and builds
the StoredObjectDescriptor. Failures surface as ClientError (the upload is
outside policy) or ServerError (unreadable upload, exhausted retries, missed
deadline); nothing is written to the backend unless validation passed.
"""

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import BinaryIO, Optional

from gcsupload.core.logging import gcs_uri_context
from gcsupload.storage.base import StorageBackend
from gcsupload.upload.classifier import classify_content
from gcsupload.upload.exceptions import (
    ClassificationError,
    ClientError,
    ServerError,
    UploadTimeoutError,
)
from gcsupload.upload.models import StoredObjectDescriptor, UploadRequest
from gcsupload.upload.policy import UploadPolicy
from gcsupload.upload.sanitizer import sanitize_filename
from gcsupload.upload.streams import make_replayable
from gcsupload.upload.writer import RetryingWriter

logger = logging.getLogger(__name__)


class UploadService:
    """Validate uploads and persist them to a bucket.

    The storage backend is the only long-lived resource; it is shared by all
    requests and must be safe for concurrent use. Everything else is created
    per call.
    """

    def __init__(
        self,
        backend: StorageBackend,
        bucket: str,
        policy: UploadPolicy,
        writer: Optional[RetryingWriter] = None,
        timeout: Optional[float] = None,
    ):
        """Initialize the service.

        Args:
            backend: Storage backend objects are written to
            bucket: Bucket every upload lands in
            policy: Allow-list and size ceiling
            writer: Retrying writer, defaults to the standard backoff
            timeout: Default deadline per upload in seconds, None for no deadline
        """
        self.backend = backend
        self.bucket = bucket
        self.policy = policy
        self.writer = writer or RetryingWriter()
        self.timeout = timeout

    async def upload_file(
        self,
        filename: str,
        content_type_hint: Optional[str],
        stream: Optional[BinaryIO],
        declared_size: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> StoredObjectDescriptor:
        """Validate an upload and write it to the bucket.

        Args:
            filename: Filename supplied by the client (untrusted)
            content_type_hint: Content-Type declared by the client, if any
            stream: Upload body, read once from its current position
            declared_size: Size declared by the client, if known
            timeout: Deadline in seconds, overriding the service default

        Returns:
            StoredObjectDescriptor of the written object

        Raises:
            ClientError: If the upload violates the upload policy
            ServerError: If the upload cannot be read, written or finished in time
        """
        request = UploadRequest(
            filename=filename,
            stream=stream,
            content_type=content_type_hint,
            declared_size=declared_size,
        )
        deadline = timeout if timeout is not None else self.timeout
        if deadline is None:
            return await self._upload(request)

        try:
            return await asyncio.wait_for(self._upload(request), timeout=deadline)
        except asyncio.TimeoutError as e:
            logger.error(
                "Upload deadline exceeded",
                extra={"file_name": sanitize_filename(filename), "timeout_seconds": deadline},
            )
            raise UploadTimeoutError(f"Upload did not complete within {deadline} seconds") from e

    async def _upload(self, request: UploadRequest) -> StoredObjectDescriptor:
        started = time.monotonic()

        key = sanitize_filename(request.filename)

        try:
            classification, body = classify_content(key, request.stream, request.content_type)
        except ClassificationError as e:
            logger.error(
                "Content type detection failed",
                extra={"file_name": key, "error": e.message},
            )
            raise

        logger.info(
            "File content type detected",
            extra={
                "file_name": key,
                "content_type": classification.mime_type,
                "source": classification.source.value,
            },
        )

        max_bytes = self.policy.config.max_bytes

        # Declared sizes are checked first to avoid reading oversized bodies
        if request.declared_size is not None:
            self.policy.enforce(classification.mime_type, request.declared_size)

        try:
            source = make_replayable(body, max_bytes)
        except (OSError, ValueError) as e:
            logger.error("Failed to read upload", extra={"file_name": key, "error": str(e)})
            raise ClassificationError("Failed to read upload") from e

        try:
            self.policy.enforce(classification.mime_type, source.size)

            uri = self.backend.object_uri(self.bucket, key)
            gcs_uri_context.set(uri)

            written = await self.writer.write(
                lambda: self.backend.open_writer(self.bucket, key, classification.mime_type),
                source,
                max_bytes=max_bytes,
            )
        except ClientError:
            raise
        except ServerError as e:
            logger.error(
                "File upload failed",
                extra={"file_name": key, "bucket": self.bucket, "error": e.message},
                exc_info=True,
            )
            raise
        finally:
            source.close()

        descriptor = StoredObjectDescriptor(
            key=key,
            bucket=self.bucket,
            size_bytes=written,
            uri=uri,
            uploaded_at=datetime.now(timezone.utc),
        )

        logger.info(
            "File uploaded successfully",
            extra={
                "file_name": descriptor.key,
                "size": descriptor.size_bytes,
                "gcs_path": descriptor.uri,
                "duration_ms": int((time.monotonic() - started) * 1000),
            },
        )
        return descriptor
