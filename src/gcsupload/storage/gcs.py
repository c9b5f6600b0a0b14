"""Google Cloud Storage backend."""

import logging
from typing import Optional

from google.cloud import storage

from gcsupload.storage.base import Sink, StorageBackend

logger = logging.getLogger(__name__)


class GCSSink(Sink):
    """Sink over a blob writer opened with ``blob.open("wb")``.

    The writer buffers up to one chunk and uploads through a resumable session,
    started once the first chunk fills or on ``close()``. For objects smaller
    than a chunk the whole payload is sent by ``close()``. The object only
    exists after ``close()`` finalizes the session, so dropping the writer
    leaves nothing behind. A ``close()`` already in progress cannot be
    interrupted.
    """

    def __init__(self, blob: storage.Blob):
        self._blob = blob
        self._writer = blob.open("wb", ignore_flush=True)

    def write(self, data: bytes) -> int:
        return self._writer.write(data)

    def close(self) -> None:
        self._writer.close()

    def abort(self) -> None:
        # Nothing is committed until close(); release the writer reference only
        logger.debug("Aborting GCS write", extra={"object_name": self._blob.name})
        self._writer = None


class GCSStorageBackend(StorageBackend):
    """Google Cloud Storage backend.

    The client is created lazily and shared by all requests; the storage
    client is safe for concurrent use.
    """

    def __init__(self, project_id: Optional[str] = None, client: Optional[storage.Client] = None):
        self._project_id = project_id
        self._client = client

    def _get_client(self) -> storage.Client:
        """Lazy-load and cache the GCS client."""
        if self._client is None:
            self._client = storage.Client(project=self._project_id)
        return self._client

    def open_writer(self, bucket: str, key: str, content_type: str) -> Sink:
        """Open a new blob writer for ``gs://{bucket}/{key}``."""
        if not bucket:
            raise ValueError("GCS bucket name not configured")
        blob = self._get_client().bucket(bucket).blob(key)
        blob.content_type = content_type
        return GCSSink(blob)

    def object_uri(self, bucket: str, key: str) -> str:
        return f"gs://{bucket}/{key}"

    def get_backend_name(self) -> str:
        return "gcs"
