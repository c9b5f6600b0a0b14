"""Storage backend selection."""

import logging

from gcsupload.core.config import Settings
from gcsupload.storage.base import StorageBackend
from gcsupload.storage.gcs import GCSStorageBackend
from gcsupload.storage.local import LocalStorageBackend

logger = logging.getLogger(__name__)


def get_storage_backend(settings: Settings) -> StorageBackend:
    """Create the storage backend selected by STORAGE_BACKEND.

    Raises:
        ValueError: If the backend is unknown or GCS is selected without a bucket
    """
    if settings.STORAGE_BACKEND == "gcs":
        if not settings.GCS_BUCKET_NAME:
            raise ValueError("GCS_BUCKET_NAME not configured")
        return GCSStorageBackend(project_id=settings.GCP_PROJECT_ID or None)
    if settings.STORAGE_BACKEND == "local":
        return LocalStorageBackend(base_path=settings.LOCAL_STORAGE_PATH)
    raise ValueError(f"Unknown storage backend: {settings.STORAGE_BACKEND}")
