"""Request-scoped value objects of the upload pipeline."""

from dataclasses import dataclass
from datetime import datetime
from typing import BinaryIO, Optional


@dataclass
class UploadRequest:
    """One incoming upload; the stream is read once, front to back."""

    filename: str
    stream: Optional[BinaryIO]
    content_type: Optional[str] = None
    declared_size: Optional[int] = None


@dataclass(frozen=True)
class StoredObjectDescriptor:
    """Where a successfully written upload landed."""

    key: str
    bucket: str
    size_bytes: int
    uri: str
    uploaded_at: datetime
