"""Upload API models."""

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from gcsupload.upload.models import StoredObjectDescriptor


class UploadResponse(BaseModel):
    """Response model for a stored upload."""

    model_config = ConfigDict(populate_by_name=True)

    filename: str = Field(..., description="Sanitized filename used as the object key")
    file_size: int = Field(..., alias="fileSize", description="Bytes written")
    bucket: str = Field(..., description="Bucket the object was written to")
    gcspath: Optional[str] = Field(None, description="URI of the stored object")
    upload_time: datetime = Field(..., alias="uploadTime", description="Completion time (UTC)")

    @field_serializer("upload_time")
    def serialize_upload_time(self, value: datetime) -> str:
        """Render as RFC3339 in UTC with a trailing Z."""
        return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")

    @classmethod
    def from_descriptor(cls, descriptor: StoredObjectDescriptor) -> "UploadResponse":
        return cls(
            filename=descriptor.key,
            file_size=descriptor.size_bytes,
            bucket=descriptor.bucket,
            gcspath=descriptor.uri,
            upload_time=descriptor.uploaded_at,
        )


class ErrorResponse(BaseModel):
    """Error body shared by every non-2xx response."""

    code: int = Field(..., description="HTTP status code")
    message: str = Field(..., description="Human readable error message")
    details: List[str] = Field(default_factory=list, description="Additional error details")
