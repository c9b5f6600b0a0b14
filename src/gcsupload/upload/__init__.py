"""
Upload pipeline

Validates a single uploaded file (filename sanitizing, content-type
classification, allow-list and size policy) and writes it to a storage
bucket with bounded retry.
"""

from gcsupload.upload.classifier import ClassificationResult, ContentTypeSource, classify_content
from gcsupload.upload.exceptions import ClientError, ServerError, UploadError
from gcsupload.upload.models import StoredObjectDescriptor, UploadRequest
from gcsupload.upload.orchestrator import UploadService
from gcsupload.upload.policy import UploadPolicy, UploadPolicyConfig, UploadPolicyDecision
from gcsupload.upload.sanitizer import sanitize_filename
from gcsupload.upload.writer import RetryingWriter

__all__ = [
    "ClassificationResult",
    "ContentTypeSource",
    "classify_content",
    "ClientError",
    "ServerError",
    "UploadError",
    "StoredObjectDescriptor",
    "UploadRequest",
    "UploadService",
    "UploadPolicy",
    "UploadPolicyConfig",
    "UploadPolicyDecision",
    "sanitize_filename",
    "RetryingWriter",
]
