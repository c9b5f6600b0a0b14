"""
Content-type classification for uploaded files.

Resolves the effective MIME type of an upload in a fixed order of precedence:
- extension: the filename extension is found in EXTENSION_MIME_MAP
- sniffed-bytes: byte-signature sniffing of the first 512 bytes
- overrides: CSV and OOXML spreadsheet disambiguation on top of sniffing
- declared-header: the client's Content-Type, only when sniffing stayed generic

The classifier does not know about the allow-list; an image is classified as
an image and it is up to the upload policy to reject it.
"""

import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import BinaryIO, Dict, Optional, Tuple

from gcsupload.upload.exceptions import ClassificationError
from gcsupload.upload.sniffer import SNIFF_LENGTH, sniff_content_type
from gcsupload.upload.streams import PrefixedStream, is_seekable, read_sample

logger = logging.getLogger(__name__)

CSV_MIME_TYPE = "text/csv"
XLSX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
ZIP_MIME_TYPE = "application/zip"
ZIP_LOCAL_FILE_HEADER = b"PK\x03\x04"

# Types too vague to override a client-declared Content-Type
GENERIC_MIME_TYPES = frozenset({"text/plain", "application/octet-stream"})


class ContentTypeSource(str, Enum):
    """Where the resolved MIME type came from."""

    EXTENSION = "extension"
    SNIFFED_BYTES = "sniffed-bytes"
    DECLARED_HEADER = "declared-header"


@dataclass(frozen=True)
class ClassificationResult:
    """Resolved MIME type of an upload."""

    mime_type: str
    source: ContentTypeSource


# Static extension table; deliberately independent of the host's mime.types
EXTENSION_MIME_MAP: Dict[str, str] = {
    # Tabular formats
    ".csv": CSV_MIME_TYPE,
    ".tsv": "text/tab-separated-values",
    ".xls": "application/vnd.ms-excel",
    ".xlsx": XLSX_MIME_TYPE,
    ".xlsm": "application/vnd.ms-excel.sheet.macroenabled.12",
    ".ods": "application/vnd.oasis.opendocument.spreadsheet",
    # Structured text
    ".json": "application/json",
    ".xml": "text/xml",
    ".txt": "text/plain",
    ".md": "text/markdown",
    ".htm": "text/html",
    ".html": "text/html",
    ".css": "text/css",
    ".js": "text/javascript",
    # Documents
    ".pdf": "application/pdf",
    ".doc": "application/msword",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".pptx": "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    ".rtf": "application/rtf",
    # Images
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".svg": "image/svg+xml",
    ".bmp": "image/bmp",
    # Audio and video
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
    ".mp4": "video/mp4",
    # Archives and binaries
    ".zip": ZIP_MIME_TYPE,
    ".gz": "application/gzip",
    ".tar": "application/x-tar",
    ".wasm": "application/wasm",
}


def normalize_mime_type(mime_type: str) -> str:
    """Lowercase a MIME type and drop its parameters ("Text/CSV; charset=x" -> "text/csv")."""
    return mime_type.lower().split(";")[0].strip()


def mime_type_from_extension(filename: str) -> Optional[str]:
    """Look up the MIME type for the filename's extension, if it is known."""
    _, extension = os.path.splitext(filename)
    if not extension:
        return None
    return EXTENSION_MIME_MAP.get(extension.lower())


def _apply_overrides(filename: str, sample: bytes, sniffed: str) -> str:
    lowered = filename.lower()

    # CSV is indistinguishable from plain text by signature
    if ".csv" in lowered and (b"," in sample or b";" in sample):
        return CSV_MIME_TYPE

    # OOXML spreadsheets are zip containers
    if sniffed == ZIP_MIME_TYPE and ".xlsx" in lowered and sample.startswith(ZIP_LOCAL_FILE_HEADER):
        return XLSX_MIME_TYPE

    return sniffed


def classify_content(
    filename: str,
    stream: Optional[BinaryIO],
    declared_type: Optional[str] = None,
) -> Tuple[ClassificationResult, BinaryIO]:
    """
    Resolve the MIME type of an upload.

    Reads at most 512 bytes from the stream. Seekable streams are rewound
    afterwards; for anything else the returned stream replays the sampled
    bytes before the remainder, so no data is lost for the writer.

    Args:
        filename: Sanitized filename of the upload
        stream: Upload body positioned at its first byte
        declared_type: Content-Type declared by the client, if any

    Returns:
        Tuple of (classification result, stream to read the full body from)

    Raises:
        ClassificationError: If the stream is missing, the filename is empty,
            the sample cannot be read or the upload is empty

    Examples:
        >>> result, _ = classify_content("report.csv", io.BytesIO(b"a,b"))
        >>> result.mime_type
        'text/csv'
    """
    if stream is None:
        raise ClassificationError("Upload stream is missing")
    if not filename:
        raise ClassificationError("Upload filename is empty")

    seekable = is_seekable(stream)
    try:
        start = stream.tell() if seekable else 0
        sample = read_sample(stream, SNIFF_LENGTH)
        if seekable:
            stream.seek(start)
    except (OSError, ValueError) as e:
        logger.warning("Failed to read upload sample", extra={"error": str(e)})
        raise ClassificationError("Failed to read upload") from e

    if not sample:
        raise ClassificationError("Upload is empty")

    body = stream if seekable else PrefixedStream(sample, stream)

    by_extension = mime_type_from_extension(filename)
    if by_extension:
        return ClassificationResult(by_extension, ContentTypeSource.EXTENSION), body

    sniffed = normalize_mime_type(sniff_content_type(sample))
    mime_type = _apply_overrides(filename, sample, sniffed)
    source = ContentTypeSource.SNIFFED_BYTES

    if mime_type in GENERIC_MIME_TYPES and declared_type:
        declared = normalize_mime_type(declared_type)
        if declared:
            logger.debug(
                "Falling back to declared content type",
                extra={"sniffed_type": mime_type, "declared_type": declared},
            )
            mime_type = declared
            source = ContentTypeSource.DECLARED_HEADER

    return ClassificationResult(mime_type, source), body
