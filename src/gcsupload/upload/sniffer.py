"""
Byte-signature content sniffing.

Follows the browser content sniffing rules (WHATWG MIME Sniffing): only the
first 512 bytes are considered, signatures are matched in a fixed order and
anything unrecognized is reported as text or generic binary depending on
whether the sample contains binary control bytes.
"""

from typing import Callable, List, Optional, Tuple

SNIFF_LENGTH = 512

OCTET_STREAM = "application/octet-stream"
TEXT_PLAIN = "text/plain; charset=utf-8"

_WHITESPACE = b"\t\n\x0c\r "

# Tags that identify HTML once leading whitespace is skipped.
_HTML_TAGS = [
    b"<!DOCTYPE HTML",
    b"<HTML",
    b"<HEAD",
    b"<SCRIPT",
    b"<IFRAME",
    b"<H1",
    b"<DIV",
    b"<FONT",
    b"<TABLE",
    b"<A",
    b"<STYLE",
    b"<TITLE",
    b"<B",
    b"<BODY",
    b"<BR",
    b"<P",
    b"<!--",
]

# Exact prefix signatures, checked in order.
PREFIX_SIGNATURES: List[Tuple[bytes, str]] = [
    (b"%PDF-", "application/pdf"),
    (b"%!PS-Adobe-", "application/postscript"),
    (b"\xfe\xff", "text/plain; charset=utf-16be"),
    (b"\xff\xfe", "text/plain; charset=utf-16le"),
    (b"\xef\xbb\xbf", "text/plain; charset=utf-8"),
    (b"\x00\x00\x01\x00", "image/x-icon"),
    (b"\x00\x00\x02\x00", "image/x-icon"),
    (b"BM", "image/bmp"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"ID3", "audio/mpeg"),
    (b"OggS\x00", "application/ogg"),
    (b"MThd\x00\x00\x00\x06", "audio/midi"),
    (b"\x1a\x45\xdf\xa3", "video/webm"),
    (b"wOFF", "font/woff"),
    (b"wOF2", "font/woff2"),
    (b"OTTO", "font/otf"),
    (b"\x1f\x8b\x08", "application/x-gzip"),
    (b"PK\x03\x04", "application/zip"),
    (b"Rar!\x1a\x07\x00", "application/x-rar-compressed"),
    (b"Rar!\x1a\x07\x01\x00", "application/x-rar-compressed"),
    (b"\x00asm", "application/wasm"),
]

# Container signatures: (outer tag, sub-type tag at offset 8, MIME type).
CONTAINER_SIGNATURES: List[Tuple[bytes, bytes, str]] = [
    (b"RIFF", b"WEBPVP", "image/webp"),
    (b"RIFF", b"WAVE", "audio/wave"),
    (b"RIFF", b"AVI ", "video/avi"),
    (b"FORM", b"AIFF", "audio/aiff"),
]


def _skip_whitespace(data: bytes) -> bytes:
    return data.lstrip(_WHITESPACE)


def _match_html(data: bytes) -> Optional[str]:
    data = _skip_whitespace(data)
    for tag in _HTML_TAGS:
        if len(data) < len(tag) + 1:
            continue
        if data[: len(tag)].upper() != tag:
            continue
        # A tag must be terminated by a space or '>' to count
        if data[len(tag)] in b" >":
            return "text/html; charset=utf-8"
    return None


def _match_xml(data: bytes) -> Optional[str]:
    if _skip_whitespace(data).startswith(b"<?xml"):
        return "text/xml; charset=utf-8"
    return None


def _match_prefix(data: bytes) -> Optional[str]:
    for signature, mime_type in PREFIX_SIGNATURES:
        if data.startswith(signature):
            return mime_type
    return None


def _match_container(data: bytes) -> Optional[str]:
    for outer, inner, mime_type in CONTAINER_SIGNATURES:
        if data.startswith(outer) and data[8 : 8 + len(inner)] == inner:
            return mime_type
    return None


def _match_mp4(data: bytes) -> Optional[str]:
    # ISO base media file: a leading 'ftyp' box listing an mp4 brand
    if len(data) < 12:
        return None
    box_size = int.from_bytes(data[:4], "big")
    if len(data) < box_size or box_size % 4 != 0 or data[4:8] != b"ftyp":
        return None
    for offset in range(8, box_size, 4):
        if offset == 12:
            # Skip the minor version field
            continue
        if data[offset : offset + 3] == b"mp4":
            return "video/mp4"
    return None


def _is_binary_byte(byte: int) -> bool:
    return byte <= 0x08 or byte == 0x0B or 0x0E <= byte <= 0x1A or 0x1C <= byte <= 0x1F


def _match_text(data: bytes) -> Optional[str]:
    if any(_is_binary_byte(b) for b in data):
        return None
    return TEXT_PLAIN


MATCHERS: List[Callable[[bytes], Optional[str]]] = [
    _match_html,
    _match_xml,
    _match_prefix,
    _match_container,
    _match_mp4,
    _match_text,
]


def sniff_content_type(data: bytes) -> str:
    """
    Detect the MIME type of a byte sample from its leading bytes.

    Args:
        data: Leading bytes of the content; only the first 512 are considered

    Returns:
        MIME type, possibly with parameters (e.g. "text/plain; charset=utf-8").
        Falls back to "application/octet-stream".

    Examples:
        >>> sniff_content_type(b"\\x89PNG\\r\\n\\x1a\\n....")
        'image/png'
        >>> sniff_content_type(b"a,b,c")
        'text/plain; charset=utf-8'
    """
    sample = data[:SNIFF_LENGTH]
    for matcher in MATCHERS:
        mime_type = matcher(sample)
        if mime_type:
            return mime_type
    return OCTET_STREAM
