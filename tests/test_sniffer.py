"""Tests for byte-signature sniffing."""

import pytest

from gcsupload.upload.sniffer import OCTET_STREAM, SNIFF_LENGTH, TEXT_PLAIN, sniff_content_type


@pytest.mark.parametrize(
    "data,expected",
    [
        (b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR", "image/png"),
        (b"\xff\xd8\xff\xe0\x00\x10JFIF", "image/jpeg"),
        (b"GIF89a\x01\x00\x01\x00", "image/gif"),
        (b"%PDF-1.7\n", "application/pdf"),
        (b"PK\x03\x04\x14\x00\x06\x00", "application/zip"),
        (b"\x1f\x8b\x08\x00\x00\x00", "application/x-gzip"),
        (b"RIFF\x24\x00\x00\x00WEBPVP8 ", "image/webp"),
        (b"RIFF\x24\x00\x00\x00WAVEfmt ", "audio/wave"),
        (b"ID3\x03\x00\x00\x00", "audio/mpeg"),
        (b"\xef\xbb\xbfname,age", "text/plain; charset=utf-8"),
        (b"\xff\xfen\x00a\x00", "text/plain; charset=utf-16le"),
    ],
)
def test_signatures(data, expected):
    """Test magic number detection."""
    assert sniff_content_type(data) == expected


def test_html_after_whitespace():
    """Test HTML detection skips leading whitespace and ignores case."""
    assert sniff_content_type(b"  \n<!doctype html><html>") == "text/html; charset=utf-8"
    assert sniff_content_type(b"<html><body>hi</body></html>") == "text/html; charset=utf-8"


def test_html_tag_must_be_terminated():
    """Test that '<Bogus' is not mistaken for the '<B' tag."""
    assert sniff_content_type(b"<Bogus tag") == TEXT_PLAIN


def test_xml():
    """Test XML declaration."""
    assert sniff_content_type(b'<?xml version="1.0"?><root/>') == "text/xml; charset=utf-8"


def test_mp4():
    """Test ISO base media detection."""
    data = b"\x00\x00\x00\x18ftypmp42\x00\x00\x00\x00mp42isom" + b"\x00" * 8
    assert sniff_content_type(data) == "video/mp4"


def test_plain_text():
    """Test text without binary bytes."""
    assert sniff_content_type(b"a,b,c\n1,2,3") == TEXT_PLAIN
    assert sniff_content_type(b'{"key": "value"}') == TEXT_PLAIN


def test_binary_fallback():
    """Test unknown binary content."""
    assert sniff_content_type(b"\x00\x01\x02\x03garbage") == OCTET_STREAM


def test_only_first_512_bytes_considered():
    """Test that bytes past the sniff window are ignored."""
    data = b"a" * SNIFF_LENGTH + b"\x00\x01\x02"
    assert sniff_content_type(data) == TEXT_PLAIN
