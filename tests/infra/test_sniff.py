"""Tests for content-type sniffing."""

import pytest

from bucketstream.infra.storage.sniff import SNIFF_LEN, detect_content_type


@pytest.mark.parametrize(
    ("data", "expected"),
    [
        (b"%PDF-1.4\n%\xe2\xe3\xcf\xd3\n", "application/pdf"),
        (b'{"a":1}', "text/plain; charset=utf-8"),
        (b"", "text/plain; charset=utf-8"),
        (b"  <!DOCTYPE html><html></html>", "text/html; charset=utf-8"),
        (b"<html>", "text/html; charset=utf-8"),
        (b"<p>hi</p>", "text/html; charset=utf-8"),
        (b"\n<?xml version='1.0'?><a/>", "text/xml; charset=utf-8"),
        (b"%!PS-Adobe-3.0", "application/postscript"),
        (b"\xef\xbb\xbfhello", "text/plain; charset=utf-8"),
        (b"\xfe\xff\x00h", "text/plain; charset=utf-16be"),
        (b"\xff\xfeh\x00", "text/plain; charset=utf-16le"),
        (b"GIF89a\x01\x00", "image/gif"),
        (b"\x89PNG\r\n\x1a\n\x00\x00", "image/png"),
        (b"\xff\xd8\xff\xe0\x00\x10JFIF", "image/jpeg"),
        (b"RIFF\x24\x00\x00\x00WEBPVP8 ", "image/webp"),
        (b"RIFF\x24\x00\x00\x00WAVEfmt ", "audio/wave"),
        (b"ID3\x03\x00", "audio/mpeg"),
        (b"OggS\x00\x02", "application/ogg"),
        (b"\x00\x00\x00\x18ftypmp42\x00\x00\x00\x00mp42isom", "video/mp4"),
        (b"\x1f\x8b\x08\x00\x00", "application/x-gzip"),
        (b"PK\x03\x04\x14\x00", "application/zip"),
        (b"\x00asm\x01\x00\x00\x00", "application/wasm"),
        (b"wOF2\x00\x01", "font/woff2"),
        (b"\x00\x01\x02\x03binary", "application/octet-stream"),
    ],
)
def test_detect_content_type(data, expected):
    assert detect_content_type(data) == expected


def test_html_tag_needs_terminator():
    # "<bx" is not a <b> tag.
    assert detect_content_type(b"<bx") == "text/plain; charset=utf-8"


def test_html_tags_are_case_insensitive():
    assert detect_content_type(b"<HtMl>") == "text/html; charset=utf-8"


def test_only_leading_window_is_examined():
    data = b"a" * SNIFF_LEN + b"\x00\x01"
    assert detect_content_type(data) == "text/plain; charset=utf-8"
