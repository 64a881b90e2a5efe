"""Unit tests for page content compression."""

from __future__ import annotations

import base64
from compression import zstd

import pytest

from pagebuilder.pages.compression import (
    ZSTD_COMPRESSION,
    compress_content,
    extract_content,
)
from pagebuilder.pages.errors import CodecError


def _large_document() -> dict[str, object]:
    return {
        "type": "document",
        "elements": [{"type": "paragraph", "text": "lorem ipsum " * 20}] * 40,
    }


def test_compress_content_without_input_yields_empty_placeholder() -> None:
    """Freshly created pages store an inline ``None`` payload."""
    blob = compress_content()
    assert blob == {"compression": None, "content": None}
    assert extract_content(blob) is None, "Expected the placeholder to decode to None."


def test_small_content_stays_inline() -> None:
    """Payloads under the threshold are stored uncompressed."""
    content = {"type": "document", "elements": []}
    blob = compress_content(content)
    assert blob["compression"] is None, "Expected small content to stay inline."
    assert extract_content(blob) == content


def test_large_content_is_zstd_compressed() -> None:
    """Large payloads are compressed and restored exactly."""
    content = _large_document()
    blob = compress_content(content)
    assert blob["compression"] == ZSTD_COMPRESSION, "Expected zstd compression."
    assert isinstance(blob["content"], str), "Expected a base64 string payload."
    assert extract_content(blob) == content, "Expected the original content back."


def test_extract_content_passes_through_plain_values() -> None:
    """Already-extracted content is returned unchanged."""
    content = {"type": "document"}
    assert extract_content(content) is content
    assert extract_content(None) is None


def test_compress_content_rejects_negative_minimum_bytes() -> None:
    """Compression rejects negative thresholds."""
    with pytest.raises(ValueError, match="minimum_bytes"):
        compress_content({"a": 1}, minimum_bytes=-1)


def test_compress_content_rejects_unserializable_content() -> None:
    """Content that is not JSON serializable raises a codec error."""
    with pytest.raises(CodecError, match="not JSON serializable"):
        compress_content({"value": object()})


def test_extract_content_rejects_unknown_compression() -> None:
    """Blobs naming an unsupported algorithm raise a codec error."""
    with pytest.raises(CodecError, match="Unsupported"):
        extract_content({"compression": "gzip", "content": "H4sI"})


def test_extract_content_rejects_corrupt_payload() -> None:
    """Corrupt base64 or zstd payloads raise a codec error."""
    with pytest.raises(CodecError, match="decompress"):
        extract_content({"compression": ZSTD_COMPRESSION, "content": "%%%"})

    not_json = base64.b64encode(zstd.compress(b"\xff\xfe")).decode("ascii")
    with pytest.raises(CodecError, match="decompress"):
        extract_content({"compression": ZSTD_COMPRESSION, "content": not_json})


def test_codec_error_code() -> None:
    """Codec errors carry their stable code."""
    with pytest.raises(CodecError) as exc_info:
        extract_content({"compression": ZSTD_COMPRESSION, "content": 12})
    assert exc_info.value.code == "CONTENT_CODEC_ERROR"
