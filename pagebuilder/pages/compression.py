"""Content compression for stored page revisions.

Page content is stored as a tagged ``{"compression", "content"}`` blob.
Large payloads are serialized to JSON, Zstandard-compressed and base64
encoded; small payloads stay inline with ``compression`` set to ``None`` so
they remain readable in the store.

Examples
--------
>>> blob = compress_content({"type": "document", "elements": []})
>>> extract_content(blob)
{'type': 'document', 'elements': []}
"""

from __future__ import annotations

import base64
import binascii
import json
import typing as typ
from compression import zstd

from .errors import CodecError

ZSTD_COMPRESSION = "zstd"
_MINIMUM_COMPRESS_BYTES = 1024


def compress_content(
    content: object | None = None,
    *,
    minimum_bytes: int = _MINIMUM_COMPRESS_BYTES,
) -> dict[str, object]:
    """Wrap page content into a tagged storage blob.

    Parameters
    ----------
    content : object | None, optional
        JSON-serializable content. ``None`` produces the empty placeholder
        used for freshly created pages.
    minimum_bytes : int, default=_MINIMUM_COMPRESS_BYTES
        Serialized size at or above which compression is attempted.

    Returns
    -------
    dict[str, object]
        ``{"compression": "zstd" | None, "content": ...}``.

    Raises
    ------
    ValueError
        If ``minimum_bytes`` is negative.
    CodecError
        If ``content`` is not JSON serializable.
    """
    if minimum_bytes < 0:
        msg = "minimum_bytes must be non-negative."
        raise ValueError(msg)

    try:
        serialized = json.dumps(content, separators=(",", ":")).encode("utf-8")
    except (TypeError, ValueError) as exc:
        msg = f"Page content is not JSON serializable: {exc}"
        raise CodecError(msg) from exc

    if len(serialized) < minimum_bytes:
        return {"compression": None, "content": content}

    compressed = zstd.compress(serialized)
    if len(compressed) >= len(serialized):
        return {"compression": None, "content": content}
    return {
        "compression": ZSTD_COMPRESSION,
        "content": base64.b64encode(compressed).decode("ascii"),
    }


def _is_tagged_blob(value: object) -> typ.TypeGuard[dict[str, object]]:
    return (
        isinstance(value, dict)
        and set(value) == {"compression", "content"}
    )


def extract_content(blob: object | None) -> object | None:
    """Return the content held by a storage blob.

    Values that are not tagged blobs are returned unchanged, so extracting
    already-extracted content is a no-op.

    Raises
    ------
    CodecError
        If the blob names an unknown compression or its payload is corrupt.
    """
    if not _is_tagged_blob(blob):
        return blob

    compression = blob["compression"]
    payload = blob["content"]
    if compression is None:
        return payload
    if compression != ZSTD_COMPRESSION:
        msg = f"Unsupported page content compression {compression!r}."
        raise CodecError(msg)
    if not isinstance(payload, str):
        msg = "Compressed page content must be a base64 string."
        raise CodecError(msg)

    try:
        decompressed = zstd.decompress(base64.b64decode(payload, validate=True))
        return json.loads(decompressed.decode("utf-8"))
    except (binascii.Error, zstd.ZstdError, UnicodeDecodeError, ValueError) as exc:
        msg = (
            "Failed to decompress page content: "
            f"{exc.__class__.__name__}: {exc}"
        )
        raise CodecError(msg) from exc


__all__ = ("ZSTD_COMPRESSION", "compress_content", "extract_content")
