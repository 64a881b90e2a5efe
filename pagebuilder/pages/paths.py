"""URL path canonicalization for page paths and the published-path index."""

from __future__ import annotations

import re

_SEPARATOR_RUN = re.compile(r"/{2,}")


def normalize_path(path: str) -> str:
    """Return the canonical stored form of ``path``.

    Whitespace is trimmed, repeated separators collapse to one, a single
    leading slash is ensured and any trailing slash is dropped (except for
    the root path).

    Examples
    --------
    >>> normalize_path("  blog//posts/ ")
    '/blog/posts'
    >>> normalize_path("")
    '/'
    """
    collapsed = _SEPARATOR_RUN.sub("/", path.strip())
    trimmed = collapsed.strip("/")
    return f"/{trimmed}" if trimmed else "/"


def join_path(base: str, *segments: str) -> str:
    """Join ``segments`` under ``base`` and normalize the result."""
    return normalize_path("/".join([base, *segments]))


__all__ = ("join_path", "normalize_path")
