"""Exceptions raised by page builder services.

Every error carries a stable machine-readable ``code`` alongside its message
so transport adapters can report failures without parsing text.

Examples
--------
>>> from pagebuilder.pages.errors import NotFoundError
>>> raise NotFoundError('Page "abc#0001" not found.')
"""

from __future__ import annotations

import typing as typ

if typ.TYPE_CHECKING:
    import collections.abc as cabc


class PageBuilderError(Exception):
    """Base exception with structured metadata.

    Attributes
    ----------
    code : str
        Machine-readable error code; defaults to the class ``error_code``.
    data : dict[str, object]
        Extra structured context, for example invalid field names.
    """

    error_code: typ.ClassVar[str] = "PAGE_BUILDER_ERROR"

    code: str
    data: dict[str, object]

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        data: cabc.Mapping[str, object] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code if code is not None else type(self).error_code
        self.data = dict(data) if data is not None else {}


class NotFoundError(PageBuilderError):
    """Raised when a page, revision, category or settings target is missing."""

    error_code: typ.ClassVar[str] = "NOT_FOUND"


class NotAuthorizedError(PageBuilderError):
    """Raised when the caller lacks a permission or does not own the record."""

    error_code: typ.ClassVar[str] = "SECURITY_NOT_AUTHORIZED"

    def __init__(
        self,
        message: str = "Not authorized!",
        *,
        code: str | None = None,
        data: cabc.Mapping[str, object] | None = None,
    ) -> None:
        super().__init__(message, code=code, data=data)


class ValidationError(PageBuilderError):
    """Raised when a create or update payload is malformed."""

    error_code: typ.ClassVar[str] = "VALIDATION_FAILED_INVALID_FIELDS"

    @property
    def invalid_fields(self) -> dict[str, str]:
        """Return field names mapped to their validation messages."""
        fields = self.data.get("invalidFields", {})
        return typ.cast("dict[str, str]", fields)


class LockedError(PageBuilderError):
    """Raised when a locked revision is edited through ``update``."""

    error_code: typ.ClassVar[str] = "PAGE_LOCKED"


class ConflictError(PageBuilderError):
    """Raised when a transition is not allowed from the current state."""

    error_code: typ.ClassVar[str] = "CONFLICT"


class CodecError(PageBuilderError):
    """Raised when stored page content cannot be decoded."""

    error_code: typ.ClassVar[str] = "CONTENT_CODEC_ERROR"


class SearchIndexError(PageBuilderError):
    """Raised by search index adapters when the backing service fails."""

    error_code: typ.ClassVar[str] = "SEARCH_INDEX_ERROR"


__all__ = (
    "CodecError",
    "ConflictError",
    "LockedError",
    "NotAuthorizedError",
    "NotFoundError",
    "PageBuilderError",
    "SearchIndexError",
    "ValidationError",
)
