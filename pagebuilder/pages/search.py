"""Search index projection of page revisions.

Each pid owns at most two search documents: ``L#{pid}`` mirrors the latest
revision and ``P#{pid}`` mirrors the published one. Writes are gated by the
revision's list visibility; a hidden revision removes its document instead.
"""

from __future__ import annotations

import typing as typ

from .mappers import page_to_item
from .ports import IndexDocument, RemoveDocument

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .domain import JsonMapping, Page
    from .ports import SearchIndex, SearchOperation

SEARCH_DOCUMENT_TYPE = "page"
LATEST_KIND = "latest"
PUBLISHED_KIND = "published"

_COPIED_FIELDS = (
    "tenant",
    "id",
    "pid",
    "editor",
    "locale",
    "createdOn",
    "savedOn",
    "publishedOn",
    "createdBy",
    "ownedBy",
    "category",
    "version",
    "title",
    "path",
    "status",
    "locked",
)


def latest_document_id(pid: str) -> str:
    """Return the id of the latest-revision document of ``pid``."""
    return f"L#{pid}"


def published_document_id(pid: str) -> str:
    """Return the id of the published-revision document of ``pid``."""
    return f"P#{pid}"


def _general_settings(page: Page) -> JsonMapping:
    general = page.settings.get("general")
    return typ.cast("JsonMapping", general) if isinstance(general, dict) else {}


def page_document(page: Page) -> JsonMapping:
    """Return the search body shared by latest and published documents."""
    item = page_to_item(page)
    general = _general_settings(page)
    body: JsonMapping = {"__type": SEARCH_DOCUMENT_TYPE}
    body.update({name: item[name] for name in _COPIED_FIELDS})
    body["titleLC"] = page.title.lower()
    body["tags"] = page.tags
    body["snippet"] = general.get("snippet")
    body["images"] = {"general": general.get("image")}
    return body


def latest_document(page: Page) -> JsonMapping:
    """Return the ``L#{pid}`` document body for ``page``."""
    return {**page_document(page), LATEST_KIND: True}


def published_document(page: Page) -> JsonMapping:
    """Return the ``P#{pid}`` document body for ``page``."""
    return {**page_document(page), PUBLISHED_KIND: True}


class SearchProjector:
    """Builds and submits search operations for page revisions.

    The ``*_operation`` builders are pure so the view reconciliation can
    collect every search change of a transition into one bulk request.
    """

    def __init__(self, index: SearchIndex) -> None:
        self._index = index

    @staticmethod
    def latest_operation(page: Page) -> SearchOperation:
        """Index ``page`` as latest, or remove the document when unlisted."""
        if not page.visibility.list_latest:
            return RemoveDocument(id=latest_document_id(page.pid))
        return IndexDocument(
            id=latest_document_id(page.pid),
            body=latest_document(page),
        )

    @staticmethod
    def published_operation(page: Page) -> SearchOperation:
        """Index ``page`` as published, or remove the document when unlisted."""
        if not page.visibility.list_published:
            return RemoveDocument(id=published_document_id(page.pid))
        return IndexDocument(
            id=published_document_id(page.pid),
            body=published_document(page),
        )

    @staticmethod
    def remove_latest_operation(pid: str) -> SearchOperation:
        """Remove the latest document of ``pid``."""
        return RemoveDocument(id=latest_document_id(pid))

    @staticmethod
    def remove_published_operation(pid: str) -> SearchOperation:
        """Remove the published document of ``pid``."""
        return RemoveDocument(id=published_document_id(pid))

    async def index_latest(self, page: Page) -> None:
        """Upsert the latest document of ``page.pid``."""
        await self.bulk([self.latest_operation(page)])

    async def index_published(self, page: Page) -> None:
        """Upsert the published document of ``page.pid``."""
        await self.bulk([self.published_operation(page)])

    async def remove_latest(self, pid: str) -> None:
        """Delete the latest document of ``pid``."""
        await self.bulk([self.remove_latest_operation(pid)])

    async def remove_published(self, pid: str) -> None:
        """Delete the published document of ``pid``."""
        await self.bulk([self.remove_published_operation(pid)])

    async def bulk(self, operations: cabc.Sequence[SearchOperation]) -> None:
        """Submit ``operations`` in order; empty batches are skipped."""
        if operations:
            await self._index.bulk(operations)


__all__ = (
    "LATEST_KIND",
    "PUBLISHED_KIND",
    "SEARCH_DOCUMENT_TYPE",
    "SearchProjector",
    "latest_document",
    "latest_document_id",
    "page_document",
    "published_document",
    "published_document_id",
)
