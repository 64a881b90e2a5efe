"""Per-request collaborators shared by page services."""

from __future__ import annotations

import dataclasses as dc
import datetime as dt
import typing as typ

from pagebuilder.config import DEFAULT_PURGE_CHUNK_SIZE

from .hooks import HookChain
from .search import SearchProjector
from .store import PageKeys, RevisionStore

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .ports import (
        CategoryRepository,
        DocumentStore,
        SearchIndex,
        SecurityContext,
        SettingsService,
    )


def utc_now() -> dt.datetime:
    """Return the current time in UTC."""
    return dt.datetime.now(dt.UTC)


@dc.dataclass(frozen=True, slots=True)
class PageBuilderContext:
    """Bundle of ports a page operation runs against.

    Attributes
    ----------
    security : SecurityContext
        Caller identity, tenant, locale and permission lookup.
    documents : DocumentStore
        Atomic batch store holding pages, categories and settings.
    search_index : SearchIndex
        Search service receiving the page projections.
    settings : SettingsService
        Site settings, consulted for special-page bindings.
    categories : CategoryRepository
        Category lookup used by ``create``.
    hooks : HookChain
        Lifecycle callbacks run around persistence.
    purge_chunk_size : int
        Records deleted per batch when a whole page is removed.
    clock : collections.abc.Callable[[], datetime.datetime]
        Timestamp source for ``createdOn``/``savedOn``/``publishedOn``.
    """

    security: SecurityContext
    documents: DocumentStore
    search_index: SearchIndex
    settings: SettingsService
    categories: CategoryRepository
    hooks: HookChain = dc.field(default_factory=HookChain)
    purge_chunk_size: int = DEFAULT_PURGE_CHUNK_SIZE
    clock: cabc.Callable[[], dt.datetime] = utc_now

    @property
    def keys(self) -> PageKeys:
        """Return key builders for the caller's tenant and locale."""
        return PageKeys(
            tenant=self.security.get_tenant(),
            locale=self.security.get_locale(),
        )

    def revision_store(self) -> RevisionStore:
        """Return a revision store scoped to the caller's tenant and locale."""
        return RevisionStore(self.documents, self.keys)

    def search_projector(self) -> SearchProjector:
        """Return a projector writing to ``search_index``."""
        return SearchProjector(self.search_index)


__all__ = ("PageBuilderContext", "utc_now")
