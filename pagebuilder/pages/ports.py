"""Ports consumed by the page lifecycle engine.

The engine never talks to a database, search engine or identity provider
directly. It depends on the protocols below so adapters can be swapped
without touching lifecycle logic.

Examples
--------
Implement a search index that only records operations:

>>> class RecordingSearchIndex(SearchIndex):
...     async def bulk(self, operations):
...         self.operations.extend(operations)
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .domain import Category, JsonMapping, PageBuilderSettings
    from .permissions import Identity, Permission


# -- Document store vocabulary


@dc.dataclass(frozen=True, slots=True)
class SortKeyCondition:
    """Conditions applied to the sort key of a partition read.

    All populated conditions must hold. An empty condition matches every
    item in the partition.
    """

    equals: str | None = None
    begins_with: str | None = None
    less_than: str | None = None
    at_least: str | None = None


@dc.dataclass(frozen=True, slots=True)
class KeyQuery:
    """Point or range read within one partition."""

    pk: str
    sk: SortKeyCondition = dc.field(default_factory=SortKeyCondition)
    descending: bool = False
    limit: int | None = None

    @classmethod
    def point(cls, pk: str, sk: str) -> KeyQuery:
        """Build a single-item lookup."""
        return cls(pk=pk, sk=SortKeyCondition(equals=sk), limit=1)


@dc.dataclass(frozen=True, slots=True)
class PutItem:
    """Create or fully replace the item at ``(pk, sk)``."""

    pk: str
    sk: str
    data: JsonMapping


@dc.dataclass(frozen=True, slots=True)
class UpdateItem:
    """Merge ``data`` into the item at ``(pk, sk)``, creating it if absent."""

    pk: str
    sk: str
    data: JsonMapping


@dc.dataclass(frozen=True, slots=True)
class DeleteItem:
    """Delete the item at ``(pk, sk)``; deleting a missing item is a no-op."""

    pk: str
    sk: str


type WriteOperation = PutItem | UpdateItem | DeleteItem


class DocumentStore(typ.Protocol):
    """Atomic batch key/value document store.

    Items are JSON objects addressed by a partition key (``PK``) and a sort
    key (``SK``). Returned items include both keys.
    """

    async def batch_read(
        self,
        queries: cabc.Sequence[KeyQuery],
    ) -> list[list[JsonMapping]]:
        """Run ``queries`` as one atomic unit.

        Parameters
        ----------
        queries : collections.abc.Sequence[KeyQuery]
            Point or range reads.

        Returns
        -------
        list[list[JsonMapping]]
            One result list per query, in input order, items ordered by sort
            key (descending when requested).
        """
        ...

    async def batch_write(self, operations: cabc.Sequence[WriteOperation]) -> None:
        """Apply ``operations`` atomically; either all apply or none do."""
        ...


# -- Search index vocabulary


@dc.dataclass(frozen=True, slots=True)
class IndexDocument:
    """Create or replace the search document ``id``."""

    id: str
    body: JsonMapping


@dc.dataclass(frozen=True, slots=True)
class RemoveDocument:
    """Delete the search document ``id``; missing documents are ignored."""

    id: str


type SearchOperation = IndexDocument | RemoveDocument


@dc.dataclass(frozen=True, slots=True)
class SearchQuery:
    """Structured query over page search documents.

    Attributes
    ----------
    kind : str
        ``"latest"`` or ``"published"`` document family.
    tenant : str
        Tenant the documents belong to.
    locale : str
        Locale the documents belong to.
    created_by : str | None
        Restrict to documents authored by this identity.
    category : str | None
        Restrict to a category slug.
    status : str | None
        Restrict to a revision status.
    tags : tuple[str, ...]
        Tags to match.
    tags_rule : str
        ``"all"`` requires every tag, ``"any"`` at least one.
    text : str | None
        Case-insensitive title fragment.
    sort : tuple[tuple[str, str], ...]
        ``(field, "asc" | "desc")`` pairs.
    offset : int
        Number of hits to skip.
    size : int
        Maximum number of hits to return.
    """

    kind: str
    tenant: str
    locale: str
    created_by: str | None = None
    category: str | None = None
    status: str | None = None
    tags: tuple[str, ...] = ()
    tags_rule: str = "all"
    text: str | None = None
    sort: tuple[tuple[str, str], ...] = (("createdOn", "desc"),)
    offset: int = 0
    size: int = 10


@dc.dataclass(frozen=True, slots=True)
class SearchHits:
    """Search result page."""

    items: list[JsonMapping]
    total: int


class SearchIndex(typ.Protocol):
    """Eventually consistent search service for page documents."""

    async def bulk(self, operations: cabc.Sequence[SearchOperation]) -> None:
        """Apply index/remove operations in submission order."""
        ...

    async def search(self, query: SearchQuery) -> SearchHits:
        """Return one page of documents matching ``query``."""
        ...

    async def aggregate_tags(
        self,
        *,
        tenant: str,
        locale: str,
        fragment: str,
        size: int = 10,
    ) -> list[str]:
        """Return up to ``size`` tags containing ``fragment``, most used first."""
        ...


# -- Collaborators


class SecurityContext(typ.Protocol):
    """Caller identity and permissions for the current request."""

    def get_identity(self) -> Identity:
        """Return the calling identity."""
        ...

    def get_tenant(self) -> str:
        """Return the active tenant id."""
        ...

    def get_locale(self) -> str:
        """Return the active content locale code."""
        ...

    async def get_permission(self, name: str) -> Permission | None:
        """Return the permission granting ``name``, or ``None``."""
        ...


class SettingsService(typ.Protocol):
    """Site-wide page builder settings."""

    async def get(self) -> PageBuilderSettings | None:
        """Return the stored settings, if any were saved."""
        ...

    async def get_default(self) -> PageBuilderSettings:
        """Return the configured default settings."""
        ...


class CategoryRepository(typ.Protocol):
    """Lookup of page categories."""

    async def get(self, slug: str) -> Category | None:
        """Return the category with ``slug``, or ``None``."""
        ...


__all__ = (
    "CategoryRepository",
    "DeleteItem",
    "DocumentStore",
    "IndexDocument",
    "KeyQuery",
    "PutItem",
    "RemoveDocument",
    "SearchHits",
    "SearchIndex",
    "SearchOperation",
    "SearchQuery",
    "SecurityContext",
    "SettingsService",
    "SortKeyCondition",
    "UpdateItem",
    "WriteOperation",
)
