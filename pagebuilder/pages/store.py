"""Revision store: keyed persistence of page revisions and their views.

All records of one page share the partition ``{prefix}P#{pid}``; the sort
key separates revisions (``REV#0001``), the latest pointer (``L``) and the
published pointer (``P``). The published-path index lives in its own
partition ``{prefix}PATH`` keyed by normalized path. A page's full state is
therefore reachable in a single three-query batch read.

Examples
--------
>>> store = RevisionStore(document_store, PageKeys(tenant="root", locale="en-US"))
>>> views = await store.load_views("6502f1c0", 2)
>>> views.latest.id if views.latest else None
'6502f1c0#0002'
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

from pagebuilder.config import DEFAULT_PURGE_CHUNK_SIZE
from pagebuilder.logging import get_logger, log_info

from .domain import PageStatus, format_version
from .mappers import page_from_item, page_to_item
from .ports import DeleteItem, KeyQuery, PutItem, SortKeyCondition, UpdateItem

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .domain import JsonMapping, Page
    from .ports import DocumentStore, WriteOperation

logger = get_logger(__name__)

REVISION_PREFIX = "REV#"
LATEST_SK = "L"
PUBLISHED_SK = "P"


def revision_sk(version: int) -> str:
    """Return the sort key of revision ``version``."""
    return f"{REVISION_PREFIX}{format_version(version)}"


@dc.dataclass(frozen=True, slots=True)
class PageKeys:
    """Partition-key builder scoped to one tenant and locale."""

    tenant: str
    locale: str

    @property
    def prefix(self) -> str:
        """Return the ``T#{tenant}#L#{locale}#PB#`` key prefix."""
        return f"T#{self.tenant}#L#{self.locale}#PB#"

    def page(self, pid: str) -> str:
        """Return the partition key shared by every record of ``pid``."""
        return f"{self.prefix}P#{pid}"

    @property
    def published_paths(self) -> str:
        """Return the partition key of the published-path index."""
        return f"{self.prefix}PATH"

    @property
    def categories(self) -> str:
        """Return the partition key of page categories."""
        return f"{self.prefix}C"

    @property
    def settings(self) -> str:
        """Return the partition key of page builder settings."""
        return f"{self.prefix}SETTINGS"


@dc.dataclass(frozen=True, slots=True)
class PageViews:
    """Denormalized records of one pid loaded in a single batch.

    Attributes
    ----------
    revision : Page | None
        The requested revision, if it exists.
    latest : Page | None
        The latest pointer.
    published : Page | None
        The published pointer.
    """

    revision: Page | None
    latest: Page | None
    published: Page | None


def first_page(items: cabc.Sequence[JsonMapping]) -> Page | None:
    """Map the first item of a query result, if any."""
    return page_from_item(items[0]) if items else None


class RevisionStore:
    """Page-aware facade over an atomic ``DocumentStore``."""

    def __init__(self, documents: DocumentStore, keys: PageKeys) -> None:
        self._documents = documents
        self.keys = keys

    # -- raw access

    async def read_one(self, pk: str, sk: str) -> JsonMapping | None:
        """Return the item at ``(pk, sk)`` or ``None``."""
        [items] = await self._documents.batch_read([KeyQuery.point(pk, sk)])
        return items[0] if items else None

    async def batch_read(
        self,
        queries: cabc.Sequence[KeyQuery],
    ) -> list[list[JsonMapping]]:
        """Run ``queries`` atomically, preserving their order."""
        return await self._documents.batch_read(queries)

    async def batch_write(self, operations: cabc.Sequence[WriteOperation]) -> None:
        """Apply ``operations`` atomically. Empty batches are skipped."""
        if operations:
            await self._documents.batch_write(operations)

    # -- page reads

    def revision_query(self, pid: str, version: int) -> KeyQuery:
        """Return the point query for one revision."""
        return KeyQuery.point(self.keys.page(pid), revision_sk(version))

    def latest_query(self, pid: str) -> KeyQuery:
        """Return the point query for the latest pointer."""
        return KeyQuery.point(self.keys.page(pid), LATEST_SK)

    def published_query(self, pid: str) -> KeyQuery:
        """Return the point query for the published pointer."""
        return KeyQuery.point(self.keys.page(pid), PUBLISHED_SK)

    def path_query(self, path: str) -> KeyQuery:
        """Return the point query for a published-path index entry."""
        return KeyQuery.point(self.keys.published_paths, path)

    async def load_views(self, pid: str, version: int | None) -> PageViews:
        """Load a revision with the latest and published pointers.

        When ``version`` is ``None`` the latest pointer doubles as the
        requested revision.
        """
        queries = [self.latest_query(pid), self.published_query(pid)]
        if version is not None:
            queries.insert(0, self.revision_query(pid, version))
        results = await self.batch_read(queries)
        if version is None:
            latest_items, published_items = results
            latest = first_page(latest_items)
            return PageViews(
                revision=latest,
                latest=latest,
                published=first_page(published_items),
            )
        revision_items, latest_items, published_items = results
        return PageViews(
            revision=first_page(revision_items),
            latest=first_page(latest_items),
            published=first_page(published_items),
        )

    async def read_revision(self, pid: str, version: int) -> Page | None:
        """Return one revision, or ``None``."""
        [items] = await self.batch_read([self.revision_query(pid, version)])
        return first_page(items)

    async def read_latest(self, pid: str) -> Page | None:
        """Return the latest pointer, or ``None``."""
        [items] = await self.batch_read([self.latest_query(pid)])
        return first_page(items)

    async def read_path(self, path: str) -> Page | None:
        """Return the page published at ``path``, or ``None``."""
        [items] = await self.batch_read([self.path_query(path)])
        return first_page(items)

    async def list_revisions(self, pid: str) -> list[Page]:
        """Return every revision of ``pid`` sorted by version, newest first."""
        [items] = await self.batch_read([
            KeyQuery(
                pk=self.keys.page(pid),
                sk=SortKeyCondition(begins_with=REVISION_PREFIX),
                descending=True,
            )
        ])
        pages = [page_from_item(item) for item in items]
        return sorted(pages, key=lambda page: page.version, reverse=True)

    async def read_previous_revision(self, pid: str, version: int) -> Page | None:
        """Return the highest revision of ``pid`` below ``version``."""
        [items] = await self.batch_read([
            KeyQuery(
                pk=self.keys.page(pid),
                sk=SortKeyCondition(
                    begins_with=REVISION_PREFIX,
                    less_than=revision_sk(version),
                ),
                descending=True,
                limit=1,
            )
        ])
        return first_page(items)

    # -- write operation builders

    def _item(self, page: Page, pk: str, sk: str) -> JsonMapping:
        return {**page_to_item(page), "PK": pk, "SK": sk}

    def put_revision(self, page: Page) -> PutItem:
        """Write the full revision record."""
        pk, sk = self.keys.page(page.pid), revision_sk(page.version)
        return PutItem(pk=pk, sk=sk, data=self._item(page, pk, sk))

    def update_revision(
        self,
        page: Page,
        fields: cabc.Collection[str],
    ) -> UpdateItem:
        """Write only ``fields`` (item attribute names) of a revision."""
        pk, sk = self.keys.page(page.pid), revision_sk(page.version)
        item = page_to_item(page)
        return UpdateItem(pk=pk, sk=sk, data={name: item[name] for name in fields})

    def put_latest(self, page: Page) -> PutItem:
        """Point the latest pointer at ``page``."""
        pk = self.keys.page(page.pid)
        return PutItem(pk=pk, sk=LATEST_SK, data=self._item(page, pk, LATEST_SK))

    def update_latest(self, page: Page, fields: cabc.Collection[str]) -> UpdateItem:
        """Mirror ``fields`` of ``page`` onto the latest pointer."""
        item = page_to_item(page)
        return UpdateItem(
            pk=self.keys.page(page.pid),
            sk=LATEST_SK,
            data={name: item[name] for name in fields},
        )

    def put_published(self, page: Page) -> PutItem:
        """Point the published pointer at ``page``."""
        pk = self.keys.page(page.pid)
        return PutItem(pk=pk, sk=PUBLISHED_SK, data=self._item(page, pk, PUBLISHED_SK))

    def put_path(self, page: Page) -> PutItem:
        """Claim ``page.path`` in the published-path index."""
        pk = self.keys.published_paths
        return PutItem(pk=pk, sk=page.path, data=self._item(page, pk, page.path))

    def delete_revision(self, page: Page) -> DeleteItem:
        """Delete one revision record."""
        return DeleteItem(pk=self.keys.page(page.pid), sk=revision_sk(page.version))

    def delete_latest(self, pid: str) -> DeleteItem:
        """Delete the latest pointer."""
        return DeleteItem(pk=self.keys.page(pid), sk=LATEST_SK)

    def delete_published(self, pid: str) -> DeleteItem:
        """Delete the published pointer."""
        return DeleteItem(pk=self.keys.page(pid), sk=PUBLISHED_SK)

    def delete_path(self, path: str) -> DeleteItem:
        """Release ``path`` in the published-path index."""
        return DeleteItem(pk=self.keys.published_paths, sk=path)

    def purge(
        self,
        pid: str,
        *,
        chunk_size: int = DEFAULT_PURGE_CHUNK_SIZE,
    ) -> RevisionPurge:
        """Return a cursor that deletes every record of ``pid``."""
        return RevisionPurge(self, pid, chunk_size=chunk_size)


class RevisionPurge:
    """Resumable chunked deletion of a whole page.

    Each ``step`` deletes at most ``chunk_size`` records of the pid partition
    in one atomic batch, together with the published-path entry when a
    published record is met and the entry still belongs to this pid.

    Newer revisions go first (newest to oldest), then the ``L``/``P``
    pointers, and revision 1 alone in the final step. Until that step the
    page stays addressable as ``{pid}#0001``, so an interrupted purge is
    resumed by deleting that revision again; the new cursor simply finds
    fewer records.

    Parameters
    ----------
    store : RevisionStore
        Store holding the page.
    pid : str
        Page identity to delete.
    chunk_size : int, default=15
        Records deleted per batch, bounded by the store's batch size limit.
    """

    def __init__(
        self,
        store: RevisionStore,
        pid: str,
        *,
        chunk_size: int = DEFAULT_PURGE_CHUNK_SIZE,
    ) -> None:
        if chunk_size <= 0:
            msg = "chunk_size must be positive."
            raise ValueError(msg)
        self._store = store
        self._pid = pid
        self._chunk_size = chunk_size
        self._released_paths: set[str] = set()
        self.deleted = 0
        self.exhausted = False

    async def _path_deletions(
        self,
        items: cabc.Sequence[JsonMapping],
    ) -> list[DeleteItem]:
        paths = {
            str(item["path"])
            for item in items
            if item.get("status") == PageStatus.PUBLISHED
            and item.get("path") is not None
        } - self._released_paths
        if not paths:
            return []
        ordered = sorted(paths)
        results = await self._store.batch_read([
            self._store.path_query(path) for path in ordered
        ])
        deletions: list[DeleteItem] = []
        for path, entries in zip(ordered, results, strict=True):
            self._released_paths.add(path)
            if entries and entries[0].get("pid") == self._pid:
                deletions.append(self._store.delete_path(path))
        return deletions

    async def _next_chunk(self) -> list[JsonMapping]:
        pk = self._store.keys.page(self._pid)
        first_sk = revision_sk(1)
        newer, pointers = await self._store.batch_read([
            KeyQuery(
                pk=pk,
                sk=SortKeyCondition(at_least=revision_sk(2)),
                descending=True,
                limit=self._chunk_size,
            ),
            KeyQuery(
                pk=pk,
                sk=SortKeyCondition(less_than=first_sk),
                limit=self._chunk_size,
            ),
        ])
        chunk = [*newer, *pointers][: self._chunk_size]
        if chunk:
            return chunk
        [first] = await self._store.batch_read([KeyQuery.point(pk, first_sk)])
        return first

    async def step(self) -> int:
        """Delete the next chunk and return how many page records it held."""
        if self.exhausted:
            return 0
        items = await self._next_chunk()
        if not items:
            self.exhausted = True
            return 0

        operations: list[WriteOperation] = list(await self._path_deletions(items))
        operations.extend(
            DeleteItem(pk=str(item["PK"]), sk=str(item["SK"])) for item in items
        )
        await self._store.batch_write(operations)
        self.deleted += len(items)
        return len(items)

    async def run(self) -> int:
        """Delete chunks until the partition is empty; return records deleted."""
        while await self.step():
            pass
        log_info(logger, "Purged %s records of page %s.", self.deleted, self._pid)
        return self.deleted


__all__ = (
    "LATEST_SK",
    "PUBLISHED_SK",
    "REVISION_PREFIX",
    "PageKeys",
    "PageViews",
    "RevisionPurge",
    "RevisionStore",
    "first_page",
    "revision_sk",
)
