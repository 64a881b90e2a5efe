"""In-memory port implementations for page builder unit tests."""

from __future__ import annotations

import copy
import datetime as dt
import typing as typ

from pagebuilder.pages.domain import Owner, Page, PageStatus, Visibility
from pagebuilder.pages.errors import SearchIndexError
from pagebuilder.pages.ports import (
    DeleteItem,
    IndexDocument,
    PutItem,
    SearchHits,
    UpdateItem,
)

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from pagebuilder.pages.domain import JsonMapping
    from pagebuilder.pages.ports import (
        KeyQuery,
        SearchOperation,
        SearchQuery,
        WriteOperation,
    )


def _matches(sk: str, query: KeyQuery) -> bool:
    condition = query.sk
    return (
        (condition.equals is None or sk == condition.equals)
        and (condition.begins_with is None or sk.startswith(condition.begins_with))
        and (condition.less_than is None or sk < condition.less_than)
        and (condition.at_least is None or sk >= condition.at_least)
    )


class InMemoryDocumentStore:
    """Dictionary-backed document store that records every write batch."""

    def __init__(self) -> None:
        self.items: dict[tuple[str, str], JsonMapping] = {}
        self.write_batches: list[list[WriteOperation]] = []

    async def batch_read(
        self,
        queries: cabc.Sequence[KeyQuery],
    ) -> list[list[JsonMapping]]:
        results = []
        for query in queries:
            keys = sorted(
                (sk for pk, sk in self.items if pk == query.pk and _matches(sk, query)),
                reverse=query.descending,
            )
            if query.limit is not None:
                keys = keys[: query.limit]
            results.append([copy.deepcopy(self.items[query.pk, sk]) for sk in keys])
        return results

    async def batch_write(self, operations: cabc.Sequence[WriteOperation]) -> None:
        self.write_batches.append(list(operations))
        for operation in operations:
            key = (operation.pk, operation.sk)
            match operation:
                case PutItem(data=data):
                    stored = copy.deepcopy(data)
                    self.items[key] = {**stored, "PK": key[0], "SK": key[1]}
                case UpdateItem(data=data):
                    current = self.items.get(key, {"PK": key[0], "SK": key[1]})
                    self.items[key] = {**current, **copy.deepcopy(data)}
                case DeleteItem():
                    self.items.pop(key, None)

    def partition(self, pk: str) -> dict[str, JsonMapping]:
        """Return the items of ``pk`` keyed by sort key."""
        return {sk: item for (key, sk), item in self.items.items() if key == pk}


class RecordingSearchIndex:
    """Search index that keeps documents in a dict and logs bulk requests."""

    def __init__(self, *, fail: bool = False) -> None:
        self.documents: dict[str, JsonMapping] = {}
        self.requests: list[list[SearchOperation]] = []
        self.fail = fail

    async def bulk(self, operations: cabc.Sequence[SearchOperation]) -> None:
        if self.fail:
            msg = "search cluster unavailable"
            raise SearchIndexError(msg)
        self.requests.append(list(operations))
        for operation in operations:
            if isinstance(operation, IndexDocument):
                self.documents[operation.id] = copy.deepcopy(operation.body)
            else:
                self.documents.pop(operation.id, None)

    async def search(self, query: SearchQuery) -> SearchHits:
        if self.fail:
            msg = "search cluster unavailable"
            raise SearchIndexError(msg)
        hits = [
            body
            for body in self.documents.values()
            if body.get(query.kind) is True and body.get("tenant") == query.tenant
        ]
        page = hits[query.offset : query.offset + query.size]
        return SearchHits(items=page, total=len(hits))

    async def aggregate_tags(
        self,
        *,
        tenant: str,
        locale: str,
        fragment: str,
        size: int = 10,
    ) -> list[str]:
        if self.fail:
            msg = "search cluster unavailable"
            raise SearchIndexError(msg)
        tags = {
            tag
            for body in self.documents.values()
            if body.get("tenant") == tenant and body.get("locale") == locale
            for tag in typ.cast("list[str]", body.get("tags") or [])
            if fragment.lower() in tag.lower()
        }
        return sorted(tags)[:size]


def make_page(  # noqa: PLR0913
    pid: str = "a1b2c3",
    version: int = 1,
    *,
    title: str = "Untitled",
    path: str = "/untitled",
    status: PageStatus = PageStatus.DRAFT,
    locked: bool = False,
    visibility: Visibility | None = None,
    owner: str = "author-1",
    tags: list[str] | None = None,
) -> Page:
    """Build a page revision with sensible defaults for unit tests."""
    now = dt.datetime(2026, 1, 2, 3, 4, 5, tzinfo=dt.UTC)
    return Page(
        pid=pid,
        version=version,
        title=title,
        path=path,
        category="static",
        editor="page-builder",
        locale="en-US",
        tenant="root",
        status=status,
        locked=locked,
        visibility=Visibility() if visibility is None else visibility,
        owned_by=Owner(id=owner),
        created_by=Owner(id=owner),
        created_on=now,
        saved_on=now,
        published_on=now if status == PageStatus.PUBLISHED else None,
        created_from=None,
        content={"compression": None, "content": None},
        settings={"general": {"tags": tags or [], "snippet": "Intro"}},
    )
