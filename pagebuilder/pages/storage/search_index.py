"""SQLAlchemy implementation of the ``SearchIndex`` port.

Documents live in ``page_builder_search``. Scalar filters run in SQL; tag
filters and tag aggregation run over the JSON ``tags`` column in Python so
the adapter behaves the same on SQLite and Postgres.
"""

from __future__ import annotations

import collections
import datetime as dt
import typing as typ

import sqlalchemy as sa
import sqlalchemy.exc as sa_exc

from pagebuilder.logging import get_logger, log_debug
from pagebuilder.pages.errors import SearchIndexError
from pagebuilder.pages.ports import IndexDocument, RemoveDocument, SearchHits
from pagebuilder.pages.search import LATEST_KIND, PUBLISHED_KIND

from .models import SearchDocumentRecord

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from sqlalchemy.ext.asyncio import AsyncSession

    from pagebuilder.pages.domain import JsonMapping
    from pagebuilder.pages.ports import SearchOperation, SearchQuery

logger = get_logger(__name__)

_SORT_COLUMNS: dict[str, sa.ColumnElement[typ.Any]] = {
    "createdOn": SearchDocumentRecord.created_on,
    "savedOn": SearchDocumentRecord.saved_on,
    "publishedOn": SearchDocumentRecord.published_on,
    "title": SearchDocumentRecord.title_lc,
}


def _parse_timestamp(value: object) -> dt.datetime | None:
    if value is None:
        return None
    return dt.datetime.fromisoformat(str(value))


def _document_kind(body: cabc.Mapping[str, object]) -> str:
    if body.get(PUBLISHED_KIND) is True:
        return PUBLISHED_KIND
    return LATEST_KIND


def _record_values(document: IndexDocument) -> dict[str, typ.Any]:
    body = document.body
    created_by = typ.cast("JsonMapping", body.get("createdBy") or {})
    return {
        "id": document.id,
        "kind": _document_kind(body),
        "tenant": str(body.get("tenant", "")),
        "locale": str(body.get("locale", "")),
        "pid": str(body.get("pid", "")),
        "category": typ.cast("str | None", body.get("category")),
        "status": str(body.get("status", "")),
        "title_lc": str(body.get("titleLC", "")),
        "created_by_id": typ.cast("str | None", created_by.get("id")),
        "created_on": _parse_timestamp(body.get("createdOn")),
        "saved_on": _parse_timestamp(body.get("savedOn")),
        "published_on": _parse_timestamp(body.get("publishedOn")),
        "tags": list(typ.cast("list[str]", body.get("tags") or [])),
        "body": dict(body),
    }


def _matches_tags(tags: cabc.Collection[str], query: SearchQuery) -> bool:
    wanted = set(query.tags)
    if query.tags_rule == "any":
        return bool(wanted.intersection(tags))
    return wanted.issubset(tags)


class SqlAlchemySearchIndex:
    """Search index backed by the ``page_builder_search`` table.

    Parameters
    ----------
    session_factory : collections.abc.Callable[[], AsyncSession]
        Factory that produces new async sessions.

    Notes
    -----
    Database failures surface as ``SearchIndexError`` so callers can treat
    the index as an external, best-effort service.
    """

    def __init__(self, session_factory: cabc.Callable[[], AsyncSession]) -> None:
        self._session_factory = session_factory

    async def bulk(self, operations: cabc.Sequence[SearchOperation]) -> None:
        """Apply index and remove operations in submission order."""
        try:
            async with self._session_factory() as session, session.begin():
                for operation in operations:
                    await session.execute(
                        sa.delete(SearchDocumentRecord).where(
                            SearchDocumentRecord.id == operation.id
                        )
                    )
                    if isinstance(operation, IndexDocument):
                        await session.execute(
                            sa.insert(SearchDocumentRecord).values(
                                **_record_values(operation)
                            )
                        )
                    elif not isinstance(operation, RemoveDocument):
                        msg = f"Unsupported search operation {operation!r}."
                        raise TypeError(msg)
        except sa_exc.SQLAlchemyError as exc:
            msg = f"Search index bulk request failed: {exc}"
            raise SearchIndexError(msg) from exc
        log_debug(logger, "Applied %s search operations.", len(operations))

    def _filtered(self, query: SearchQuery) -> sa.Select[tuple[SearchDocumentRecord]]:
        statement = sa.select(SearchDocumentRecord).where(
            SearchDocumentRecord.kind == query.kind,
            SearchDocumentRecord.tenant == query.tenant,
            SearchDocumentRecord.locale == query.locale,
        )
        if query.created_by is not None:
            statement = statement.where(
                SearchDocumentRecord.created_by_id == query.created_by
            )
        if query.category is not None:
            statement = statement.where(SearchDocumentRecord.category == query.category)
        if query.status is not None:
            statement = statement.where(SearchDocumentRecord.status == query.status)
        if query.text:
            statement = statement.where(
                SearchDocumentRecord.title_lc.contains(
                    query.text.lower(),
                    autoescape=True,
                )
            )
        ordering = [
            _SORT_COLUMNS[field].desc()
            if direction == "desc"
            else _SORT_COLUMNS[field].asc()
            for field, direction in query.sort
            if field in _SORT_COLUMNS
        ]
        return statement.order_by(*ordering, SearchDocumentRecord.id.asc())

    async def search(self, query: SearchQuery) -> SearchHits:
        """Return one page of document bodies matching ``query``."""
        statement = self._filtered(query)
        try:
            async with self._session_factory() as session:
                if query.tags:
                    records = [
                        record
                        for record in (await session.execute(statement)).scalars()
                        if _matches_tags(record.tags or [], query)
                    ]
                    page = records[query.offset : query.offset + query.size]
                    return SearchHits(
                        items=[dict(record.body) for record in page],
                        total=len(records),
                    )

                total = await session.scalar(
                    sa.select(sa.func.count()).select_from(statement.subquery())
                )
                rows = await session.execute(
                    statement.offset(query.offset).limit(query.size)
                )
                return SearchHits(
                    items=[dict(record.body) for record in rows.scalars()],
                    total=int(total or 0),
                )
        except sa_exc.SQLAlchemyError as exc:
            msg = f"Search index query failed: {exc}"
            raise SearchIndexError(msg) from exc

    async def aggregate_tags(
        self,
        *,
        tenant: str,
        locale: str,
        fragment: str,
        size: int = 10,
    ) -> list[str]:
        """Return the most used tags containing ``fragment``, case-insensitively."""
        needle = fragment.lower()
        try:
            async with self._session_factory() as session:
                rows = await session.execute(
                    sa.select(SearchDocumentRecord.tags).where(
                        SearchDocumentRecord.tenant == tenant,
                        SearchDocumentRecord.locale == locale,
                    )
                )
                tag_lists = list(rows.scalars())
        except sa_exc.SQLAlchemyError as exc:
            msg = f"Search index aggregation failed: {exc}"
            raise SearchIndexError(msg) from exc

        counts = collections.Counter(
            tag for tags in tag_lists for tag in tags or [] if needle in tag.lower()
        )
        ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
        return [tag for tag, _ in ranked[:size]]


__all__ = ("SqlAlchemySearchIndex",)
