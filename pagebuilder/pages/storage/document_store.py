"""SQLAlchemy implementation of the ``DocumentStore`` port.

Each ``batch_read`` and ``batch_write`` call runs in its own transaction, so
a batch of writes either applies completely or not at all.

Examples
--------
>>> store = SqlAlchemyDocumentStore(session_factory)
>>> await store.batch_write([PutItem(pk="P#1", sk="L", data={"title": "Home"})])
>>> await store.batch_read([KeyQuery.point("P#1", "L")])
[[{'title': 'Home', 'PK': 'P#1', 'SK': 'L'}]]
"""

from __future__ import annotations

import typing as typ

import sqlalchemy as sa

from pagebuilder.logging import get_logger, log_debug
from pagebuilder.pages.ports import DeleteItem, PutItem, UpdateItem

from .models import PageItemRecord

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from sqlalchemy.ext.asyncio import AsyncSession

    from pagebuilder.pages.domain import JsonMapping
    from pagebuilder.pages.ports import KeyQuery, WriteOperation

logger = get_logger(__name__)

_KEY_FIELDS = ("PK", "SK")


def _strip_keys(data: cabc.Mapping[str, object]) -> dict[str, typ.Any]:
    return {name: value for name, value in data.items() if name not in _KEY_FIELDS}


def _to_item(record: PageItemRecord) -> JsonMapping:
    return {**record.data, "PK": record.pk, "SK": record.sk}


def _select(query: KeyQuery) -> sa.Select[tuple[PageItemRecord]]:
    statement = sa.select(PageItemRecord).where(PageItemRecord.pk == query.pk)
    condition = query.sk
    if condition.equals is not None:
        statement = statement.where(PageItemRecord.sk == condition.equals)
    if condition.begins_with is not None:
        statement = statement.where(
            PageItemRecord.sk.startswith(condition.begins_with, autoescape=True)
        )
    if condition.less_than is not None:
        statement = statement.where(PageItemRecord.sk < condition.less_than)
    if condition.at_least is not None:
        statement = statement.where(PageItemRecord.sk >= condition.at_least)
    order = PageItemRecord.sk.desc() if query.descending else PageItemRecord.sk.asc()
    statement = statement.order_by(order)
    if query.limit is not None:
        statement = statement.limit(query.limit)
    return statement


class SqlAlchemyDocumentStore:
    """Document store backed by the ``page_builder_items`` table.

    Parameters
    ----------
    session_factory : collections.abc.Callable[[], AsyncSession]
        Factory that produces new async sessions, one per batch.
    """

    def __init__(self, session_factory: cabc.Callable[[], AsyncSession]) -> None:
        self._session_factory = session_factory

    async def batch_read(
        self,
        queries: cabc.Sequence[KeyQuery],
    ) -> list[list[JsonMapping]]:
        """Run ``queries`` in one transaction and return results in order."""
        results: list[list[JsonMapping]] = []
        async with self._session_factory() as session, session.begin():
            for query in queries:
                rows = await session.execute(_select(query))
                results.append([_to_item(record) for record in rows.scalars()])
        return results

    async def batch_write(self, operations: cabc.Sequence[WriteOperation]) -> None:
        """Apply ``operations`` in order inside one transaction."""
        async with self._session_factory() as session, session.begin():
            for operation in operations:
                await self._apply(session, operation)
        log_debug(logger, "Applied %s document store writes.", len(operations))

    async def _apply(self, session: AsyncSession, operation: WriteOperation) -> None:
        match operation:
            case PutItem(pk=pk, sk=sk, data=data):
                await self._delete(session, pk, sk)
                await self._insert(session, pk, sk, _strip_keys(data))
            case UpdateItem(pk=pk, sk=sk, data=data):
                current = await session.scalar(
                    sa.select(PageItemRecord.data).where(
                        PageItemRecord.pk == pk,
                        PageItemRecord.sk == sk,
                    )
                )
                if current is None:
                    await self._insert(session, pk, sk, _strip_keys(data))
                    return
                merged = {**current, **_strip_keys(data)}
                await session.execute(
                    sa
                    .update(PageItemRecord)
                    .where(PageItemRecord.pk == pk, PageItemRecord.sk == sk)
                    .values(data=merged)
                )
            case DeleteItem(pk=pk, sk=sk):
                await self._delete(session, pk, sk)

    @staticmethod
    async def _insert(
        session: AsyncSession,
        pk: str,
        sk: str,
        data: dict[str, typ.Any],
    ) -> None:
        await session.execute(sa.insert(PageItemRecord).values(pk=pk, sk=sk, data=data))

    @staticmethod
    async def _delete(session: AsyncSession, pk: str, sk: str) -> None:
        await session.execute(
            sa.delete(PageItemRecord).where(
                PageItemRecord.pk == pk,
                PageItemRecord.sk == sk,
            )
        )


__all__ = ("SqlAlchemyDocumentStore",)
