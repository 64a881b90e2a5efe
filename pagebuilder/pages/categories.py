"""Page categories stored alongside pages in the document store."""

from __future__ import annotations

import typing as typ

from .mappers import category_from_item, category_to_item
from .ports import DeleteItem, KeyQuery, PutItem

if typ.TYPE_CHECKING:
    from .domain import Category
    from .ports import DocumentStore
    from .store import PageKeys


class DocumentCategoryRepository:
    """Category repository over the ``{prefix}C`` partition.

    Categories are keyed by slug.
    """

    def __init__(self, documents: DocumentStore, keys: PageKeys) -> None:
        self._documents = documents
        self._pk = keys.categories

    async def get(self, slug: str) -> Category | None:
        """Return the category with ``slug``, or ``None``."""
        [items] = await self._documents.batch_read([KeyQuery.point(self._pk, slug)])
        return category_from_item(items[0]) if items else None

    async def list_all(self) -> list[Category]:
        """Return all categories ordered by slug."""
        [items] = await self._documents.batch_read([KeyQuery(pk=self._pk)])
        return [category_from_item(item) for item in items]

    async def save(self, category: Category) -> None:
        """Create or replace ``category``."""
        data = {**category_to_item(category), "PK": self._pk, "SK": category.slug}
        await self._documents.batch_write([
            PutItem(pk=self._pk, sk=category.slug, data=data)
        ])

    async def delete(self, slug: str) -> None:
        """Delete the category with ``slug``; missing slugs are ignored."""
        await self._documents.batch_write([DeleteItem(pk=self._pk, sk=slug)])


__all__ = ("DocumentCategoryRepository",)
