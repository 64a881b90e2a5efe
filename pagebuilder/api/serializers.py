"""Response serializers for Falcon page endpoints."""

import typing as typ

from pagebuilder.pages.mappers import page_to_item

if typ.TYPE_CHECKING:
    from pagebuilder.pages.domain import JsonMapping, ListMeta, Page
    from pagebuilder.pages.errors import PageBuilderError


def serialize_page(page: Page) -> dict[str, typ.Any]:
    """Serialize a page revision with camelCase attribute names."""
    item = page_to_item(page)
    return {name: value for name, value in item.items() if name != "TYPE"}


def serialize_meta(meta: ListMeta) -> dict[str, typ.Any]:
    """Serialize listing pagination metadata."""
    return {
        "page": meta.page,
        "limit": meta.limit,
        "totalCount": meta.total_count,
        "totalPages": meta.total_pages,
        "from": meta.from_,
        "to": meta.to,
        "nextPage": meta.next_page,
        "previousPage": meta.previous_page,
    }


def serialize_page_list(
    items: list[JsonMapping],
    meta: ListMeta,
) -> dict[str, typ.Any]:
    """Serialize a page of search documents with its metadata."""
    return {"items": items, "meta": serialize_meta(meta)}


def serialize_error(error: PageBuilderError) -> dict[str, typ.Any]:
    """Serialize a page builder error body."""
    return {"code": error.code, "message": error.message, "data": error.data}
