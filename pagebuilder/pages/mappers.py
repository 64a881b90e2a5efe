"""Item-to-domain mapping helpers for page builder records.

Stored items are JSON objects with camelCase attributes, matching the shape
consumed by the search projection and the HTTP adapter.

Examples
--------
>>> item = page_to_item(page)
>>> page_from_item(item) == page
True
"""

from __future__ import annotations

import datetime as dt
import typing as typ

from .domain import (
    Category,
    Owner,
    Page,
    PageBuilderSettings,
    PageStatus,
    PrerenderingSettings,
    Visibility,
)

if typ.TYPE_CHECKING:
    from .domain import JsonMapping

PAGE_ITEM_TYPE = "pb.page"
CATEGORY_ITEM_TYPE = "pb.category"
SETTINGS_ITEM_TYPE = "pb.settings"


def _datetime_to_item(value: dt.datetime | None) -> str | None:
    return None if value is None else value.isoformat()


def _datetime_from_item(value: object) -> dt.datetime | None:
    if value is None:
        return None
    return dt.datetime.fromisoformat(str(value))


def _owner_to_item(owner: Owner) -> JsonMapping:
    return {"id": owner.id, "displayName": owner.display_name, "type": owner.type}


def _owner_from_item(item: object) -> Owner:
    data = typ.cast("JsonMapping", item or {})
    return Owner(
        id=str(data.get("id", "")),
        display_name=typ.cast("str | None", data.get("displayName")),
        type=typ.cast("str | None", data.get("type")),
    )


def visibility_to_item(visibility: Visibility) -> JsonMapping:
    """Return the nested ``{list: {...}, get: {...}}`` visibility shape."""
    return {
        "list": {
            "latest": visibility.list_latest,
            "published": visibility.list_published,
        },
        "get": {
            "latest": visibility.get_latest,
            "published": visibility.get_published,
        },
    }


def visibility_from_item(item: object) -> Visibility:
    """Build visibility flags; missing flags default to visible."""
    data = typ.cast("JsonMapping", item or {})
    listed = typ.cast("JsonMapping", data.get("list") or {})
    fetched = typ.cast("JsonMapping", data.get("get") or {})
    return Visibility(
        list_latest=listed.get("latest") is not False,
        list_published=listed.get("published") is not False,
        get_latest=fetched.get("latest") is not False,
        get_published=fetched.get("published") is not False,
    )


def page_to_item(page: Page) -> JsonMapping:
    """Serialize a page revision into its stored item shape."""
    return {
        "TYPE": PAGE_ITEM_TYPE,
        "id": page.id,
        "pid": page.pid,
        "version": page.version,
        "title": page.title,
        "path": page.path,
        "category": page.category,
        "editor": page.editor,
        "locale": page.locale,
        "tenant": page.tenant,
        "status": page.status.value,
        "locked": page.locked,
        "visibility": visibility_to_item(page.visibility),
        "ownedBy": _owner_to_item(page.owned_by),
        "createdBy": _owner_to_item(page.created_by),
        "createdOn": _datetime_to_item(page.created_on),
        "savedOn": _datetime_to_item(page.saved_on),
        "publishedOn": _datetime_to_item(page.published_on),
        "createdFrom": page.created_from,
        "content": page.content,
        "settings": page.settings,
    }


def page_from_item(item: JsonMapping) -> Page:
    """Map a stored item (revision, pointer or path entry) to a ``Page``."""
    created_on = _datetime_from_item(item.get("createdOn"))
    saved_on = _datetime_from_item(item.get("savedOn"))
    if created_on is None or saved_on is None:
        msg = f"Stored page item {item.get('id')!r} is missing timestamps."
        raise ValueError(msg)
    return Page(
        pid=str(item["pid"]),
        version=int(typ.cast("int", item["version"])),
        title=str(item.get("title", "")),
        path=str(item.get("path", "")),
        category=str(item.get("category", "")),
        editor=str(item.get("editor", "")),
        locale=str(item.get("locale", "")),
        tenant=str(item.get("tenant", "")),
        status=PageStatus(str(item["status"])),
        locked=bool(item.get("locked", False)),
        visibility=visibility_from_item(item.get("visibility")),
        owned_by=_owner_from_item(item.get("ownedBy")),
        created_by=_owner_from_item(item.get("createdBy")),
        created_on=created_on,
        saved_on=saved_on,
        published_on=_datetime_from_item(item.get("publishedOn")),
        created_from=typ.cast("str | None", item.get("createdFrom")),
        content=item.get("content"),
        settings=typ.cast("JsonMapping", item.get("settings") or {}),
    )


def category_to_item(category: Category) -> JsonMapping:
    """Serialize a category into its stored item shape."""
    return {
        "TYPE": CATEGORY_ITEM_TYPE,
        "slug": category.slug,
        "name": category.name,
        "url": category.url,
        "layout": category.layout,
        "createdOn": _datetime_to_item(category.created_on),
        "createdBy": (
            None if category.created_by is None else _owner_to_item(category.created_by)
        ),
    }


def category_from_item(item: JsonMapping) -> Category:
    """Map a stored item to a ``Category``."""
    created_by = item.get("createdBy")
    return Category(
        slug=str(item["slug"]),
        name=str(item.get("name", "")),
        url=str(item.get("url", "/")),
        layout=typ.cast("str | None", item.get("layout")),
        created_on=_datetime_from_item(item.get("createdOn")),
        created_by=None if created_by is None else _owner_from_item(created_by),
    )


def settings_to_item(settings: PageBuilderSettings) -> JsonMapping:
    """Serialize settings into their stored item shape."""
    prerendering = settings.prerendering
    return {
        "TYPE": SETTINGS_ITEM_TYPE,
        "pages": dict(settings.pages),
        "prerendering": {
            "app": {"url": prerendering.app_url},
            "storage": {"name": prerendering.storage_name},
            "meta": prerendering.meta,
        },
    }


def settings_from_item(item: JsonMapping) -> PageBuilderSettings:
    """Map a stored item to ``PageBuilderSettings``."""
    prerendering = typ.cast("JsonMapping", item.get("prerendering") or {})
    app = typ.cast("JsonMapping", prerendering.get("app") or {})
    storage = typ.cast("JsonMapping", prerendering.get("storage") or {})
    pages = typ.cast("JsonMapping", item.get("pages") or {})
    return PageBuilderSettings(
        pages={key: typ.cast("str | None", value) for key, value in pages.items()},
        prerendering=PrerenderingSettings(
            app_url=typ.cast("str | None", app.get("url")),
            storage_name=typ.cast("str | None", storage.get("name")),
            meta=typ.cast("JsonMapping", prerendering.get("meta") or {}),
        ),
    )


__all__ = (
    "category_from_item",
    "category_to_item",
    "page_from_item",
    "page_to_item",
    "settings_from_item",
    "settings_to_item",
    "visibility_from_item",
    "visibility_to_item",
)
