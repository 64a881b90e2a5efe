"""Page revisions and their publishing workflow.

This package exposes the page domain model, the lifecycle engine that moves
revisions between states, and the read accessors used by adapters. Storage
adapters live in :mod:`pagebuilder.pages.storage`.

Examples
--------
Create, edit and publish a page:

>>> lifecycle = PageLifecycle(context)
>>> page = await lifecycle.create("static")
>>> page = await lifecycle.update(page.id, {"title": "About", "path": "/about"})
>>> page = await lifecycle.publish(page.id)
>>> await PageQueries(context).get_published_by_path("/about")
"""

from .context import PageBuilderContext
from .domain import (
    Category,
    ListMeta,
    Owner,
    Page,
    PageBuilderSettings,
    PageStatus,
    Visibility,
    format_page_id,
    parse_page_id,
)
from .errors import (
    CodecError,
    ConflictError,
    LockedError,
    NotAuthorizedError,
    NotFoundError,
    PageBuilderError,
    SearchIndexError,
    ValidationError,
)
from .hooks import HookChain, PageHook, PageHookEvent
from .lifecycle import PageLifecycle
from .permissions import Identity, Permission, StaticSecurityContext
from .queries import ListPagesArgs, PageQueries, PublishedPageRequest

__all__ = (
    "Category",
    "CodecError",
    "ConflictError",
    "HookChain",
    "Identity",
    "ListMeta",
    "ListPagesArgs",
    "LockedError",
    "NotAuthorizedError",
    "NotFoundError",
    "Owner",
    "Page",
    "PageBuilderContext",
    "PageBuilderError",
    "PageBuilderSettings",
    "PageHook",
    "PageHookEvent",
    "PageLifecycle",
    "PageQueries",
    "PageStatus",
    "Permission",
    "PublishedPageRequest",
    "SearchIndexError",
    "StaticSecurityContext",
    "ValidationError",
    "Visibility",
    "format_page_id",
    "parse_page_id",
)
