"""Page lifecycle engine: revision state machine and its transitions.

Every transition follows the same shape: check permissions, load the
revision together with the latest and published pointers in one batch read,
validate the transition, run ``before_*`` hooks, hand the new revision
states to :func:`pagebuilder.pages.views.reconcile`, then run ``after_*``
hooks.

Examples
--------
>>> lifecycle = PageLifecycle(context)
>>> page = await lifecycle.create("static")
>>> page = await lifecycle.update(page.id, {"title": "About us"})
>>> page = await lifecycle.publish(page.id)
>>> page.status
<PageStatus.PUBLISHED: 'published'>
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ
import uuid

from pagebuilder.logging import get_logger, log_info

from .compression import compress_content, extract_content
from .domain import (
    DEFAULT_EDITOR,
    PAGE_PERMISSION,
    Owner,
    Page,
    PageStatus,
    Visibility,
    parse_page_id,
)
from .errors import ConflictError, LockedError, NotFoundError
from .hooks import PageHookEvent
from .mappers import visibility_from_item, visibility_to_item
from .models import merge_settings, validate_create_data, validate_update_data
from .paths import join_path, normalize_path
from .permissions import check_base_permission, check_own_permission
from .store import PageViews
from .views import KEEP, reconcile

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .context import PageBuilderContext
    from .domain import Category, JsonMapping

logger = get_logger(__name__)

DEFAULT_TITLE = "Untitled"
STATIC_CATEGORY = "static"

_REVIEWABLE_STATUSES = frozenset({PageStatus.DRAFT, PageStatus.CHANGES_REQUESTED})


def readable(page: Page) -> Page:
    """Return ``page`` with its stored content blob decoded."""
    return dc.replace(page, content=extract_content(page.content))


def _untitled_path(category: Category) -> str:
    name = f"untitled-{uuid.uuid4().hex[:12]}"
    if category.slug == STATIC_CATEGORY:
        return normalize_path(name)
    return join_path(category.url, name)


def _initial_settings(category: Category) -> JsonMapping:
    return {
        "general": {"layout": category.layout},
        "social": {"title": None, "description": None, "image": None, "meta": []},
        "seo": {"title": None, "description": None, "meta": []},
    }


def _merge_visibility(current: Visibility, patch: object) -> Visibility:
    merged = visibility_to_item(current)
    for group, flags in typ.cast("JsonMapping", patch).items():
        existing = typ.cast("JsonMapping", merged[group])
        merged[group] = {**existing, **typ.cast("JsonMapping", flags)}
    return visibility_from_item(merged)


class PageLifecycle:
    """Mutating page operations for one caller.

    Parameters
    ----------
    context : PageBuilderContext
        Ports and per-request collaborators.
    """

    def __init__(self, context: PageBuilderContext) -> None:
        self._context = context
        self._store = context.revision_store()
        self._search = context.search_projector()
        self._hooks = context.hooks

    def _owner(self) -> Owner:
        identity = self._context.security.get_identity()
        return Owner(
            id=identity.id,
            display_name=identity.display_name,
            type=identity.type,
        )

    async def _load(self, page_id: str) -> tuple[PageViews, Page]:
        """Load an exact revision with its pointers or fail with NotFound."""
        pid, version = parse_page_id(page_id)
        if version is None:
            msg = f'Page "{page_id}" not found.'
            raise NotFoundError(msg)
        views = await self._store.load_views(pid, version)
        if views.revision is None:
            msg = f'Page "{page_id}" not found.'
            raise NotFoundError(msg)
        return views, views.revision

    async def _ensure_not_special(self, page: Page, action: str) -> None:
        settings = await self._context.settings.get()
        key = settings.special_page_key(page.pid) if settings is not None else None
        if key is not None:
            msg = f"Cannot {action} page because it's set as {key}."
            raise ConflictError(msg, data={"setting": key})

    async def create(self, category_slug: str) -> Page:
        """Create revision 1 of a new page in ``category_slug``.

        Raises
        ------
        NotAuthorizedError
            If the caller lacks ``pb.page`` write access.
        ValidationError
            If the slug or the derived path is invalid.
        NotFoundError
            If the category does not exist.
        """
        security = self._context.security
        await check_base_permission(security, PAGE_PERMISSION, rwd="w")
        validate_create_data({"category": category_slug})

        category = await self._context.categories.get(category_slug)
        if category is None:
            msg = f'Category with slug "{category_slug}" not found.'
            raise NotFoundError(msg)

        path = _untitled_path(category)
        validate_update_data({"title": DEFAULT_TITLE, "path": path})

        now = self._context.clock()
        owner = self._owner()
        page = Page(
            pid=uuid.uuid4().hex,
            version=1,
            title=DEFAULT_TITLE,
            path=path,
            category=category.slug,
            editor=DEFAULT_EDITOR,
            locale=security.get_locale(),
            tenant=security.get_tenant(),
            status=PageStatus.DRAFT,
            locked=False,
            visibility=Visibility(),
            owned_by=owner,
            created_by=owner,
            created_on=now,
            saved_on=now,
            published_on=None,
            created_from=None,
            content=compress_content(),
            settings=_initial_settings(category),
        )

        event = PageHookEvent(page=page)
        await self._hooks.before_create(event)
        await reconcile(
            self._store,
            self._search,
            before=PageViews(revision=None, latest=None, published=None),
            written=[page],
            latest=page,
        )
        await self._hooks.after_create(event)
        log_info(logger, "Created page %s in category %s.", page.id, category.slug)
        return readable(page)

    async def create_from(self, from_id: str) -> Page:
        """Create the next revision of a page as a copy of ``from_id``.

        ``from_id`` without a version copies the latest revision.

        Raises
        ------
        NotAuthorizedError
            If the caller lacks write access or owns neither the page nor a
            full-access grant.
        NotFoundError
            If the source revision or the page's latest pointer is missing.
        """
        security = self._context.security
        permission = await check_base_permission(security, PAGE_PERMISSION, rwd="w")
        pid, version = parse_page_id(from_id)
        views = await self._store.load_views(pid, version)
        source = views.revision
        if source is None or views.latest is None:
            msg = f'Page "{from_id}" not found.'
            raise NotFoundError(msg)
        check_own_permission(security.get_identity(), permission, source.owned_by)

        now = self._context.clock()
        page = dc.replace(
            source,
            version=views.latest.version + 1,
            status=PageStatus.DRAFT,
            locked=False,
            published_on=None,
            created_from=source.id,
            created_by=self._owner(),
            created_on=now,
            saved_on=now,
        )

        event = PageHookEvent(page=page, latest=views.latest, published=views.published)
        await self._hooks.before_create(event)
        await reconcile(
            self._store,
            self._search,
            before=views,
            written=[page],
            latest=page,
        )
        await self._hooks.after_create(event)
        log_info(logger, "Created page revision %s from %s.", page.id, source.id)
        return readable(page)

    async def update(self, page_id: str, data: cabc.Mapping[str, object]) -> Page:
        """Apply a partial update to an unlocked revision.

        Only the fields present in ``data`` are written, together with the
        merged settings and ``savedOn``.

        Raises
        ------
        NotFoundError
            If the revision does not exist.
        NotAuthorizedError
            If the caller lacks write access to the page.
        LockedError
            If the revision is locked.
        ValidationError
            If ``data`` holds unknown or invalid fields.
        """
        security = self._context.security
        permission = await check_base_permission(security, PAGE_PERMISSION, rwd="w")
        views, page = await self._load(page_id)
        check_own_permission(security.get_identity(), permission, page.owned_by)
        if page.locked:
            msg = f'Cannot update page "{page.id}" because it is locked.'
            raise LockedError(msg)

        dirty = validate_update_data(data)
        patch = typ.cast("JsonMapping | None", dirty.get("settings"))
        changes: dict[str, typ.Any] = {
            name: dirty[name] for name in ("title", "category", "path") if name in dirty
        }
        if "content" in dirty:
            changes["content"] = compress_content(dirty["content"])
        if "visibility" in dirty:
            changes["visibility"] = _merge_visibility(
                page.visibility, dirty["visibility"]
            )
        changes["settings"] = merge_settings(page.settings, patch)
        changes["saved_on"] = self._context.clock()
        updated = dc.replace(page, **changes)
        fields = {*dirty, "settings", "savedOn"}

        await self._hooks.before_update(
            PageHookEvent(page=page, latest=views.latest, published=views.published)
        )
        await reconcile(
            self._store,
            self._search,
            before=views,
            written=[updated],
            fields=fields,
        )
        await self._hooks.after_update(
            PageHookEvent(page=updated, latest=views.latest, published=views.published)
        )
        log_info(logger, "Updated page %s fields %s.", updated.id, sorted(fields))
        return readable(updated)

    async def delete(self, page_id: str) -> tuple[Page, Page | None]:
        """Delete a revision, or the whole page when ``page_id`` is version 1.

        Returns
        -------
        tuple[Page, Page | None]
            The deleted revision and the recomputed latest revision, when the
            deleted revision was the latest of several.

        Raises
        ------
        NotFoundError
            If the revision does not exist.
        NotAuthorizedError
            If the caller lacks delete access to the page.
        ConflictError
            If the page is bound to a special-page setting.
        """
        security = self._context.security
        permission = await check_base_permission(security, PAGE_PERMISSION, rwd="d")
        views, page = await self._load(page_id)
        check_own_permission(security.get_identity(), permission, page.owned_by)
        await self._ensure_not_special(page, "delete")

        event = PageHookEvent(page=page, latest=views.latest, published=views.published)
        await self._hooks.before_delete(event)

        if page.version == 1:
            purge = self._store.purge(
                page.pid,
                chunk_size=self._context.purge_chunk_size,
            )
            await purge.run()
            await self._search.bulk([
                self._search.remove_latest_operation(page.pid),
                self._search.remove_published_operation(page.pid),
            ])
            await self._hooks.after_delete(event)
            log_info(logger, "Deleted page %s with all revisions.", page.pid)
            return readable(page), None

        new_latest: Page | None = None
        is_latest = views.latest is not None and views.latest.version == page.version
        is_published = (
            views.published is not None and views.published.version == page.version
        )
        if is_latest:
            new_latest = await self._store.read_previous_revision(
                page.pid, page.version
            )
        await reconcile(
            self._store,
            self._search,
            before=views,
            deleted=[page],
            latest=new_latest if is_latest else KEEP,
            published=None if is_published else KEEP,
        )
        await self._hooks.after_delete(event)
        log_info(logger, "Deleted page revision %s.", page.id)
        return readable(page), readable(new_latest) if new_latest else None

    async def publish(self, page_id: str) -> Page:
        """Publish a revision, displacing whatever occupies its path.

        A different page published at the same path is unpublished first
        through :meth:`unpublish`, with its own checks and hooks. That step
        is committed on its own; a later failure does not restore it.

        Raises
        ------
        NotFoundError
            If the revision does not exist or is already published.
        NotAuthorizedError
            If the caller lacks publish access to the page, or unpublish
            access to the displaced page.
        ConflictError
            If the displaced page is bound to a special-page setting.
        """
        security = self._context.security
        permission = await check_base_permission(security, PAGE_PERMISSION, pw="p")
        views, page = await self._load(page_id)
        check_own_permission(security.get_identity(), permission, page.owned_by)
        if page.status == PageStatus.PUBLISHED:
            msg = f'Page "{page_id}" is already published.'
            raise NotFoundError(msg)

        occupant = await self._store.read_path(page.path)
        await self._hooks.before_publish(
            PageHookEvent(page=page, latest=views.latest, published=views.published)
        )
        if occupant is not None and occupant.pid != page.pid:
            log_info(
                logger,
                "Unpublishing page %s to free path %s for %s.",
                occupant.id,
                page.path,
                page.id,
            )
            await self.unpublish(occupant.id)

        published = dc.replace(
            page,
            status=PageStatus.PUBLISHED,
            locked=True,
            published_on=self._context.clock(),
        )
        written = [published]
        if views.published is not None and views.published.version != page.version:
            written.append(dc.replace(views.published, status=PageStatus.UNPUBLISHED))

        await reconcile(
            self._store,
            self._search,
            before=views,
            written=written,
            published=published,
        )
        await self._hooks.after_publish(
            PageHookEvent(
                page=published,
                latest=views.latest,
                published=views.published,
            )
        )
        log_info(logger, "Published page %s at %s.", published.id, published.path)
        return readable(published)

    async def unpublish(self, page_id: str) -> Page:
        """Take the published revision ``page_id`` offline.

        Raises
        ------
        NotFoundError
            If the revision does not exist.
        NotAuthorizedError
            If the caller lacks unpublish access to the page.
        ConflictError
            If ``page_id`` is not the published revision, or the page is bound
            to a special-page setting.
        """
        security = self._context.security
        permission = await check_base_permission(security, PAGE_PERMISSION, pw="u")
        views, page = await self._load(page_id)
        check_own_permission(security.get_identity(), permission, page.owned_by)
        if views.published is None or views.published.id != page.id:
            msg = f'Page "{page_id}" is not published.'
            raise ConflictError(msg, code="PAGE_NOT_PUBLISHED")
        await self._ensure_not_special(page, "unpublish")

        await self._hooks.before_unpublish(
            PageHookEvent(page=page, latest=views.latest, published=views.published)
        )
        unpublished = dc.replace(page, status=PageStatus.UNPUBLISHED)
        await reconcile(
            self._store,
            self._search,
            before=views,
            written=[unpublished],
            published=None,
        )
        await self._hooks.after_unpublish(
            PageHookEvent(
                page=unpublished,
                latest=views.latest,
                published=views.published,
            )
        )
        log_info(logger, "Unpublished page %s.", unpublished.id)
        return readable(unpublished)

    async def request_review(self, page_id: str) -> Page:
        """Lock a draft revision and mark it as awaiting review.

        Raises
        ------
        NotFoundError
            If the revision does not exist.
        ConflictError
            If the revision is neither a draft nor sent back for changes.
        NotAuthorizedError
            If the caller lacks the request-review grant for the page.
        """
        security = self._context.security
        permission = await check_base_permission(security, PAGE_PERMISSION, pw="r")
        views, page = await self._load(page_id)
        if page.status not in _REVIEWABLE_STATUSES:
            msg = (
                "Cannot request review - page is not a draft nor a change "
                "request has been issued."
            )
            raise ConflictError(msg, code="REQUEST_REVIEW_NOT_ALLOWED")
        check_own_permission(security.get_identity(), permission, page.owned_by)
        return await self._set_review_status(
            views,
            page,
            status=PageStatus.REVIEW_REQUESTED,
            locked=True,
        )

    async def request_changes(self, page_id: str) -> Page:
        """Send a revision under review back to its author.

        Raises
        ------
        NotFoundError
            If the revision does not exist.
        ConflictError
            If the revision is not under review, or the caller created it.
        NotAuthorizedError
            If the caller lacks the request-changes grant for the page.
        """
        security = self._context.security
        permission = await check_base_permission(security, PAGE_PERMISSION, pw="c")
        views, page = await self._load(page_id)
        if page.status != PageStatus.REVIEW_REQUESTED:
            msg = "Cannot request changes on a page that's not under review."
            raise ConflictError(
                msg,
                code="REQUESTED_CHANGES_ON_PAGE_REVISION_NOT_UNDER_REVIEW",
            )
        identity = security.get_identity()
        if page.created_by.id == identity.id:
            msg = "Cannot request changes on page revision you created."
            raise ConflictError(
                msg,
                code="REQUESTED_CHANGES_ON_PAGE_REVISION_YOU_CREATED",
            )
        check_own_permission(identity, permission, page.owned_by)
        return await self._set_review_status(
            views,
            page,
            status=PageStatus.CHANGES_REQUESTED,
            locked=False,
        )

    async def _set_review_status(
        self,
        views: PageViews,
        page: Page,
        *,
        status: PageStatus,
        locked: bool,
    ) -> Page:
        before_hook, after_hook = (
            (self._hooks.before_request_review, self._hooks.after_request_review)
            if status == PageStatus.REVIEW_REQUESTED
            else (self._hooks.before_request_changes, self._hooks.after_request_changes)
        )
        await before_hook(
            PageHookEvent(page=page, latest=views.latest, published=views.published)
        )
        updated = dc.replace(page, status=status, locked=locked)
        await reconcile(
            self._store,
            self._search,
            before=views,
            written=[updated],
            fields=("status", "locked"),
        )
        await after_hook(
            PageHookEvent(page=updated, latest=views.latest, published=views.published)
        )
        log_info(logger, "Page %s moved to %s.", updated.id, status.value)
        return readable(updated)


__all__ = ("DEFAULT_TITLE", "STATIC_CATEGORY", "PageLifecycle", "readable")
