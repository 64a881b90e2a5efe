"""Read accessors for pages.

Single-page reads go to the revision store; listings and tag suggestions go
to the search index, which may lag behind the store.
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

from pagebuilder.logging import get_logger, log_warning

from .domain import PAGE_PERMISSION, ListMeta, PageStatus, parse_page_id
from .errors import NotFoundError, SearchIndexError, ValidationError
from .lifecycle import readable
from .paths import normalize_path
from .permissions import check_base_permission, check_own_permission
from .ports import SearchQuery
from .search import LATEST_KIND, PUBLISHED_KIND
from .store import first_page

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .context import PageBuilderContext
    from .domain import JsonMapping, Page

logger = get_logger(__name__)

DEFAULT_LIST_LIMIT = 10
MAX_LIST_LIMIT = 100
TAG_FRAGMENT_MIN_LENGTH = 2
TAG_SUGGESTION_LIMIT = 10

_SORTABLE_FIELDS = frozenset({"createdOn", "savedOn", "publishedOn", "title"})
_SORT_DIRECTIONS = frozenset({"asc", "desc"})


@dc.dataclass(frozen=True, slots=True)
class ListPagesArgs:
    """Filters, ordering and pagination for page listings.

    Attributes
    ----------
    category : str | None
        Category slug to filter on.
    status : str | None
        Revision status to filter on.
    tags : tuple[str, ...]
        Tags to filter on.
    tags_rule : str
        ``"all"`` or ``"any"``.
    search : str | None
        Case-insensitive title fragment.
    sort : tuple[tuple[str, str], ...]
        ``(field, direction)`` pairs; fields are ``createdOn``, ``savedOn``,
        ``publishedOn`` or ``title``.
    page : int
        1-based result page.
    limit : int
        Items per page, capped at ``MAX_LIST_LIMIT``.
    """

    category: str | None = None
    status: str | None = None
    tags: tuple[str, ...] = ()
    tags_rule: str = "all"
    search: str | None = None
    sort: tuple[tuple[str, str], ...] = (("createdOn", "desc"),)
    page: int = 1
    limit: int = DEFAULT_LIST_LIMIT


@dc.dataclass(frozen=True, slots=True)
class PublishedPageRequest:
    """One lookup in a batched published-page read."""

    id: str
    preview: bool = False


def _validate_list_args(args: ListPagesArgs) -> None:
    invalid: dict[str, str] = {}
    if args.page < 1:
        invalid["page"] = "Value must be at least 1."
    if not 1 <= args.limit <= MAX_LIST_LIMIT:
        invalid["limit"] = f"Value must be between 1 and {MAX_LIST_LIMIT}."
    if args.tags_rule not in {"all", "any"}:
        invalid["tags_rule"] = 'Value must be "all" or "any".'
    if args.status is not None and args.status not in set(PageStatus):
        invalid["status"] = "Unknown page status."
    for field, direction in args.sort:
        if field not in _SORTABLE_FIELDS or direction not in _SORT_DIRECTIONS:
            invalid["sort"] = f"Unsupported sort {field}_{direction}."
    if invalid:
        names = ", ".join(sorted(invalid))
        msg = f"Validation failed for page listing: {names}."
        raise ValidationError(msg, data={"invalidFields": invalid})


class PageQueries:
    """Read operations for one caller."""

    def __init__(self, context: PageBuilderContext) -> None:
        self._context = context
        self._store = context.revision_store()

    async def get(self, page_id: str) -> Page:
        """Return an exact revision, or the latest one for a bare pid.

        Raises
        ------
        NotAuthorizedError
            If the caller lacks read access, or the page belongs to someone
            else under an own-only grant.
        NotFoundError
            If nothing is stored under ``page_id``.
        """
        security = self._context.security
        permission = await check_base_permission(security, PAGE_PERMISSION, rwd="r")
        pid, version = parse_page_id(page_id)
        page = (
            await self._store.read_latest(pid)
            if version is None
            else await self._store.read_revision(pid, version)
        )
        if page is None:
            msg = "Page not found."
            raise NotFoundError(msg)
        check_own_permission(security.get_identity(), permission, page.owned_by)
        return readable(page)

    async def get_published_by_id(self, page_id: str, *, preview: bool = False) -> Page:
        """Return the published revision of a page.

        With a version in ``page_id`` that exact revision is returned, and
        only while it is published unless ``preview`` is set.
        """
        [page] = await self.get_published_by_ids([
            PublishedPageRequest(id=page_id, preview=preview)
        ])
        return page

    async def get_published_by_ids(
        self,
        requests: cabc.Sequence[PublishedPageRequest],
    ) -> list[Page]:
        """Resolve several published-page lookups in one batch read.

        Raises
        ------
        ValidationError
            If a request has an empty or malformed id.
        NotFoundError
            If any requested page is missing or unpublished.
        """
        queries = []
        for request in requests:
            if not request.id:
                msg = 'Cannot get published page - "id" not provided.'
                raise ValidationError(msg, data={"invalidFields": {"id": msg}})
            pid, version = parse_page_id(request.id)
            queries.append(
                self._store.published_query(pid)
                if version is None
                else self._store.revision_query(pid, version)
            )
        if not queries:
            return []

        results = await self._store.batch_read(queries)
        pages: list[Page] = []
        for request, items in zip(requests, results, strict=True):
            page = first_page(items)
            if page is None or (
                page.status != PageStatus.PUBLISHED and not request.preview
            ):
                msg = "Page not found."
                raise NotFoundError(msg, data={"id": request.id})
            pages.append(readable(page))
        return pages

    async def get_published_by_path(self, path: str) -> Page:
        """Return the page published at ``path``.

        The root path resolves through the ``home`` special-page setting.

        Raises
        ------
        ValidationError
            If ``path`` is empty.
        NotFoundError
            If no page is published there.
        """
        if not path:
            msg = 'Cannot get published page - "path" not provided.'
            raise ValidationError(msg, data={"invalidFields": {"path": msg}})

        normalized = normalize_path(path)
        if normalized == "/":
            settings = await self._context.settings.get()
            home = settings.pages.get("home") if settings is not None else None
            if not home:
                msg = "Page not found."
                raise NotFoundError(msg)
            return await self.get_published_by_id(home)

        page = await self._store.read_path(normalized)
        if page is None:
            msg = "Page not found."
            raise NotFoundError(msg)
        return readable(page)

    def _search_query(
        self,
        kind: str,
        args: ListPagesArgs,
        *,
        created_by: str | None = None,
    ) -> SearchQuery:
        security = self._context.security
        return SearchQuery(
            kind=kind,
            tenant=security.get_tenant(),
            locale=security.get_locale(),
            created_by=created_by,
            category=args.category,
            status=args.status,
            tags=args.tags,
            tags_rule=args.tags_rule,
            text=args.search,
            sort=args.sort,
            offset=(args.page - 1) * args.limit,
            size=args.limit,
        )

    async def _list(self, query: SearchQuery, args: ListPagesArgs) -> tuple[
        list[JsonMapping],
        ListMeta,
    ]:
        hits = await self._context.search_index.search(query)
        meta = ListMeta.build(page=args.page, limit=args.limit, total_count=hits.total)
        return hits.items, meta

    async def list_latest(
        self,
        args: ListPagesArgs | None = None,
    ) -> tuple[list[JsonMapping], ListMeta]:
        """List latest revisions visible in latest-page listings.

        Own-only grants restrict results to pages the caller created.
        """
        args = ListPagesArgs() if args is None else args
        security = self._context.security
        permission = await check_base_permission(security, PAGE_PERMISSION, rwd="r")
        _validate_list_args(args)
        created_by = security.get_identity().id if permission.own else None
        query = self._search_query(LATEST_KIND, args, created_by=created_by)
        return await self._list(query, args)

    async def list_published(
        self,
        args: ListPagesArgs | None = None,
    ) -> tuple[list[JsonMapping], ListMeta]:
        """List published revisions visible in published-page listings."""
        args = ListPagesArgs() if args is None else args
        _validate_list_args(args)
        return await self._list(self._search_query(PUBLISHED_KIND, args), args)

    async def list_tags(self, fragment: str) -> list[str]:
        """Suggest tags containing ``fragment``.

        Search failures degrade to an empty list.

        Raises
        ------
        ValidationError
            If ``fragment`` is shorter than two characters.
        """
        if len(fragment) < TAG_FRAGMENT_MIN_LENGTH:
            msg = "Please provide at least two characters."
            raise ValidationError(msg, data={"invalidFields": {"query": msg}})
        security = self._context.security
        try:
            return await self._context.search_index.aggregate_tags(
                tenant=security.get_tenant(),
                locale=security.get_locale(),
                fragment=fragment,
                size=TAG_SUGGESTION_LIMIT,
            )
        except SearchIndexError as exc:
            log_warning(logger, "Tag suggestions unavailable: %s", exc.message)
            return []

    async def list_page_revisions(self, page_id: str) -> list[Page]:
        """Return every revision of the page, newest first."""
        pid, _ = parse_page_id(page_id)
        return [readable(page) for page in await self._store.list_revisions(pid)]


__all__ = (
    "DEFAULT_LIST_LIMIT",
    "MAX_LIST_LIMIT",
    "ListPagesArgs",
    "PageQueries",
    "PublishedPageRequest",
)
