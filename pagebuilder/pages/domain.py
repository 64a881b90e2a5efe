"""Domain models for page revisions and their collaborators."""

from __future__ import annotations

import dataclasses as dc
import datetime as dt
import enum
import typing as typ

from .errors import ValidationError

type JsonMapping = dict[str, object]

DEFAULT_EDITOR = "page-builder"
PAGE_PERMISSION = "pb.page"
VERSION_WIDTH = 4


class PageStatus(enum.StrEnum):
    """Lifecycle states of a single page revision."""

    DRAFT = "draft"
    REVIEW_REQUESTED = "reviewRequested"
    CHANGES_REQUESTED = "changesRequested"
    PUBLISHED = "published"
    UNPUBLISHED = "unpublished"


def format_version(version: int) -> str:
    """Return the zero-padded form of ``version`` used in ids and keys."""
    return str(version).zfill(VERSION_WIDTH)


def format_page_id(pid: str, version: int) -> str:
    """Return the external ``pid#version`` identifier."""
    return f"{pid}#{format_version(version)}"


def parse_page_id(page_id: str) -> tuple[str, int | None]:
    """Split an external id into ``(pid, version)``.

    The version is ``None`` when ``page_id`` only names the pid.

    Raises
    ------
    ValidationError
        If the pid is empty or the version part is not a positive integer.
    """
    pid, _, raw_version = page_id.strip().partition("#")
    if not pid:
        msg = f'Invalid page id "{page_id}".'
        raise ValidationError(msg, data={"invalidFields": {"id": msg}})
    if not raw_version:
        return pid, None
    ascii_digits = raw_version.isascii() and raw_version.isdecimal()
    if not ascii_digits or int(raw_version) < 1:
        msg = f'Invalid page version in "{page_id}".'
        raise ValidationError(msg, data={"invalidFields": {"id": msg}})
    return pid, int(raw_version)


@dc.dataclass(frozen=True, slots=True)
class Owner:
    """Identity snapshot stored on a revision (``ownedBy``/``createdBy``)."""

    id: str
    display_name: str | None = None
    type: str | None = None


@dc.dataclass(frozen=True, slots=True)
class Visibility:
    """Per-revision visibility flags for lists and direct reads."""

    list_latest: bool = True
    list_published: bool = True
    get_latest: bool = True
    get_published: bool = True


@dc.dataclass(frozen=True, slots=True)
class Page:
    """One revision of a page.

    Attributes
    ----------
    pid : str
        Stable identity shared by every revision of the page.
    version : int
        Revision number, starting at 1.
    title : str
        Page title.
    path : str
        Normalized URL path the revision is published under.
    category : str
        Slug of the owning category.
    editor : str
        Editor identifier.
    locale : str
        Content locale code.
    tenant : str
        Owning tenant id.
    status : PageStatus
        Revision lifecycle state.
    locked : bool
        Whether the revision refuses edits through ``update``.
    visibility : Visibility
        List/get visibility flags.
    owned_by : Owner
        Owner of the page.
    created_by : Owner
        Author of this revision.
    created_on : datetime.datetime
        Creation timestamp of this revision.
    saved_on : datetime.datetime
        Last save timestamp.
    published_on : datetime.datetime | None
        Publication timestamp, when published at least once.
    created_from : str | None
        Id of the revision this one was cloned from.
    content : object | None
        Stored (compressed) content blob, or extracted content on reads.
    settings : JsonMapping
        ``general``/``social``/``seo`` settings.
    """

    pid: str
    version: int
    title: str
    path: str
    category: str
    editor: str
    locale: str
    tenant: str
    status: PageStatus
    locked: bool
    visibility: Visibility
    owned_by: Owner
    created_by: Owner
    created_on: dt.datetime
    saved_on: dt.datetime
    published_on: dt.datetime | None
    created_from: str | None
    content: object | None
    settings: JsonMapping = dc.field(default_factory=dict)

    @property
    def id(self) -> str:
        """Return the external ``pid#version`` identifier."""
        return format_page_id(self.pid, self.version)

    @property
    def tags(self) -> list[str]:
        """Return tags configured under ``settings.general.tags``."""
        general = self.settings.get("general")
        if not isinstance(general, dict):
            return []
        tags = general.get("tags")
        if not isinstance(tags, list):
            return []
        return [str(tag) for tag in tags]


@dc.dataclass(frozen=True, slots=True)
class Category:
    """Page category used to derive new page paths and layouts."""

    slug: str
    name: str
    url: str
    layout: str | None = None
    created_on: dt.datetime | None = None
    created_by: Owner | None = None


@dc.dataclass(frozen=True, slots=True)
class PrerenderingSettings:
    """Prerendering configuration handed to the flush notification sink."""

    app_url: str | None = None
    storage_name: str | None = None
    meta: JsonMapping = dc.field(default_factory=dict)


@dc.dataclass(frozen=True, slots=True)
class PageBuilderSettings:
    """Site-wide settings; ``pages`` binds special pages to pids."""

    pages: dict[str, str | None] = dc.field(default_factory=dict)
    prerendering: PrerenderingSettings = dc.field(
        default_factory=PrerenderingSettings
    )

    def special_page_key(self, pid: str) -> str | None:
        """Return the settings key bound to ``pid``, if any."""
        for key, bound_pid in self.pages.items():
            if bound_pid == pid:
                return key
        return None


@dc.dataclass(frozen=True, slots=True)
class ListMeta:
    """Pagination metadata returned with page lists."""

    page: int
    limit: int
    total_count: int
    total_pages: int
    from_: int
    to: int
    next_page: int | None
    previous_page: int | None

    @classmethod
    def build(cls, *, page: int, limit: int, total_count: int) -> ListMeta:
        """Compute pagination metadata for one result page."""
        total_pages = -(-total_count // limit) if limit else 0
        start = (page - 1) * limit + 1 if total_count else 0
        end = min(page * limit, total_count)
        return cls(
            page=page,
            limit=limit,
            total_count=total_count,
            total_pages=total_pages,
            from_=start,
            to=end,
            next_page=page + 1 if page < total_pages else None,
            previous_page=page - 1 if page > 1 else None,
        )


__all__ = (
    "DEFAULT_EDITOR",
    "PAGE_PERMISSION",
    "Category",
    "JsonMapping",
    "ListMeta",
    "Owner",
    "Page",
    "PageBuilderSettings",
    "PageStatus",
    "PrerenderingSettings",
    "Visibility",
    "format_page_id",
    "format_version",
    "parse_page_id",
)
