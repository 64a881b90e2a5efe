"""Reconciliation of the denormalized page views.

A page is stored four times over: its revision records, the latest pointer,
the published pointer and the published-path index entry, plus the two
search documents. Lifecycle transitions describe the revisions they touch
and the pointers they want afterwards; ``plan_views`` turns that
description into one atomic batch of store writes and one ordered list of
search operations, and ``reconcile`` applies both.

Examples
--------
Publish revision 2 over a previously published revision 1:

>>> plan = await reconcile(
...     store,
...     projector,
...     before=views,
...     written=[published_v2, demoted_v1],
...     published=published_v2,
... )
"""

from __future__ import annotations

import dataclasses as dc
import enum
import typing as typ

from .search import SearchProjector
from .store import PageViews

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .domain import Page
    from .ports import SearchOperation, WriteOperation
    from .store import RevisionStore


class _Keep(enum.Enum):
    KEEP = enum.auto()


KEEP: typ.Final = _Keep.KEEP
"""Marker for a pointer the transition leaves in place."""

type PointerTarget = Page | None | _Keep


@dc.dataclass(frozen=True, slots=True)
class ViewPlan:
    """Store writes and search operations produced for one transition.

    Attributes
    ----------
    writes : tuple[WriteOperation, ...]
        Operations for a single atomic ``batch_write``.
    search : tuple[SearchOperation, ...]
        Search operations, submitted after the store write.
    after : PageViews
        Latest and published pointers once the plan is applied; ``revision``
        holds the first written revision, if any.
    """

    writes: tuple[WriteOperation, ...]
    search: tuple[SearchOperation, ...]
    after: PageViews


def _carry(pointer: Page | None, written: cabc.Sequence[Page]) -> Page | None:
    """Return ``pointer`` refreshed with a written copy of the same revision."""
    if pointer is None:
        return None
    for page in written:
        if page.version == pointer.version:
            return page
    return pointer


def _resolve(
    target: PointerTarget,
    pointer: Page | None,
    written: cabc.Sequence[Page],
) -> Page | None:
    if target is KEEP:
        return _carry(pointer, written)
    return typ.cast("Page | None", target)


def plan_views(
    store: RevisionStore,
    *,
    before: PageViews,
    written: cabc.Sequence[Page] = (),
    deleted: cabc.Sequence[Page] = (),
    latest: PointerTarget = KEEP,
    published: PointerTarget = KEEP,
    fields: cabc.Collection[str] | None = None,
) -> ViewPlan:
    """Compute the writes that move a pid from ``before`` to the target views.

    Parameters
    ----------
    store : RevisionStore
        Store used to build key-addressed write operations.
    before : PageViews
        Latest and published pointers as loaded before the transition.
    written : collections.abc.Sequence[Page]
        Revisions to persist in their new state.
    deleted : collections.abc.Sequence[Page]
        Revisions to delete.
    latest, published : Page | None | KEEP
        Target pointers. ``KEEP`` leaves the pointer on the same revision,
        refreshed from ``written`` when that revision was rewritten.
    fields : collections.abc.Collection[str] | None
        Item attributes changed on ``written`` revisions. When given, the
        revision and a same-version latest pointer are updated field by
        field instead of being replaced.

    Returns
    -------
    ViewPlan
        Store writes, search operations and the resulting pointers.
    """
    after_latest = _resolve(latest, before.latest, written)
    after_published = _resolve(published, before.published, written)

    writes: list[WriteOperation] = [store.delete_revision(page) for page in deleted]
    for page in written:
        writes.append(
            store.put_revision(page)
            if fields is None
            else store.update_revision(page, fields)
        )

    search: list[SearchOperation] = []

    if after_latest is None:
        if before.latest is not None:
            pid = before.latest.pid
            writes.append(store.delete_latest(pid))
            search.append(SearchProjector.remove_latest_operation(pid))
    elif after_latest != before.latest:
        same_revision = (
            before.latest is not None and before.latest.version == after_latest.version
        )
        writes.append(
            store.update_latest(after_latest, fields)
            if fields is not None and same_revision
            else store.put_latest(after_latest)
        )
        search.append(SearchProjector.latest_operation(after_latest))

    before_path = before.published.path if before.published is not None else None
    if after_published is None:
        if before.published is not None:
            pid = before.published.pid
            writes.append(store.delete_published(pid))
            writes.append(store.delete_path(before.published.path))
            search.append(SearchProjector.remove_published_operation(pid))
    elif after_published != before.published:
        writes.append(store.put_published(after_published))
        if before_path is not None and before_path != after_published.path:
            writes.append(store.delete_path(before_path))
        writes.append(store.put_path(after_published))
        search.append(SearchProjector.published_operation(after_published))

    return ViewPlan(
        writes=tuple(writes),
        search=tuple(search),
        after=PageViews(
            revision=written[0] if written else None,
            latest=after_latest,
            published=after_published,
        ),
    )


async def reconcile(
    store: RevisionStore,
    projector: SearchProjector,
    *,
    before: PageViews,
    written: cabc.Sequence[Page] = (),
    deleted: cabc.Sequence[Page] = (),
    latest: PointerTarget = KEEP,
    published: PointerTarget = KEEP,
    fields: cabc.Collection[str] | None = None,
) -> ViewPlan:
    """Plan and apply a view transition.

    The store batch is written first; search operations follow, so a search
    failure leaves the store committed and the index stale.
    """
    plan = plan_views(
        store,
        before=before,
        written=written,
        deleted=deleted,
        latest=latest,
        published=published,
        fields=fields,
    )
    await store.batch_write(plan.writes)
    await projector.bulk(plan.search)
    return plan


__all__ = ("KEEP", "PointerTarget", "ViewPlan", "plan_views", "reconcile")
