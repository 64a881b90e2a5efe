"""Lifecycle hooks invoked around page persistence steps.

Hooks subclass ``PageHook`` and override the callbacks they care about.
``HookChain`` calls them in registration order; the first failure stops the
chain and propagates to the caller, aborting the operation when raised from
a ``before_*`` callback.

Examples
--------
>>> class AuditHook(PageHook):
...     async def after_publish(self, event: PageHookEvent) -> None:
...         audit_log.append(event.page.id)
>>> hooks = HookChain([AuditHook()])
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .domain import Page


@dc.dataclass(frozen=True, slots=True)
class PageHookEvent:
    """Records handed to hook callbacks.

    Attributes
    ----------
    page : Page
        Revision the operation acts on, before the transition for
        ``before_*`` callbacks and after it for ``after_*`` callbacks.
    latest : Page | None
        Latest pointer as loaded before the transition.
    published : Page | None
        Published pointer as loaded before the transition.
    """

    page: Page
    latest: Page | None = None
    published: Page | None = None


class PageHook:
    """Base class for lifecycle hooks; every callback defaults to a no-op."""

    async def before_create(self, event: PageHookEvent) -> None:
        """Run before a new revision is written."""

    async def after_create(self, event: PageHookEvent) -> None:
        """Run after a new revision is written and indexed."""

    async def before_update(self, event: PageHookEvent) -> None:
        """Run before a revision update is written."""

    async def after_update(self, event: PageHookEvent) -> None:
        """Run after a revision update is written and indexed."""

    async def before_delete(self, event: PageHookEvent) -> None:
        """Run before a revision or a whole page is deleted."""

    async def after_delete(self, event: PageHookEvent) -> None:
        """Run after a revision or a whole page is deleted."""

    async def before_publish(self, event: PageHookEvent) -> None:
        """Run before a revision is published."""

    async def after_publish(self, event: PageHookEvent) -> None:
        """Run after a revision is published."""

    async def before_unpublish(self, event: PageHookEvent) -> None:
        """Run before a revision is unpublished."""

    async def after_unpublish(self, event: PageHookEvent) -> None:
        """Run after a revision is unpublished."""

    async def before_request_review(self, event: PageHookEvent) -> None:
        """Run before a revision is sent for review."""

    async def after_request_review(self, event: PageHookEvent) -> None:
        """Run after a revision is sent for review."""

    async def before_request_changes(self, event: PageHookEvent) -> None:
        """Run before a reviewer sends a revision back."""

    async def after_request_changes(self, event: PageHookEvent) -> None:
        """Run after a reviewer sends a revision back."""


class HookChain:
    """Ordered dispatch over registered ``PageHook`` instances."""

    def __init__(self, hooks: cabc.Iterable[PageHook] = ()) -> None:
        self._hooks: list[PageHook] = list(hooks)

    def register(self, hook: PageHook) -> None:
        """Append ``hook`` to the end of the chain."""
        self._hooks.append(hook)

    def __len__(self) -> int:
        return len(self._hooks)

    async def before_create(self, event: PageHookEvent) -> None:
        for hook in self._hooks:
            await hook.before_create(event)

    async def after_create(self, event: PageHookEvent) -> None:
        for hook in self._hooks:
            await hook.after_create(event)

    async def before_update(self, event: PageHookEvent) -> None:
        for hook in self._hooks:
            await hook.before_update(event)

    async def after_update(self, event: PageHookEvent) -> None:
        for hook in self._hooks:
            await hook.after_update(event)

    async def before_delete(self, event: PageHookEvent) -> None:
        for hook in self._hooks:
            await hook.before_delete(event)

    async def after_delete(self, event: PageHookEvent) -> None:
        for hook in self._hooks:
            await hook.after_delete(event)

    async def before_publish(self, event: PageHookEvent) -> None:
        for hook in self._hooks:
            await hook.before_publish(event)

    async def after_publish(self, event: PageHookEvent) -> None:
        for hook in self._hooks:
            await hook.after_publish(event)

    async def before_unpublish(self, event: PageHookEvent) -> None:
        for hook in self._hooks:
            await hook.before_unpublish(event)

    async def after_unpublish(self, event: PageHookEvent) -> None:
        for hook in self._hooks:
            await hook.after_unpublish(event)

    async def before_request_review(self, event: PageHookEvent) -> None:
        for hook in self._hooks:
            await hook.before_request_review(event)

    async def after_request_review(self, event: PageHookEvent) -> None:
        for hook in self._hooks:
            await hook.after_request_review(event)

    async def before_request_changes(self, event: PageHookEvent) -> None:
        for hook in self._hooks:
            await hook.before_request_changes(event)

    async def after_request_changes(self, event: PageHookEvent) -> None:
        for hook in self._hooks:
            await hook.after_request_changes(event)


__all__ = ("HookChain", "PageHook", "PageHookEvent")
