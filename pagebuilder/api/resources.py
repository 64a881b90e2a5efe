"""Falcon resources for page and published-page endpoints.

Each request builds a fresh ``PageBuilderContext`` through the injected
factory, then delegates to ``PageLifecycle`` or ``PageQueries``. Domain
errors propagate to the error handler registered by ``create_app``.
"""

from __future__ import annotations

import typing as typ

import falcon

from pagebuilder.pages.lifecycle import PageLifecycle
from pagebuilder.pages.queries import PageQueries, PublishedPageRequest

from .helpers import decode_page_id, parse_list_args, read_payload
from .serializers import serialize_page, serialize_page_list

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from falcon import asgi

    from pagebuilder.pages.domain import Page

    from .types import ContextFactory

    type Transition = cabc.Callable[[PageLifecycle, str], cabc.Awaitable[Page]]


class _ResourceBase:
    """Shared base resource that stores the context factory."""

    def __init__(self, context_factory: ContextFactory) -> None:
        self._context_factory = context_factory

    def _lifecycle(self, req: asgi.Request) -> PageLifecycle:
        return PageLifecycle(self._context_factory(req))

    def _queries(self, req: asgi.Request) -> PageQueries:
        return PageQueries(self._context_factory(req))


class PagesResource(_ResourceBase):
    """Create pages and list latest revisions."""

    async def on_get(self, req: asgi.Request, resp: asgi.Response) -> None:
        """List latest revisions matching the query parameters."""
        items, meta = await self._queries(req).list_latest(parse_list_args(req))
        resp.media = serialize_page_list(items, meta)
        resp.status = falcon.HTTP_200

    async def on_post(self, req: asgi.Request, resp: asgi.Response) -> None:
        """Create a page from a category, or a new revision from an id."""
        payload = await read_payload(req)
        lifecycle = self._lifecycle(req)
        if "from" in payload:
            page = await lifecycle.create_from(str(payload["from"]))
        elif "category" in payload:
            page = await lifecycle.create(str(payload["category"]))
        else:
            msg = 'Either "category" or "from" is required.'
            raise falcon.HTTPBadRequest(description=msg)
        resp.media = serialize_page(page)
        resp.status = falcon.HTTP_201


class PageResource(_ResourceBase):
    """Read, edit and delete one page revision."""

    async def on_get(
        self,
        req: asgi.Request,
        resp: asgi.Response,
        page_id: str,
    ) -> None:
        """Fetch a revision, or the latest one for a bare pid."""
        page = await self._queries(req).get(decode_page_id(page_id))
        resp.media = serialize_page(page)
        resp.status = falcon.HTTP_200

    async def on_patch(
        self,
        req: asgi.Request,
        resp: asgi.Response,
        page_id: str,
    ) -> None:
        """Apply a partial update to an unlocked revision."""
        payload = await read_payload(req)
        page = await self._lifecycle(req).update(decode_page_id(page_id), payload)
        resp.media = serialize_page(page)
        resp.status = falcon.HTTP_200

    async def on_delete(
        self,
        req: asgi.Request,
        resp: asgi.Response,
        page_id: str,
    ) -> None:
        """Delete a revision, or the whole page for revision 1."""
        page, latest = await self._lifecycle(req).delete(decode_page_id(page_id))
        resp.media = {
            "page": serialize_page(page),
            "latest": None if latest is None else serialize_page(latest),
        }
        resp.status = falcon.HTTP_200


class PageRevisionsResource(_ResourceBase):
    """List every revision of a page."""

    async def on_get(
        self,
        req: asgi.Request,
        resp: asgi.Response,
        page_id: str,
    ) -> None:
        """Return revisions newest first."""
        pages = await self._queries(req).list_page_revisions(decode_page_id(page_id))
        resp.media = {"items": [serialize_page(page) for page in pages]}
        resp.status = falcon.HTTP_200


class PageTransitionResource(_ResourceBase):
    """Run one publishing-workflow transition on a revision."""

    def __init__(self, context_factory: ContextFactory, transition: Transition) -> None:
        super().__init__(context_factory)
        self._transition = transition

    async def on_post(
        self,
        req: asgi.Request,
        resp: asgi.Response,
        page_id: str,
    ) -> None:
        """Apply the transition and return the updated revision."""
        page = await self._transition(self._lifecycle(req), decode_page_id(page_id))
        resp.media = serialize_page(page)
        resp.status = falcon.HTTP_200


class PublishedPagesResource(_ResourceBase):
    """Read published pages by path, by id or as a listing."""

    async def on_get(self, req: asgi.Request, resp: asgi.Response) -> None:
        """Resolve ``?path=``, then ``?id=``, else list published pages."""
        queries = self._queries(req)
        path = req.get_param("path")
        ids = req.get_param_as_list("id", delimiter=",")
        if path is not None:
            resp.media = serialize_page(await queries.get_published_by_path(path))
        elif ids:
            preview = req.get_param_as_bool("preview", default=False)
            pages = await queries.get_published_by_ids([
                PublishedPageRequest(id=decode_page_id(raw_id), preview=preview)
                for raw_id in ids
            ])
            resp.media = {"items": [serialize_page(page) for page in pages]}
        else:
            items, meta = await queries.list_published(parse_list_args(req))
            resp.media = serialize_page_list(items, meta)
        resp.status = falcon.HTTP_200


class PageTagsResource(_ResourceBase):
    """Suggest page tags."""

    async def on_get(self, req: asgi.Request, resp: asgi.Response) -> None:
        """Return tags containing ``?query=``."""
        fragment = req.get_param("query", default="")
        resp.media = {"items": await self._queries(req).list_tags(fragment)}
        resp.status = falcon.HTTP_200


__all__ = (
    "PageResource",
    "PageRevisionsResource",
    "PageTagsResource",
    "PageTransitionResource",
    "PagesResource",
    "PublishedPagesResource",
)
