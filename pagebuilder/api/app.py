"""Falcon ASGI application for page revisions and publishing."""

from __future__ import annotations

import typing as typ

import falcon
from falcon import asgi

from pagebuilder.logging import get_logger, log_error
from pagebuilder.pages.errors import (
    ConflictError,
    LockedError,
    NotAuthorizedError,
    NotFoundError,
    PageBuilderError,
    ValidationError,
)
from pagebuilder.pages.lifecycle import PageLifecycle

from .resources import (
    PageResource,
    PageRevisionsResource,
    PagesResource,
    PageTagsResource,
    PageTransitionResource,
    PublishedPagesResource,
)
from .serializers import serialize_error

if typ.TYPE_CHECKING:
    from .types import ContextFactory

logger = get_logger(__name__)

_STATUS_BY_ERROR: tuple[tuple[type[PageBuilderError], str], ...] = (
    (NotFoundError, falcon.HTTP_404),
    (NotAuthorizedError, falcon.HTTP_403),
    (ValidationError, falcon.HTTP_400),
    (LockedError, falcon.HTTP_423),
    (ConflictError, falcon.HTTP_409),
)


def status_for_error(error: PageBuilderError) -> str:
    """Return the HTTP status reported for ``error``."""
    for error_type, status in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return status
    return falcon.HTTP_500


async def handle_page_builder_error(
    req: asgi.Request,
    resp: asgi.Response,
    ex: PageBuilderError,
    params: dict[str, typ.Any],
) -> None:
    """Render a domain error as a ``{"code", "message", "data"}`` body."""
    del params
    status = status_for_error(ex)
    if status == falcon.HTTP_500:
        log_error(
            logger,
            "%s %s failed with %s: %s",
            req.method,
            req.path,
            ex.code,
            ex.message,
        )
    resp.status = status
    resp.media = serialize_error(ex)


def create_app(context_factory: ContextFactory) -> asgi.App:
    """Build and return the Falcon ASGI application for page endpoints.

    Parameters
    ----------
    context_factory : ContextFactory
        Builds the per-request ``PageBuilderContext``, including the caller's
        security context.

    Returns
    -------
    falcon.asgi.App
        Application with page, published-page and tag routes.
    """
    app = asgi.App()
    app.add_error_handler(PageBuilderError, handle_page_builder_error)

    app.add_route("/pages", PagesResource(context_factory))
    app.add_route("/pages/{page_id}", PageResource(context_factory))
    app.add_route(
        "/pages/{page_id}/revisions",
        PageRevisionsResource(context_factory),
    )
    for segment, transition in (
        ("publish", PageLifecycle.publish),
        ("unpublish", PageLifecycle.unpublish),
        ("request-review", PageLifecycle.request_review),
        ("request-changes", PageLifecycle.request_changes),
    ):
        app.add_route(
            f"/pages/{{page_id}}/{segment}",
            PageTransitionResource(context_factory, transition),
        )

    app.add_route("/published-pages", PublishedPagesResource(context_factory))
    app.add_route("/page-tags", PageTagsResource(context_factory))
    return app


__all__ = ("create_app", "handle_page_builder_error", "status_for_error")
