"""Behavioural tests for the page publishing lifecycle."""

from __future__ import annotations

import typing as typ

import pytest
from pytest_bdd import given, parsers, scenario, then, when

from pagebuilder.pages.domain import PageStatus
from pagebuilder.pages.errors import NotFoundError
from pagebuilder.pages.lifecycle import PageLifecycle
from pagebuilder.pages.queries import PageQueries

if typ.TYPE_CHECKING:
    import asyncio

    from pagebuilder.pages.context import PageBuilderContext
    from pagebuilder.pages.domain import Page


@scenario(
    "../features/page_lifecycle.feature",
    "Publishing a new revision replaces the live page",
)
def test_publishing_new_revision() -> None:
    """Run the republishing scenario."""


@scenario(
    "../features/page_lifecycle.feature",
    "A second page takes over a published path",
)
def test_second_page_takes_over_path() -> None:
    """Run the path takeover scenario."""


@scenario(
    "../features/page_lifecycle.feature",
    "Deleting the first revision removes the whole page",
)
def test_deleting_first_revision() -> None:
    """Run the whole-page deletion scenario."""


@pytest.fixture
def context() -> dict[str, typ.Any]:
    """Share state between BDD steps."""
    return {}


async def _publish_at(lifecycle: PageLifecycle, path: str) -> Page:
    page = await lifecycle.create("static")
    page = await lifecycle.update(page.id, {"path": path})
    return await lifecycle.publish(page.id)


@given(parsers.parse('a published static page at "{path}"'))
def published_page(
    _function_scoped_runner: asyncio.Runner,
    page_context: PageBuilderContext,
    context: dict[str, typ.Any],
    path: str,
) -> None:
    """Create and publish the first revision of a page."""
    lifecycle = PageLifecycle(page_context)
    context["page"] = _function_scoped_runner.run(_publish_at(lifecycle, path))


@when(parsers.parse('the author publishes a new revision titled "{title}"'))
def publish_new_revision(
    _function_scoped_runner: asyncio.Runner,
    page_context: PageBuilderContext,
    context: dict[str, typ.Any],
    title: str,
) -> None:
    """Copy the published revision, retitle it and publish it."""

    async def _republish() -> None:
        lifecycle = PageLifecycle(page_context)
        page = typ.cast("Page", context["page"])
        revision = await lifecycle.create_from(page.id)
        revision = await lifecycle.update(revision.id, {"title": title})
        await lifecycle.publish(revision.id)

    _function_scoped_runner.run(_republish())


@when(parsers.parse('another page is published at "{path}"'))
def publish_other_page(
    _function_scoped_runner: asyncio.Runner,
    page_context: PageBuilderContext,
    context: dict[str, typ.Any],
    path: str,
) -> None:
    """Publish a second page at an occupied path."""
    lifecycle = PageLifecycle(page_context)
    context["other"] = _function_scoped_runner.run(_publish_at(lifecycle, path))


@when("the author deletes revision 1")
def delete_first_revision(
    _function_scoped_runner: asyncio.Runner,
    page_context: PageBuilderContext,
    context: dict[str, typ.Any],
) -> None:
    """Delete the first revision, removing the page."""
    page = typ.cast("Page", context["page"])
    _function_scoped_runner.run(PageLifecycle(page_context).delete(page.id))


@then(parsers.parse('the path "{path}" serves revision {version:d} titled "{title}"'))
def path_serves_revision(
    _function_scoped_runner: asyncio.Runner,
    page_context: PageBuilderContext,
    path: str,
    version: int,
    title: str,
) -> None:
    """Check which revision is live at the path."""
    queries = PageQueries(page_context)
    page = _function_scoped_runner.run(queries.get_published_by_path(path))
    assert page.version == version, f"Expected revision {version} at {path}."
    assert page.title == title, f"Expected title {title!r}."


@then(parsers.parse("revision {version:d} is unpublished"))
def revision_is_unpublished(
    _function_scoped_runner: asyncio.Runner,
    page_context: PageBuilderContext,
    context: dict[str, typ.Any],
    version: int,
) -> None:
    """Check that the demoted revision is marked unpublished."""
    page = typ.cast("Page", context["page"])
    revision = _function_scoped_runner.run(
        PageQueries(page_context).get(f"{page.pid}#{version:04d}")
    )
    assert revision.status == PageStatus.UNPUBLISHED, "Expected a demoted revision."


@then(parsers.parse('the path "{path}" serves the other page'))
def path_serves_other_page(
    _function_scoped_runner: asyncio.Runner,
    page_context: PageBuilderContext,
    context: dict[str, typ.Any],
    path: str,
) -> None:
    """Check that the path now belongs to the second page."""
    other = typ.cast("Page", context["other"])
    queries = PageQueries(page_context)
    page = _function_scoped_runner.run(queries.get_published_by_path(path))
    assert page.pid == other.pid, "Expected the second page to own the path."


@then("the first page is no longer published")
def first_page_unpublished(
    _function_scoped_runner: asyncio.Runner,
    page_context: PageBuilderContext,
    context: dict[str, typ.Any],
) -> None:
    """Check that the displaced page lost its published pointer."""
    page = typ.cast("Page", context["page"])
    queries = PageQueries(page_context)
    with pytest.raises(NotFoundError):
        _function_scoped_runner.run(queries.get_published_by_id(page.pid))


@then(parsers.parse('the path "{path}" is not found'))
def path_not_found(
    _function_scoped_runner: asyncio.Runner,
    page_context: PageBuilderContext,
    path: str,
) -> None:
    """Check that nothing is published at the path."""
    queries = PageQueries(page_context)
    with pytest.raises(NotFoundError):
        _function_scoped_runner.run(queries.get_published_by_path(path))


@then("the page has no revisions")
def page_has_no_revisions(
    _function_scoped_runner: asyncio.Runner,
    page_context: PageBuilderContext,
    context: dict[str, typ.Any],
) -> None:
    """Check that every revision was purged."""
    page = typ.cast("Page", context["page"])
    queries = PageQueries(page_context)
    revisions = _function_scoped_runner.run(queries.list_page_revisions(page.pid))
    assert revisions == [], "Expected all revisions to be deleted."
