"""Integration tests for the page REST endpoints."""

from __future__ import annotations

import typing as typ

import pytest
from falcon import testing

from pagebuilder.api import create_app
from pagebuilder.api.runtime import create_runtime_app
from pagebuilder.config import PageBuilderConfig
from pagebuilder.pages.permissions import Identity, Permission, StaticSecurityContext

if typ.TYPE_CHECKING:
    from conftest import ContextFactory
    from falcon import asgi
    from sqlalchemy.ext.asyncio import AsyncEngine

    from pagebuilder.pages.context import PageBuilderContext

USER_HEADER = "X-User"


@pytest.fixture
def client(
    page_context: PageBuilderContext,
    make_context: ContextFactory,
    author: Identity,
    reviewer: Identity,
) -> testing.TestClient:
    """Build a test client whose caller is chosen by the ``X-User`` header.

    Unknown users get a context without any page grants.
    """
    del page_context
    known = {author.id: author, reviewer.id: reviewer}

    def context_factory(req: asgi.Request) -> PageBuilderContext:
        user = req.get_header(USER_HEADER) or author.id
        if user in known:
            return make_context(known[user])
        return make_context(Identity(id=user), permissions=[])

    return testing.TestClient(create_app(context_factory))


def _url_id(page_id: str) -> str:
    return page_id.replace("#", ":")


def _create_page(client: testing.TestClient, path: str) -> dict[str, typ.Any]:
    created = client.simulate_post("/pages", json={"category": "static"})
    assert created.status_code == 201, "Expected page creation to return 201."
    updated = client.simulate_patch(
        f"/pages/{_url_id(created.json['id'])}",
        json={"path": path, "settings": {"general": {"tags": ["news"]}}},
    )
    assert updated.status_code == 200, "Expected the path update to succeed."
    return updated.json


def test_create_edit_publish_and_read(client: testing.TestClient) -> None:
    """Pages move from creation to the published endpoints."""
    page = _create_page(client, "/about")
    assert page["version"] == 1
    assert page["status"] == "draft"
    assert "TYPE" not in page

    renamed = client.simulate_patch(
        f"/pages/{_url_id(page['id'])}",
        json={"title": "About"},
    )
    published = client.simulate_post(f"/pages/{_url_id(page['id'])}/publish")
    by_path = client.simulate_get("/published-pages", params={"path": "/about"})
    fetched = client.simulate_get(f"/pages/{page['pid']}")

    assert renamed.json["title"] == "About"
    assert published.status_code == 200
    assert published.json["status"] == "published"
    assert by_path.json["id"] == page["id"]
    assert fetched.json["locked"] is True


def test_percent_encoded_ids_are_accepted(client: testing.TestClient) -> None:
    """Page ids may carry an escaped ``#`` separator."""
    page = _create_page(client, "/escaped")
    response = client.simulate_get(f"/pages/{page['id'].replace('#', '%23')}")
    assert response.status_code == 200
    assert response.json["id"] == page["id"]


def test_create_from_and_revisions(client: testing.TestClient) -> None:
    """Posting ``from`` creates the next revision."""
    page = _create_page(client, "/history")

    copied = client.simulate_post("/pages", json={"from": page["id"]})
    revisions = client.simulate_get(f"/pages/{page['pid']}/revisions")

    assert copied.status_code == 201
    assert copied.json["version"] == 2
    assert copied.json["createdFrom"] == page["id"]
    assert [item["version"] for item in revisions.json["items"]] == [2, 1]


def test_create_requires_category_or_source(client: testing.TestClient) -> None:
    """A body without ``category`` or ``from`` is rejected."""
    missing = client.simulate_post("/pages", json={"title": "Nope"})
    not_object = client.simulate_post("/pages", json=["static"])

    assert missing.status_code == 400
    assert not_object.status_code == 400


def test_listings_and_tags(client: testing.TestClient) -> None:
    """Latest and published listings return items with camelCase metadata."""
    first = _create_page(client, "/one")
    _create_page(client, "/two")
    client.simulate_post(f"/pages/{_url_id(first['id'])}/publish")

    latest = client.simulate_get("/pages", params={"sort": "createdOn_asc"})
    published = client.simulate_get("/published-pages")
    by_ids = client.simulate_get(
        "/published-pages",
        params={"id": first["pid"]},
    )
    tags = client.simulate_get("/page-tags", params={"query": "ne"})

    assert latest.json["meta"]["totalCount"] == 2
    assert latest.json["items"][0]["pid"] == first["pid"]
    assert [item["pid"] for item in published.json["items"]] == [first["pid"]]
    assert published.json["meta"]["nextPage"] is None
    assert [item["id"] for item in by_ids.json["items"]] == [first["id"]]
    assert tags.json == {"items": ["news"]}


def test_review_transitions(client: testing.TestClient) -> None:
    """Review requests and change requests run through their routes."""
    page = _create_page(client, "/review")
    url = f"/pages/{_url_id(page['id'])}"

    requested = client.simulate_post(f"{url}/request-review")
    own = client.simulate_post(f"{url}/request-changes")
    changes = client.simulate_post(
        f"{url}/request-changes",
        headers={USER_HEADER: "reviewer-1"},
    )

    assert requested.json["status"] == "reviewRequested"
    assert own.status_code == 409
    assert own.json["code"] == "REQUESTED_CHANGES_ON_PAGE_REVISION_YOU_CREATED"
    assert changes.json["status"] == "changesRequested"


@pytest.mark.parametrize(
    ("method", "suffix", "body", "status", "code"),
    [
        ("GET", "", None, 404, "NOT_FOUND"),
        ("PATCH", "", {"colour": "red"}, 400, "VALIDATION_FAILED_INVALID_FIELDS"),
        ("POST", "/unpublish", None, 409, "PAGE_NOT_PUBLISHED"),
    ],
)
def test_error_bodies(  # noqa: PLR0913
    client: testing.TestClient,
    method: str,
    suffix: str,
    body: dict[str, typ.Any] | None,
    status: int,
    code: str,
) -> None:
    """Domain errors map to HTTP statuses with structured bodies."""
    page = _create_page(client, "/errors")
    target = "missing:0001" if status == 404 else _url_id(page["id"])

    response = client.simulate_request(method, f"/pages/{target}{suffix}", json=body)

    assert response.status_code == status
    assert response.json["code"] == code
    assert set(response.json) == {"code", "message", "data"}


def test_non_ascii_version_is_a_bad_request(client: testing.TestClient) -> None:
    """A superscript digit in the version yields a structured 400."""
    response = client.simulate_get("/pages/abc:%C2%B2")

    assert response.status_code == 400
    assert response.json["code"] == "VALIDATION_FAILED_INVALID_FIELDS"
    assert set(response.json["data"]["invalidFields"]) == {"id"}


def test_locked_and_unauthorized_errors(client: testing.TestClient) -> None:
    """Locked revisions answer 423 and callers without grants answer 403."""
    page = _create_page(client, "/locked")
    url = f"/pages/{_url_id(page['id'])}"
    client.simulate_post(f"{url}/publish")

    locked = client.simulate_patch(url, json={"title": "Late"})
    forbidden = client.simulate_get(url, headers={USER_HEADER: "stranger"})

    assert locked.status_code == 423
    assert locked.json["code"] == "PAGE_LOCKED"
    assert forbidden.status_code == 403
    assert forbidden.json["code"] == "SECURITY_NOT_AUTHORIZED"


def test_delete_revision_reports_new_latest(client: testing.TestClient) -> None:
    """Deleting the newest revision returns the recomputed latest."""
    page = _create_page(client, "/delete")
    copied = client.simulate_post("/pages", json={"from": page["id"]}).json

    removed = client.simulate_delete(f"/pages/{_url_id(copied['id'])}")
    purged = client.simulate_delete(f"/pages/{_url_id(page['id'])}")
    missing = client.simulate_get(f"/pages/{page['pid']}")

    assert removed.json["page"]["version"] == 2
    assert removed.json["latest"]["version"] == 1
    assert purged.json["latest"] is None
    assert missing.status_code == 404


def test_runtime_app_serves_configured_database(
    page_context: PageBuilderContext,
    migrated_engine: AsyncEngine,
    author: Identity,
) -> None:
    """The runtime factory binds the API to the configured database."""
    del page_context
    config = PageBuilderConfig(
        database_url=migrated_engine.url.render_as_string(hide_password=False),
        log_level="warning",
    )
    app = create_runtime_app(
        lambda req: StaticSecurityContext(
            identity=author,
            permissions=[Permission(name="pb.*")],
        ),
        config=config,
    )

    response = testing.TestClient(app).simulate_post(
        "/pages",
        json={"category": "blog"},
    )

    assert response.status_code == 201
    assert response.json["path"].startswith("/blog/")
