"""Unit tests for the page permission gate."""

from __future__ import annotations

import pytest

from pagebuilder.pages.domain import Owner
from pagebuilder.pages.errors import NotAuthorizedError
from pagebuilder.pages.permissions import (
    Identity,
    Permission,
    StaticSecurityContext,
    check_base_permission,
    check_own_permission,
    find_permission,
)

CALLER = Identity(id="user-1", display_name="User One", type="admin")


def _security(*permissions: Permission) -> StaticSecurityContext:
    return StaticSecurityContext(identity=CALLER, permissions=list(permissions))


@pytest.mark.parametrize(
    ("grant", "name", "expected"),
    [
        ("*", "pb.page", True),
        ("pb.*", "pb.page", True),
        ("pb.page", "pb.page", True),
        ("pb.category", "pb.page", False),
        ("cms.*", "pb.page", False),
    ],
)
def test_permission_matches(grant: str, name: str, *, expected: bool) -> None:
    """Grants match exact names, full access and prefix wildcards."""
    assert Permission(name=grant).matches(name) is expected


def test_find_permission_returns_first_match() -> None:
    """The first covering grant wins."""
    first = Permission(name="pb.page", rwd="r")
    second = Permission(name="pb.*")
    assert find_permission([first, second], "pb.page") is first
    assert find_permission([first], "pb.settings") is None


@pytest.mark.asyncio
async def test_check_base_permission_requires_a_grant() -> None:
    """Callers without a matching grant are refused."""
    with pytest.raises(NotAuthorizedError) as exc_info:
        await check_base_permission(_security(), "pb.page", rwd="r")
    assert exc_info.value.code == "SECURITY_NOT_AUTHORIZED"


@pytest.mark.asyncio
async def test_check_base_permission_honours_rwd_letters() -> None:
    """A read-only grant allows reads and refuses writes."""
    security = _security(Permission(name="pb.page", rwd="r"))
    grant = await check_base_permission(security, "pb.page", rwd="r")
    assert grant.rwd == "r"
    with pytest.raises(NotAuthorizedError):
        await check_base_permission(security, "pb.page", rwd="w")


@pytest.mark.asyncio
async def test_check_base_permission_honours_pw_letters() -> None:
    """A publish-only grant refuses unpublish."""
    security = _security(Permission(name="pb.page", pw="p"))
    await check_base_permission(security, "pb.page", pw="p")
    with pytest.raises(NotAuthorizedError):
        await check_base_permission(security, "pb.page", pw="u")


@pytest.mark.asyncio
async def test_unrestricted_grant_allows_every_letter() -> None:
    """Grants without letter sets allow every action."""
    security = _security(Permission(name="pb.*"))
    for letter in "rwd":
        await check_base_permission(security, "pb.page", rwd=letter)
    for letter in "purc":
        await check_base_permission(security, "pb.page", pw=letter)


def test_check_own_permission() -> None:
    """Own-only grants cover the caller's records only."""
    own = Permission(name="pb.page", own=True)
    check_own_permission(CALLER, own, Owner(id="user-1"))
    check_own_permission(CALLER, Permission(name="pb.page"), Owner(id="other"))
    with pytest.raises(NotAuthorizedError):
        check_own_permission(CALLER, own, Owner(id="other"))


def test_static_security_context_accessors() -> None:
    """The static context reports the identity, tenant and locale it holds."""
    security = StaticSecurityContext(identity=CALLER, tenant="acme", locale="de-DE")
    assert security.get_identity() is CALLER
    assert security.get_tenant() == "acme"
    assert security.get_locale() == "de-DE"
