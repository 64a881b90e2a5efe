"""Permission checks for page operations.

Permissions are named grants (``pb.page``) optionally restricted by letter
sets: ``rwd`` for read/write/delete and ``pw`` for the publishing workflow
(``p`` publish, ``u`` unpublish, ``r`` request review, ``c`` request
changes). An ``own`` grant limits the caller to records they own.
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import typing as typ

from .errors import NotAuthorizedError

if typ.TYPE_CHECKING:
    from .domain import Owner
    from .ports import SecurityContext

FULL_ACCESS = "*"


@dc.dataclass(frozen=True, slots=True)
class Identity:
    """Calling identity as resolved by the identity provider."""

    id: str
    display_name: str | None = None
    type: str | None = None


@dc.dataclass(frozen=True, slots=True)
class Permission:
    """A named grant.

    Attributes
    ----------
    name : str
        Permission name, ``*`` for full access or a ``prefix.*`` wildcard.
    own : bool
        Whether the grant only covers records owned by the caller.
    rwd : str | None
        Allowed read/write/delete letters; ``None`` means unrestricted.
    pw : str | None
        Allowed publishing-workflow letters; ``None`` means unrestricted.
    """

    name: str
    own: bool = False
    rwd: str | None = None
    pw: str | None = None

    def matches(self, name: str) -> bool:
        """Return True when this grant covers the permission ``name``."""
        if self.name in {FULL_ACCESS, name}:
            return True
        if self.name.endswith(".*"):
            return name.startswith(self.name[:-1])
        return False


def find_permission(
    permissions: cabc.Iterable[Permission],
    name: str,
) -> Permission | None:
    """Return the first grant in ``permissions`` covering ``name``."""
    return next((item for item in permissions if item.matches(name)), None)


async def check_base_permission(
    security: SecurityContext,
    name: str,
    *,
    rwd: str | None = None,
    pw: str | None = None,
) -> Permission:
    """Return the caller's grant for ``name`` or refuse the operation.

    Parameters
    ----------
    security : SecurityContext
        Request security context.
    name : str
        Permission name, e.g. ``pb.page``.
    rwd : str | None, optional
        Required read/write/delete letter.
    pw : str | None, optional
        Required publishing-workflow letter.

    Returns
    -------
    Permission
        The matched grant, so callers can apply own-record checks.

    Raises
    ------
    NotAuthorizedError
        If no grant matches or the grant lacks a required letter.
    """
    permission = await security.get_permission(name)
    if permission is None:
        raise NotAuthorizedError
    if rwd is not None and permission.rwd is not None and rwd not in permission.rwd:
        raise NotAuthorizedError
    if pw is not None and permission.pw is not None and pw not in permission.pw:
        raise NotAuthorizedError
    return permission


def check_own_permission(
    identity: Identity,
    permission: Permission,
    owner: Owner,
) -> None:
    """Refuse access when an own-only grant meets someone else's record.

    Raises
    ------
    NotAuthorizedError
        If ``permission.own`` is set and ``owner.id`` differs from the caller.
    """
    if permission.own and owner.id != identity.id:
        raise NotAuthorizedError


@dc.dataclass(slots=True)
class StaticSecurityContext:
    """Security context built from an already-resolved identity.

    Identity issuance happens upstream; adapters construct one context per
    request from the verified identity and its role permissions.
    """

    identity: Identity
    tenant: str = "root"
    locale: str = "en-US"
    permissions: list[Permission] = dc.field(default_factory=list)

    def get_identity(self) -> Identity:
        """Return the calling identity."""
        return self.identity

    def get_tenant(self) -> str:
        """Return the active tenant id."""
        return self.tenant

    def get_locale(self) -> str:
        """Return the active locale code."""
        return self.locale

    async def get_permission(self, name: str) -> Permission | None:
        """Return the first grant covering ``name``."""
        return find_permission(self.permissions, name)


__all__ = (
    "FULL_ACCESS",
    "Identity",
    "Permission",
    "StaticSecurityContext",
    "check_base_permission",
    "check_own_permission",
    "find_permission",
)
