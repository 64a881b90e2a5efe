"""Request parsing helpers for Falcon resource adapters.

Page ids contain ``#``, which cannot travel unescaped in a URL path. Clients
send it percent-encoded (``%23``) or replace it with ``:``; both forms are
accepted here.

Examples
--------
>>> decode_page_id("5f2a:0003")
'5f2a#0003'
>>> args = parse_list_args(req)  # doctest: +SKIP
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ
import urllib.parse

import falcon

from pagebuilder.pages.queries import DEFAULT_LIST_LIMIT, ListPagesArgs

if typ.TYPE_CHECKING:
    from falcon import asgi

    from .types import JsonPayload

_ID_SEPARATOR_ALIAS = ":"


def decode_page_id(raw_value: str) -> str:
    """Return the ``pid#version`` form of a page id taken from a URL."""
    return urllib.parse.unquote(raw_value).replace(_ID_SEPARATOR_ALIAS, "#")


def require_payload_dict(payload: object) -> JsonPayload:
    """Validate that request media is a JSON object mapping.

    Raises
    ------
    falcon.HTTPBadRequest
        Raised when ``payload`` is not a JSON object.
    """
    if not isinstance(payload, dict):
        msg = "JSON object payload is required."
        raise falcon.HTTPBadRequest(description=msg)
    return typ.cast("JsonPayload", payload)


async def read_payload(req: asgi.Request) -> JsonPayload:
    """Read and validate the request body as a JSON object."""
    return require_payload_dict(await req.get_media())


def _parse_sort(values: list[str] | None) -> tuple[tuple[str, str], ...] | None:
    if not values:
        return None
    pairs = []
    for value in values:
        field, _, direction = value.rpartition("_")
        pairs.append((field, direction))
    return tuple(pairs)


def parse_list_args(req: asgi.Request) -> ListPagesArgs:
    """Build listing arguments from query parameters.

    ``tags`` and ``sort`` accept comma-separated values; sort entries use the
    ``field_direction`` form, e.g. ``savedOn_desc``. Range checks are left to
    the query service.

    Raises
    ------
    falcon.HTTPBadRequest
        Raised when ``page`` or ``limit`` is not an integer.
    """
    sort = _parse_sort(req.get_param_as_list("sort", delimiter=","))
    args = ListPagesArgs(
        category=req.get_param("category"),
        status=req.get_param("status"),
        tags=tuple(req.get_param_as_list("tags", delimiter=",") or ()),
        tags_rule=req.get_param("tagsRule", default="all"),
        search=req.get_param("search"),
        page=req.get_param_as_int("page", default=1),
        limit=req.get_param_as_int("limit", default=DEFAULT_LIST_LIMIT),
    )
    return args if sort is None else dc.replace(args, sort=sort)


__all__ = (
    "decode_page_id",
    "parse_list_args",
    "read_payload",
    "require_payload_dict",
)
