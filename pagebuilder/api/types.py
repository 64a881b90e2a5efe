"""Shared types for the Falcon page builder adapter.

``ContextFactory`` builds the per-request ``PageBuilderContext`` from the
incoming request; identity resolution happens inside that factory.

Example
-------
>>> factory: ContextFactory = (  # doctest: +SKIP
...     lambda req: build_page_builder_context(session_factory, security)
... )
"""

from __future__ import annotations

import collections.abc as cabc
import typing as typ

if typ.TYPE_CHECKING:
    from falcon import asgi

    from pagebuilder.pages.context import PageBuilderContext

type ContextFactory = cabc.Callable[[asgi.Request], PageBuilderContext]
type JsonPayload = dict[str, object]
