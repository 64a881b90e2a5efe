"""REST API adapter for the page builder.

This package exposes the Falcon application factory used by runtime adapters
and integration tests.

Examples
--------
>>> from pagebuilder.api import create_app
>>> app = create_app(context_factory)  # doctest: +SKIP
"""

from __future__ import annotations

from .app import create_app

__all__ = ["create_app"]
