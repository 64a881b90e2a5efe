"""Tests for the page builder public API surface.

These tests verify the symbols exposed at the package boundary.

Examples
--------
Import the package to inspect its public surface:

>>> import pagebuilder.pages
"""

from __future__ import annotations

import pagebuilder.pages as pages
from pagebuilder import api
from pagebuilder.pages import storage


def test_pages_exports_resolve() -> None:
    """Every name in ``pagebuilder.pages.__all__`` is importable."""
    missing = [name for name in pages.__all__ if not hasattr(pages, name)]
    assert missing == [], f"Expected all exports to resolve, missing: {missing}"


def test_pages_exports_lifecycle_entry_points() -> None:
    """The lifecycle engine and query service are exposed at the boundary."""
    assert {"PageLifecycle", "PageQueries", "PageBuilderContext"} <= set(
        pages.__all__
    ), "Expected the lifecycle entry points to be public."


def test_storage_and_api_exports() -> None:
    """Adapters expose their wiring helpers."""
    assert callable(storage.build_page_builder_context)
    assert api.__all__ == ["create_app"], "Expected create_app as the API surface."
