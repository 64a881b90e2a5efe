"""Unit tests for page payload validation and settings merging."""

from __future__ import annotations

import pytest

from pagebuilder.pages.errors import ValidationError
from pagebuilder.pages.models import (
    merge_settings,
    validate_create_data,
    validate_update_data,
)


def test_validate_create_data_requires_category() -> None:
    """Creation payloads need a non-blank category slug."""
    assert validate_create_data({"category": "static"}) == {"category": "static"}
    with pytest.raises(ValidationError) as exc_info:
        validate_create_data({"category": "  "})
    assert "category" in exc_info.value.invalid_fields


def test_validate_update_data_returns_only_given_fields() -> None:
    """Only supplied fields are returned, with the path normalized."""
    dirty = validate_update_data({"title": "About", "path": "about//us/"})
    assert dirty == {"title": "About", "path": "/about/us"}


@pytest.mark.parametrize("path", ["//", "/ ", " / ", "///"])
def test_validate_update_data_rejects_paths_collapsing_to_root(path: str) -> None:
    """Paths are measured after normalization, so none may become ``/``."""
    with pytest.raises(ValidationError) as exc_info:
        validate_update_data({"path": path})
    assert set(exc_info.value.invalid_fields) == {"path"}


def test_validate_update_data_collects_every_invalid_field() -> None:
    """All invalid fields are reported together."""
    with pytest.raises(ValidationError) as exc_info:
        validate_update_data({
            "title": "",
            "path": "/",
            "status": "published",
            "visibility": {"list": {"latest": "yes"}},
        })
    invalid = exc_info.value.invalid_fields
    assert set(invalid) == {"title", "path", "status", "visibility.list.latest"}
    assert exc_info.value.code == "VALIDATION_FAILED_INVALID_FIELDS"


def test_validate_update_data_rejects_long_title() -> None:
    """Titles longer than 150 characters are refused."""
    with pytest.raises(ValidationError, match="title"):
        validate_update_data({"title": "x" * 151})


def test_merge_settings_merges_per_section() -> None:
    """Patched keys replace stored keys; untouched sections survive."""
    current = {
        "general": {"layout": "static", "tags": ["a"]},
        "seo": {"title": "Old"},
    }
    merged = merge_settings(current, {"general": {"tags": ["b", "c"]}})
    assert merged == {
        "general": {"layout": "static", "tags": ["b", "c"]},
        "seo": {"title": "Old"},
    }
    assert current["general"] == {"layout": "static", "tags": ["a"]}, (
        "Expected the stored settings to stay untouched."
    )


def test_merge_settings_rejects_unknown_sections_and_bad_tags() -> None:
    """Unknown sections and non-string tags are validation errors."""
    with pytest.raises(ValidationError) as exc_info:
        merge_settings({}, {"theme": {}, "general": {"tags": [1]}})
    assert set(exc_info.value.invalid_fields) == {
        "settings.theme",
        "settings.general.tags",
    }
