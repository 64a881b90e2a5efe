"""Validation of page create/update payloads and settings.

Payloads arrive as JSON objects. Validation collects every invalid field
before failing so callers can report them together.
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import typing as typ

from .errors import ValidationError
from .paths import normalize_path

if typ.TYPE_CHECKING:
    from .domain import JsonMapping

TITLE_MAX_LENGTH = 150
CATEGORY_MAX_LENGTH = 100
PATH_MIN_LENGTH = 2
PATH_MAX_LENGTH = 150
SETTINGS_TEXT_MAX_LENGTH = 500

_UPDATE_FIELDS = frozenset(
    {"title", "category", "path", "settings", "content", "visibility"}
)
_SETTINGS_SECTIONS = frozenset({"general", "social", "seo", "advanced"})


@dc.dataclass(slots=True)
class _FieldErrors:
    """Accumulates ``field -> message`` pairs."""

    errors: dict[str, str] = dc.field(default_factory=dict)

    def add(self, field: str, message: str) -> None:
        self.errors.setdefault(field, message)

    def raise_if_any(self, subject: str) -> None:
        if not self.errors:
            return
        names = ", ".join(sorted(self.errors))
        msg = f"Validation failed for {subject}: {names}."
        raise ValidationError(msg, data={"invalidFields": dict(self.errors)})


def _check_text(
    errors: _FieldErrors,
    field: str,
    value: object,
    *,
    min_length: int = 0,
    max_length: int,
    required: bool = False,
) -> None:
    if value is None:
        if required:
            errors.add(field, "Value is required.")
        return
    if not isinstance(value, str):
        errors.add(field, "Value must be a string.")
        return
    if required and not value.strip():
        errors.add(field, "Value is required.")
    elif len(value) < min_length:
        errors.add(field, f"Value must be at least {min_length} characters long.")
    elif len(value) > max_length:
        errors.add(field, f"Value must not exceed {max_length} characters.")


def validate_create_data(data: cabc.Mapping[str, object]) -> JsonMapping:
    """Validate the payload used to create a page.

    Raises
    ------
    ValidationError
        If ``category`` is missing, blank or too long.
    """
    errors = _FieldErrors()
    _check_text(
        errors,
        "category",
        data.get("category"),
        max_length=CATEGORY_MAX_LENGTH,
        required=True,
    )
    errors.raise_if_any("page creation")
    return {"category": data["category"]}


def _check_visibility(errors: _FieldErrors, value: object) -> None:
    if not isinstance(value, cabc.Mapping):
        errors.add("visibility", "Value must be an object.")
        return
    for group, flags in value.items():
        if group not in {"list", "get"}:
            errors.add(f"visibility.{group}", "Unknown visibility group.")
            continue
        if not isinstance(flags, cabc.Mapping):
            errors.add(f"visibility.{group}", "Value must be an object.")
            continue
        for flag, enabled in flags.items():
            if flag not in {"latest", "published"}:
                errors.add(f"visibility.{group}.{flag}", "Unknown visibility flag.")
            elif not isinstance(enabled, bool):
                errors.add(f"visibility.{group}.{flag}", "Value must be a boolean.")


def _check_meta_list(errors: _FieldErrors, field: str, value: object) -> None:
    if not isinstance(value, list):
        errors.add(field, "Value must be a list.")
        return
    for index, entry in enumerate(value):
        if not isinstance(entry, cabc.Mapping):
            errors.add(f"{field}.{index}", "Value must be an object.")


def _check_settings_section(
    errors: _FieldErrors,
    section: str,
    value: object,
) -> None:
    prefix = f"settings.{section}"
    if not isinstance(value, cabc.Mapping):
        errors.add(prefix, "Value must be an object.")
        return
    for key, item in value.items():
        field = f"{prefix}.{key}"
        match key:
            case "tags":
                if not isinstance(item, list) or not all(
                    isinstance(tag, str) for tag in item
                ):
                    errors.add(field, "Value must be a list of strings.")
            case "meta":
                _check_meta_list(errors, field, item)
            case "snippet" | "title" | "description" | "layout":
                _check_text(
                    errors,
                    field,
                    item,
                    max_length=SETTINGS_TEXT_MAX_LENGTH,
                )
            case _:
                pass


def merge_settings(
    current: cabc.Mapping[str, object],
    patch: cabc.Mapping[str, object] | None,
) -> JsonMapping:
    """Merge a settings patch into ``current`` one section at a time.

    Keys inside a patched section replace the stored keys; sections absent
    from the patch are kept unchanged.

    Raises
    ------
    ValidationError
        If the patch contains unknown sections or mistyped values.
    """
    merged: JsonMapping = {
        section: dict(typ.cast("cabc.Mapping[str, object]", value))
        for section, value in current.items()
        if isinstance(value, cabc.Mapping)
    }
    if not patch:
        return merged

    errors = _FieldErrors()
    for section, value in patch.items():
        if section not in _SETTINGS_SECTIONS:
            errors.add(f"settings.{section}", "Unknown settings section.")
            continue
        _check_settings_section(errors, section, value)
    errors.raise_if_any("page settings")

    for section, value in patch.items():
        existing = typ.cast("JsonMapping", merged.get(section, {}))
        merged[section] = {**existing, **typ.cast("JsonMapping", value)}
    return merged


def validate_update_data(data: cabc.Mapping[str, object]) -> JsonMapping:
    """Validate an update patch and return only the fields it sets.

    ``path`` is returned in normalized form. ``settings`` is validated but
    merged by ``merge_settings`` against the stored revision.

    Raises
    ------
    ValidationError
        If the patch contains unknown or invalid fields.
    """
    errors = _FieldErrors()
    for field in data:
        if field not in _UPDATE_FIELDS:
            errors.add(field, "Unknown field.")

    if "title" in data:
        _check_text(
            errors,
            "title",
            data["title"],
            max_length=TITLE_MAX_LENGTH,
            required=True,
        )
    if "category" in data:
        _check_text(
            errors,
            "category",
            data["category"],
            max_length=CATEGORY_MAX_LENGTH,
            required=True,
        )
    if "path" in data:
        path = data["path"]
        # Lengths apply to the stored form; "//" and "/ " collapse to "/".
        _check_text(
            errors,
            "path",
            normalize_path(path) if isinstance(path, str) else path,
            min_length=PATH_MIN_LENGTH,
            max_length=PATH_MAX_LENGTH,
            required=True,
        )
    if "settings" in data and not isinstance(data["settings"], cabc.Mapping):
        errors.add("settings", "Value must be an object.")
    if "visibility" in data:
        _check_visibility(errors, data["visibility"])
    errors.raise_if_any("page update")

    dirty: JsonMapping = {
        field: value for field, value in data.items() if field in _UPDATE_FIELDS
    }
    if isinstance(dirty.get("path"), str):
        dirty["path"] = normalize_path(typ.cast("str", dirty["path"]))
    return dirty


__all__ = ("merge_settings", "validate_create_data", "validate_update_data")
