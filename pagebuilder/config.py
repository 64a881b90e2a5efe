"""Environment-driven configuration for the page builder service.

Examples
--------
>>> config = PageBuilderConfig.from_environment()
>>> config.purge_chunk_size
15
"""

from __future__ import annotations

import dataclasses as dc
import os
import typing as typ

if typ.TYPE_CHECKING:
    import collections.abc as cabc

DATABASE_URL_ENV = "DATABASE_URL"
LOG_LEVEL_ENV = "PAGEBUILDER_LOG_LEVEL"
PURGE_CHUNK_SIZE_ENV = "PAGEBUILDER_PURGE_CHUNK_SIZE"
PRERENDER_APP_URL_ENV = "PAGEBUILDER_PRERENDER_APP_URL"
PRERENDER_STORAGE_NAME_ENV = "PAGEBUILDER_PRERENDER_STORAGE_NAME"

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///pagebuilder.db"
DEFAULT_PURGE_CHUNK_SIZE = 15


def _parse_optional_positive_int(value: str | None) -> int | None:
    """Parse a positive integer, returning ``None`` for anything invalid."""
    if value is None:
        return None
    text = value.strip()
    if not text:
        return None
    try:
        parsed = int(text)
    except ValueError:
        return None
    if parsed <= 0:
        return None
    return parsed


def _optional_text(value: str | None) -> str | None:
    if value is None:
        return None
    text = value.strip()
    return text or None


@dc.dataclass(frozen=True, slots=True)
class PageBuilderConfig:
    """Runtime configuration.

    Attributes
    ----------
    database_url : str
        SQLAlchemy async URL for the document store and search tables.
    log_level : str | None
        Requested log level passed to ``configure_logging``.
    purge_chunk_size : int
        Items deleted per batch when a whole page is removed.
    prerender_app_url : str | None
        Default website URL exposed through ``SettingsService.get_default``.
    prerender_storage_name : str | None
        Default prerendering storage name exposed through default settings.
    """

    database_url: str = DEFAULT_DATABASE_URL
    log_level: str | None = None
    purge_chunk_size: int = DEFAULT_PURGE_CHUNK_SIZE
    prerender_app_url: str | None = None
    prerender_storage_name: str | None = None

    @classmethod
    def from_environment(
        cls,
        environ: cabc.Mapping[str, str] | None = None,
    ) -> PageBuilderConfig:
        """Build configuration from environment variables.

        Invalid or missing values fall back to the defaults.
        """
        env = os.environ if environ is None else environ
        chunk_size = _parse_optional_positive_int(env.get(PURGE_CHUNK_SIZE_ENV))
        return cls(
            database_url=_optional_text(env.get(DATABASE_URL_ENV))
            or DEFAULT_DATABASE_URL,
            log_level=_optional_text(env.get(LOG_LEVEL_ENV)),
            purge_chunk_size=chunk_size or DEFAULT_PURGE_CHUNK_SIZE,
            prerender_app_url=_optional_text(env.get(PRERENDER_APP_URL_ENV)),
            prerender_storage_name=_optional_text(
                env.get(PRERENDER_STORAGE_NAME_ENV)
            ),
        )


__all__ = ("PageBuilderConfig",)
