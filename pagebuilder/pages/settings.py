"""Page builder settings stored in the document store.

Stored settings bind special pages (``home``, ``notFound``) to pids and
carry prerendering configuration. Defaults come from
:class:`pagebuilder.config.PageBuilderConfig`.
"""

from __future__ import annotations

import typing as typ

from .domain import PageBuilderSettings, PrerenderingSettings
from .mappers import settings_from_item, settings_to_item
from .ports import KeyQuery, PutItem

if typ.TYPE_CHECKING:
    from pagebuilder.config import PageBuilderConfig

    from .ports import DocumentStore
    from .store import PageKeys

SETTINGS_SK = "default"
SPECIAL_PAGE_KEYS = ("home", "notFound")


def default_settings(config: PageBuilderConfig | None = None) -> PageBuilderSettings:
    """Return settings with no special pages and configured prerendering."""
    return PageBuilderSettings(
        pages=dict.fromkeys(SPECIAL_PAGE_KEYS),
        prerendering=PrerenderingSettings(
            app_url=None if config is None else config.prerender_app_url,
            storage_name=None if config is None else config.prerender_storage_name,
        ),
    )


class DocumentSettingsService:
    """Settings service over the ``{prefix}SETTINGS`` partition."""

    def __init__(
        self,
        documents: DocumentStore,
        keys: PageKeys,
        *,
        defaults: PageBuilderSettings | None = None,
    ) -> None:
        self._documents = documents
        self._pk = keys.settings
        self._defaults = defaults if defaults is not None else default_settings()

    async def get(self) -> PageBuilderSettings | None:
        """Return the stored settings, or ``None`` before the first save."""
        [items] = await self._documents.batch_read([
            KeyQuery.point(self._pk, SETTINGS_SK)
        ])
        return settings_from_item(items[0]) if items else None

    async def get_default(self) -> PageBuilderSettings:
        """Return the configured default settings."""
        return self._defaults

    async def save(self, settings: PageBuilderSettings) -> None:
        """Replace the stored settings."""
        data = {**settings_to_item(settings), "PK": self._pk, "SK": SETTINGS_SK}
        await self._documents.batch_write([
            PutItem(pk=self._pk, sk=SETTINGS_SK, data=data)
        ])


__all__ = (
    "SETTINGS_SK",
    "SPECIAL_PAGE_KEYS",
    "DocumentSettingsService",
    "default_settings",
)
