"""Assemble a ``PageBuilderContext`` over the SQLAlchemy adapters.

Examples
--------
>>> context = build_page_builder_context(session_factory, security)
>>> page = await PageLifecycle(context).create("static")
"""

from __future__ import annotations

import typing as typ

from pagebuilder.config import PageBuilderConfig
from pagebuilder.pages.categories import DocumentCategoryRepository
from pagebuilder.pages.context import PageBuilderContext
from pagebuilder.pages.hooks import HookChain
from pagebuilder.pages.settings import DocumentSettingsService, default_settings
from pagebuilder.pages.store import PageKeys

from .document_store import SqlAlchemyDocumentStore
from .search_index import SqlAlchemySearchIndex

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from sqlalchemy.ext.asyncio import AsyncSession

    from pagebuilder.pages.ports import SecurityContext


def build_page_builder_context(
    session_factory: cabc.Callable[[], AsyncSession],
    security: SecurityContext,
    *,
    config: PageBuilderConfig | None = None,
    hooks: HookChain | None = None,
) -> PageBuilderContext:
    """Return a context whose ports all share ``session_factory``.

    Parameters
    ----------
    session_factory : collections.abc.Callable[[], AsyncSession]
        Factory for async sessions bound to the migrated database.
    security : SecurityContext
        Caller identity, tenant and locale for this request.
    config : PageBuilderConfig | None, optional
        Runtime configuration; defaults to ``PageBuilderConfig()``.
    hooks : HookChain | None, optional
        Lifecycle hooks; defaults to an empty chain.

    Returns
    -------
    PageBuilderContext
        Context ready for ``PageLifecycle`` and ``PageQueries``.
    """
    config = PageBuilderConfig() if config is None else config
    documents = SqlAlchemyDocumentStore(session_factory)
    keys = PageKeys(tenant=security.get_tenant(), locale=security.get_locale())
    return PageBuilderContext(
        security=security,
        documents=documents,
        search_index=SqlAlchemySearchIndex(session_factory),
        settings=DocumentSettingsService(
            documents,
            keys,
            defaults=default_settings(config),
        ),
        categories=DocumentCategoryRepository(documents, keys),
        hooks=HookChain() if hooks is None else hooks,
        purge_chunk_size=config.purge_chunk_size,
    )


__all__ = ("build_page_builder_context",)
