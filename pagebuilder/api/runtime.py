"""Runtime wiring for serving the page builder API.

Identity verification happens in front of this service; the deployment
supplies ``security_factory`` to turn a request into a ``SecurityContext``.

Examples
--------
>>> app = create_runtime_app(lambda req: StaticSecurityContext(identity))
>>> # uvicorn module:app
"""

from __future__ import annotations

import typing as typ

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from pagebuilder.config import PageBuilderConfig
from pagebuilder.logging import configure_logging, get_logger, log_info, log_warning
from pagebuilder.pages.storage import build_page_builder_context

from .app import create_app

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from falcon import asgi

    from pagebuilder.pages.context import PageBuilderContext
    from pagebuilder.pages.hooks import HookChain
    from pagebuilder.pages.ports import SecurityContext

logger = get_logger(__name__)


def create_runtime_app(
    security_factory: cabc.Callable[[asgi.Request], SecurityContext],
    *,
    config: PageBuilderConfig | None = None,
    hooks: HookChain | None = None,
) -> asgi.App:
    """Configure logging and storage, then build the API application.

    Parameters
    ----------
    security_factory : collections.abc.Callable[[falcon.asgi.Request], SecurityContext]
        Resolves the caller for each request.
    config : PageBuilderConfig | None, optional
        Runtime configuration; read from the environment when omitted.
    hooks : HookChain | None, optional
        Lifecycle hooks shared by every request.

    Returns
    -------
    falcon.asgi.App
        Application bound to ``config.database_url``.
    """
    config = PageBuilderConfig.from_environment() if config is None else config
    level, used_default = configure_logging(config.log_level)
    if used_default and config.log_level is not None:
        log_warning(
            logger,
            "Unknown log level %r; using %s.",
            config.log_level,
            level,
        )

    engine = create_async_engine(config.database_url, pool_pre_ping=True)
    session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    log_info(logger, "Page builder API bound to %s.", engine.url)

    def context_factory(req: asgi.Request) -> PageBuilderContext:
        return build_page_builder_context(
            session_factory,
            security_factory(req),
            config=config,
            hooks=hooks,
        )

    return create_app(context_factory)


__all__ = ("create_runtime_app",)
