"""Pytest fixtures for database-backed page builder tests.

Tests run against a migrated SQLite file by default. Set
``PAGEBUILDER_TEST_DB=pglite`` to run the same tests against py-pglite
Postgres.

Examples
--------
Run database-backed tests with py-pglite:

>>> PAGEBUILDER_TEST_DB=pglite pytest -k lifecycle
"""

from __future__ import annotations

import asyncio
import contextlib
import os
import typing as typ

import pytest
import pytest_asyncio
import sqlalchemy as sa
import sqlalchemy.exc as sa_exc
from sqlalchemy import pool
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from pagebuilder.config import PageBuilderConfig
from pagebuilder.pages.categories import DocumentCategoryRepository
from pagebuilder.pages.domain import Category
from pagebuilder.pages.permissions import Identity, Permission, StaticSecurityContext
from pagebuilder.pages.storage import build_page_builder_context
from pagebuilder.pages.storage.alembic_helpers import apply_migrations
from pagebuilder.pages.storage.models import Base

if typ.TYPE_CHECKING:
    from pathlib import Path

    from sqlalchemy.ext.asyncio import AsyncEngine

    from pagebuilder.pages.context import PageBuilderContext
    from pagebuilder.pages.hooks import HookChain

try:
    from py_pglite import PGliteConfig, PGliteManager

    _PGLITE_AVAILABLE = True
except ModuleNotFoundError:  # pragma: no cover - optional dependency
    _PGLITE_AVAILABLE = False

TEST_DB_ENV = "PAGEBUILDER_TEST_DB"


class ContextFactory(typ.Protocol):
    """Builds a page builder context for one caller."""

    def __call__(
        self,
        identity: Identity,
        *,
        permissions: list[Permission] | None = None,
        hooks: HookChain | None = None,
        purge_chunk_size: int | None = None,
    ) -> PageBuilderContext: ...


def _should_use_pglite() -> bool:
    """Return True when tests should run against py-pglite.

    If py-pglite is requested but unavailable, fail fast with a clear error
    instead of silently falling back to SQLite.
    """
    target = os.getenv(TEST_DB_ENV, "sqlite").lower()
    if target == "sqlite":
        return False
    if not _PGLITE_AVAILABLE:
        msg = (
            f"Database-backed tests requested via {TEST_DB_ENV}={target!r}, "
            "but py-pglite is not installed. Install the test extra or set "
            f"{TEST_DB_ENV}=sqlite."
        )
        raise RuntimeError(msg)
    return True


async def _wait_for_engine_ready(engine: AsyncEngine) -> None:
    """Wait for py-pglite to accept SQLAlchemy connections."""
    max_attempts = 30
    delay_seconds = 0.1
    for attempt in range(1, max_attempts + 1):
        try:
            async with engine.connect() as connection:
                await connection.execute(sa.text("SELECT 1"))
        except sa_exc.OperationalError:
            if attempt == max_attempts:
                raise
            await asyncio.sleep(delay_seconds)
        else:
            return


@contextlib.asynccontextmanager
async def _pglite_engine(tmp_path: Path) -> typ.AsyncIterator[AsyncEngine]:
    """Start a py-pglite Postgres and yield an async engine bound to it."""
    config = PGliteConfig(work_dir=tmp_path / "pglite")
    with PGliteManager(config):
        engine = create_async_engine(
            config.get_connection_string(),
            pool_pre_ping=True,
        )
        try:
            await _wait_for_engine_ready(engine)
            yield engine
        finally:
            await engine.dispose()


@contextlib.asynccontextmanager
async def _sqlite_engine(tmp_path: Path) -> typ.AsyncIterator[AsyncEngine]:
    """Yield an async engine bound to a fresh SQLite file."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'pagebuilder.db'}",
        poolclass=pool.NullPool,
    )
    try:
        yield engine
    finally:
        await engine.dispose()


@contextlib.contextmanager
def temporary_drift_table() -> typ.Iterator[sa.Table]:
    """Add a temporary table to Base.metadata and remove it on exit."""
    table = sa.Table(
        "_test_drift_table",
        Base.metadata,
        sa.Column("id", sa.Integer, primary_key=True),
    )
    try:
        yield table
    finally:
        Base.metadata.remove(table)


@pytest_asyncio.fixture
async def db_engine(tmp_path: Path) -> typ.AsyncIterator[AsyncEngine]:
    """Yield an empty database engine for the selected backend."""
    factory = _pglite_engine if _should_use_pglite() else _sqlite_engine
    async with factory(tmp_path) as engine:
        yield engine


@pytest_asyncio.fixture
async def migrated_engine(db_engine: AsyncEngine) -> typ.AsyncIterator[AsyncEngine]:
    """Yield an engine with all migrations applied."""
    await apply_migrations(db_engine)
    yield db_engine


@pytest.fixture
def session_factory(
    migrated_engine: AsyncEngine,
) -> async_sessionmaker[AsyncSession]:
    """Return an async session factory bound to the migrated engine."""
    return async_sessionmaker(
        migrated_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest.fixture
def _function_scoped_runner() -> typ.Iterator[asyncio.Runner]:
    """Provide a function-scoped asyncio.Runner for sync BDD steps."""
    with asyncio.Runner() as runner:
        yield runner


@pytest.fixture
def full_access() -> list[Permission]:
    """Return a grant list with unrestricted page access."""
    return [Permission(name="pb.*")]


@pytest.fixture
def author() -> Identity:
    """Return the identity that creates pages in most tests."""
    return Identity(id="author-1", display_name="Ada Author", type="admin")


@pytest.fixture
def reviewer() -> Identity:
    """Return a second identity used for review transitions."""
    return Identity(id="reviewer-1", display_name="Rita Reviewer", type="admin")


@pytest.fixture
def make_context(
    session_factory: async_sessionmaker[AsyncSession],
    full_access: list[Permission],
) -> ContextFactory:
    """Return a builder of SQL-backed contexts for a given caller."""

    def build(
        identity: Identity,
        *,
        permissions: list[Permission] | None = None,
        hooks: HookChain | None = None,
        purge_chunk_size: int | None = None,
    ) -> PageBuilderContext:
        security = StaticSecurityContext(
            identity=identity,
            permissions=list(full_access if permissions is None else permissions),
        )
        config = PageBuilderConfig(
            purge_chunk_size=purge_chunk_size or PageBuilderConfig().purge_chunk_size
        )
        return build_page_builder_context(
            session_factory,
            security,
            config=config,
            hooks=hooks,
        )

    return build


@pytest_asyncio.fixture
async def page_context(
    make_context: ContextFactory,
    author: Identity,
) -> PageBuilderContext:
    """Return the author's context with the ``static`` and ``blog`` categories."""
    context = make_context(author)
    categories = DocumentCategoryRepository(context.documents, context.keys)
    await categories.save(Category(slug="static", name="Static", url="/"))
    await categories.save(
        Category(slug="blog", name="Blog", url="/blog", layout="post")
    )
    return context
