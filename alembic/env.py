"""Alembic environment for the page builder schema.

Migrations run against an async engine. Callers such as
``pagebuilder.pages.storage.alembic_helpers.apply_migrations`` may hand over
an open connection through ``config.attributes["connection"]``; otherwise
the URL comes from ``DATABASE_URL`` or ``sqlalchemy.url``.
"""

from __future__ import annotations

import asyncio
import os
import pathlib
import typing as typ
from logging.config import fileConfig

from sqlalchemy import pool
from sqlalchemy.ext.asyncio import AsyncConnection, async_engine_from_config

from alembic import context
from pagebuilder.config import DATABASE_URL_ENV
from pagebuilder.pages.storage import Base

if typ.TYPE_CHECKING:
    from sqlalchemy.engine import Connection

config = context.config

if config.config_file_name and pathlib.Path(config.config_file_name).exists():
    fileConfig(config.config_file_name, disable_existing_loggers=False)

target_metadata = Base.metadata


def _database_url() -> str:
    """Return the URL to migrate, preferring the environment."""
    url = os.environ.get(DATABASE_URL_ENV) or config.get_main_option("sqlalchemy.url")
    if not url:
        msg = f"{DATABASE_URL_ENV} is not set and sqlalchemy.url is empty."
        raise RuntimeError(msg)
    config.set_main_option("sqlalchemy.url", url.replace("%", "%%"))
    return url


def _configure(connection: Connection) -> None:
    """Bind the migration context to *connection*."""
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        compare_type=True,
        render_as_batch=connection.dialect.name == "sqlite",
    )


def _do_run_migrations(connection: Connection) -> None:
    _configure(connection)
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_offline() -> None:
    """Emit migration SQL without a database connection."""
    context.configure(
        url=_database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        compare_type=True,
    )
    with context.begin_transaction():
        context.run_migrations()


async def _run_with_new_engine() -> None:
    _database_url()
    engine = async_engine_from_config(
        config.get_section(config.config_ini_section) or {},
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_do_run_migrations)
    finally:
        await engine.dispose()


def run_migrations_online() -> None:
    """Run migrations on a supplied connection or a fresh async engine."""
    connection = config.attributes.get("connection")
    if connection is None:
        asyncio.run(_run_with_new_engine())
    elif isinstance(connection, AsyncConnection):
        asyncio.run(connection.run_sync(_do_run_migrations))
    else:
        _do_run_migrations(connection)


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
