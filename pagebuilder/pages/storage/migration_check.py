"""Schema drift detection between ORM models and Alembic migrations.

The check migrates an empty database, compares it with ``Base.metadata`` and
exits non-zero when they diverge, so CI can block unmigrated model changes.

Examples
--------
Run the drift check from the command line:

>>> python -m pagebuilder.pages.storage.migration_check
"""

from __future__ import annotations

import asyncio
import pathlib
import sys
import tempfile
import typing as typ

from alembic.autogenerate import compare_metadata
from alembic.migration import MigrationContext
from sqlalchemy.ext.asyncio import create_async_engine

from pagebuilder.logging import get_logger, log_error, log_info

from .alembic_helpers import apply_migrations, current_revision, head_revision
from .models import Base

if typ.TYPE_CHECKING:
    import sqlalchemy as sa
    from sqlalchemy.engine import Connection
    from sqlalchemy.ext.asyncio import AsyncEngine

_logger = get_logger(__name__)


def _compare_schema(
    connection: Connection,
    metadata: sa.MetaData,
) -> list[tuple[object, ...]]:
    ctx = MigrationContext.configure(connection)
    return typ.cast("list[tuple[object, ...]]", compare_metadata(ctx, metadata))


async def detect_schema_drift(engine: AsyncEngine) -> list[tuple[object, ...]]:
    """Detect differences between applied migrations and ORM models.

    Parameters
    ----------
    engine : AsyncEngine
        An async SQLAlchemy engine where all Alembic migrations have
        already been applied.

    Returns
    -------
    list[tuple[object, ...]]
        Differences reported by Alembic; empty when in sync.
    """
    async with engine.connect() as connection:
        return await connection.run_sync(_compare_schema, Base.metadata)


async def check_migrations_cli() -> int:
    """Run the drift check against a throwaway SQLite database.

    Returns
    -------
    int
        0 when models and migrations match, 1 when drift is detected.
    """
    with tempfile.TemporaryDirectory(prefix="pagebuilder-migration-check-") as tmp:
        database = pathlib.Path(tmp) / "check.db"
        engine = create_async_engine(f"sqlite+aiosqlite:///{database}")
        try:
            log_info(
                _logger,
                "Applying migrations up to %s on ephemeral database.",
                head_revision(),
            )
            await apply_migrations(engine)
            log_info(
                _logger,
                "Checking database at %s for schema drift.",
                await current_revision(engine),
            )
            diffs = await detect_schema_drift(engine)
        finally:
            await engine.dispose()

    if diffs:
        log_error(_logger, "Schema drift detected (%s difference(s)):", len(diffs))
        for diff in diffs:
            log_error(_logger, "  %s", diff)
        return 1

    log_info(_logger, "No schema drift detected.")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(check_migrations_cli()))
