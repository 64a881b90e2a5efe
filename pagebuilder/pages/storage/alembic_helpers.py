"""Alembic wiring for the page builder tables.

Migrations live in the ``alembic/`` directory at the project root next to
``alembic.ini``. The drift check and the database test fixtures upgrade
their engines through :func:`apply_migrations` and read revision ids with
:func:`head_revision` and :func:`current_revision`.

Examples
--------
>>> await apply_migrations(engine)
>>> await current_revision(engine) == head_revision()
True
"""

import pathlib
import typing as typ

from alembic.config import Config
from alembic.migration import MigrationContext
from alembic.script import ScriptDirectory

from alembic import command

if typ.TYPE_CHECKING:
    from sqlalchemy.engine import Connection
    from sqlalchemy.ext.asyncio import AsyncEngine

_PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[3]
_INI_PATH = _PROJECT_ROOT / "alembic.ini"
_SCRIPT_LOCATION = _PROJECT_ROOT / "alembic"


def alembic_config(database_url: str | None = None) -> Config:
    """Build the Alembic configuration for the page builder schema.

    Parameters
    ----------
    database_url : str | None
        Database URL placed in ``sqlalchemy.url``. ``%`` is doubled because
        Alembic reads the option through ConfigParser interpolation.

    Returns
    -------
    Config
        Configuration whose script location is the project's ``alembic``
        directory.
    """
    cfg = Config(str(_INI_PATH))
    cfg.set_main_option("script_location", str(_SCRIPT_LOCATION))
    if database_url is not None:
        cfg.set_main_option("sqlalchemy.url", database_url.replace("%", "%%"))
    return cfg


def head_revision() -> str | None:
    """Return the newest migration id, or ``None`` without migrations."""
    return ScriptDirectory.from_config(alembic_config()).get_current_head()


def _upgrade(connection: Connection, cfg: Config, target: str) -> None:
    cfg.attributes["connection"] = connection
    command.upgrade(cfg, target)


def _stamped_revision(connection: Connection) -> str | None:
    return MigrationContext.configure(connection).get_current_revision()


async def apply_migrations(engine: AsyncEngine, target: str = "head") -> None:
    """Upgrade the database behind *engine* to *target*."""
    cfg = alembic_config(engine.url.render_as_string(hide_password=False))
    async with engine.begin() as connection:
        await connection.run_sync(_upgrade, cfg, target)


async def current_revision(engine: AsyncEngine) -> str | None:
    """Return the migration id stamped in the database behind *engine*."""
    async with engine.connect() as connection:
        return await connection.run_sync(_stamped_revision)
