"""femtologging helpers shared by the page builder service.

Every module that logs keeps a module-level ``logger = get_logger(__name__)``
and emits through the ``log_*`` helpers so messages use percent-style
templates consistently.

Examples
--------
Configure logging once at start-up and log a lifecycle event:

>>> level, used_default = configure_logging("INFO")
>>> log_info(get_logger(__name__), "Published page %s.", "abc#0001")
"""

from __future__ import annotations

import enum
import typing as typ

from femtologging import basicConfig, get_logger


class LogLevel(enum.StrEnum):
    """Log levels accepted by ``configure_logging``."""

    TRACE = "TRACE"
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


_LEVEL_ALIASES: typ.Final[dict[str, LogLevel]] = {"WARN": LogLevel.WARNING}


def configure_logging(level: str | None, *, force: bool = False) -> tuple[str, bool]:
    """Configure femtologging and return the effective level.

    Parameters
    ----------
    level : str | None
        Requested level name (case-insensitive). ``WARN`` is accepted as an
        alias of ``WARNING``.
    force : bool, optional
        Whether to replace handlers that are already configured.

    Returns
    -------
    tuple[str, bool]
        ``(effective_level, used_default)``; ``used_default`` is True when the
        requested level was missing or unknown and INFO was applied instead.
    """
    requested = level.strip().upper() if level else ""
    if requested in _LEVEL_ALIASES:
        resolved: LogLevel | None = _LEVEL_ALIASES[requested]
    else:
        resolved = LogLevel.__members__.get(requested)

    used_default = resolved is None
    effective = LogLevel.INFO if resolved is None else resolved
    basicConfig(level=effective, force=force)
    return (effective, used_default)


class _SupportsLog(typ.Protocol):
    """Structural type for femtologging loggers."""

    def log(
        self,
        level: str,
        message: str,
        /,
        *,
        exc_info: object | None = None,
        stack_info: bool = False,
    ) -> None: ...


def _log(
    logger: _SupportsLog,
    level: LogLevel,
    template: str,
    args: tuple[object, ...],
    exc_info: object | None,
) -> None:
    message = template % args if args else template
    logger.log(level, message, exc_info=exc_info, stack_info=False)


def log_debug(
    logger: _SupportsLog,
    template: str,
    *args: object,
    exc_info: object | None = None,
) -> None:
    """Format and emit a DEBUG message."""
    _log(logger, LogLevel.DEBUG, template, args, exc_info)


def log_info(
    logger: _SupportsLog,
    template: str,
    *args: object,
    exc_info: object | None = None,
) -> None:
    """Format and emit an INFO message.

    Parameters
    ----------
    logger : _SupportsLog
        Logger returned by ``get_logger``.
    template : str
        Percent-style template.
    *args : object
        Values interpolated into ``template``.
    exc_info : object | None, optional
        Exception information attached to the record.

    Raises
    ------
    TypeError
        If ``template`` and ``args`` do not line up.
    """
    _log(logger, LogLevel.INFO, template, args, exc_info)


def log_warning(
    logger: _SupportsLog,
    template: str,
    *args: object,
    exc_info: object | None = None,
) -> None:
    """Format and emit a WARNING message."""
    _log(logger, LogLevel.WARNING, template, args, exc_info)


def log_error(
    logger: _SupportsLog,
    template: str,
    *args: object,
    exc_info: object | None = None,
) -> None:
    """Format and emit an ERROR message."""
    _log(logger, LogLevel.ERROR, template, args, exc_info)


__all__ = (
    "LogLevel",
    "configure_logging",
    "get_logger",
    "log_debug",
    "log_error",
    "log_info",
    "log_warning",
)
