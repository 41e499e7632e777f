"""Logging utilities for gitdeck.

This module provides a standalone structlog logger factory that writes
JSON-formatted or text-formatted logs to a file or to stderr. Each logger is
self-contained and does not modify global structlog configuration.
"""

from __future__ import annotations

import logging
import sys
from os import getenv
from pathlib import Path
from typing import TYPE_CHECKING, Literal, TextIO, cast

import structlog

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

LogFormatType = Literal["json", "text"]

DEBUG_ENV_VAR = "GITDECK_DEBUG"
LOG_LEVEL_ENV_VAR = "GITDECK_LOG_LEVEL"


def _get_log_level() -> int:
    """Get the log level from environment variables.

    Checks GITDECK_DEBUG first (sets DEBUG if present), then
    GITDECK_LOG_LEVEL. Defaults to INFO if neither is set.

    Returns:
        The logging level as an integer.
    """
    if getenv(DEBUG_ENV_VAR, None):
        return logging.DEBUG

    log_levels = logging.getLevelNamesMapping()
    return log_levels.get(getenv(LOG_LEVEL_ENV_VAR, "info").upper(), logging.INFO)


def _log_level_from_string(level: str, *, respect_env: bool = False) -> int:
    """Convert a log level string to a logging level integer.

    Args:
        level: Log level string (debug, info, warning, error).
        respect_env: If True, GITDECK_DEBUG overrides to DEBUG level.

    Returns:
        The logging level as an integer.
    """
    if respect_env and getenv(DEBUG_ENV_VAR, None):
        return logging.DEBUG

    log_levels = logging.getLevelNamesMapping()
    return log_levels.get(level.upper(), logging.INFO)


def _open_destination(log_file: str) -> TextIO:
    if not log_file:
        return sys.stderr
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    return log_path.open("a", encoding="utf-8")


def create_logger(
    *,
    level: str | None = None,
    log_format: LogFormatType = "json",
    log_file: str = "",
    **context: object,
) -> "FilteringBoundLogger":  # noqa: UP037
    """Create a standalone structlog logger.

    The log level is determined by (in order of precedence):
    1. GITDECK_DEBUG environment variable (if set, enables DEBUG level)
    2. The `level` parameter (if provided)
    3. GITDECK_LOG_LEVEL environment variable
    4. Default: INFO

    Args:
        level: Optional log level string (debug, info, warning, error).
        log_format: Output format, either "json" or "text".
        log_file: Path to the log file, opened in append mode. Logs go to
            stderr when empty.
        **context: Key-value pairs bound to every entry.

    Returns:
        A configured FilteringBoundLogger instance.
    """
    effective_level = (
        _log_level_from_string(level, respect_env=True)
        if level is not None
        else _get_log_level()
    )

    processors: list[structlog.typing.Processor] = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if log_format == "json":
        # Add dict_tracebacks for structured exception logging in JSON
        processors.append(structlog.processors.dict_tracebacks)
        processors.append(structlog.processors.JSONRenderer())
    else:
        # Text format: "timestamp [level] event key=value ..."
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    wrapper_class = structlog.make_filtering_bound_logger(effective_level)
    raw_logger = structlog.WriteLoggerFactory(file=_open_destination(log_file))()

    logger = cast(
        "FilteringBoundLogger",
        structlog.wrap_logger(
            raw_logger,
            processors=processors,
            wrapper_class=wrapper_class,
            context_class=dict,
        ),
    )
    if context:
        return logger.bind(**context)
    return logger


def get_cli_log_file() -> Path:
    """Get the default CLI log file in the platform's user log directory."""
    import platformdirs

    return platformdirs.user_log_path("gitdeck") / "cli.log"


def create_cli_logger(
    *,
    level: str | None = None,
    log_format: LogFormatType = "json",
    log_file: str = "",
) -> "FilteringBoundLogger":  # noqa: UP037
    """Create a logger for CLI commands.

    CLI output stays on the terminal, so logs always go to a file.

    Args:
        level: Optional log level string (debug, info, warning, error).
        log_format: Output format, either "json" or "text".
        log_file: Path to log file (uses the user log directory if empty).

    Returns:
        A configured FilteringBoundLogger instance.
    """
    effective_file = log_file if log_file else str(get_cli_log_file())
    return create_logger(level=level, log_format=log_format, log_file=effective_file)
