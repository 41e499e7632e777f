"""Utilities shared across gitdeck."""

from ._logging import (
    DEBUG_ENV_VAR,
    LOG_LEVEL_ENV_VAR,
    LogFormatType,
    create_cli_logger,
    create_logger,
    get_cli_log_file,
)

__all__ = [
    "DEBUG_ENV_VAR",
    "LOG_LEVEL_ENV_VAR",
    "LogFormatType",
    "create_cli_logger",
    "create_logger",
    "get_cli_log_file",
]
