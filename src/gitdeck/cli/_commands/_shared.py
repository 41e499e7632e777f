# pyright: reportExplicitAny=false
"""Shared CLI utilities for commands.

- Standardized exit codes
- JSON output
- Running service calls with consistent error reporting
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from enum import IntEnum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Never, TypeVar

import anyio
from rich.console import Console

from gitdeck.exceptions import GitDeckError, ValidationError
from gitdeck.git import GitService

from ._context import CLIContext

if TYPE_CHECKING:
    from gitdeck.git import GitStatusDetail

T = TypeVar("T")

__all__ = [
    "ExitCode",
    "exit_with_error",
    "format_json",
    "get_error_console",
    "get_service",
    "project_path",
    "run_service",
    "status_style",
]


class ExitCode(IntEnum):
    """Standard exit codes for gitdeck CLI commands."""

    SUCCESS = 0
    OPERATION_ERROR = 1
    VALIDATION_ERROR = 2
    CONFIG_ERROR = 3


def format_json(data: Any, *, indent: bool = True) -> str:
    """Format data as JSON.

    Dataclasses, enums and lists of them serialize natively.

    Args:
        data: Value to format as JSON.
        indent: Whether to pretty-print with indentation.

    Returns:
        JSON-formatted string representation.
    """
    import orjson

    options = orjson.OPT_INDENT_2 if indent else 0
    return orjson.dumps(data, option=options).decode("utf-8")


def get_error_console() -> Console:
    """Get a Rich console configured for error output to stderr."""
    return Console(stderr=True)


def exit_with_error(
    message: str,
    code: ExitCode = ExitCode.OPERATION_ERROR,
    *,
    console: Console | None = None,
) -> Never:
    """Print an error message and exit with the specified code.

    Raises:
        SystemExit: Always raised with the specified exit code.
    """
    if console is None:
        console = get_error_console()

    console.print(f"[red]Error:[/red] {message}", markup=True, highlight=False)
    raise SystemExit(code)


def project_path(project: Path | None) -> str:
    """Resolve the --project option, defaulting to the working directory."""
    return str((project or Path.cwd()).resolve())


def get_service() -> GitService:
    """Build a GitService from the current CLI context."""
    ctx = CLIContext.get_current()
    try:
        return GitService(ctx.config, logger=ctx.logger)
    except GitDeckError as e:
        exit_with_error(str(e))


def run_service(operation: Callable[[GitService], Awaitable[T]]) -> T:
    """Run one service coroutine to completion, exiting on gitdeck errors."""
    service = get_service()

    async def _main() -> T:
        return await operation(service)

    try:
        return anyio.run(_main)
    except ValidationError as e:
        exit_with_error(str(e), ExitCode.VALIDATION_ERROR)
    except GitDeckError as e:
        exit_with_error(str(e))


_STATUS_STYLES = {
    "added": "green",
    "untracked": "green",
    "modified": "yellow",
    "renamed": "cyan",
    "deleted": "red",
    "ignored": "dim",
}


def status_style(detail: GitStatusDetail) -> str:
    """Return the Rich style for a file status."""
    return _STATUS_STYLES.get(str(detail.status), "white")
