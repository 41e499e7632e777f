"""gitdeck CLI commands."""
# pyright: reportUnusedCallResult=false

from __future__ import annotations

from typing import TYPE_CHECKING

from ._changes import checkout, commit, discard, fetch, pull, push, stage, unstage
from ._context import CLIContext
from ._inspect import branches, diff, log, overview, status
from ._setup import config, gitignore, init
from ._shared import ExitCode, exit_with_error, format_json, get_error_console

if TYPE_CHECKING:
    from cyclopts import App

__all__ = [
    "CLIContext",
    "ExitCode",
    "exit_with_error",
    "format_json",
    "get_error_console",
    "register_commands",
]

_COMMANDS = (
    status,
    log,
    branches,
    diff,
    overview,
    stage,
    unstage,
    discard,
    commit,
    push,
    fetch,
    pull,
    checkout,
    init,
    gitignore,
    config,
)


def register_commands(app: App) -> None:
    """Register all gitdeck commands on the app."""
    for command in _COMMANDS:
        app.command(command, name=command.__name__)
