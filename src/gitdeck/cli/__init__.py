"""Command-line interface for gitdeck."""

from ._app import app, create_app, main
from ._commands import CLIContext

__all__ = ["CLIContext", "app", "create_app", "main"]
