"""CLI context for global state management.

The CLIContext is set once at CLI startup and made available to all commands
via contextvars.
"""

from __future__ import annotations

import contextvars
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from gitdeck.config import Config

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

_current_cli_context: contextvars.ContextVar[CLIContext | None] = contextvars.ContextVar(
    "cli_context", default=None
)


@dataclass(frozen=True, slots=True)
class CLIContext:
    """Global CLI context with configuration and options.

    Attributes:
        config: Loaded configuration object.
        verbose: Enable verbose output with additional details.
        logger: Structured logger for CLI commands (writes to file only).
    """

    config: Config = field(repr=False)
    verbose: bool = False
    logger: FilteringBoundLogger | None = field(default=None, repr=False)

    @classmethod
    def get_current(cls) -> CLIContext:
        """Get current active CLIContext, or a default one if not set."""
        ctx = _current_cli_context.get()
        if ctx is not None:
            return ctx
        return cls(config=Config())

    @classmethod
    def set_current(cls, ctx: CLIContext) -> None:
        """Set the current active CLIContext."""
        _ = _current_cli_context.set(ctx)

    @classmethod
    def reset(cls) -> None:
        """Reset to default context."""
        _ = _current_cli_context.set(None)
