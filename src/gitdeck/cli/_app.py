"""The command-line interface for gitdeck."""
# ruff: noqa: TC003  # Path needed at runtime for cyclopts parameter parsing

from pathlib import Path
from typing import Annotated

from cyclopts import App, Parameter
from rich.console import Console

from gitdeck.config import load_config
from gitdeck.exceptions import ConfigError
from gitdeck.utils import create_cli_logger

from ._commands import CLIContext, ExitCode, exit_with_error, register_commands

HELP = "Git orchestration for a developer dashboard."


def create_app(
    console: Console | None = None,
    error_console: Console | None = None,
    *,
    exit_on_error: bool = True,
) -> App:
    """Build the gitdeck app with its global options."""
    if console is None:
        console = Console()
    if error_console is None:
        error_console = Console(stderr=True)
    app = App(
        name="gitdeck",
        help=HELP,
        help_on_error=True,
        console=console,
        error_console=error_console,
        exit_on_error=exit_on_error,
    )

    @app.meta.default
    def _default(  # pyright: ignore[reportUnusedFunction]
        *tokens: Annotated[str, Parameter(show=False, allow_leading_hyphen=True)],
        verbose: Annotated[bool, Parameter(help="Log at debug level")] = False,
        config: Annotated[
            Path | None, Parameter(name="--config", help="Path to config file")
        ] = None,
    ) -> None:
        """Launch gitdeck with global options.

        Args:
            tokens: Command tokens to pass to subcommands.
            verbose: Log at debug level.
            config: Explicit path to config file.
        """
        try:
            loaded_config = load_config(config)
        except ConfigError as e:
            exit_with_error(str(e), ExitCode.CONFIG_ERROR, console=error_console)

        cli_logger = create_cli_logger(
            level="debug" if verbose else loaded_config.logging.level.value,
            log_format=loaded_config.logging.format.value,
            log_file=loaded_config.logging.file,
        )

        CLIContext.set_current(
            CLIContext(config=loaded_config, verbose=verbose, logger=cli_logger)
        )
        try:
            app(tokens)
        finally:
            CLIContext.reset()

    register_commands(app)
    return app


app = create_app()


def main() -> None:
    """Default entrypoint for the `gitdeck` CLI."""
    create_app().meta()


if __name__ == "__main__":
    main()
