# pyright: reportUnusedCallResult=false
"""Repository setup and configuration commands."""
# ruff: noqa: TC003  # Path needed at runtime for cyclopts parameter parsing

from pathlib import Path
from typing import Annotated

from cyclopts import Parameter
from rich.console import Console

from gitdeck.config import get_user_config_path
from gitdeck.git import (
    GitService,
    generate_custom_gitignore_content,
    generate_gitignore_content,
    list_gitignore_patterns,
    list_gitignore_templates,
)

from ._context import CLIContext
from ._shared import format_json, project_path, run_service

__all__ = ["config", "gitignore", "init"]


def init(
    branch: Annotated[str, Parameter(help="Initial branch name")] = "main",
    *,
    project: Annotated[
        Path | None,
        Parameter(name=["--project", "-p"], help="Directory to initialize (defaults to cwd)"),
    ] = None,
    gitignore_template: Annotated[
        str | None,
        Parameter(name=["--gitignore", "-g"], help="Write a built-in .gitignore template"),
    ] = None,
    message: Annotated[
        str | None,
        Parameter(name=["--message", "-m"], help="Also create an initial commit"),
    ] = None,
) -> None:
    """Initialize a repository."""
    console = Console()
    path = project_path(project)

    async def _init(service: GitService) -> None:
        await service.init_repo(path, branch, gitignore_template)
        if message is not None:
            await service.create_initial_commit(path, message)

    run_service(_init)
    console.print(f"[green]Initialized repository on {branch}[/green]", highlight=False)


def gitignore(
    template: Annotated[str | None, Parameter(help="Template name")] = None,
    *,
    patterns: Annotated[
        list[str] | None,
        Parameter(name=["--pattern"], help="Pattern id for a custom file (repeatable)"),
    ] = None,
    show_list: Annotated[
        bool, Parameter(name=["--list", "-l"], negative="", help="List templates and patterns")
    ] = False,
) -> None:
    """Print .gitignore content from a template or a set of patterns."""
    console = Console()

    if show_list:
        console.print("[bold]Templates:[/bold]")
        for name in list_gitignore_templates():
            console.print(f"  {name}", highlight=False)
        console.print("[bold]Patterns:[/bold]")
        for pattern in list_gitignore_patterns():
            console.print(
                f"  [cyan]{pattern.id}[/cyan] {pattern.label} [dim]({pattern.category})[/dim]",
                highlight=False,
            )
        return

    if patterns:
        content = generate_custom_gitignore_content(patterns)
    else:
        content = generate_gitignore_content(template or "General")
    console.print(content, markup=False, highlight=False, soft_wrap=True)


def config(
    *,
    as_json: Annotated[bool, Parameter(name="--json", negative="", help="Output JSON")] = False,
    show_path: Annotated[
        bool, Parameter(name="--path", negative="", help="Print the user config file path")
    ] = False,
) -> None:
    """Show the effective configuration."""
    console = Console()

    if show_path:
        console.print(str(get_user_config_path()), markup=False, highlight=False, soft_wrap=True)
        return

    settings = CLIContext.get_current().config
    if as_json:
        text = format_json(settings.to_dict())
    else:
        text = settings.to_toml()
    console.print(text, markup=False, highlight=False, soft_wrap=True)
