# pyright: reportUnusedCallResult=false
"""Commands that change the working tree, index, refs or remotes."""
# ruff: noqa: TC003  # Path needed at runtime for cyclopts parameter parsing

from pathlib import Path
from typing import Annotated

from cyclopts import Parameter
from rich.console import Console

from gitdeck.git import CheckoutOptions

from ._context import CLIContext
from ._shared import project_path, run_service

__all__ = ["checkout", "commit", "discard", "fetch", "pull", "push", "stage", "unstage"]

ProjectOption = Annotated[
    Path | None,
    Parameter(name=["--project", "-p"], help="Project directory (defaults to cwd)"),
]
FilesArgument = Annotated[list[str], Parameter(help="Files relative to the project")]


def _plural(count: int) -> str:
    return "file" if count == 1 else "files"


def stage(files: FilesArgument, *, project: ProjectOption = None) -> None:
    """Stage files, including deletions."""
    path = project_path(project)
    run_service(lambda service: service.stage_files(path, files))
    Console().print(f"[green]Staged {len(files)} {_plural(len(files))}[/green]")


def unstage(files: FilesArgument, *, project: ProjectOption = None) -> None:
    """Remove files from the index, keeping working tree changes."""
    path = project_path(project)
    run_service(lambda service: service.unstage_files(path, files))
    Console().print(f"[green]Unstaged {len(files)} {_plural(len(files))}[/green]")


def discard(files: FilesArgument, *, project: ProjectOption = None) -> None:
    """Discard staged and unstaged changes to files."""
    path = project_path(project)
    run_service(lambda service: service.discard_changes(path, files))
    Console().print(f"[yellow]Discarded changes to {len(files)} {_plural(len(files))}[/yellow]")


def commit(
    *,
    message: Annotated[str, Parameter(name=["--message", "-m"], help="Commit message")],
    project: ProjectOption = None,
) -> None:
    """Commit staged changes."""
    path = project_path(project)
    run_service(lambda service: service.create_commit(path, message))
    Console().print("[green]Committed staged changes[/green]")


def push(project: ProjectOption = None) -> None:
    """Push the current branch, setting its upstream on first push."""
    path = project_path(project)
    run_service(lambda service: service.push_commits(path))
    Console().print("[green]Pushed[/green]")


def fetch(
    project: ProjectOption = None,
    *,
    remote: Annotated[str, Parameter(name=["--remote", "-r"], help="Remote to fetch")] = "origin",
) -> None:
    """Fetch from a remote."""
    path = project_path(project)
    run_service(lambda service: service.fetch_updates(path, remote))
    Console().print(f"[green]Fetched {remote}[/green]")


def pull(project: ProjectOption = None) -> None:
    """Pull the current branch from its upstream."""
    path = project_path(project)
    run_service(lambda service: service.pull_updates(path))
    Console().print("[green]Pulled[/green]")


def checkout(
    branch: Annotated[str, Parameter(help="Branch to switch to")],
    *,
    project: ProjectOption = None,
    no_stash: Annotated[
        bool,
        Parameter(name="--no-stash", negative="", help="Fail instead of stashing local changes"),
    ] = False,
    no_lock_cleanup: Annotated[
        bool,
        Parameter(
            name="--no-lock-cleanup", negative="", help="Fail instead of removing a stale index.lock"
        ),
    ] = False,
) -> None:
    """Switch branches, tracking remote branches and stashing blockers."""
    console = Console()
    path = project_path(project)
    defaults = CLIContext.get_current().config.checkout
    options = CheckoutOptions(
        auto_stash=defaults.auto_stash and not no_stash,
        auto_cleanup_lock=defaults.auto_cleanup_lock and not no_lock_cleanup,
    )
    result = run_service(lambda service: service.checkout_branch(path, branch, options))

    console.print(f"[green]Switched to {branch}[/green]")
    if result.cleaned_lock:
        console.print("[yellow]Removed a stale index.lock[/yellow]")
    if result.stashed:
        console.print(
            f"[yellow]Local changes stashed as {result.stash_ref}:[/yellow] {result.stash_message}",
            highlight=False,
        )
