# pyright: reportUnusedCallResult=false
"""Read-only repository commands."""
# ruff: noqa: TC003  # Path needed at runtime for cyclopts parameter parsing

from pathlib import Path
from typing import Annotated

from cyclopts import Parameter
from rich.console import Console
from rich.table import Table

from gitdeck.git import DiffMode

from ._shared import format_json, project_path, run_service, status_style

__all__ = ["branches", "diff", "log", "overview", "status"]

ProjectOption = Annotated[
    Path | None,
    Parameter(name=["--project", "-p"], help="Project directory (defaults to cwd)"),
]
JsonOption = Annotated[bool, Parameter(name="--json", negative="", help="Output JSON")]


def status(project: ProjectOption = None, *, as_json: JsonOption = False) -> None:
    """Show working tree changes with line counts."""
    console = Console()
    path = project_path(project)
    details = run_service(lambda service: service.inspect.get_status_detailed(path))

    if as_json:
        console.print(format_json(details), markup=False, highlight=False, soft_wrap=True)
        return

    if not details:
        console.print("[dim]Working tree clean[/dim]")
        return

    for detail in details:
        style = status_style(detail)
        counts = f"[green]+{detail.additions}[/green] [red]-{detail.deletions}[/red]"
        renamed = f" [dim](from {detail.previous_path})[/dim]" if detail.previous_path else ""
        console.print(
            f"  [{style}]{detail.code:>2} {detail.path}[/{style}]{renamed} {counts}",
            highlight=False,
        )


def log(
    project: ProjectOption = None,
    *,
    limit: Annotated[
        int, Parameter(name=["--number", "-n"], help="Number of commits to show (0 for all)")
    ] = 20,
    as_json: JsonOption = False,
) -> None:
    """Show commit history across all refs."""
    console = Console()
    path = project_path(project)
    commits = run_service(lambda service: service.inspect.get_history(path, limit))

    if as_json:
        console.print(format_json(commits), markup=False, highlight=False, soft_wrap=True)
        return

    if not commits:
        console.print("[dim]No commits[/dim]")
        return

    for commit in commits:
        console.print(
            f"[yellow]{commit.short_hash}[/yellow] [dim]{commit.date}[/dim] "
            f"[cyan]{commit.author}[/cyan] {commit.message} "
            f"[dim]({commit.files_changed} files,[/dim] [green]+{commit.additions}[/green] "
            f"[red]-{commit.deletions}[/red][dim])[/dim]",
            highlight=False,
        )


def branches(project: ProjectOption = None, *, as_json: JsonOption = False) -> None:
    """List local and remote branches, current branch first."""
    console = Console()
    path = project_path(project)
    summaries = run_service(lambda service: service.list_branches(path))

    if as_json:
        console.print(format_json(summaries), markup=False, highlight=False, soft_wrap=True)
        return

    for branch in summaries:
        marker = "[green]*[/green]" if branch.current else " "
        name = f"[red]{branch.name}[/red]" if not branch.is_local else branch.name
        console.print(
            f"{marker} {name} [yellow]{branch.commit}[/yellow] [dim]{branch.label}[/dim]",
            highlight=False,
        )


def diff(
    file: Annotated[str | None, Parameter(help="Limit the diff to one file")] = None,
    *,
    project: ProjectOption = None,
    mode: Annotated[
        DiffMode, Parameter(name=["--mode", "-m"], help="Which changes to show")
    ] = DiffMode.COMBINED,
    commit: Annotated[
        str | None, Parameter(name=["--commit", "-c"], help="Show a commit instead")
    ] = None,
    for_ai: Annotated[
        bool,
        Parameter(name="--for-ai", negative="", help="Compact summary for a commit-message model"),
    ] = False,
) -> None:
    """Show working tree, commit, or AI-compacted diffs."""
    console = Console()
    path = project_path(project)

    if for_ai:
        text = run_service(lambda service: service.get_working_changes_for_ai(path))
    elif commit is not None:
        text = run_service(lambda service: service.inspect.get_commit_diff(path, commit))
    else:
        text = run_service(lambda service: service.inspect.get_working_diff(path, file, mode))

    console.print(text, markup=False, highlight=False, soft_wrap=True)


def overview(
    paths: Annotated[list[Path] | None, Parameter(help="Project directories")] = None,
    *,
    as_json: JsonOption = False,
) -> None:
    """Summarize several projects at once."""
    console = Console()
    targets = [project_path(p) for p in paths] if paths else [project_path(None)]
    summaries = run_service(lambda service: service.inspect.get_projects_overview(targets))

    if as_json:
        console.print(format_json(summaries), markup=False, highlight=False, soft_wrap=True)
        return

    table = Table(title="Projects")
    table.add_column("Path")
    table.add_column("Git", justify="center")
    table.add_column("Changed", justify="right")
    table.add_column("Unpushed", justify="right")
    table.add_column("Remote", justify="center")
    table.add_column("Error", style="red")

    for summary in summaries:
        table.add_row(
            summary.path,
            "yes" if summary.is_git_repo else "no",
            str(summary.changed_count),
            str(summary.unpushed_count),
            "yes" if summary.has_remote else "no",
            summary.error or "",
        )
    console.print(table)
