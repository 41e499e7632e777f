"""Mapping of UI file paths to git pathspecs.

A project shown in the UI may be a subfolder of a larger checkout. Git runs
with the project directory as its working directory, while the UI hands over
absolute paths, project-relative paths, or paths that already carry the
project's offset inside the repository. These helpers reduce all of them to
one form with the offset removed, which git resolves against the project
directory. When the project is the repository root this is the
root-relative path.

Normalization rules:
- surrounding double quotes are removed
- backslashes become forward slashes
- a leading ``./`` is removed and duplicate slashes are collapsed
- comparisons are case-folded only on case-insensitive platforms
"""

from __future__ import annotations

import os
import re
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Final

from gitdeck.exceptions import GitCommandError
from gitdeck.git._models import RepoContext

if TYPE_CHECKING:
    from gitdeck.git._runner import GitRunner

CASE_INSENSITIVE_PATHS: Final = sys.platform == "win32"

_SURROUNDING_QUOTES: Final = re.compile(r'^"|"$')
_LEADING_DOT_SLASH: Final = re.compile(r"^\./+")
_REPEATED_SLASHES: Final = re.compile(r"/{2,}")
_DRIVE_LETTER_PATH: Final = re.compile(r"^[A-Za-z]:/")


def normalize_git_path(path: str) -> str:
    """Remove surrounding quotes and convert backslashes to slashes."""
    return _SURROUNDING_QUOTES.sub("", path).replace("\\", "/")


def sanitize_path_spec(path_spec: str) -> str:
    """Normalize a path into git's slash-separated pathspec form.

    Args:
        path_spec: Raw path text.

    Returns:
        The normalized path.
    """
    normalized = _LEADING_DOT_SLASH.sub("", normalize_git_path(path_spec))
    return _REPEATED_SLASHES.sub("/", normalized)


def _compare_key(path_spec: str, *, case_insensitive: bool) -> str:
    normalized = sanitize_path_spec(path_spec).rstrip("/")
    return normalized.lower() if case_insensitive else normalized


def strip_path_prefix(
    path_spec: str,
    prefix: str,
    *,
    case_insensitive: bool | None = None,
) -> str:
    """Strip a directory prefix from a path, repeatedly.

    The prefix is removed as long as it still matches, so applying this
    function to its own output is a no-op.

    Args:
        path_spec: The path to strip.
        prefix: Directory prefix, e.g. the project's offset in the repository.
        case_insensitive: Fold case for comparison. Defaults to the platform.

    Returns:
        The path without the prefix; empty if the path equals the prefix.
    """
    fold = CASE_INSENSITIVE_PATHS if case_insensitive is None else case_insensitive
    current = sanitize_path_spec(path_spec)
    if not prefix:
        return current

    normalized_prefix = sanitize_path_spec(prefix).rstrip("/")
    if not normalized_prefix:
        return current

    prefix_key = _compare_key(normalized_prefix, case_insensitive=fold)
    while current:
        current_key = _compare_key(current, case_insensitive=fold)
        if current_key == prefix_key:
            current = ""
        elif current_key.startswith(f"{prefix_key}/"):
            current = current[len(normalized_prefix) + 1 :]
        else:
            break

    return sanitize_path_spec(current)


def is_valid_path_spec(path_spec: str) -> bool:
    """Return True if the pathspec is usable as a repository-relative path."""
    return (
        bool(path_spec)
        and path_spec != "."
        and not path_spec.startswith("..")
        and _DRIVE_LETTER_PATH.match(path_spec) is None
    )


def _relative(start: str, target: str) -> str | None:
    try:
        return sanitize_path_spec(os.path.relpath(target, start))
    except ValueError:
        # Different drives on Windows
        return None


def resolve_path_spec(
    project_path: str,
    file_path: str,
    context: RepoContext,
    *,
    case_insensitive: bool | None = None,
) -> str:
    """Compute the repository-root-relative pathspec for a file.

    Candidates, in order:
    1. the path relative to the project (or the input itself when relative),
       with the project's offset stripped;
    2. for absolute input, the path relative to the repository root, with
       the offset stripped;
    3. for absolute input, the path relative to the project unstripped;
    4. the normalized input with the offset stripped, or the normalized
       input unchanged if stripping leaves nothing.

    Args:
        project_path: Directory the UI is scoped to.
        file_path: Absolute or relative file path from the UI.
        context: Repository context for the project.
        case_insensitive: Fold case for comparison. Defaults to the platform.

    Returns:
        The pathspec to hand to git.
    """
    prefix = context.project_relative_to_repo
    normalized_input = sanitize_path_spec(file_path)
    is_absolute = os.path.isabs(file_path)

    direct_raw = _relative(project_path, file_path) if is_absolute else normalized_input
    if direct_raw is not None:
        direct = strip_path_prefix(direct_raw, prefix, case_insensitive=case_insensitive)
        if is_valid_path_spec(direct):
            return direct

    if is_absolute:
        repo_raw = _relative(context.repo_root, file_path)
        if repo_raw is not None:
            repo_relative = strip_path_prefix(
                repo_raw, prefix, case_insensitive=case_insensitive
            )
            if is_valid_path_spec(repo_relative):
                return repo_relative

        if direct_raw is not None and is_valid_path_spec(direct_raw):
            return direct_raw

    stripped = strip_path_prefix(
        normalized_input, prefix, case_insensitive=case_insensitive
    )
    return stripped or normalized_input


def build_repo_context(repo_root: str, project_path: str) -> RepoContext:
    """Build a RepoContext from a known repository root.

    Args:
        repo_root: Repository top-level directory.
        project_path: Directory the UI is scoped to.

    Returns:
        The repository context.
    """
    root = sanitize_path_spec(repo_root.strip() or project_path)
    relative = _relative(root, project_path)
    if relative is not None and relative.startswith(".."):
        # git reports the real path; the caller may have used a symlinked one
        relative = _relative(root, os.path.realpath(project_path))
    if relative is None or relative == ".":
        relative = ""
    return RepoContext(repo_root=root, project_relative_to_repo=relative)


async def get_repo_context(runner: GitRunner, project_path: str | Path) -> RepoContext:
    """Ask git for the repository root of a project.

    Falls back to treating the project itself as the root when git cannot
    answer (for example, before ``git init``).

    Args:
        runner: Runner used to query git.
        project_path: Directory the UI is scoped to.

    Returns:
        The repository context.
    """
    project = str(project_path)
    try:
        repo_root = await runner.run(project, "rev-parse", "--show-toplevel")
    except GitCommandError:
        repo_root = project
    return build_repo_context(repo_root, project)


async def to_path_spec(
    runner: GitRunner,
    project_path: str | Path,
    file_path: str,
    context: RepoContext | None = None,
) -> str:
    """Resolve a file path to a repository-root-relative pathspec.

    Args:
        runner: Runner used to query git when no context is supplied.
        project_path: Directory the UI is scoped to.
        file_path: Absolute or relative file path from the UI.
        context: Precomputed repository context, if available.

    Returns:
        The pathspec to hand to git.
    """
    if context is None:
        context = await get_repo_context(runner, project_path)
    return resolve_path_spec(str(project_path), file_path, context)
