"""Data models for git orchestration.

This module defines the value objects handed back to callers:
- RepoContext: repository root and the project's offset inside it
- GitCommit: a parsed commit with aggregated change statistics
- CompactPatchResult: a budgeted diff summary for AI consumers
- CheckoutOptions / CheckoutResult: checkout fallbacks and their outcome
- Branch, remote, tag and stash summaries
- Status details and project overviews

All models are immutable. None of them are cached; every list or status
call recomputes them because repository state changes outside this process.
"""

from dataclasses import dataclass
from enum import StrEnum


class GitFileStatus(StrEnum):
    """Working tree status of a single path."""

    MODIFIED = "modified"
    UNTRACKED = "untracked"
    ADDED = "added"
    DELETED = "deleted"
    RENAMED = "renamed"
    IGNORED = "ignored"
    UNKNOWN = "unknown"


class IndexLockState(StrEnum):
    """Outcome of inspecting the repository's index.lock file.

    - REMOVED: The lock was older than the stale threshold and was deleted
    - ACTIVE: The lock is recent and presumably owned by a live git process
    - MISSING: No lock file exists
    """

    REMOVED = "removed"
    ACTIVE = "active"
    MISSING = "missing"


@dataclass(frozen=True, slots=True)
class RepoContext:
    """Location of a project inside its repository.

    Attributes:
        repo_root: Absolute, slash-normalized repository top-level directory.
        project_relative_to_repo: Project directory relative to the root, or
            an empty string when the project is the root.
    """

    repo_root: str
    project_relative_to_repo: str


@dataclass(frozen=True, slots=True)
class GitCommit:
    """A commit parsed from ``git log`` output.

    Attributes:
        hash: Full commit hash.
        short_hash: First seven characters of the hash.
        parents: Parent hashes in order (empty for a root commit).
        author: Author name.
        date: Author date as printed by git.
        message: Subject line.
        additions: Total added lines across text files.
        deletions: Total deleted lines across text files.
        files_changed: Number of numstat rows, binary files included.
    """

    hash: str
    short_hash: str
    parents: tuple[str, ...]
    author: str
    date: str
    message: str
    additions: int = 0
    deletions: int = 0
    files_changed: int = 0


@dataclass(frozen=True, slots=True)
class CompactPatchResult:
    """A unified diff reduced to a bounded size.

    Attributes:
        text: Included file blocks separated by blank lines.
        omitted_files: ``"<path> (<reason>)"`` for every file left out.
        total_files: Number of file blocks in the input.
        included_files: Number of file blocks present in ``text``.
        was_truncated: True when any budget cut content.
    """

    text: str
    omitted_files: tuple[str, ...]
    total_files: int
    included_files: int
    was_truncated: bool


@dataclass(frozen=True, slots=True)
class CheckoutOptions:
    """Fallbacks allowed during a branch checkout.

    Attributes:
        auto_stash: Stash local changes and retry when they block checkout.
        auto_cleanup_lock: Remove a stale index.lock and retry.
    """

    auto_stash: bool = True
    auto_cleanup_lock: bool = True


@dataclass(frozen=True, slots=True)
class CheckoutResult:
    """Outcome of a successful checkout.

    Attributes:
        stashed: True when local changes were stashed before switching.
        cleaned_lock: True when a stale index.lock was removed on the way.
        stash_ref: Reference of the created stash, if any.
        stash_message: Message of the created stash, if any.
    """

    stashed: bool
    cleaned_lock: bool | None = None
    stash_ref: str | None = None
    stash_message: str | None = None


@dataclass(frozen=True, slots=True)
class GitBranchSummary:
    """A local branch, or a remote branch with no local counterpart."""

    name: str
    current: bool
    commit: str
    label: str
    is_remote: bool
    is_local: bool


@dataclass(frozen=True, slots=True)
class GitRemoteSummary:
    """A configured remote and its URLs."""

    name: str
    fetch_url: str
    push_url: str


@dataclass(frozen=True, slots=True)
class GitTagSummary:
    """A tag name and, when known, the commit it points to."""

    name: str
    commit: str | None = None


@dataclass(frozen=True, slots=True)
class GitStashEntry:
    """A stash list entry.

    Attributes:
        ref: Stash reference such as ``stash@{0}``.
        hash: Commit hash of the stash.
        message: Stash description.
    """

    ref: str
    hash: str
    message: str


@dataclass(frozen=True, slots=True)
class GitStatusDetail:
    """Status and line counts for one changed path.

    Attributes:
        path: Path relative to the project directory.
        status: Classified status.
        code: Raw two-letter porcelain code.
        staged: True when the index has changes for the path.
        unstaged: True when the working tree has changes for the path.
        previous_path: Original path for renames.
        additions: Staged plus unstaged added lines.
        deletions: Staged plus unstaged deleted lines.
        staged_additions: Added lines in the index.
        staged_deletions: Deleted lines in the index.
        unstaged_additions: Added lines in the working tree.
        unstaged_deletions: Deleted lines in the working tree.
    """

    path: str
    status: GitFileStatus
    code: str
    staged: bool
    unstaged: bool
    previous_path: str | None = None
    additions: int = 0
    deletions: int = 0
    staged_additions: int = 0
    staged_deletions: int = 0
    unstaged_additions: int = 0
    unstaged_deletions: int = 0


@dataclass(frozen=True, slots=True)
class GitUser:
    """Configured git identity."""

    name: str
    email: str


@dataclass(frozen=True, slots=True)
class ProjectGitOverview:
    """Dashboard summary for one project.

    Attributes:
        path: The project path as supplied.
        is_git_repo: Whether the path is inside a work tree.
        changed_count: Number of tracked or untracked changed paths.
        unpushed_count: Number of local commits missing from the remote.
        has_remote: Whether ``origin`` is configured.
        error: Failure message when inspection failed.
    """

    path: str
    is_git_repo: bool
    changed_count: int = 0
    unpushed_count: int = 0
    has_remote: bool = False
    error: str | None = None
