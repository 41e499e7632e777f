"""Git orchestration service.

GitService is the entry point for callers. It owns the resolved runtime,
the command runner and the per-repository write queue, and exposes every
repository operation as a coroutine taking the project path first.

Mutating operations run through the write queue with index.lock recovery.
Their failures are logged and normalized to GitOperationError; a blank
required argument raises ValidationError before any git process starts.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Final, TypeVar, final

import anyio

from gitdeck.config import Config
from gitdeck.exceptions import GitCommandError, GitOperationError
from gitdeck.git._checkout import LATEST_STASH_REF
from gitdeck.git._checkout import checkout_branch as _checkout_branch
from gitdeck.git._compact import CompactionLimits
from gitdeck.git._errors import normalized_failures, require_non_empty, require_ref_name
from gitdeck.git._gitignore import generate_gitignore_content
from gitdeck.git._inspect import ORIGIN, GitInspector
from gitdeck.git._locks import LockRetryPolicy, with_lock_recovery
from gitdeck.git._log import FIELD_SEPARATOR
from gitdeck.git._models import (
    CheckoutOptions,
    CheckoutResult,
    GitBranchSummary,
    GitRemoteSummary,
    GitStashEntry,
    GitTagSummary,
)
from gitdeck.git._paths import get_repo_context, resolve_path_spec
from gitdeck.git._queue import WriteQueue
from gitdeck.git._runner import GitRunner
from gitdeck.git._runtime import GitRuntime

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterable

    from structlog.typing import FilteringBoundLogger

T = TypeVar("T")

GITIGNORE_FILENAME: Final = ".gitignore"
REMOTE_TRACKING_LABEL: Final = "Remote tracking branch"

_LOCAL_BRANCH_FORMAT: Final = (
    "--format=%(HEAD)%1f%(refname:short)%1f%(objectname:short)%1f%(contents:subject)"
)
_TAG_FORMAT: Final = "--format=%(refname:short)%1f%(objectname)%1f%(*objectname)"
_STASH_FORMAT: Final = "--format=%gd%x1f%H%x1f%gs"


def _unique(values: Iterable[str]) -> list[str]:
    """Drop blanks and duplicates, keeping first occurrences in order."""
    return list(dict.fromkeys(value for value in values if value and value.strip()))


def parse_local_branches(raw: str) -> list[tuple[str, bool, str, str]]:
    """Parse ``for-each-ref refs/heads`` output.

    Returns:
        (name, current, short commit, subject) tuples.
    """
    branches: list[tuple[str, bool, str, str]] = []
    for line in raw.splitlines():
        parts = line.split(FIELD_SEPARATOR)
        if len(parts) < 4 or not parts[1]:  # noqa: PLR2004
            continue
        head, name, commit, subject = parts[0], parts[1], parts[2], FIELD_SEPARATOR.join(parts[3:])
        branches.append((name, head.strip() == "*", commit, subject))
    return branches


def parse_remote_branches(raw: str) -> list[str]:
    """Parse ``git branch -r`` output, dropping symbolic refs like origin/HEAD."""
    names: list[str] = []
    for line in raw.splitlines():
        name = line.strip()
        if not name or " -> " in name:
            continue
        names.append(name)
    return names


def merge_branches(
    local: list[tuple[str, bool, str, str]],
    remote: list[str],
    remote_name: str = ORIGIN,
) -> list[GitBranchSummary]:
    """Combine local branches with remote branches missing locally.

    Returns:
        Summaries with the current branch first, the rest sorted by name.
    """
    remote_prefix = f"{remote_name}/"
    remote_set = set(remote)
    summaries = [
        GitBranchSummary(
            name=name,
            current=current,
            commit=commit,
            label=subject,
            is_remote=f"{remote_prefix}{name}" in remote_set,
            is_local=True,
        )
        for name, current, commit, subject in local
    ]

    local_names = {summary.name for summary in summaries}
    for remote_branch in remote:
        if not remote_branch.startswith(remote_prefix):
            continue
        if remote_branch.startswith(f"{remote_prefix}HEAD"):
            continue
        name = remote_branch.removeprefix(remote_prefix)
        if not name or name in local_names:
            continue
        local_names.add(name)
        summaries.append(
            GitBranchSummary(
                name=name,
                current=False,
                commit="",
                label=REMOTE_TRACKING_LABEL,
                is_remote=True,
                is_local=False,
            )
        )

    summaries.sort(key=lambda summary: (not summary.current, summary.name))
    return summaries


@final
class GitService:
    """Repository operations for a UI, serialized per repository.

    Attributes:
        runtime: The resolved git runtime.
        runner: Runner shared by every operation.
        queue: Per-repository write queue.
        inspect: Read-only queries.
    """

    __slots__ = (
        "_checkout_options",
        "_limits",
        "_lock_policy",
        "_logger",
        "_max_omitted_listed",
        "_remote",
        "inspect",
        "queue",
        "runner",
        "runtime",
    )

    def __init__(
        self,
        config: Config | None = None,
        *,
        runtime: GitRuntime | None = None,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            config: Settings for timeouts, locks, compaction and checkout.
                Uses defaults if None.
            runtime: Pre-resolved runtime. Resolved once here if None.
            logger: Logger for operation events.
        """
        settings = config or Config()
        self._logger = logger
        self.runtime = runtime or GitRuntime.resolve(logger=logger)
        self.runner = GitRunner(
            self.runtime,
            timeout=settings.runtime.command_timeout,
            max_concurrent=settings.runtime.max_concurrent_processes,
        )
        self.queue = WriteQueue(logger)
        self.inspect = GitInspector(self.runner, logger)
        self._lock_policy = LockRetryPolicy(
            max_attempts=settings.locks.max_attempts,
            retry_delay=settings.locks.retry_delay,
            transient_delay=settings.locks.transient_delay,
            stale_after=settings.locks.stale_after,
        )
        self._checkout_options = CheckoutOptions(
            auto_stash=settings.checkout.auto_stash,
            auto_cleanup_lock=settings.checkout.auto_cleanup_lock,
        )
        self._remote = settings.checkout.remote
        self._limits = CompactionLimits(
            max_files=settings.compaction.max_files,
            max_lines_per_file=settings.compaction.max_lines_per_file,
            max_lines_total=settings.compaction.max_lines_total,
        )
        self._max_omitted_listed = settings.compaction.max_omitted_listed

    async def _write(
        self,
        project_path: str | Path,
        action: str,
        operation: Callable[[], Awaitable[T]],
    ) -> T:
        with normalized_failures(action, project_path, logger=self._logger):
            return await with_lock_recovery(
                self.runner,
                self.queue,
                project_path,
                action,
                operation,
                policy=self._lock_policy,
                logger=self._logger,
            )

    async def _path_specs(self, project_path: str | Path, files: Iterable[str]) -> list[str]:
        context = await get_repo_context(self.runner, project_path)
        return _unique(
            resolve_path_spec(str(project_path), file_path, context)
            for file_path in _unique(files)
        )

    # -------------------------------------------------------------------------
    # Working tree
    # -------------------------------------------------------------------------

    async def stage_files(self, project_path: str | Path, files: Iterable[str]) -> None:
        """Stage files, including deletions. No-op for an empty list."""
        requested = list(files)
        if not requested:
            return

        async def _stage() -> None:
            specs = await self._path_specs(project_path, requested)
            if specs:
                await self.runner.run(project_path, "add", "-A", "--", *specs)

        await self._write(project_path, "stage files", _stage)

    async def unstage_files(self, project_path: str | Path, files: Iterable[str]) -> None:
        """Remove files from the index. No-op for an empty list."""
        requested = list(files)
        if not requested:
            return

        async def _unstage() -> None:
            specs = await self._path_specs(project_path, requested)
            if specs:
                await self.runner.run(project_path, "reset", "HEAD", "--", *specs)

        await self._write(project_path, "unstage files", _unstage)

    async def discard_changes(self, project_path: str | Path, files: Iterable[str]) -> None:
        """Restore files from HEAD in both index and working tree."""
        requested = list(files)
        if not requested:
            return

        async def _discard() -> None:
            specs = await self._path_specs(project_path, requested)
            if not specs:
                return
            try:
                await self.runner.run(
                    project_path, "restore", "--staged", "--worktree", "--", *specs
                )
            except GitCommandError:
                # git < 2.23 has no restore
                await self.runner.run(project_path, "checkout", "--", *specs)

        await self._write(project_path, "discard changes", _discard)

    # -------------------------------------------------------------------------
    # Commits and synchronization
    # -------------------------------------------------------------------------

    async def create_commit(self, project_path: str | Path, message: str) -> None:
        """Commit the index with the given message."""
        text = require_non_empty(message, "Commit message")

        async def _commit() -> None:
            await self.runner.run(project_path, "commit", "-m", text)

        await self._write(project_path, "create commit", _commit)

    async def push_commits(self, project_path: str | Path) -> None:
        """Push the current branch, setting ``origin`` as upstream if needed.

        Raises:
            GitOperationError: If no origin is configured, HEAD is detached,
                or the push fails.
        """
        action = "push commits"
        with normalized_failures(action, project_path, logger=self._logger):
            if not await self.inspect.has_remote_origin(project_path):
                msg = f'No remote "{ORIGIN}" configured'
                raise GitOperationError(msg, action=action)

        async def _push() -> None:
            if await self.inspect.upstream_ref(project_path):
                await self.runner.run(project_path, "push")
                return
            branch = await self.inspect.current_branch(project_path)
            if not branch or branch == "HEAD":
                msg = "Cannot push detached HEAD without specifying a branch"
                raise GitOperationError(msg, action=action)
            await self.runner.run(project_path, "push", "-u", ORIGIN, branch)

        await self._write(project_path, action, _push)

    async def fetch_updates(self, project_path: str | Path, remote: str = ORIGIN) -> None:
        """Fetch from a remote."""
        name = require_ref_name(remote, "Remote name")

        async def _fetch() -> None:
            await self.runner.run(project_path, "fetch", name)

        await self._write(project_path, "fetch updates", _fetch)

    async def pull_updates(self, project_path: str | Path) -> None:
        """Pull the current branch from its upstream."""

        async def _pull() -> None:
            await self.runner.run(project_path, "pull")

        await self._write(project_path, "pull updates", _pull)

    # -------------------------------------------------------------------------
    # Repository setup
    # -------------------------------------------------------------------------

    async def init_repo(
        self,
        project_path: str | Path,
        branch_name: str,
        gitignore_template: str | None = None,
    ) -> None:
        """Initialize a repository with the given initial branch name.

        Args:
            project_path: Directory to initialize.
            branch_name: Name of the initial branch.
            gitignore_template: Built-in template written to ``.gitignore``,
                or None to leave it alone.
        """
        branch = require_ref_name(branch_name, "Branch name")
        action = "initialize git repository"

        async def _init() -> None:
            await self.runner.run(project_path, "init")
            await self.runner.run(project_path, "check-ref-format", "--branch", branch)
            await self.runner.run(project_path, "branch", "-M", branch)

        await self._write(project_path, action, _init)

        if gitignore_template:
            with normalized_failures(action, project_path, logger=self._logger):
                target = anyio.Path(project_path) / GITIGNORE_FILENAME
                await target.write_text(
                    generate_gitignore_content(gitignore_template), encoding="utf-8"
                )

    async def create_initial_commit(self, project_path: str | Path, message: str) -> None:
        """Stage everything and create the first commit."""
        text = require_non_empty(message, "Commit message")

        async def _initial_commit() -> None:
            await self.runner.run(project_path, "add", ".")
            await self.runner.run(project_path, "commit", "-m", text)

        await self._write(project_path, "create initial commit", _initial_commit)

    # -------------------------------------------------------------------------
    # Remotes
    # -------------------------------------------------------------------------

    async def add_remote_origin(self, project_path: str | Path, remote_url: str) -> None:
        """Add ``origin``; fails if it already exists."""
        url = require_ref_name(remote_url, "Remote URL")
        action = "add remote origin"

        async def _add() -> None:
            remotes = (await self.runner.run(project_path, "remote")).split()
            if ORIGIN in remotes:
                msg = f'Remote "{ORIGIN}" already exists'
                raise GitOperationError(msg, action=action)
            await self.runner.run(project_path, "remote", "add", ORIGIN, url)

        await self._write(project_path, action, _add)

    async def set_remote_url(
        self, project_path: str | Path, remote_name: str, remote_url: str
    ) -> None:
        """Change the URL of an existing remote."""
        name = require_ref_name(remote_name, "Remote name")
        url = require_ref_name(remote_url, "Remote URL")

        async def _set_url() -> None:
            await self.runner.run(project_path, "remote", "set-url", name, url)

        await self._write(project_path, "set remote URL", _set_url)

    async def remove_remote(self, project_path: str | Path, remote_name: str) -> None:
        """Remove a remote."""
        name = require_ref_name(remote_name, "Remote name")

        async def _remove() -> None:
            await self.runner.run(project_path, "remote", "remove", name)

        await self._write(project_path, "remove remote", _remove)

    async def list_remotes(self, project_path: str | Path) -> list[GitRemoteSummary]:
        """Return configured remotes."""
        return await self.inspect.list_remotes(project_path)

    # -------------------------------------------------------------------------
    # Branches
    # -------------------------------------------------------------------------

    async def list_branches(self, project_path: str | Path) -> list[GitBranchSummary]:
        """Return local branches plus remote branches with no local copy.

        The current branch comes first, then the rest by name.
        """
        with normalized_failures("list branches", project_path, logger=self._logger):
            local_raw = await self.runner.run(
                project_path, "for-each-ref", _LOCAL_BRANCH_FORMAT, "refs/heads"
            )
            remote_raw = await self.runner.run(project_path, "branch", "-r")
        return merge_branches(
            parse_local_branches(local_raw), parse_remote_branches(remote_raw), self._remote
        )

    async def create_branch(
        self, project_path: str | Path, branch_name: str, *, checkout: bool = True
    ) -> None:
        """Create a branch from HEAD and optionally switch to it."""
        branch = require_ref_name(branch_name, "Branch name")

        async def _create() -> None:
            await self.runner.run(project_path, "check-ref-format", "--branch", branch)
            if checkout:
                await self.runner.run(project_path, "checkout", "-b", branch)
            else:
                await self.runner.run(project_path, "branch", branch)

        await self._write(project_path, "create branch", _create)

    async def delete_branch(
        self, project_path: str | Path, branch_name: str, *, force: bool = False
    ) -> None:
        """Delete a local branch; ``force`` deletes it even if unmerged."""
        branch = require_ref_name(branch_name, "Branch name")

        async def _delete() -> None:
            await self.runner.run(project_path, "branch", "-D" if force else "-d", branch)

        await self._write(project_path, "delete branch", _delete)

    async def checkout_branch(
        self,
        project_path: str | Path,
        branch_name: str,
        options: CheckoutOptions | None = None,
    ) -> CheckoutResult:
        """Switch branches, falling back to tracking, lock cleanup or auto-stash.

        See gitdeck.git._checkout for the fallback ladder.
        """
        require_ref_name(branch_name, "Branch name")
        with normalized_failures("checkout branch", project_path, logger=self._logger):
            return await _checkout_branch(
                self.runner,
                self.queue,
                project_path,
                branch_name,
                options or self._checkout_options,
                remote=self._remote,
                stale_after=self._lock_policy.stale_after,
                logger=self._logger,
            )

    # -------------------------------------------------------------------------
    # Tags
    # -------------------------------------------------------------------------

    async def list_tags(self, project_path: str | Path) -> list[GitTagSummary]:
        """Return tags with the commit each points to."""
        with normalized_failures("list tags", project_path, logger=self._logger):
            raw = await self.runner.run(project_path, "for-each-ref", _TAG_FORMAT, "refs/tags")
        tags: list[GitTagSummary] = []
        for line in raw.splitlines():
            name, _, rest = line.partition(FIELD_SEPARATOR)
            if not name:
                continue
            obj, _, peeled = rest.partition(FIELD_SEPARATOR)
            tags.append(GitTagSummary(name=name, commit=peeled or obj or None))
        return tags

    async def create_tag(
        self, project_path: str | Path, tag_name: str, target: str | None = None
    ) -> None:
        """Create a lightweight tag at ``target`` (HEAD if omitted)."""
        name = require_ref_name(tag_name, "Tag name")
        target_args = (
            [require_ref_name(target, "Tag target")] if target and target.strip() else []
        )

        async def _tag() -> None:
            await self.runner.run(project_path, "tag", name, *target_args)

        await self._write(project_path, "create tag", _tag)

    async def delete_tag(self, project_path: str | Path, tag_name: str) -> None:
        """Delete a tag."""
        name = require_ref_name(tag_name, "Tag name")

        async def _untag() -> None:
            await self.runner.run(project_path, "tag", "-d", name)

        await self._write(project_path, "delete tag", _untag)

    # -------------------------------------------------------------------------
    # Stashes
    # -------------------------------------------------------------------------

    async def list_stashes(self, project_path: str | Path) -> list[GitStashEntry]:
        """Return stash entries, newest first."""
        with normalized_failures("list stashes", project_path, logger=self._logger):
            raw = await self.runner.run(project_path, "stash", "list", _STASH_FORMAT)
        entries: list[GitStashEntry] = []
        for line in raw.splitlines():
            parts = line.split(FIELD_SEPARATOR, 2)
            if len(parts) < 3:  # noqa: PLR2004
                continue
            entries.append(GitStashEntry(ref=parts[0], hash=parts[1], message=parts[2]))
        return entries

    async def create_stash(self, project_path: str | Path, message: str | None = None) -> None:
        """Stash tracked and untracked changes."""
        message_args = ["-m", message.strip()] if message and message.strip() else []

        async def _stash() -> None:
            await self.runner.run(project_path, "stash", "push", "-u", *message_args)

        await self._write(project_path, "create stash", _stash)

    async def apply_stash(
        self, project_path: str | Path, stash_ref: str = LATEST_STASH_REF, *, pop: bool = False
    ) -> None:
        """Apply a stash, removing it from the list when ``pop`` is set."""
        ref = require_ref_name(stash_ref, "Stash reference")

        async def _apply() -> None:
            await self.runner.run(project_path, "stash", "pop" if pop else "apply", ref)

        await self._write(project_path, "apply stash", _apply)

    async def drop_stash(self, project_path: str | Path, stash_ref: str = LATEST_STASH_REF) -> None:
        """Delete a stash entry."""
        ref = require_ref_name(stash_ref, "Stash reference")

        async def _drop() -> None:
            await self.runner.run(project_path, "stash", "drop", ref)

        await self._write(project_path, "drop stash", _drop)

    # -------------------------------------------------------------------------
    # AI context
    # -------------------------------------------------------------------------

    async def get_working_changes_for_ai(self, project_path: str | Path) -> str:
        """Return compacted working-tree context using the configured budgets."""
        return await self.inspect.get_working_changes_for_ai(
            project_path, limits=self._limits, max_omitted_listed=self._max_omitted_listed
        )
