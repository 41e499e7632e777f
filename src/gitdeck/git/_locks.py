"""Stale index.lock detection and retry of lock-blocked operations.

Git creates ``index.lock`` for the duration of a single command and removes
it on exit. A lock that survives well past that is left behind by a crashed
or killed process and is safe to delete. Liveness is judged by age only.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Final, TypeVar

import anyio

from gitdeck.exceptions import GitCommandError, LockConflictError
from gitdeck.git._errors import error_message, is_index_lock_conflict
from gitdeck.git._models import IndexLockState

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from structlog.typing import FilteringBoundLogger

    from gitdeck.git._queue import WriteQueue
    from gitdeck.git._runner import GitRunner

T = TypeVar("T")

DEFAULT_STALE_AFTER_SECONDS: Final = 15.0
INDEX_LOCK_NAME: Final = "index.lock"


@dataclass(frozen=True, slots=True)
class LockRetryPolicy:
    """Retry policy for operations blocked by index.lock.

    Attributes:
        max_attempts: Total attempts, the first one included.
        retry_delay: Delay unit in seconds; the wait after attempt ``n``
            is ``n * retry_delay`` when the lock was removed or is active.
        transient_delay: Fixed short delay when the lock turned out to be
            missing, i.e. the conflict was already over.
        stale_after: Age in seconds after which a lock counts as stale.
    """

    max_attempts: int = 8
    retry_delay: float = 0.35
    transient_delay: float = 0.06
    stale_after: float = DEFAULT_STALE_AFTER_SECONDS

    def delay(self, attempt: int, state: IndexLockState) -> float:
        """Return the wait before the next attempt.

        Args:
            attempt: The attempt that just failed (1-indexed).
            state: Result of the lock cleanup for that attempt.

        Returns:
            Delay in seconds.
        """
        if state is IndexLockState.MISSING:
            return self.transient_delay
        return self.retry_delay * attempt


async def find_index_lock(runner: GitRunner, project_path: str | Path) -> Path:
    """Return the path of the repository's index.lock file.

    Uses git's own view of the git directory so worktrees and custom
    ``GIT_DIR`` layouts resolve correctly; falls back to ``<project>/.git``.
    """
    git_dir = (
        await runner.try_run(
            project_path, "rev-parse", "--path-format=absolute", "--git-dir"
        )
    ).strip()
    base = Path(git_dir) if git_dir else Path(project_path) / ".git"
    return base / INDEX_LOCK_NAME


async def cleanup_stale_index_lock(
    runner: GitRunner,
    project_path: str | Path,
    stale_after: float = DEFAULT_STALE_AFTER_SECONDS,
) -> IndexLockState:
    """Remove the repository's index.lock if it is stale.

    Args:
        runner: Runner used to locate the git directory.
        project_path: The repository's project path.
        stale_after: Minimum lock age in seconds before it is removed.

    Returns:
        ACTIVE if the lock is younger than ``stale_after``, REMOVED if it was
        deleted, MISSING if no lock exists.
    """
    lock_path = anyio.Path(await find_index_lock(runner, project_path))
    try:
        lock_stat = await lock_path.stat()
        age = time.time() - lock_stat.st_mtime
        if age < stale_after:
            return IndexLockState.ACTIVE
        await lock_path.unlink()
    except FileNotFoundError:
        return IndexLockState.MISSING
    return IndexLockState.REMOVED


async def with_lock_recovery(
    runner: GitRunner,
    queue: WriteQueue,
    project_path: str | Path,
    label: str,
    action: Callable[[], Awaitable[T]],
    *,
    policy: LockRetryPolicy | None = None,
    logger: FilteringBoundLogger | None = None,
) -> T:
    """Run a mutating action with index.lock recovery.

    The action runs inside the repository's write queue. Failures that are
    not index.lock conflicts propagate immediately. On a conflict the lock is
    inspected, removed if stale, and the action is retried after a delay.

    Args:
        runner: Runner used for lock inspection.
        queue: Write queue serializing the repository.
        project_path: The repository's project path.
        label: Action label, e.g. "stage files".
        action: Async callable performing the git commands.
        policy: Retry policy. Uses LockRetryPolicy() if None.
        logger: Logger for lock removal warnings.

    Returns:
        The action's result.

    Raises:
        LockConflictError: If the lock persists through every attempt.
    """
    retry = policy or LockRetryPolicy()

    async def _attempt_loop() -> T:
        last_error: GitCommandError | None = None
        for attempt in range(1, retry.max_attempts + 1):
            try:
                return await action()
            except GitCommandError as e:
                if not is_index_lock_conflict(error_message(e, "")):
                    raise
                last_error = e

            state = await cleanup_stale_index_lock(
                runner, project_path, stale_after=retry.stale_after
            )
            if state is IndexLockState.REMOVED and logger is not None:
                logger.warning(
                    "git_stale_index_lock_removed",
                    action=label,
                    project=str(project_path),
                    attempt=attempt,
                )

            if attempt >= retry.max_attempts:
                if state is IndexLockState.ACTIVE:
                    msg = (
                        "Git index is locked by another running Git process. "
                        f"Wait for it to finish, then retry {label}."
                    )
                    raise LockConflictError(msg, action=label) from last_error
                break

            await anyio.sleep(retry.delay(attempt, state))

        msg = error_message(last_error, f"Failed to {label}")
        raise LockConflictError(msg, action=label) from last_error

    return await queue.enqueue(project_path, label, _attempt_loop)
