"""Branch checkout with cascading fallbacks.

A checkout is attempted directly first. Depending on how git rejects it,
the state machine falls back to creating a tracking branch from origin,
clearing a stale index.lock, or stashing local changes, and reports which
of these happened.

    DIRECT -> SUCCESS
           -> REMOTE_TRACKING -> SUCCESS
           -> LOCK_RECOVERY   -> SUCCESS | FAILURE
           -> AUTO_STASH      -> SUCCESS | FAILURE
           -> FAILURE

The whole ladder runs inside the repository's write queue but not inside
the generic lock-retry wrapper, since it handles lock conflicts itself.
"""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING, Final

from gitdeck.exceptions import (
    BlockedByLocalChangesError,
    GitCommandError,
    GitOperationError,
    LockConflictError,
    PathspecNotFoundError,
)
from gitdeck.git._errors import (
    GitErrorKind,
    classify_git_error,
    error_message,
    require_ref_name,
)
from gitdeck.git._locks import DEFAULT_STALE_AFTER_SECONDS, cleanup_stale_index_lock
from gitdeck.git._models import CheckoutOptions, CheckoutResult, IndexLockState

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from gitdeck.git._queue import WriteQueue
    from gitdeck.git._runner import GitRunner

ACTION: Final = "checkout branch"
DEFAULT_REMOTE: Final = "origin"
LATEST_STASH_REF: Final = "stash@{0}"


class CheckoutFallback(StrEnum):
    """Fallbacks taken after a direct checkout fails."""

    REMOTE_TRACKING = "remote_tracking"
    LOCK_RECOVERY = "lock_recovery"
    AUTO_STASH = "auto_stash"


def _timestamp() -> str:
    """Get current timestamp in ISO 8601 format."""
    import pendulum  # noqa: PLC0415

    return pendulum.now("UTC").to_iso8601_string()


def auto_stash_message(branch: str) -> str:
    """Return the label used for an automatic stash before a checkout."""
    return f"gitdeck auto-stash before switching to {branch} at {_timestamp()}"


async def _stash_count(runner: GitRunner, project_path: str | Path, default: int) -> int:
    try:
        output = await runner.run(project_path, "stash", "list")
    except GitCommandError:
        return default
    return sum(1 for line in output.splitlines() if line.strip())


async def _has_remote_branch(
    runner: GitRunner, project_path: str | Path, remote_branch: str
) -> bool:
    output = await runner.try_run(project_path, "branch", "-r")
    return any(line.strip() == remote_branch for line in output.splitlines())


def _failure(
    kind: GitErrorKind, message: str, branch: str, cause: BaseException | None
) -> GitOperationError:
    """Build the most specific error for a terminal checkout failure."""
    match kind:
        case GitErrorKind.PATHSPEC_NOT_FOUND:
            error: GitOperationError = PathspecNotFoundError(
                message, action=ACTION, branch=branch
            )
        case GitErrorKind.BLOCKED_BY_LOCAL_CHANGES:
            error = BlockedByLocalChangesError(message, action=ACTION, branch=branch)
        case GitErrorKind.INDEX_LOCK:
            error = LockConflictError(message, action=ACTION)
        case _:
            error = GitOperationError(message, action=ACTION)
    error.__cause__ = cause
    return error


def _log_fallback(
    logger: FilteringBoundLogger | None,
    fallback: CheckoutFallback,
    project_path: str | Path,
    branch: str,
) -> None:
    if logger is not None:
        logger.debug(
            "git_checkout_fallback",
            fallback=fallback.value,
            branch=branch,
            project=str(project_path),
        )


async def _checkout(
    runner: GitRunner,
    project_path: str | Path,
    branch: str,
    options: CheckoutOptions,
    *,
    remote: str,
    stale_after: float,
    logger: FilteringBoundLogger | None,
) -> CheckoutResult:
    try:
        await runner.run(project_path, "checkout", branch)
    except GitCommandError as e:
        failure: BaseException = e
        message = error_message(e, f"Failed to {ACTION}")
    else:
        return CheckoutResult(stashed=False)

    kind = classify_git_error(message)
    cleaned_lock = False

    if kind is GitErrorKind.PATHSPEC_NOT_FOUND:
        remote_branch = f"{remote}/{branch}"
        if await _has_remote_branch(runner, project_path, remote_branch):
            _log_fallback(logger, CheckoutFallback.REMOTE_TRACKING, project_path, branch)
            await runner.run(project_path, "checkout", "--track", remote_branch)
            return CheckoutResult(stashed=False)

    if kind is GitErrorKind.INDEX_LOCK and options.auto_cleanup_lock:
        _log_fallback(logger, CheckoutFallback.LOCK_RECOVERY, project_path, branch)
        lock_state = await cleanup_stale_index_lock(
            runner, project_path, stale_after=stale_after
        )
        if lock_state is IndexLockState.ACTIVE:
            msg = (
                "Git index is currently locked by another running Git process. "
                "Close other Git operations and try again."
            )
            raise LockConflictError(msg, action=ACTION) from failure
        if lock_state is IndexLockState.REMOVED:
            cleaned_lock = True
            if logger is not None:
                logger.warning(
                    "git_stale_index_lock_removed",
                    action=ACTION,
                    project=str(project_path),
                )
            try:
                await runner.run(project_path, "checkout", branch)
            except GitCommandError as retry_error:
                failure = retry_error
                message = error_message(retry_error, message)
                kind = classify_git_error(message)
            else:
                return CheckoutResult(stashed=False, cleaned_lock=True)

    if not options.auto_stash or kind is not GitErrorKind.BLOCKED_BY_LOCAL_CHANGES:
        raise _failure(kind, message, branch, failure)

    _log_fallback(logger, CheckoutFallback.AUTO_STASH, project_path, branch)
    stash_message = auto_stash_message(branch)
    try:
        before = await _stash_count(runner, project_path, 0)
        await runner.run(project_path, "stash", "push", "-u", "-m", stash_message)
        await runner.run(project_path, "checkout", branch)
        after = await _stash_count(runner, project_path, before)
    except GitCommandError as stash_error:
        msg = f"Failed to {ACTION}: {message}"
        raise GitOperationError(msg, action=ACTION) from stash_error

    stashed = after > before
    return CheckoutResult(
        stashed=stashed,
        cleaned_lock=True if cleaned_lock else None,
        stash_ref=LATEST_STASH_REF if stashed else None,
        stash_message=stash_message if stashed else None,
    )


async def checkout_branch(
    runner: GitRunner,
    queue: WriteQueue,
    project_path: str | Path,
    branch_name: str,
    options: CheckoutOptions | None = None,
    *,
    remote: str = DEFAULT_REMOTE,
    stale_after: float = DEFAULT_STALE_AFTER_SECONDS,
    logger: FilteringBoundLogger | None = None,
) -> CheckoutResult:
    """Check out a branch, falling back as git's rejection allows.

    Args:
        runner: Runner used for git commands.
        queue: Write queue serializing the repository.
        project_path: The repository's project path.
        branch_name: Branch to switch to.
        options: Allowed fallbacks. Uses CheckoutOptions() if None.
        remote: Remote searched for a tracking branch.
        stale_after: Minimum index.lock age in seconds before removal.
        logger: Logger for recovery and failure events.

    Returns:
        What the checkout had to do to succeed.

    Raises:
        ValidationError: If the branch name is blank.
        PathspecNotFoundError: If the branch exists neither locally nor on
            the remote.
        BlockedByLocalChangesError: If local changes block the checkout and
            auto-stash is disabled.
        LockConflictError: If the index is locked by a live process.
        GitOperationError: For any other failure.
    """
    branch = require_ref_name(branch_name, "Branch name")
    effective = options or CheckoutOptions()

    async def _run() -> CheckoutResult:
        return await _checkout(
            runner,
            project_path,
            branch,
            effective,
            remote=remote,
            stale_after=stale_after,
            logger=logger,
        )

    return await queue.enqueue(project_path, ACTION, _run)
