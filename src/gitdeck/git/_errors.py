"""Classification and normalization of git failures.

Git reports most failures only as human-readable text, so the patterns
below are best-effort heuristics tied to git's English output. They live
here and nowhere else so they can be adjusted without touching control flow.
"""

from __future__ import annotations

import re
from contextlib import contextmanager
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING, Final

from gitdeck.exceptions import GitError, GitOperationError, ValidationError

if TYPE_CHECKING:
    from collections.abc import Iterator

    from structlog.typing import FilteringBoundLogger

_INDEX_LOCK_PATTERNS: Final = (
    re.compile(r"index\.lock': File exists", re.IGNORECASE),
    re.compile(r"Unable to create .*index\.lock", re.IGNORECASE),
)

_PATHSPEC_NOT_FOUND_PATTERNS: Final = (
    re.compile(r"pathspec .* did not match any file", re.IGNORECASE),
    re.compile(r"did not match any branch", re.IGNORECASE),
)

_BLOCKED_BY_LOCAL_CHANGES_PATTERN: Final = re.compile(
    r"would be overwritten by (checkout|switch)", re.IGNORECASE
)


class GitErrorKind(StrEnum):
    """Failure categories that drive recovery decisions."""

    INDEX_LOCK = "index_lock"
    PATHSPEC_NOT_FOUND = "pathspec_not_found"
    BLOCKED_BY_LOCAL_CHANGES = "blocked_by_local_changes"
    GENERIC = "generic"


def classify_git_error(message: str) -> GitErrorKind:
    """Classify a git error message.

    Args:
        message: Error text, usually git's stderr.

    Returns:
        The matching error kind, GENERIC when nothing matches.
    """
    if any(pattern.search(message) for pattern in _INDEX_LOCK_PATTERNS):
        return GitErrorKind.INDEX_LOCK
    if any(pattern.search(message) for pattern in _PATHSPEC_NOT_FOUND_PATTERNS):
        return GitErrorKind.PATHSPEC_NOT_FOUND
    if _BLOCKED_BY_LOCAL_CHANGES_PATTERN.search(message):
        return GitErrorKind.BLOCKED_BY_LOCAL_CHANGES
    return GitErrorKind.GENERIC


def is_index_lock_conflict(message: str) -> bool:
    """Return True if the message reports index.lock contention."""
    return classify_git_error(message) is GitErrorKind.INDEX_LOCK


def is_pathspec_not_found(message: str) -> bool:
    """Return True if the message reports an unknown branch or path."""
    return classify_git_error(message) is GitErrorKind.PATHSPEC_NOT_FOUND


def is_blocked_by_local_changes(message: str) -> bool:
    """Return True if uncommitted changes blocked a checkout."""
    return classify_git_error(message) is GitErrorKind.BLOCKED_BY_LOCAL_CHANGES


def error_message(exc: BaseException | None, fallback: str) -> str:
    """Extract a non-empty message from an exception.

    Args:
        exc: The exception, or None.
        fallback: Text to use when the exception has no message.

    Returns:
        The exception message, or the fallback.
    """
    if exc is not None:
        message = str(exc).strip()
        if message:
            return message
    return fallback


def to_operation_error(exc: BaseException | None, action: str) -> GitOperationError:
    """Normalize any failure into a GitOperationError.

    Args:
        exc: The original failure.
        action: Action label used for the fallback message.

    Returns:
        A GitOperationError carrying the original message where available.
    """
    return GitOperationError(error_message(exc, f"Failed to {action}"), action=action)


def require_non_empty(value: str | None, label: str) -> str:
    """Validate that a string argument is non-empty after trimming.

    Args:
        value: The argument value.
        label: Human-readable argument name, e.g. "Branch name".

    Returns:
        The trimmed value.

    Raises:
        ValidationError: If the value is None or blank.
    """
    trimmed = (value or "").strip()
    if not trimmed:
        msg = f"{label} cannot be empty"
        raise ValidationError(msg, field=label)
    return trimmed


def require_ref_name(value: str | None, label: str) -> str:
    """Validate a branch, tag, remote, stash or revision argument.

    Git parses an argument starting with "-" as an option, so
    ``checkout --force`` would discard local changes instead of failing.

    Args:
        value: The argument value.
        label: Human-readable argument name, e.g. "Branch name".

    Returns:
        The trimmed value.

    Raises:
        ValidationError: If the value is blank or starts with "-".
    """
    trimmed = require_non_empty(value, label)
    if trimmed.startswith("-"):
        msg = f"{label} cannot start with '-': {trimmed}"
        raise ValidationError(msg, field=label)
    return trimmed


@contextmanager
def normalized_failures(
    action: str,
    project_path: str | Path,
    *,
    logger: FilteringBoundLogger | None = None,
) -> Iterator[None]:
    """Log and normalize failures raised inside the block.

    ValidationError passes through untouched and unlogged. GitOperationError
    subclasses (lock conflicts, checkout failures) are logged and re-raised
    as they are. Any other git or OS failure is logged and replaced by a
    GitOperationError carrying its message.

    Args:
        action: Action label, e.g. "push commits".
        project_path: The project the action ran against.
        logger: Logger for failure events.

    Raises:
        GitOperationError: For every failure except ValidationError.
    """
    try:
        yield
    except ValidationError:
        raise
    except (GitError, OSError) as e:
        if logger is not None:
            logger.error(
                "git_operation_failed",
                action=action,
                project=str(project_path),
                error=error_message(e, f"Failed to {action}"),
                error_type=type(e).__name__,
            )
        if isinstance(e, GitOperationError):
            raise
        raise to_operation_error(e, action) from e
