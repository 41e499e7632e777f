# ruff: noqa: TC003  # Path and Sequence needed at runtime for annotations
"""gitdeck exceptions."""

from collections.abc import Sequence
from pathlib import Path


class GitDeckError(Exception):
    """Base exception for gitdeck errors."""


class ConfigError(GitDeckError):
    """Base exception for configuration errors."""


class ConfigLoadError(ConfigError):
    """Raised when configuration cannot be loaded or parsed."""

    def __init__(
        self,
        message: str,
        *,
        path: Path | None = None,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        """Initialize with error message and optional location context."""
        super().__init__(message)
        self.path: Path | None = path
        self.line: int | None = line
        self.column: int | None = column


class ConfigValidationError(ConfigError):
    """Raised when configuration fails validation.

    Attributes:
        key: Dotted path of the first invalid key, e.g. "locks.max_attempts".
        value: The offending value.
        expected: What the key accepts.
        source: Where the offending values came from, if known.
    """

    def __init__(
        self,
        message: str,
        *,
        key: str,
        value: object,
        expected: str,
        source: str | None = None,
    ) -> None:
        """Initialize with error message and validation context."""
        super().__init__(message)
        self.key: str = key
        self.value: object = value
        self.expected: str = expected
        self.source: str | None = source


# =============================================================================
# Git Exceptions
# =============================================================================


class GitError(GitDeckError):
    """Base exception for git orchestration errors."""


class ValidationError(GitError, ValueError):
    """Raised when a required argument is empty after trimming.

    Raised before any git process is spawned.

    Attributes:
        field: Human-readable name of the offending argument.
    """

    def __init__(self, message: str, *, field: str | None = None) -> None:
        """Initialize with error message and field context.

        Args:
            message: Human-readable error message.
            field: Human-readable name of the offending argument.
        """
        super().__init__(message)
        self.field: str | None = field


class GitNotFoundError(GitError):
    """Raised when the git executable cannot be spawned."""


class GitCommandError(GitError):
    """Raised when a git process exits with a non-zero status.

    The message is git's own stderr output (or stdout when stderr is empty),
    which is what the error classifier inspects.

    Attributes:
        git_args: Arguments passed to git (without the binary).
        exit_code: The process exit code.
        stderr: Raw standard error text.
        cwd: Working directory the command ran in.
    """

    def __init__(
        self,
        message: str,
        *,
        args: Sequence[str] = (),
        exit_code: int | None = None,
        stderr: str = "",
        cwd: Path | str | None = None,
    ) -> None:
        """Initialize with error message and process context.

        Args:
            message: Human-readable error message.
            args: Arguments passed to git.
            exit_code: The process exit code.
            stderr: Raw standard error text.
            cwd: Working directory the command ran in.
        """
        super().__init__(message)
        self.git_args: tuple[str, ...] = tuple(args)
        self.exit_code: int | None = exit_code
        self.stderr: str = stderr
        self.cwd: Path | str | None = cwd


class GitTimeoutError(GitCommandError):
    """Raised when a git process exceeds its configured timeout.

    Attributes:
        timeout: The timeout in seconds that was exceeded.
    """

    def __init__(
        self,
        message: str,
        *,
        args: Sequence[str] = (),
        timeout: float | None = None,
        cwd: Path | str | None = None,
    ) -> None:
        """Initialize with error message and timeout context."""
        super().__init__(message, args=args, cwd=cwd)
        self.timeout: float | None = timeout


class GitOperationError(GitError):
    """Raised when a repository operation fails.

    This is the normalized error handed to callers. The message is the
    original git message when one was available, otherwise a fixed
    ``"Failed to <action>"`` text.

    Attributes:
        action: The action label, e.g. ``"push commits"``.
    """

    def __init__(self, message: str, *, action: str | None = None) -> None:
        """Initialize with error message and action context.

        Args:
            message: Human-readable error message.
            action: The action label that failed.
        """
        super().__init__(message)
        self.action: str | None = action


class LockConflictError(GitOperationError):
    """Raised when the repository index stays locked after recovery.

    Attributes:
        lock_path: Path to the index.lock file, if known.
    """

    def __init__(
        self,
        message: str,
        *,
        action: str | None = None,
        lock_path: Path | None = None,
    ) -> None:
        """Initialize with error message and lock context."""
        super().__init__(message, action=action)
        self.lock_path: Path | None = lock_path


class PathspecNotFoundError(GitOperationError):
    """Raised when a checkout target exists neither locally nor on origin.

    Attributes:
        branch: The branch that was requested.
    """

    def __init__(
        self, message: str, *, action: str | None = None, branch: str | None = None
    ) -> None:
        """Initialize with error message and branch context."""
        super().__init__(message, action=action)
        self.branch: str | None = branch


class BlockedByLocalChangesError(GitOperationError):
    """Raised when uncommitted changes block a checkout and auto-stash is off.

    Attributes:
        branch: The branch that was requested.
    """

    def __init__(
        self, message: str, *, action: str | None = None, branch: str | None = None
    ) -> None:
        """Initialize with error message and branch context."""
        super().__init__(message, action=action)
        self.branch: str | None = branch
