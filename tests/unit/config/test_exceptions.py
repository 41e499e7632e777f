from pathlib import Path

import pytest

from gitdeck.exceptions import (
    BlockedByLocalChangesError,
    ConfigError,
    ConfigLoadError,
    ConfigValidationError,
    GitCommandError,
    GitDeckError,
    GitError,
    GitNotFoundError,
    GitOperationError,
    GitTimeoutError,
    LockConflictError,
    PathspecNotFoundError,
    ValidationError,
)


class TestHierarchy:
    @pytest.mark.parametrize(
        ("error_type", "parent"),
        [
            (ConfigError, GitDeckError),
            (ConfigLoadError, ConfigError),
            (ConfigValidationError, ConfigError),
            (GitError, GitDeckError),
            (ValidationError, GitError),
            (ValidationError, ValueError),
            (GitNotFoundError, GitError),
            (GitCommandError, GitError),
            (GitTimeoutError, GitCommandError),
            (GitOperationError, GitError),
            (LockConflictError, GitOperationError),
            (PathspecNotFoundError, GitOperationError),
            (BlockedByLocalChangesError, GitOperationError),
        ],
    )
    def test_subclassing(self, error_type: type[Exception], parent: type[Exception]) -> None:
        assert issubclass(error_type, parent)


class TestContext:
    def test_command_error_attributes(self) -> None:
        error = GitCommandError(
            "fatal: x", args=["status"], exit_code=128, stderr="fatal: x\n", cwd="/repo"
        )

        assert str(error) == "fatal: x"
        assert error.git_args == ("status",)
        assert error.exit_code == 128
        assert error.cwd == "/repo"

    def test_lock_conflict_attributes(self) -> None:
        error = LockConflictError("locked", action="stage files", lock_path=Path("/r/.git/index.lock"))

        assert error.action == "stage files"
        assert error.lock_path == Path("/r/.git/index.lock")

    def test_config_validation_attributes(self) -> None:
        error = ConfigValidationError(
            "bad", key="locks.max_attempts", value=0, expected="greater than or equal to 1"
        )

        assert error.key == "locks.max_attempts"
        assert error.source is None
