from __future__ import annotations

import os
import time
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from gitdeck.exceptions import (
    BlockedByLocalChangesError,
    GitOperationError,
    LockConflictError,
    PathspecNotFoundError,
    ValidationError,
)
from gitdeck.git import CheckoutOptions, WriteQueue, auto_stash_message, checkout_branch

from tests.unit.conftest import FakeRunner, git_failure, sequence

if TYPE_CHECKING:
    from pytest_mock import MockerFixture

pytestmark = pytest.mark.anyio

CHECKOUT = ("checkout", "feature")
PATHSPEC = "error: pathspec 'feature' did not match any file(s) known to git"
BLOCKED = (
    "error: Your local changes to the following files would be overwritten by checkout:\n"
    "\tREADME.md\nPlease commit your changes or stash them before you switch branches."
)
GIT_DIR_ARGS = ("rev-parse", "--path-format=absolute", "--git-dir")


def lock_failure(git_dir: Path):  # noqa: ANN201
    return git_failure(f"fatal: Unable to create '{git_dir}/index.lock': File exists.", "checkout")


async def run_checkout(runner: FakeRunner, options: CheckoutOptions | None = None, **kwargs):  # noqa: ANN003, ANN201
    return await checkout_branch(runner, WriteQueue(), "/repo", "feature", options, **kwargs)  # pyright: ignore[reportArgumentType]


class TestDirectCheckout:
    async def test_success(self) -> None:
        runner = FakeRunner()

        result = await run_checkout(runner)

        assert result.stashed is False
        assert result.cleaned_lock is None
        assert runner.calls == [CHECKOUT]

    async def test_blank_branch_is_rejected_before_git(self) -> None:
        runner = FakeRunner()

        with pytest.raises(ValidationError):
            await checkout_branch(runner, WriteQueue(), "/repo", "  ")  # pyright: ignore[reportArgumentType]

        assert runner.calls == []

    @pytest.mark.parametrize("branch", ["--force", "-f", "--orphan=x"])
    async def test_option_like_branch_is_rejected_before_git(self, branch: str) -> None:
        runner = FakeRunner()

        with pytest.raises(ValidationError, match="cannot start with '-'"):
            await checkout_branch(runner, WriteQueue(), "/repo", branch)  # pyright: ignore[reportArgumentType]

        assert runner.calls == []

    async def test_generic_failure(self) -> None:
        runner = FakeRunner({CHECKOUT: git_failure("fatal: reference is not a tree")})

        with pytest.raises(GitOperationError, match="reference is not a tree") as exc:
            await run_checkout(runner)

        assert type(exc.value) is GitOperationError
        assert exc.value.action == "checkout branch"


class TestRemoteTracking:
    async def test_tracks_remote_branch(self) -> None:
        runner = FakeRunner(
            {
                CHECKOUT: git_failure(PATHSPEC),
                ("branch", "-r"): "  origin/HEAD -> origin/main\n  origin/feature\n",
            }
        )

        result = await run_checkout(runner)

        assert result.stashed is False
        assert runner.calls[-1] == ("checkout", "--track", "origin/feature")

    async def test_uses_configured_remote(self) -> None:
        runner = FakeRunner(
            {CHECKOUT: git_failure(PATHSPEC), ("branch", "-r"): "  upstream/feature\n"}
        )

        await run_checkout(runner, remote="upstream")

        assert runner.calls[-1] == ("checkout", "--track", "upstream/feature")

    async def test_unknown_branch(self) -> None:
        runner = FakeRunner({CHECKOUT: git_failure(PATHSPEC), ("branch", "-r"): "  origin/main\n"})

        with pytest.raises(PathspecNotFoundError) as exc:
            await run_checkout(runner)

        assert exc.value.branch == "feature"


class TestLockRecovery:
    async def test_removes_stale_lock_and_retries(self, tmp_path: Path) -> None:
        lock = tmp_path / "index.lock"
        lock.write_text("")
        stamp = time.time() - 120
        os.utime(lock, (stamp, stamp))
        runner = FakeRunner(
            {CHECKOUT: sequence(lock_failure(tmp_path), ""), GIT_DIR_ARGS: str(tmp_path)}
        )

        result = await run_checkout(runner)

        assert result.cleaned_lock is True
        assert result.stashed is False
        assert not lock.exists()
        assert runner.calls.count(CHECKOUT) == 2

    async def test_active_lock_raises_conflict(self, tmp_path: Path) -> None:
        (tmp_path / "index.lock").write_text("")
        runner = FakeRunner({CHECKOUT: lock_failure(tmp_path), GIT_DIR_ARGS: str(tmp_path)})

        with pytest.raises(LockConflictError, match="currently locked by another running Git"):
            await run_checkout(runner)

    async def test_lock_cleanup_disabled(self, tmp_path: Path) -> None:
        runner = FakeRunner({CHECKOUT: lock_failure(tmp_path)})

        with pytest.raises(LockConflictError, match="File exists"):
            await run_checkout(runner, CheckoutOptions(auto_cleanup_lock=False))

        assert GIT_DIR_ARGS not in runner.calls


class TestAutoStash:
    async def test_stashes_and_retries(self, mocker: MockerFixture) -> None:
        mocker.patch("gitdeck.git._checkout._timestamp", return_value="2024-01-01T00:00:00Z")
        message = "gitdeck auto-stash before switching to feature at 2024-01-01T00:00:00Z"
        runner = FakeRunner(
            {
                CHECKOUT: sequence(git_failure(BLOCKED), ""),
                ("stash", "list"): sequence("", f"stash@{{0}}: On main: {message}\n"),
            }
        )

        result = await run_checkout(runner)

        assert result.stashed is True
        assert result.stash_ref == "stash@{0}"
        assert result.stash_message == message
        assert ("stash", "push", "-u", "-m", message) in runner.calls

    async def test_nothing_stashed(self) -> None:
        runner = FakeRunner(
            {CHECKOUT: sequence(git_failure(BLOCKED), ""), ("stash", "list"): "stash@{0}: old\n"}
        )

        result = await run_checkout(runner)

        assert result.stashed is False
        assert result.stash_ref is None
        assert result.stash_message is None

    async def test_blocked_without_auto_stash(self) -> None:
        runner = FakeRunner({CHECKOUT: git_failure(BLOCKED)})

        with pytest.raises(BlockedByLocalChangesError):
            await run_checkout(runner, CheckoutOptions(auto_stash=False))

        assert not any(call[0] == "stash" for call in runner.calls)

    async def test_failed_stash_keeps_original_message(self) -> None:
        runner = FakeRunner(
            {
                CHECKOUT: git_failure(BLOCKED),
                ("stash", "list"): "",
            }
        )

        with pytest.raises(GitOperationError, match="^Failed to checkout branch: error: Your local"):
            await run_checkout(runner)

    async def test_stash_message_names_branch(self) -> None:
        assert auto_stash_message("release/2.0").startswith(
            "gitdeck auto-stash before switching to release/2.0 at "
        )
