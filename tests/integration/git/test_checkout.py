from pathlib import Path

import pytest

from gitdeck.exceptions import (
    BlockedByLocalChangesError,
    PathspecNotFoundError,
    ValidationError,
)
from gitdeck.git import CheckoutOptions, GitService

from tests.conftest import git, init_repo

pytestmark = pytest.mark.anyio


@pytest.fixture
def diverged(repo: Path) -> Path:
    """``feature`` changes README.md; ``main`` is checked out with README.md edited."""
    git(repo, "checkout", "-q", "-b", "feature")
    (repo / "README.md").write_text("# feature\n")
    git(repo, "commit", "-q", "-am", "Feature readme")
    git(repo, "checkout", "-q", "main")
    (repo / "README.md").write_text("# local edit\n")
    return repo


async def test_direct_checkout(repo: Path, service: GitService) -> None:
    git(repo, "branch", "feature")

    result = await service.checkout_branch(repo, "feature")

    assert not result.stashed
    assert result.stash_ref is None
    assert await service.inspect.current_branch(repo) == "feature"


async def test_local_changes_are_auto_stashed(diverged: Path, service: GitService) -> None:
    result = await service.checkout_branch(diverged, "feature")

    assert result.stashed
    assert result.stash_ref == "stash@{0}"
    assert result.stash_message is not None
    assert "feature" in result.stash_message
    assert await service.inspect.current_branch(diverged) == "feature"
    assert (diverged / "README.md").read_text() == "# feature\n"
    stashes = await service.list_stashes(diverged)
    assert len(stashes) == 1


async def test_blocked_without_auto_stash(diverged: Path, service: GitService) -> None:
    with pytest.raises(BlockedByLocalChangesError):
        await service.checkout_branch(
            diverged, "feature", CheckoutOptions(auto_stash=False)
        )

    assert await service.inspect.current_branch(diverged) == "main"
    assert (diverged / "README.md").read_text() == "# local edit\n"


async def test_remote_branch_gets_tracking_branch(
    repo: Path, service: GitService, tmp_path: Path
) -> None:
    upstream = init_repo(tmp_path / "upstream")
    git(upstream, "branch", "remote-only")
    git(repo, "remote", "add", "origin", str(upstream))
    git(repo, "fetch", "-q", "origin")

    result = await service.checkout_branch(repo, "remote-only")

    assert not result.stashed
    assert await service.inspect.current_branch(repo) == "remote-only"
    assert await service.inspect.upstream_ref(repo) == "origin/remote-only"


async def test_unknown_branch(repo: Path, service: GitService) -> None:
    with pytest.raises(PathspecNotFoundError):
        await service.checkout_branch(repo, "does-not-exist")


async def test_option_like_branch_keeps_local_changes(repo: Path, service: GitService) -> None:
    (repo / "README.md").write_text("# local edit\n")

    with pytest.raises(ValidationError):
        await service.checkout_branch(repo, "--force")

    assert (repo / "README.md").read_text() == "# local edit\n"
