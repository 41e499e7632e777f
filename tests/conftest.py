"""Shared test fixtures for gitdeck tests."""

import shutil
import subprocess
from collections.abc import Callable
from pathlib import Path

import pytest

GIT_AVAILABLE = shutil.which("git") is not None

RunGit = Callable[..., str]


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


def git(cwd: Path, *args: str) -> str:
    """Run git synchronously for test setup and return stdout."""
    result = subprocess.run(
        ["git", *args],
        cwd=cwd,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout


def init_repo(path: Path, *, branch: str = "main") -> Path:
    """Create a repository with a local identity and one commit.

    Structure:
        path/
            .git/
            README.md     # committed on ``branch``
    """
    path.mkdir(parents=True, exist_ok=True)
    git(path, "init", "-q")
    git(path, "symbolic-ref", "HEAD", f"refs/heads/{branch}")
    git(path, "config", "user.name", "Test User")
    git(path, "config", "user.email", "test@example.com")
    git(path, "config", "commit.gpgsign", "false")
    git(path, "config", "core.autocrlf", "false")
    (path / "README.md").write_text("# test\n")
    git(path, "add", "README.md")
    git(path, "commit", "-q", "-m", "Initial commit")
    return path


@pytest.fixture
def run_git() -> RunGit:
    """Return the synchronous git helper."""
    return git


@pytest.fixture
def cli_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate CLI runs from the user's config file and log directory."""
    log_file = tmp_path / "logs" / "cli.log"
    monkeypatch.setenv("GITDECK_LOGGING__FILE", str(log_file))
    monkeypatch.setattr(
        "gitdeck.config._load.get_user_config_path",
        lambda: tmp_path / "no-user-config" / "config.toml",
    )
    return log_file
