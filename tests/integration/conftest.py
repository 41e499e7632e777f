from pathlib import Path

import pytest

from gitdeck.config import Config, LockConfig
from gitdeck.git import GitService

from tests.conftest import GIT_AVAILABLE, init_repo


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    skip_git = pytest.mark.skip(reason="git executable not found")
    for item in items:
        if Path(item.path).is_relative_to(Path(__file__).parent):
            item.add_marker(pytest.mark.integration)
            if not GIT_AVAILABLE:
                item.add_marker(skip_git)


@pytest.fixture
def repo(tmp_path: Path) -> Path:
    """A repository on ``main`` with one commit."""
    return init_repo(tmp_path / "repo")


@pytest.fixture
def service() -> GitService:
    config = Config(locks=LockConfig(retry_delay=0.01, transient_delay=0.01))
    return GitService(config)
