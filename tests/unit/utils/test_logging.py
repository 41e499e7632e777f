from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from gitdeck.utils import create_cli_logger, create_logger, get_cli_log_file

if TYPE_CHECKING:
    from pyfakefs.fake_filesystem import FakeFilesystem

LOG_FILE = Path("/logs/gitdeck/test.log")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("GITDECK_DEBUG", raising=False)
    monkeypatch.delenv("GITDECK_LOG_LEVEL", raising=False)


def read_entries(path: Path = LOG_FILE) -> list[dict[str, object]]:
    return [json.loads(line) for line in path.read_text().splitlines() if line]


class TestCreateLogger:
    def test_writes_json_entries_with_context(self, fs: FakeFilesystem) -> None:
        logger = create_logger(log_file=str(LOG_FILE), component="queue")

        logger.info("git_queue_start", action="stage files")

        [entry] = read_entries()
        assert entry["event"] == "git_queue_start"
        assert entry["level"] == "info"
        assert entry["action"] == "stage files"
        assert entry["component"] == "queue"
        assert "timestamp" in entry

    def test_creates_parent_directories(self, fs: FakeFilesystem) -> None:
        create_logger(log_file=str(LOG_FILE)).warning("hello")

        assert LOG_FILE.parent.is_dir()

    def test_filters_below_level(self, fs: FakeFilesystem) -> None:
        logger = create_logger(level="warning", log_file=str(LOG_FILE))

        logger.info("skipped")
        logger.error("kept")

        assert [entry["event"] for entry in read_entries()] == ["kept"]

    def test_log_level_env_var_applies_without_explicit_level(
        self, fs: FakeFilesystem, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("GITDECK_LOG_LEVEL", "error")
        logger = create_logger(log_file=str(LOG_FILE))

        logger.warning("skipped")
        logger.error("kept")

        assert [entry["event"] for entry in read_entries()] == ["kept"]

    def test_debug_env_var_wins(self, fs: FakeFilesystem, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GITDECK_DEBUG", "1")
        logger = create_logger(level="error", log_file=str(LOG_FILE))

        logger.debug("visible")

        assert [entry["event"] for entry in read_entries()] == ["visible"]

    def test_text_format(self, fs: FakeFilesystem) -> None:
        logger = create_logger(log_format="text", log_file=str(LOG_FILE))

        logger.info("git_runtime_fallback", attempt=2)

        content = LOG_FILE.read_text()
        assert "git_runtime_fallback" in content
        assert "attempt=2" in content
        assert not content.startswith("{")

    def test_exception_tracebacks_are_structured(self, fs: FakeFilesystem) -> None:
        logger = create_logger(log_file=str(LOG_FILE))

        try:
            msg = "boom"
            raise RuntimeError(msg)
        except RuntimeError:
            logger.exception("failed")

        [entry] = read_entries()
        assert isinstance(entry["exception"], list)


class TestCliLogger:
    def test_default_file_is_in_user_log_dir(self) -> None:
        path = get_cli_log_file()

        assert path.name == "cli.log"
        assert "gitdeck" in path.parts

    def test_writes_to_explicit_file(self, fs: FakeFilesystem) -> None:
        create_cli_logger(log_file=str(LOG_FILE)).info("cli_started")

        assert [entry["event"] for entry in read_entries()] == ["cli_started"]
