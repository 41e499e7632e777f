import tomllib

import pytest
from pydantic import ValidationError

from gitdeck.config import (
    CheckoutConfig,
    CompactionConfig,
    Config,
    LockConfig,
    LogFormat,
    LogLevel,
    RuntimeConfig,
)


class TestDefaults:
    def test_section_defaults(self) -> None:
        config = Config()

        assert config.logging.level is LogLevel.INFO
        assert config.logging.format is LogFormat.JSON
        assert config.logging.file == ""
        assert config.runtime == RuntimeConfig(command_timeout=120.0, max_concurrent_processes=6)
        assert config.locks == LockConfig(
            stale_after=15.0, max_attempts=8, retry_delay=0.35, transient_delay=0.06
        )
        assert config.compaction == CompactionConfig(
            max_files=16, max_lines_per_file=120, max_lines_total=900, max_omitted_listed=30
        )
        assert config.checkout == CheckoutConfig(
            auto_stash=True, auto_cleanup_lock=True, remote="origin"
        )

    def test_models_are_frozen(self) -> None:
        config = Config()

        with pytest.raises(ValidationError):
            config.locks.max_attempts = 2  # pyright: ignore[reportAttributeAccessIssue]

    def test_unknown_keys_are_ignored(self) -> None:
        config = Config.model_validate({"locks": {"max_attempts": 2, "future": True}, "x": 1})

        assert config.locks.max_attempts == 2


class TestValidation:
    @pytest.mark.parametrize(
        "data",
        [
            {"runtime": {"command_timeout": 0}},
            {"runtime": {"max_concurrent_processes": 0}},
            {"locks": {"max_attempts": 0}},
            {"compaction": {"max_lines_per_file": 1}},
            {"checkout": {"remote": ""}},
            {"logging": {"level": "loud"}},
        ],
    )
    def test_rejects_invalid_values(self, data: dict[str, object]) -> None:
        with pytest.raises(ValidationError):
            Config.model_validate(data)

    def test_timeout_may_be_disabled(self) -> None:
        assert Config.model_validate({"runtime": {"command_timeout": None}}).runtime.command_timeout is None


class TestSerialization:
    def test_to_toml_round_trips_through_tomllib(self) -> None:
        config = Config(locks=LockConfig(max_attempts=3))

        data = tomllib.loads(config.to_toml())

        assert data["locks"]["max_attempts"] == 3
        assert data["logging"]["level"] == "info"

    def test_to_dict_drops_none(self) -> None:
        config = Config(runtime=RuntimeConfig(command_timeout=None))

        assert "command_timeout" not in config.to_dict()["runtime"]
