# pyright: reportAny=false, reportUnknownArgumentType=false
from __future__ import annotations

import copy
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from gitdeck.config import (
    deep_merge,
    parse_env_value,
    parse_env_vars,
    read_toml_file,
    set_nested_key,
)
from gitdeck.exceptions import ConfigLoadError

if TYPE_CHECKING:
    from pyfakefs.fake_filesystem import FakeFilesystem


class TestReadTomlFile:
    def test_parses_valid_toml(self, fs: FakeFilesystem) -> None:
        content = """
[locks]
max_attempts = 4
stale_after = 30.0
"""
        path = Path("/test/config.toml")
        fs.create_file(path, contents=content)

        assert read_toml_file(path) == {"locks": {"max_attempts": 4, "stale_after": 30.0}}

    def test_raises_file_not_found_for_missing_file(self, fs: FakeFilesystem) -> None:
        with pytest.raises(FileNotFoundError):
            read_toml_file(Path("/test/missing.toml"))

    def test_raises_config_load_error_for_invalid_toml(self, fs: FakeFilesystem) -> None:
        path = Path("/test/invalid.toml")
        fs.create_file(path, contents='[locks\nmax_attempts = "unclosed bracket"\n')

        with pytest.raises(ConfigLoadError) as exc_info:
            read_toml_file(path)

        error = exc_info.value
        assert error.path == path
        assert error.line is not None
        assert error.column is not None
        assert isinstance(error.__cause__, Exception)


class TestDeepMerge:
    def test_merges_nested_sections(self) -> None:
        base = {"locks": {"max_attempts": 8, "retry_delay": 0.35}, "logging": {"level": "info"}}
        override = {"locks": {"max_attempts": 3}}

        result = deep_merge(base, override)

        assert result == {
            "locks": {"max_attempts": 3, "retry_delay": 0.35},
            "logging": {"level": "info"},
        }

    def test_does_not_modify_inputs(self) -> None:
        base = {"a": {"b": 1}}
        override = {"a": {"c": 2}}
        base_copy = copy.deepcopy(base)
        override_copy = copy.deepcopy(override)

        deep_merge(base, override)

        assert base == base_copy
        assert override == override_copy

    def test_scalar_replaces_table(self) -> None:
        assert deep_merge({"a": {"b": 1}}, {"a": 5}) == {"a": 5}


class TestSetNestedKey:
    def test_creates_parents(self) -> None:
        data: dict[str, object] = {}

        set_nested_key(data, "runtime.command_timeout", 30)

        assert data == {"runtime": {"command_timeout": 30}}

    def test_replaces_non_dict_parent(self) -> None:
        data: dict[str, object] = {"runtime": "oops"}

        set_nested_key(data, "runtime.command_timeout", 30)

        assert data == {"runtime": {"command_timeout": 30}}


class TestParseEnvValue:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("true", True),
            ("FALSE", False),
            ("42", 42),
            ("-3", -3),
            ("0.5", 0.5),
            ('["a", "b"]', ["a", "b"]),
            ('{"k": 1}', {"k": 1}),
            ("[not json", "[not json"),
            ("origin", "origin"),
            ("1.2.3", "1.2.3"),
        ],
    )
    def test_infers_types(self, raw: str, expected: object) -> None:
        assert parse_env_value(raw) == expected


class TestParseEnvVars:
    def test_maps_double_underscores_to_sections(self) -> None:
        environ = {
            "GITDECK_LOCKS__MAX_ATTEMPTS": "3",
            "GITDECK_CHECKOUT__AUTO_STASH": "false",
            "GITDECK_LOGGING__FILE": "/tmp/gitdeck.log",
            "OTHER_LOCKS__MAX_ATTEMPTS": "9",
        }

        result = parse_env_vars(environ=environ)

        assert result == {
            "locks": {"max_attempts": 3},
            "checkout": {"auto_stash": False},
            "logging": {"file": "/tmp/gitdeck.log"},
        }

    def test_ignores_logging_switches(self) -> None:
        environ = {"GITDECK_DEBUG": "1", "GITDECK_LOG_LEVEL": "debug"}

        assert parse_env_vars(environ=environ) == {}
