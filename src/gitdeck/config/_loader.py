# pyright: reportAny=false, reportUnknownVariableType=false, reportUnknownArgumentType=false
"""TOML configuration file loading and merging."""

from __future__ import annotations

import json
import os
import tomllib
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from gitdeck.exceptions import ConfigLoadError

if TYPE_CHECKING:
    from pathlib import Path

ENV_PREFIX = "GITDECK_"


def read_toml_file(path: Path) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Read and parse a TOML file.

    Args:
        path: Path to the TOML file.

    Returns:
        Parsed TOML content as dictionary.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigLoadError: If the file cannot be parsed.
    """
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Failed to parse TOML file: {e}"
        raise ConfigLoadError(
            msg,
            path=path,
            line=e.lineno,
            column=e.colno,
        ) from e


def deep_merge(
    base: dict[str, Any],  # pyright: ignore[reportExplicitAny]
    override: dict[str, Any],  # pyright: ignore[reportExplicitAny]
) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Deep merge two configuration dictionaries.

    Merges `override` into `base`, returning a new dictionary. Neither input
    is modified. Nested dictionaries merge recursively; any other value in
    `override` replaces the one in `base`.
    """
    result: dict[str, Any] = dict(base)  # pyright: ignore[reportExplicitAny]
    for key, override_val in override.items():
        base_val = result.get(key)
        if isinstance(base_val, dict) and isinstance(override_val, dict):
            result[key] = deep_merge(base_val, override_val)
        else:
            result[key] = override_val
    return result


def set_nested_key(
    data: dict[str, Any],  # pyright: ignore[reportExplicitAny]
    dotted_key: str,
    value: Any,  # pyright: ignore[reportExplicitAny]
) -> None:
    """Set a value in a nested dictionary, creating parents as needed.

    Args:
        data: Dictionary to modify in place.
        dotted_key: Key path such as "locks.max_attempts".
        value: The value to store.
    """
    parts = dotted_key.split(".")
    current = data
    for part in parts[:-1]:
        child = current.get(part)
        if not isinstance(child, dict):
            child = {}
            current[part] = child
        current = child
    current[parts[-1]] = value


def parse_env_value(value: str) -> Any:  # pyright: ignore[reportExplicitAny]
    """Parse an environment variable value with type inference.

    Order of type inference:
        1. Boolean: true/false (case-insensitive)
        2. Integer: parseable as int
        3. Float: parseable as float (with decimal point)
        4. JSON array or object
        5. String: anything else
    """
    lower_value = value.lower()
    if lower_value in ("true", "false"):
        return lower_value == "true"

    try:
        return int(value)
    except ValueError:
        pass

    if "." in value:
        try:
            return float(value)
        except ValueError:
            pass

    if (value.startswith("[") and value.endswith("]")) or (
        value.startswith("{") and value.endswith("}")
    ):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            pass

    return value


def parse_env_vars(
    prefix: str = ENV_PREFIX,
    environ: Mapping[str, str] | None = None,
) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Parse environment variables into a config dictionary.

    Only variables with a double underscore after the prefix are read, so
    GITDECK_DEBUG and GITDECK_LOG_LEVEL stay logging switches.

    Environment variable naming:
        - Add prefix (GITDECK_)
        - Convert to uppercase
        - Replace dots with double underscores
        - Example: locks.max_attempts -> GITDECK_LOCKS__MAX_ATTEMPTS

    Args:
        prefix: Environment variable prefix.
        environ: Environment to read. Uses ``os.environ`` if None.

    Returns:
        Dictionary of parsed config values with nested structure.
    """
    result: dict[str, Any] = {}  # pyright: ignore[reportExplicitAny]
    source = os.environ if environ is None else environ

    for key, value in source.items():
        if not key.startswith(prefix):
            continue

        # GITDECK_LOCKS__MAX_ATTEMPTS -> locks.max_attempts
        config_key = key[len(prefix) :]
        if "__" not in config_key:
            continue

        config_path = config_key.replace("__", ".").lower()
        set_nested_key(result, config_path, parse_env_value(value))

    return result
