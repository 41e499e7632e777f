"""Configuration discovery and loading."""

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import platformdirs
from pydantic import ValidationError

from gitdeck.exceptions import ConfigLoadError, ConfigValidationError

from ._loader import deep_merge, parse_env_vars, read_toml_file
from ._models import Config

CONFIG_FILENAME = "config.toml"


def get_user_config_path() -> Path:
    r"""Get the platform-specific user config file path.

    - Linux: ``~/.config/gitdeck/config.toml``
    - macOS: ``~/Library/Application Support/gitdeck/config.toml``
    - Windows: ``%APPDATA%\gitdeck\config.toml``

    The path is returned regardless of whether it exists.
    """
    return platformdirs.user_config_path("gitdeck") / CONFIG_FILENAME


def _validate(data: dict[str, Any], source: str | None) -> Config:  # pyright: ignore[reportExplicitAny]
    try:
        return Config.model_validate(data)
    except ValidationError as e:
        error = e.errors()[0]
        key = ".".join(str(part) for part in error["loc"])
        msg = f"Invalid configuration value for '{key}'"
        raise ConfigValidationError(
            msg,
            key=key,
            value=error.get("input"),
            expected=error["msg"],
            source=source,
        ) from e


def load_config(
    config_path: Path | None = None,
    *,
    include_user: bool = True,
    include_env: bool = True,
    environ: Mapping[str, str] | None = None,
) -> Config:
    """Load merged configuration from all sources.

    Sources are merged lowest to highest precedence: built-in defaults, the
    user config file, ``config_path``, then ``GITDECK_<SECTION>__<KEY>``
    environment variables.

    Args:
        config_path: Explicit config file. Must exist when given.
        include_user: Read the user config file if it exists.
        include_env: Read environment variable overrides.
        environ: Environment to read. Uses ``os.environ`` if None.

    Returns:
        The validated configuration.

    Raises:
        ConfigLoadError: If a file is missing or cannot be parsed.
        ConfigValidationError: If a merged value is invalid.
    """
    merged: dict[str, Any] = {}  # pyright: ignore[reportExplicitAny]
    source: str | None = None

    if include_user:
        user_path = get_user_config_path()
        if user_path.is_file():
            merged = deep_merge(merged, read_toml_file(user_path))
            source = str(user_path)

    if config_path is not None:
        if not config_path.is_file():
            msg = f"Config file not found: {config_path}"
            raise ConfigLoadError(msg, path=config_path)
        merged = deep_merge(merged, read_toml_file(config_path))
        source = str(config_path)

    if include_env:
        env_values = parse_env_vars(environ=environ)
        if env_values:
            merged = deep_merge(merged, env_values)
            source = "env" if source is None else f"{source}, env"

    return _validate(merged, source)
