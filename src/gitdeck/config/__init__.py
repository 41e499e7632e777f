"""gitdeck configuration.

This module provides the public API for gitdeck configuration management,
including loading, validation, and typed access to configuration values.

Example:
    >>> from gitdeck.config import load_config
    >>> config = load_config()
    >>> config.locks.max_attempts
    8
"""

from gitdeck.exceptions import (
    ConfigError,
    ConfigLoadError,
    ConfigValidationError,
)

from ._load import get_user_config_path, load_config
from ._loader import deep_merge, parse_env_value, parse_env_vars, read_toml_file, set_nested_key
from ._models import (
    CheckoutConfig,
    CompactionConfig,
    Config,
    LockConfig,
    LogFormat,
    LoggingConfig,
    LogLevel,
    RuntimeConfig,
)

__all__ = [
    "CheckoutConfig",
    "CompactionConfig",
    "Config",
    "ConfigError",
    "ConfigLoadError",
    "ConfigValidationError",
    "LockConfig",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "RuntimeConfig",
    "deep_merge",
    "get_user_config_path",
    "load_config",
    "parse_env_value",
    "parse_env_vars",
    "read_toml_file",
    "set_nested_key",
]
