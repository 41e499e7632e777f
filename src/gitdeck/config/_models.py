"""Configuration models.

Every section is a frozen Pydantic model that ignores unknown keys, so a
config file written for a newer gitdeck still loads.
"""

from enum import StrEnum
from typing import Any, ClassVar

import tomli_w
from pydantic import BaseModel, ConfigDict, Field


class LogLevel(StrEnum):
    """Log level threshold values.

    Values are ordered from most verbose (debug) to least verbose (error).
    """

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LogFormat(StrEnum):
    """Log output format values."""

    JSON = "json"
    TEXT = "text"


class LoggingConfig(BaseModel):
    """Logging configuration section.

    Attributes:
        level: Log level threshold.
        format: Log output format.
        file: Path to log file (empty logs to stderr).
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.JSON
    file: str = ""


class RuntimeConfig(BaseModel):
    """Git process settings.

    Attributes:
        command_timeout: Seconds before a git command is abandoned; None
            disables the timeout.
        max_concurrent_processes: Maximum git processes running at once.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    command_timeout: float | None = Field(default=120.0, gt=0)
    max_concurrent_processes: int = Field(default=6, ge=1)


class LockConfig(BaseModel):
    """index.lock recovery settings."""

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    stale_after: float = Field(default=15.0, ge=0)
    max_attempts: int = Field(default=8, ge=1)
    retry_delay: float = Field(default=0.35, ge=0)
    transient_delay: float = Field(default=0.06, ge=0)


class CompactionConfig(BaseModel):
    """Budgets for diffs handed to AI consumers."""

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    max_files: int = Field(default=16, ge=1)
    max_lines_per_file: int = Field(default=120, ge=2)
    max_lines_total: int = Field(default=900, ge=2)
    max_omitted_listed: int = Field(default=30, ge=0)


class CheckoutConfig(BaseModel):
    """Default checkout fallbacks.

    Attributes:
        auto_stash: Stash local changes that block a checkout.
        auto_cleanup_lock: Remove a stale index.lock that blocks a checkout.
        remote: Remote searched for tracking branches.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    auto_stash: bool = True
    auto_cleanup_lock: bool = True
    remote: str = Field(default="origin", min_length=1)


class Config(BaseModel):
    """Complete gitdeck configuration.

    Use gitdeck.config.load_config() to build one from files and the
    environment; ``Config()`` gives the built-in defaults.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    runtime: RuntimeConfig = Field(default_factory=RuntimeConfig)
    locks: LockConfig = Field(default_factory=LockConfig)
    compaction: CompactionConfig = Field(default_factory=CompactionConfig)
    checkout: CheckoutConfig = Field(default_factory=CheckoutConfig)

    def to_dict(self) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
        """Return the configuration as plain TOML-compatible values.

        Keys whose value is None are left out since TOML has no null.
        """
        data = self.model_dump(mode="json")
        return {
            section: {key: value for key, value in values.items() if value is not None}
            for section, values in data.items()
        }

    def to_toml(self) -> str:
        """Return the configuration as a TOML document."""
        return tomli_w.dumps(self.to_dict())
