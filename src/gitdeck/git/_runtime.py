"""Git executable resolution and subprocess environment.

The runtime is resolved once and then handed to every runner explicitly.
Resolution prepends git's directory to PATH when a lookup succeeds, so that
git keeps working for hosts (desktop launchers, IDEs) that start with a
minimal PATH.
"""

from __future__ import annotations

import os
import subprocess
import sys
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

GIT_BINARY: Final = "git"

# Keys forwarded into every git subprocess; nothing else is inherited.
INHERITED_ENV_KEYS: Final = (
    "HOME",
    "USERPROFILE",
    "GIT_ASKPASS",
    "SSH_ASKPASS",
    "GIT_TERMINAL_PROMPT",
)

_LOCATE_TIMEOUT_SECONDS: Final = 10.0


def _extra_path_candidates() -> list[Path]:
    """Return well-known tool directories that may be missing from PATH."""
    if sys.platform == "win32":
        program_files = os.environ.get("ProgramFiles", r"C:\Program Files")
        return [Path(program_files) / "Git" / "cmd"]
    return [
        Path("/usr/local/bin"),
        Path("/opt/homebrew/bin"),
        Path.home() / ".local" / "bin",
    ]


def _path_value(env: Mapping[str, str]) -> str:
    return env.get("Path") or env.get("PATH") or ""


def _has_segment(path_value: str, directory: str) -> bool:
    target = directory.strip().lower()
    return any(
        segment.strip().lower() == target for segment in path_value.split(os.pathsep)
    )


def build_augmented_env(base: Mapping[str, str] | None = None) -> dict[str, str]:
    """Build a copy of the environment with common tool directories on PATH.

    Args:
        base: Environment to start from. Uses ``os.environ`` if None.

    Returns:
        A new environment dictionary. Existing directories not already on
        PATH are appended.
    """
    env = dict(os.environ if base is None else base)
    path_value = _path_value(env)
    for candidate in _extra_path_candidates():
        if candidate.is_dir() and not _has_segment(path_value, str(candidate)):
            path_value = (
                f"{path_value}{os.pathsep}{candidate}" if path_value else str(candidate)
            )
    if path_value:
        env["PATH"] = path_value
        if "Path" in env:
            env["Path"] = path_value
    return env


def _locate_git(env: Mapping[str, str]) -> str | None:
    """Locate git with the platform's where/which command.

    Returns:
        The first resolved path, or None if the lookup failed.
    """
    locate_command = "where" if sys.platform == "win32" else "which"
    try:
        result = subprocess.run(  # noqa: S603 - fixed command and argument
            [locate_command, GIT_BINARY],
            env=dict(env),
            capture_output=True,
            text=True,
            check=False,
            timeout=_LOCATE_TIMEOUT_SECONDS,
        )
    except (OSError, subprocess.TimeoutExpired):
        return None

    if result.returncode != 0:
        return None
    for line in result.stdout.splitlines():
        if line.strip():
            return line.strip()
    return None


@dataclass(frozen=True, slots=True)
class GitRuntime:
    """Resolved git binary and augmented environment.

    Attributes:
        binary: Command used to invoke git. Always the bare ``git``; the
            resolved directory is made reachable through PATH instead.
        env: Augmented environment the runtime was resolved with.
        resolved_path: Absolute path found by where/which, if any.
    """

    binary: str
    env: Mapping[str, str]
    resolved_path: str | None = None

    @classmethod
    def resolve(
        cls,
        base_env: Mapping[str, str] | None = None,
        *,
        logger: FilteringBoundLogger | None = None,
    ) -> GitRuntime:
        """Resolve the git runtime.

        Spawns one where/which process. Callers keep the returned value for
        the lifetime of the process instead of resolving again.

        Args:
            base_env: Base environment. Uses the augmented process env if None.
            logger: Logger for the fallback warning.

        Returns:
            The resolved runtime.
        """
        env = build_augmented_env(base_env)
        resolved_path = _locate_git(env)

        if not resolved_path:
            if logger is not None:
                logger.warning(
                    "git_runtime_fallback",
                    message="Could not resolve git via where/which; using PATH",
                )
        else:
            git_dir = str(Path(resolved_path).parent)
            path_value = _path_value(env)
            if not _has_segment(path_value, git_dir):
                next_path = (
                    f"{git_dir}{os.pathsep}{path_value}" if path_value else git_dir
                )
                env["Path"] = next_path
                env["PATH"] = next_path

        return cls(binary=GIT_BINARY, env=env, resolved_path=resolved_path or None)

    def subprocess_env(self) -> dict[str, str]:
        """Return the environment handed to git subprocesses.

        Only PATH/Path and the credential-related keys are forwarded.
        """
        env: dict[str, str] = {}
        path_value = _path_value(self.env)
        if path_value:
            env["PATH"] = path_value
            if sys.platform == "win32":
                env["Path"] = path_value
        for key in INHERITED_ENV_KEYS:
            value = self.env.get(key)
            if value:
                env[key] = value
        return env

