"""Async git command execution.

This module provides the GitRunner class, the only place in gitdeck that
spawns git. Commands run through anyio so that a running subprocess only
suspends the calling task.
"""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import TYPE_CHECKING, Final, final

import anyio

from gitdeck.exceptions import GitCommandError, GitNotFoundError, GitTimeoutError

if TYPE_CHECKING:
    from gitdeck.git._runtime import GitRuntime

DEFAULT_MAX_CONCURRENT_PROCESSES: Final = 6


def _decode(output: bytes | None) -> str:
    if not output:
        return ""
    return output.decode("utf-8", errors="replace")


@final
class GitRunner:
    """Runs git commands for a resolved runtime.

    Attributes:
        runtime: The resolved git runtime.
        timeout: Per-command timeout in seconds, or None for no limit.
    """

    __slots__ = ("_env", "_limiter", "runtime", "timeout")

    def __init__(
        self,
        runtime: GitRuntime,
        *,
        timeout: float | None = None,
        max_concurrent: int = DEFAULT_MAX_CONCURRENT_PROCESSES,
    ) -> None:
        """Initialize the runner.

        Args:
            runtime: The resolved git runtime.
            timeout: Per-command timeout in seconds, or None for no limit.
            max_concurrent: Maximum number of git processes at once.
        """
        self.runtime = runtime
        self.timeout = timeout
        self._env = runtime.subprocess_env()
        self._limiter = anyio.CapacityLimiter(max(1, max_concurrent))

    async def run(
        self,
        cwd: Path | str,
        *args: str,
        check: bool = True,
        timeout: float | None = None,
    ) -> str:
        """Run a git command and return its standard output.

        Args:
            cwd: Working directory for the command.
            *args: Arguments after the git binary.
            check: Raise GitCommandError on a non-zero exit status.
            timeout: Override the runner's timeout for this call.

        Returns:
            Standard output, untrimmed.

        Raises:
            GitCommandError: If git exits non-zero and ``check`` is set.
            GitTimeoutError: If the command exceeds its timeout.
            GitNotFoundError: If the git binary cannot be spawned.
        """
        command = [self.runtime.binary, *args]
        effective_timeout = timeout if timeout is not None else self.timeout

        try:
            async with self._limiter:
                with anyio.fail_after(effective_timeout):
                    result = await anyio.run_process(
                        command,
                        cwd=str(cwd),
                        env=self._env,
                        stdin=subprocess.DEVNULL,
                        check=False,
                    )
        except TimeoutError as e:
            msg = f"git {args[0] if args else ''} timed out after {effective_timeout}s"
            raise GitTimeoutError(
                msg, args=args, timeout=effective_timeout, cwd=cwd
            ) from e
        except FileNotFoundError as e:
            if not Path(cwd).is_dir():
                msg = f"Directory does not exist: {cwd}"
                raise GitCommandError(msg, args=args, cwd=cwd) from e
            msg = f"Unable to run {self.runtime.binary}: {e}"
            raise GitNotFoundError(msg) from e
        except OSError as e:
            msg = f"Unable to run {self.runtime.binary}: {e}"
            raise GitNotFoundError(msg) from e

        stdout = _decode(result.stdout)
        if result.returncode != 0 and check:
            stderr = _decode(result.stderr)
            message = (
                stderr.strip()
                or stdout.strip()
                or f"git {args[0] if args else ''} exited with code {result.returncode}"
            )
            raise GitCommandError(
                message,
                args=args,
                exit_code=result.returncode,
                stderr=stderr,
                cwd=cwd,
            )
        return stdout

    async def try_run(self, cwd: Path | str, *args: str, default: str = "") -> str:
        """Run a best-effort git command.

        Args:
            cwd: Working directory for the command.
            *args: Arguments after the git binary.
            default: Value returned when git fails.

        Returns:
            Standard output, or ``default`` if git exited non-zero.
        """
        try:
            return await self.run(cwd, *args)
        except GitCommandError:
            return default
