"""Per-repository serialized execution of mutating git commands.

This module provides the WriteQueue registry. For a given repository key at
most one task runs at a time, tasks start in submission order, and a failed
or cancelled task never prevents its successors from running. Different keys
are independent and run in parallel.

The queue is an in-process mutex. It approximates git's own index.lock but
does not replace it: other processes can still hold the lock.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, TypeVar, final

import anyio

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from structlog.typing import FilteringBoundLogger

T = TypeVar("T")


def queue_key(project_path: str | Path, *, case_insensitive: bool | None = None) -> str:
    """Normalize a project path into a queue key.

    Args:
        project_path: The project path.
        case_insensitive: Fold case. Defaults to True on Windows.

    Returns:
        The trimmed (and possibly case-folded) key.
    """
    fold = sys.platform == "win32" if case_insensitive is None else case_insensitive
    key = str(project_path).strip()
    return key.lower() if fold else key


@dataclass(slots=True)
class _QueueEntry:
    """Chain state for one repository key.

    Attributes:
        lock: Fair lock; waiters acquire it in FIFO order.
        pending: Tasks submitted and not yet finished (running or waiting).
    """

    lock: anyio.Lock = field(default_factory=anyio.Lock)
    pending: int = 0


@final
class WriteQueue:
    """Registry of per-repository FIFO task chains.

    Entries are created on the first submission for a key and evicted when
    the last pending task for that key finishes, so the registry does not
    grow with the number of repositories seen over a long session.
    """

    __slots__ = ("_case_insensitive", "_entries", "_logger")

    def __init__(
        self,
        logger: FilteringBoundLogger | None = None,
        *,
        case_insensitive: bool | None = None,
    ) -> None:
        """Initialize an empty queue.

        Args:
            logger: Logger for task start events.
            case_insensitive: Fold keys to lower case. Defaults to the platform.
        """
        self._entries: dict[str, _QueueEntry] = {}
        self._logger = logger
        self._case_insensitive = case_insensitive

    def __len__(self) -> int:
        """Return the number of live repository keys."""
        return len(self._entries)

    def __contains__(self, project_path: object) -> bool:
        """Return True if the project has a live chain."""
        if not isinstance(project_path, (str, Path)):
            return False
        return self.key_for(project_path) in self._entries

    def key_for(self, project_path: str | Path) -> str:
        """Return the queue key for a project path."""
        return queue_key(project_path, case_insensitive=self._case_insensitive)

    def pending(self, project_path: str | Path) -> int:
        """Return the number of unfinished tasks for a project."""
        entry = self._entries.get(self.key_for(project_path))
        return entry.pending if entry is not None else 0

    async def enqueue(
        self,
        project_path: str | Path,
        label: str,
        task: Callable[[], Awaitable[T]],
    ) -> T:
        """Run a task after every earlier task for the same repository.

        Args:
            project_path: The repository's project path.
            label: Action label used in log events.
            task: Async callable to run.

        Returns:
            The task's result. Its exceptions propagate to this caller only.
        """
        key = self.key_for(project_path)
        entry = self._entries.get(key)
        if entry is None:
            entry = _QueueEntry()
            self._entries[key] = entry
        entry.pending += 1

        try:
            async with entry.lock:
                if self._logger is not None:
                    self._logger.debug(
                        "git_queue_start", action=label, project=str(project_path)
                    )
                return await task()
        finally:
            entry.pending -= 1
            if entry.pending == 0 and self._entries.get(key) is entry:
                del self._entries[key]
