from collections.abc import Callable, Mapping
from pathlib import Path

import pytest

from gitdeck.exceptions import GitCommandError

Response = str | BaseException | Callable[[], str]


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        if Path(item.path).is_relative_to(Path(__file__).parent):
            item.add_marker(pytest.mark.unit)


class FakeRunner:
    """Stand-in for GitRunner that answers from a table of responses.

    Keys are argument tuples. A response may be output text, an exception to
    raise, or a callable producing either. Unknown commands return "".
    """

    def __init__(self, responses: Mapping[tuple[str, ...], Response] | None = None) -> None:
        self.responses: dict[tuple[str, ...], Response] = dict(responses or {})
        self.calls: list[tuple[str, ...]] = []

    async def run(
        self,
        cwd: Path | str,
        *args: str,
        check: bool = True,
        timeout: float | None = None,
    ) -> str:
        self.calls.append(args)
        response = self.responses.get(args, "")
        if callable(response):
            response = response()
        if isinstance(response, BaseException):
            raise response
        return response

    async def try_run(self, cwd: Path | str, *args: str, default: str = "") -> str:
        try:
            return await self.run(cwd, *args)
        except GitCommandError:
            return default


def git_failure(message: str, *args: str) -> GitCommandError:
    """Build the error GitRunner raises for a failed command."""
    return GitCommandError(message, args=args, exit_code=1, stderr=message)


def sequence(*responses: str | BaseException) -> Callable[[], str]:
    """Return a response callable yielding each response in turn.

    The last response repeats once the sequence is exhausted.
    """
    remaining = list(responses)

    def _next() -> str:
        response = remaining.pop(0) if len(remaining) > 1 else remaining[0]
        if isinstance(response, BaseException):
            raise response
        return response

    return _next


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()
