"""Read-only repository inspection.

Reads are not serialized through the write queue and are not retried on
index.lock conflicts. Best-effort reads fall back to empty values; all other
failures are logged and normalized like writes.
"""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING, Final, final

import anyio

from gitdeck.exceptions import GitCommandError, GitError
from gitdeck.git._compact import NO_CHANGES, CompactionLimits, format_changes_for_ai
from gitdeck.git._errors import error_message, normalized_failures, require_ref_name
from gitdeck.git._log import LOG_FORMAT, parse_commit_log, parse_numstat, parse_repo_owner
from gitdeck.git._models import (
    GitCommit,
    GitFileStatus,
    GitRemoteSummary,
    GitStatusDetail,
    GitUser,
    ProjectGitOverview,
)
from gitdeck.git._paths import (
    get_repo_context,
    normalize_git_path,
    strip_path_prefix,
    to_path_spec,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from structlog.typing import FilteringBoundLogger

    from gitdeck.git._runner import GitRunner

MAX_HISTORY_LIMIT: Final = 5000
UNPUSHED_FALLBACK_LIMIT: Final = 50
DEFAULT_OVERVIEW_CONCURRENCY: Final = 5
FALLBACK_DEFAULT_BRANCH: Final = "main"
ORIGIN: Final = "origin"

_UNTRACKED_CODE: Final = "??"
_IGNORED_CODE: Final = "!!"


class DiffMode(StrEnum):
    """Which side of the index a working diff covers."""

    COMBINED = "combined"
    STAGED = "staged"
    UNSTAGED = "unstaged"


def classify_status(code: str) -> GitFileStatus:
    """Map a two-letter porcelain code to a file status."""
    if code == _UNTRACKED_CODE:
        return GitFileStatus.UNTRACKED
    if code == _IGNORED_CODE:
        return GitFileStatus.IGNORED
    if "R" in code or "C" in code:
        return GitFileStatus.RENAMED
    if "U" in code or "T" in code:
        return GitFileStatus.MODIFIED
    if "A" in code:
        return GitFileStatus.ADDED
    if "D" in code:
        return GitFileStatus.DELETED
    if "M" in code:
        return GitFileStatus.MODIFIED
    return GitFileStatus.UNKNOWN


def status_map(details: Iterable[GitStatusDetail]) -> dict[str, GitFileStatus]:
    """Build a path to status map with backslash aliases for each path.

    The original path of a rename is included with the RENAMED status.
    """
    result: dict[str, GitFileStatus] = {}
    for detail in details:
        result[detail.path] = detail.status
        result[detail.path.replace("/", "\\")] = detail.status
        if detail.previous_path:
            result[detail.previous_path] = GitFileStatus.RENAMED
            result[detail.previous_path.replace("/", "\\")] = GitFileStatus.RENAMED
    return result


def count_tracked_changes(statuses: Mapping[str, GitFileStatus | str]) -> int:
    """Count changed paths in a status map.

    Ignored and unknown entries are skipped; backslash aliases of the same
    path are counted once.
    """
    changed = {
        normalize_git_path(path)
        for path, status in statuses.items()
        if status not in {GitFileStatus.IGNORED, GitFileStatus.UNKNOWN}
    }
    return len(changed)


def parse_status_porcelain(raw: str, prefix: str = "") -> list[tuple[str, str, str | None]]:
    """Parse ``git status --porcelain=v1 -z`` output.

    Args:
        raw: NUL-separated status output.
        prefix: Project offset inside the repository, stripped from paths.

    Returns:
        (code, path, previous_path) tuples; paths outside the project prefix
        keep their root-relative form.
    """
    entries = [entry for entry in raw.split("\0") if entry]
    parsed: list[tuple[str, str, str | None]] = []
    index = 0
    while index < len(entries):
        entry = entries[index]
        index += 1
        if len(entry) < 3:  # noqa: PLR2004
            continue
        code = entry[:2]
        path = strip_path_prefix(normalize_git_path(entry[3:]), prefix)
        previous: str | None = None
        if classify_status(code) is GitFileStatus.RENAMED and index < len(entries):
            previous = strip_path_prefix(normalize_git_path(entries[index]), prefix) or None
            index += 1
        if path:
            parsed.append((code, path, previous))
    return parsed


def parse_remotes(raw: str) -> list[GitRemoteSummary]:
    """Parse ``git remote -v`` output into one summary per remote."""
    urls: dict[str, dict[str, str]] = {}
    for line in raw.splitlines():
        parts = line.split()
        if len(parts) < 2:  # noqa: PLR2004
            continue
        name, url = parts[0], parts[1]
        kind = parts[2].strip("()") if len(parts) > 2 else "fetch"  # noqa: PLR2004
        urls.setdefault(name, {})[kind] = url
    return [
        GitRemoteSummary(
            name=name,
            fetch_url=entry.get("fetch", ""),
            push_url=entry.get("push", entry.get("fetch", "")),
        )
        for name, entry in urls.items()
    ]


@final
class GitInspector:
    """Read-only queries against a repository."""

    __slots__ = ("_logger", "_runner")

    def __init__(self, runner: GitRunner, logger: FilteringBoundLogger | None = None) -> None:
        """Initialize the inspector.

        Args:
            runner: Runner used for git commands.
            logger: Logger for failure events.
        """
        self._runner = runner
        self._logger = logger

    async def is_git_repo(self, project_path: str | Path) -> bool:
        """Return True if the path is inside a git work tree."""
        with normalized_failures("detect git repository", project_path, logger=self._logger):
            try:
                output = await self._runner.run(
                    project_path, "rev-parse", "--is-inside-work-tree"
                )
            except GitCommandError:
                return False
            return output.strip() == "true"

    async def get_status_detailed(self, project_path: str | Path) -> list[GitStatusDetail]:
        """Return per-path status with staged and unstaged line counts.

        Paths are relative to the project directory and sorted.
        """
        with normalized_failures("get detailed git status", project_path, logger=self._logger):
            context = await get_repo_context(self._runner, project_path)
            prefix = context.project_relative_to_repo
            raw = await self._runner.run(
                project_path,
                "-c",
                "status.relativePaths=true",
                "status",
                "--porcelain=v1",
                "--ignored",
                "-z",
            )
            staged_stats = parse_numstat(
                await self._runner.try_run(project_path, "diff", "--cached", "--numstat"),
                prefix,
            )
            unstaged_stats = parse_numstat(
                await self._runner.try_run(project_path, "diff", "--numstat"), prefix
            )

            details: list[GitStatusDetail] = []
            for code, path, previous in parse_status_porcelain(raw, prefix):
                index_code, worktree_code = code[0], code[1]
                staged_add, staged_del = staged_stats.get(path, (0, 0))
                unstaged_add, unstaged_del = unstaged_stats.get(path, (0, 0))
                details.append(
                    GitStatusDetail(
                        path=path,
                        status=classify_status(code),
                        code=code,
                        staged=code not in {_UNTRACKED_CODE, _IGNORED_CODE}
                        and index_code != " ",
                        unstaged=code == _UNTRACKED_CODE
                        or (code != _IGNORED_CODE and worktree_code != " "),
                        previous_path=previous,
                        additions=staged_add + unstaged_add,
                        deletions=staged_del + unstaged_del,
                        staged_additions=staged_add,
                        staged_deletions=staged_del,
                        unstaged_additions=unstaged_add,
                        unstaged_deletions=unstaged_del,
                    )
                )

            details.sort(key=lambda detail: detail.path)
            return details

    async def get_status(self, project_path: str | Path) -> dict[str, GitFileStatus]:
        """Return a path to status map, see status_map()."""
        return status_map(await self.get_status_detailed(project_path))

    async def get_history(self, project_path: str | Path, limit: int = 0) -> list[GitCommit]:
        """Return commits across all refs, newest first.

        Args:
            project_path: The project path.
            limit: Maximum commits, clamped to 1..5000; zero or negative
                means no limit.
        """
        with normalized_failures("get git history", project_path, logger=self._logger):
            limit_args: list[str] = []
            if int(limit) > 0:
                limit_args = ["-n", str(max(1, min(MAX_HISTORY_LIMIT, int(limit))))]
            raw = await self._runner.run(
                project_path, "log", "--all", "--date=iso", LOG_FORMAT, "--numstat", *limit_args
            )
            return parse_commit_log(raw)

    async def get_commit_diff(self, project_path: str | Path, commit_hash: str) -> str:
        """Return ``git show`` output for a commit."""
        target = require_ref_name(commit_hash, "Commit hash")
        with normalized_failures("get commit diff", project_path, logger=self._logger):
            return await self._runner.run(project_path, "show", target, "--format=fuller")

    async def get_working_diff(
        self,
        project_path: str | Path,
        file_path: str | None = None,
        mode: DiffMode = DiffMode.COMBINED,
    ) -> str:
        """Return the staged and/or unstaged diff, optionally for one file.

        Returns:
            The diff text, or "No changes".
        """
        with normalized_failures("get working diff", project_path, logger=self._logger):
            path_args: list[str] = []
            if file_path:
                path_args = ["--", await to_path_spec(self._runner, project_path, file_path)]
            staged = await self._runner.try_run(project_path, "diff", "--cached", *path_args)
            unstaged = await self._runner.try_run(project_path, "diff", *path_args)

        match DiffMode(mode):
            case DiffMode.STAGED:
                return staged or NO_CHANGES
            case DiffMode.UNSTAGED:
                return unstaged or NO_CHANGES
            case _:
                return "\n".join(part for part in (staged, unstaged) if part) or NO_CHANGES

    async def get_working_changes_for_ai(
        self,
        project_path: str | Path,
        *,
        limits: CompactionLimits | None = None,
        max_omitted_listed: int = 30,
    ) -> str:
        """Return compacted working-tree context for a commit-message model."""
        commands: dict[str, tuple[str, ...]] = {
            "status_short": ("status", "--short"),
            "staged_stat": ("diff", "--cached", "--stat"),
            "unstaged_stat": ("diff", "--stat"),
            "staged_patch": ("diff", "--cached", "--unified=2"),
            "unstaged_patch": ("diff", "--unified=2"),
        }
        outputs: dict[str, str] = {}
        with normalized_failures(
            "get working changes context", project_path, logger=self._logger
        ):
            for name, args in commands.items():
                outputs[name] = await self._runner.try_run(project_path, *args)

        return format_changes_for_ai(
            **outputs, limits=limits, max_omitted_listed=max_omitted_listed
        )

    async def list_remotes(self, project_path: str | Path) -> list[GitRemoteSummary]:
        """Return configured remotes with their fetch and push URLs."""
        with normalized_failures("list remotes", project_path, logger=self._logger):
            return parse_remotes(await self._runner.run(project_path, "remote", "-v"))

    async def has_remote_origin(self, project_path: str | Path) -> bool:
        """Return True if an ``origin`` remote with a URL is configured."""
        remotes = await self.list_remotes(project_path)
        return any(
            remote.name == ORIGIN and (remote.fetch_url or remote.push_url)
            for remote in remotes
        )

    async def current_branch(self, project_path: str | Path) -> str:
        """Return the checked-out branch, or "HEAD" when detached."""
        output = await self._runner.run(project_path, "rev-parse", "--abbrev-ref", "HEAD")
        return output.strip()

    async def upstream_ref(self, project_path: str | Path) -> str:
        """Return the upstream of the current branch, or an empty string."""
        output = await self._runner.try_run(
            project_path, "rev-parse", "--abbrev-ref", "--symbolic-full-name", "@{u}"
        )
        return output.strip()

    async def get_unpushed_commits(self, project_path: str | Path) -> list[GitCommit]:
        """Return local commits not yet on the remote.

        Compares against the upstream when one is configured, else against
        ``origin/<branch>``. Without a remote branch to compare against, the
        last 50 commits of HEAD are returned.
        """
        with normalized_failures("get unpushed commits", project_path, logger=self._logger):
            branch = await self.current_branch(project_path)
            has_remote = await self.has_remote_origin(project_path)
            upstream = await self.upstream_ref(project_path)

            if upstream:
                range_args = [f"{upstream}..HEAD"]
            elif has_remote and branch != "HEAD":
                range_args = [f"{ORIGIN}/{branch}..HEAD"]
            else:
                range_args = ["HEAD", "-n", str(UNPUSHED_FALLBACK_LIMIT)]

            raw = await self._runner.try_run(
                project_path, "log", *range_args, "--date=iso", LOG_FORMAT, "--numstat"
            )
            return parse_commit_log(raw) if raw.strip() else []

    async def get_git_user(self, project_path: str | Path) -> GitUser | None:
        """Return the configured user, or None if neither name nor email is set."""
        with normalized_failures("get git user config", project_path, logger=self._logger):
            name = await self._runner.try_run(project_path, "config", "--get", "user.name")
            email = await self._runner.try_run(project_path, "config", "--get", "user.email")
        if not name.strip() and not email.strip():
            return None
        return GitUser(name=name.strip(), email=email.strip())

    async def get_repo_owner(self, project_path: str | Path) -> str | None:
        """Return the owner segment of the ``origin`` URL."""
        remotes = await self.list_remotes(project_path)
        origin = next((remote for remote in remotes if remote.name == ORIGIN), None)
        if origin is None:
            return None
        return parse_repo_owner(origin.fetch_url or origin.push_url)

    async def get_default_branch(self, project_path: str | Path) -> str:
        """Return the repository's default branch name.

        Tries ``origin/HEAD``, then ``init.defaultBranch``, then "main". Never
        raises for git failures.
        """
        remote_head = (
            await self._runner.try_run(
                project_path, "symbolic-ref", "--short", f"refs/remotes/{ORIGIN}/HEAD"
            )
        ).strip()
        if remote_head.startswith(f"{ORIGIN}/"):
            return remote_head.removeprefix(f"{ORIGIN}/")
        configured = (
            await self._runner.try_run(project_path, "config", "--get", "init.defaultBranch")
        ).strip()
        return configured or FALLBACK_DEFAULT_BRANCH

    async def get_project_overview(self, project_path: str) -> ProjectGitOverview:
        """Return a dashboard summary; failures are reported in ``error``."""
        try:
            if not await self.is_git_repo(project_path):
                return ProjectGitOverview(path=project_path, is_git_repo=False)
            statuses = await self.get_status(project_path)
            unpushed = await self.get_unpushed_commits(project_path)
            has_remote = await self.has_remote_origin(project_path)
        except GitError as e:
            return ProjectGitOverview(
                path=project_path,
                is_git_repo=False,
                error=error_message(e, "Failed to inspect repository"),
            )
        return ProjectGitOverview(
            path=project_path,
            is_git_repo=True,
            changed_count=count_tracked_changes(statuses),
            unpushed_count=len(unpushed),
            has_remote=has_remote,
        )

    async def get_projects_overview(
        self,
        project_paths: Iterable[str],
        max_concurrent: int = DEFAULT_OVERVIEW_CONCURRENCY,
    ) -> list[ProjectGitOverview]:
        """Summarize many projects with bounded concurrency.

        Blank and duplicate paths are dropped; results follow the order of
        first appearance.
        """
        unique = list(dict.fromkeys(path.strip() for path in project_paths if path.strip()))
        if not unique:
            return []

        results: list[ProjectGitOverview | None] = [None] * len(unique)
        limiter = anyio.CapacityLimiter(max(1, min(max_concurrent, len(unique))))

        async def _inspect(index: int, path: str) -> None:
            async with limiter:
                results[index] = await self.get_project_overview(path)

        async with anyio.create_task_group() as tg:
            for index, path in enumerate(unique):
                tg.start_soon(_inspect, index, path)

        return [overview for overview in results if overview is not None]
