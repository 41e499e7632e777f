"""Parsing of git log, numstat and remote URL output."""

import re
from typing import Final
from urllib.parse import urlsplit

from gitdeck.git._models import GitCommit
from gitdeck.git._paths import normalize_git_path, strip_path_prefix

RECORD_SEPARATOR: Final = "\x1e"
FIELD_SEPARATOR: Final = "\x1f"

# Pretty format matching parse_commit_log: hash, parents, author, date, subject
LOG_FORMAT: Final = "--pretty=format:%x1e%H%x1f%P%x1f%an%x1f%ad%x1f%s"

_HEADER_FIELDS: Final = 5
_NUMSTAT_COLUMNS: Final = 3
_SHORT_HASH_LENGTH: Final = 7
_LINE_BREAK: Final = re.compile(r"\r?\n")
_SCP_REMOTE: Final = re.compile(r"^[^@]+@[^:]+:([^/]+)/.+$")


def _count(column: str) -> int | None:
    """Parse a numstat count; ``-`` (binary) counts as zero."""
    if column == "-":
        return 0
    try:
        return int(column)
    except ValueError:
        return None


def parse_commit_log(raw: str) -> list[GitCommit]:
    """Parse ``git log`` output produced with LOG_FORMAT and ``--numstat``.

    Records are separated by RECORD_SEPARATOR. The first line of a record is
    the header, split on FIELD_SEPARATOR; the subject may itself contain the
    separator and is rejoined. Remaining lines are numstat rows.

    Records with fewer than five header fields are skipped so that a
    corrupt record does not hide the commits that parsed correctly.

    Args:
        raw: Raw git output.

    Returns:
        Commits in output order.
    """
    commits: list[GitCommit] = []
    for record in raw.split(RECORD_SEPARATOR):
        record = record.strip()  # noqa: PLW2901
        if not record:
            continue

        lines = [line.rstrip() for line in _LINE_BREAK.split(record)]
        parts = lines[0].split(FIELD_SEPARATOR)
        if len(parts) < _HEADER_FIELDS:
            continue
        commit_hash, parent_text, author, date, *message_parts = parts

        additions = 0
        deletions = 0
        files_changed = 0
        for stat_line in lines[1:]:
            line = stat_line.strip()
            if not line:
                continue
            columns = line.split("\t", 2)
            if len(columns) < _NUMSTAT_COLUMNS:
                continue
            added = _count(columns[0])
            deleted = _count(columns[1])
            if added is not None:
                additions += added
            if deleted is not None:
                deletions += deleted
            files_changed += 1

        commits.append(
            GitCommit(
                hash=commit_hash,
                short_hash=commit_hash[:_SHORT_HASH_LENGTH],
                parents=tuple(parent_text.split()),
                author=author,
                date=date,
                message=FIELD_SEPARATOR.join(message_parts),
                additions=additions,
                deletions=deletions,
                files_changed=files_changed,
            )
        )

    return commits


def numstat_path(path_text: str) -> str:
    """Resolve a numstat path, following rename notation to the new path.

    Handles both ``old => new`` and ``dir/{old => new}/file`` forms.
    """
    trimmed = normalize_git_path(path_text).strip()
    if " => " not in trimmed:
        return trimmed
    if "{" in trimmed and "}" in trimmed:
        head, _, rest = trimmed.partition("{")
        inner, _, tail = rest.partition("}")
        new_part = inner.split(" => ")[-1]
        return re.sub(r"/{2,}", "/", f"{head}{new_part}{tail}").strip()
    return trimmed.split(" => ")[-1].strip()


def parse_numstat(raw: str, prefix: str = "") -> dict[str, tuple[int, int]]:
    """Aggregate ``git diff --numstat`` output per path.

    Args:
        raw: Raw numstat output.
        prefix: Project offset inside the repository, stripped from paths.

    Returns:
        Mapping of project-relative path to (additions, deletions).
    """
    result: dict[str, tuple[int, int]] = {}
    for raw_line in _LINE_BREAK.split(raw):
        line = raw_line.strip()
        if not line:
            continue
        columns = line.split("\t")
        if len(columns) < _NUMSTAT_COLUMNS:
            continue

        path = strip_path_prefix(numstat_path("\t".join(columns[2:])), prefix)
        if not path:
            continue
        added = _count(columns[0]) or 0
        deleted = _count(columns[1]) or 0
        prev_added, prev_deleted = result.get(path, (0, 0))
        result[path] = (prev_added + added, prev_deleted + deleted)
    return result


def parse_repo_owner(remote_url: str) -> str | None:
    """Extract the owner (user or organization) from a remote URL.

    Supports scp-like SSH remotes (``git@host:owner/repo.git``) and URL
    remotes (``https://host/owner/repo``).

    Returns:
        The owner, or None if it cannot be determined.
    """
    trimmed = remote_url.strip()
    if not trimmed:
        return None

    scp_match = _SCP_REMOTE.match(trimmed)
    if scp_match is not None and "://" not in trimmed:
        return scp_match.group(1)

    parsed = urlsplit(trimmed)
    if not parsed.scheme or not parsed.netloc:
        return None
    segments = [segment for segment in parsed.path.split("/") if segment]
    return segments[0] if segments else None
