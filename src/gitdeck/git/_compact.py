"""Budgeted compaction of unified diffs for AI summarization.

Large patches exceed what a summarizing model can usefully read. The
compactor keeps the first lines of each file block within fixed per-file and
global budgets, skips generated files, and records every omission with a
reason so that nothing is dropped silently.
"""

import re
from dataclasses import dataclass
from typing import Final

from gitdeck.git._models import CompactPatchResult

NOISY_FILE_PATTERN: Final = re.compile(
    r"(?:^|/)(?:package-lock\.json|yarn\.lock|pnpm-lock\.ya?ml|bun\.lockb?"
    r"|(?:[^/]*\.)?min\.(?:js|css)$|dist/|build/|coverage/)",
    re.IGNORECASE,
)

_FILE_HEADER_PREFIX: Final = "diff --git "
_FILE_HEADER: Final = re.compile(r"^diff --git a/(.+?) b/.+$")

REASON_NOISY: Final = "noisy/generated"
REASON_FILE_LIMIT: Final = "file limit reached"
REASON_LINE_BUDGET: Final = "global line budget reached"

NO_CHANGES: Final = "No changes"


@dataclass(frozen=True, slots=True)
class CompactionLimits:
    """Budgets applied by compact_patch_for_ai.

    Attributes:
        max_files: Maximum number of file blocks included.
        max_lines_per_file: Maximum lines kept from one file block.
        max_lines_total: Maximum lines across all included blocks,
            truncation markers included.
    """

    max_files: int = 16
    max_lines_per_file: int = 120
    max_lines_total: int = 900


def split_diff_blocks(patch: str) -> list[list[str]]:
    """Split a unified diff into per-file blocks.

    A block starts at each ``diff --git`` header; lines before the first
    header are ignored.
    """
    blocks: list[list[str]] = []
    current: list[str] = []
    for line in patch.split("\n"):
        if line.startswith(_FILE_HEADER_PREFIX):
            if current:
                blocks.append(current)
            current = [line]
        elif current:
            current.append(line)
    if current:
        blocks.append(current)
    return blocks


def diff_block_path(header_line: str) -> str:
    """Return the file path named by a ``diff --git`` header line."""
    match = _FILE_HEADER.match(header_line)
    return match.group(1) if match else header_line


def is_noisy_path(path: str) -> bool:
    """Return True for lockfiles, minified assets and build output."""
    return NOISY_FILE_PATTERN.search(path) is not None


def compact_patch_for_ai(
    patch: str, limits: CompactionLimits | None = None
) -> CompactPatchResult:
    """Reduce a unified diff to a bounded, file-budgeted text block.

    For each file block, in order:
    - noisy/generated paths are omitted;
    - once ``max_files`` blocks are included, the rest are omitted;
    - once the global line budget is spent, the rest are omitted;
    - otherwise up to ``min(max_lines_per_file, remaining)`` lines are kept,
      with a one-line marker when the block was cut.

    Args:
        patch: Raw unified diff.
        limits: Budgets to apply. Uses CompactionLimits() if None.

    Returns:
        The compacted result. ``included_files + len(omitted_files)`` always
        equals ``total_files``.
    """
    budget = limits or CompactionLimits()
    blocks = split_diff_blocks(patch)

    output_blocks: list[str] = []
    omitted: list[str] = []
    included = 0
    used_lines = 0
    truncated = False

    for block in blocks:
        path = diff_block_path(block[0])

        if is_noisy_path(path):
            omitted.append(f"{path} ({REASON_NOISY})")
            continue

        if included >= budget.max_files:
            omitted.append(f"{path} ({REASON_FILE_LIMIT})")
            truncated = True
            continue

        remaining = budget.max_lines_total - used_lines
        if remaining <= 0:
            omitted.append(f"{path} ({REASON_LINE_BUDGET})")
            truncated = True
            continue

        allowed = min(budget.max_lines_per_file, remaining)
        if len(block) > allowed:
            # The marker takes the last line of the allowance
            kept = block[: allowed - 1]
            hidden = len(block) - len(kept)
            selected = [*kept, f"... ({hidden} more lines omitted for {path})"]
            truncated = True
        else:
            selected = block

        output_blocks.append("\n".join(selected))
        included += 1
        used_lines += len(selected)

    return CompactPatchResult(
        text="\n\n".join(output_blocks).strip(),
        omitted_files=tuple(omitted),
        total_files=len(blocks),
        included_files=included,
        was_truncated=truncated,
    )


def _omitted_section(
    title: str, result: CompactPatchResult, max_listed: int
) -> list[str]:
    if not result.omitted_files:
        return []
    lines = ["", title, *result.omitted_files[:max_listed]]
    if len(result.omitted_files) > max_listed:
        lines.append(f"... ({len(result.omitted_files) - max_listed} more omitted files)")
    return lines


def format_changes_for_ai(
    status_short: str,
    staged_stat: str,
    unstaged_stat: str,
    staged_patch: str,
    unstaged_patch: str,
    *,
    limits: CompactionLimits | None = None,
    max_omitted_listed: int = 30,
) -> str:
    """Assemble working-tree context for a commit-message model.

    Args:
        status_short: ``git status --short`` output.
        staged_stat: ``git diff --cached --stat`` output.
        unstaged_stat: ``git diff --stat`` output.
        staged_patch: ``git diff --cached`` output.
        unstaged_patch: ``git diff`` output.
        limits: Compaction budgets for each patch.
        max_omitted_listed: Maximum omitted files listed per patch.

    Returns:
        A sectioned text block, or "No changes" when nothing changed.
    """
    if not status_short.strip() and not staged_patch.strip() and not unstaged_patch.strip():
        return NO_CHANGES

    staged = compact_patch_for_ai(staged_patch, limits)
    unstaged = compact_patch_for_ai(unstaged_patch, limits)

    sections = [
        "## WORKING TREE STATUS (SHORT)",
        status_short.strip() or "(none)",
        "",
        "## STAGED CHANGES STAT",
        staged_stat.strip() or "(none)",
        "",
        "## UNSTAGED CHANGES STAT",
        unstaged_stat.strip() or "(none)",
        "",
        "## STAGED PATCH",
        staged.text or "(none)",
        *_omitted_section("### STAGED PATCH OMITTED FILES", staged, max_omitted_listed),
        "",
        "## UNSTAGED PATCH",
        unstaged.text or "(none)",
        *_omitted_section(
            "### UNSTAGED PATCH OMITTED FILES", unstaged, max_omitted_listed
        ),
    ]
    return "\n".join(sections)
