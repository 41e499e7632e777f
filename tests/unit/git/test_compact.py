from gitdeck.git import (
    CompactionLimits,
    compact_patch_for_ai,
    format_changes_for_ai,
    is_noisy_path,
    split_diff_blocks,
)
from gitdeck.git._compact import diff_block_path


def block(path: str, lines: int) -> str:
    """Build a diff block of exactly ``lines`` lines for ``path``."""
    body = [f"+line {index}" for index in range(lines - 1)]
    return "\n".join([f"diff --git a/{path} b/{path}", *body])


def patch(*blocks: str) -> str:
    return "\n".join(blocks)


class TestSplitDiffBlocks:
    def test_ignores_preamble(self) -> None:
        blocks = split_diff_blocks("warning: CRLF\n" + patch(block("a.py", 2), block("b.py", 3)))

        assert [len(b) for b in blocks] == [2, 3]
        assert blocks[0][0] == "diff --git a/a.py b/a.py"

    def test_empty_patch_has_no_blocks(self) -> None:
        assert split_diff_blocks("") == []

    def test_block_path_from_header(self) -> None:
        assert diff_block_path("diff --git a/src/x y.py b/src/x y.py") == "src/x y.py"


class TestIsNoisyPath:
    def test_lockfiles_and_build_output(self) -> None:
        for path in (
            "package-lock.json",
            "web/yarn.lock",
            "pnpm-lock.yaml",
            "bun.lockb",
            "static/app.min.js",
            "css/site.min.css",
            "dist/index.js",
            "packages/ui/build/out.js",
            "coverage/lcov.info",
        ):
            assert is_noisy_path(path), path

    def test_source_files(self) -> None:
        for path in ("src/main.py", "rebuild/notes.md", "docs/distribution.md"):
            assert not is_noisy_path(path), path


class TestCompactPatchForAi:
    def test_small_patch_is_unchanged(self) -> None:
        raw = patch(block("a.py", 3), block("b.py", 2))

        result = compact_patch_for_ai(raw)

        assert result.text == patch(block("a.py", 3)) + "\n\n" + block("b.py", 2)
        assert result.included_files == 2
        assert result.omitted_files == ()
        assert not result.was_truncated

    def test_noisy_files_are_omitted_without_truncation(self) -> None:
        result = compact_patch_for_ai(patch(block("package-lock.json", 50), block("a.py", 2)))

        assert result.omitted_files == ("package-lock.json (noisy/generated)",)
        assert result.included_files == 1
        assert result.total_files == 2
        assert not result.was_truncated

    def test_file_limit(self) -> None:
        limits = CompactionLimits(max_files=2)
        raw = patch(block("a.py", 2), block("b.py", 2), block("c.py", 2))

        result = compact_patch_for_ai(raw, limits)

        assert result.omitted_files == ("c.py (file limit reached)",)
        assert result.was_truncated

    def test_per_file_truncation_marker_counts_as_a_line(self) -> None:
        limits = CompactionLimits(max_lines_per_file=5)

        result = compact_patch_for_ai(block("a.py", 10), limits)

        lines = result.text.split("\n")
        assert len(lines) == 5
        assert lines[-1] == "... (6 more lines omitted for a.py)"
        assert result.was_truncated

    def test_global_line_budget(self) -> None:
        limits = CompactionLimits(max_lines_per_file=5, max_lines_total=6)
        raw = patch(block("a.py", 5), block("b.py", 5), block("c.py", 5))

        result = compact_patch_for_ai(raw, limits)

        first, second = result.text.split("\n\n")
        assert len(first.split("\n")) == 5
        assert second == "... (5 more lines omitted for b.py)"
        assert result.omitted_files == ("c.py (global line budget reached)",)
        assert result.included_files == 2
        assert result.included_files + len(result.omitted_files) == result.total_files


class TestFormatChangesForAi:
    def test_no_changes(self) -> None:
        assert format_changes_for_ai("", "", "", "", "  \n") == "No changes"

    def test_sections_with_placeholders(self) -> None:
        text = format_changes_for_ai(" M a.py\n", "", " a.py | 1 +\n", "", block("a.py", 2))

        assert "## WORKING TREE STATUS (SHORT)\nM a.py" in text
        assert "## STAGED CHANGES STAT\n(none)" in text
        assert "## UNSTAGED CHANGES STAT\na.py | 1 +" in text
        assert "## STAGED PATCH\n(none)" in text
        assert text.endswith(block("a.py", 2))

    def test_lists_omitted_files_up_to_limit(self) -> None:
        staged = patch(block("package-lock.json", 2), block("yarn.lock", 2), block("dist/a.js", 2))

        text = format_changes_for_ai("M  package-lock.json", "", "", staged, "", max_omitted_listed=1)

        assert "### STAGED PATCH OMITTED FILES\npackage-lock.json (noisy/generated)" in text
        assert "... (2 more omitted files)" in text
        assert "UNSTAGED PATCH OMITTED FILES" not in text
