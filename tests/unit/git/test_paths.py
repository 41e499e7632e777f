import sys
from pathlib import Path

import pytest

from gitdeck.exceptions import GitCommandError
from gitdeck.git import (
    RepoContext,
    build_repo_context,
    get_repo_context,
    resolve_path_spec,
    sanitize_path_spec,
    strip_path_prefix,
    to_path_spec,
)
from gitdeck.git._paths import is_valid_path_spec, normalize_git_path

from tests.unit.conftest import FakeRunner, git_failure

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="POSIX path layout")


class TestSanitizePathSpec:
    def test_removes_surrounding_quotes(self) -> None:
        assert sanitize_path_spec('"src/main.py"') == "src/main.py"

    def test_converts_backslashes(self) -> None:
        assert sanitize_path_spec("src\\lib\\util.py") == "src/lib/util.py"

    def test_removes_leading_dot_slash(self) -> None:
        assert sanitize_path_spec(".//src/main.py") == "src/main.py"

    def test_collapses_repeated_slashes(self) -> None:
        assert sanitize_path_spec("src///lib//util.py") == "src/lib/util.py"

    def test_normalize_keeps_leading_dot_slash(self) -> None:
        assert normalize_git_path('"./a\\b"') == "./a/b"


class TestStripPathPrefix:
    def test_strips_directory_prefix(self) -> None:
        assert strip_path_prefix("app/src/main.py", "app") == "src/main.py"

    def test_strips_prefix_repeatedly(self) -> None:
        assert strip_path_prefix("app/app/src/main.py", "app") == "src/main.py"

    def test_returns_empty_when_path_equals_prefix(self) -> None:
        assert strip_path_prefix("app/", "app") == ""

    def test_leaves_sibling_with_shared_name_prefix(self) -> None:
        assert strip_path_prefix("application/main.py", "app") == "application/main.py"

    def test_empty_prefix_only_sanitizes(self) -> None:
        assert strip_path_prefix("./src\\main.py", "") == "src/main.py"

    def test_prefix_of_only_slashes_is_ignored(self) -> None:
        assert strip_path_prefix("src/main.py", "/") == "src/main.py"

    def test_case_insensitive_comparison(self) -> None:
        assert strip_path_prefix("App/src/main.py", "app", case_insensitive=True) == "src/main.py"

    def test_case_sensitive_comparison(self) -> None:
        result = strip_path_prefix("App/src/main.py", "app", case_insensitive=False)
        assert result == "App/src/main.py"

    def test_is_idempotent(self) -> None:
        once = strip_path_prefix("app/app/x.py", "app")
        assert strip_path_prefix(once, "app") == once


class TestIsValidPathSpec:
    @pytest.mark.parametrize("path_spec", ["", ".", "../outside.py", "C:/Users/me/file.py"])
    def test_rejects_unusable_pathspecs(self, path_spec: str) -> None:
        assert not is_valid_path_spec(path_spec)

    def test_accepts_relative_path(self) -> None:
        assert is_valid_path_spec("src/main.py")


@posix_only
class TestBuildRepoContext:
    def test_project_in_subdirectory(self) -> None:
        context = build_repo_context("/work/repo\n", "/work/repo/apps/web")

        assert context == RepoContext(repo_root="/work/repo", project_relative_to_repo="apps/web")

    def test_project_at_root(self) -> None:
        context = build_repo_context("/work/repo", "/work/repo")

        assert context.project_relative_to_repo == ""

    def test_blank_root_falls_back_to_project(self) -> None:
        context = build_repo_context("  ", "/work/repo")

        assert context == RepoContext(repo_root="/work/repo", project_relative_to_repo="")

    def test_symlinked_project_resolves_through_realpath(self, tmp_path: Path) -> None:
        real_repo = tmp_path / "real"
        (real_repo / "app").mkdir(parents=True)
        link = tmp_path / "link"
        link.symlink_to(real_repo)

        context = build_repo_context(str(real_repo.resolve()), str(link / "app"))

        assert context.project_relative_to_repo == "app"


@posix_only
class TestResolvePathSpec:
    nested = RepoContext(repo_root="/work/repo", project_relative_to_repo="app")
    root = RepoContext(repo_root="/work/repo", project_relative_to_repo="")

    def test_relative_path_is_kept(self) -> None:
        assert resolve_path_spec("/work/repo/app", "src/main.py", self.nested) == "src/main.py"

    def test_repo_relative_input_loses_offset(self) -> None:
        result = resolve_path_spec("/work/repo/app", "app/src/main.py", self.nested)

        assert result == "src/main.py"

    def test_absolute_path_inside_project(self) -> None:
        result = resolve_path_spec("/work/repo/app", "/work/repo/app/src/main.py", self.nested)

        assert result == "src/main.py"

    def test_absolute_path_at_repo_root_project(self) -> None:
        result = resolve_path_spec("/work/repo", "/work/repo/src/main.py", self.root)

        assert result == "src/main.py"

    def test_absolute_file_named_like_offset(self) -> None:
        result = resolve_path_spec("/work/repo/app", "/work/repo/app/app", self.nested)

        assert result == "app"

    def test_quoted_windows_style_input(self) -> None:
        result = resolve_path_spec("/work/repo/app", '"app\\src\\main.py"', self.nested)

        assert result == "src/main.py"

    def test_path_equal_to_offset_keeps_normalized_input(self) -> None:
        assert resolve_path_spec("/work/repo/app", "app", self.nested) == "app"


@pytest.mark.anyio
class TestGetRepoContext:
    @posix_only
    async def test_uses_git_toplevel(self) -> None:
        runner = FakeRunner({("rev-parse", "--show-toplevel"): "/work/repo\n"})

        context = await get_repo_context(runner, "/work/repo/app")  # pyright: ignore[reportArgumentType]

        assert context == RepoContext(repo_root="/work/repo", project_relative_to_repo="app")

    async def test_falls_back_to_project_outside_a_repository(self) -> None:
        failure = git_failure("fatal: not a git repository", "rev-parse")
        runner = FakeRunner({("rev-parse", "--show-toplevel"): failure})

        context = await get_repo_context(runner, "/tmp/plain")  # pyright: ignore[reportArgumentType]

        assert context.project_relative_to_repo == ""

    @posix_only
    async def test_to_path_spec_queries_context_once(self) -> None:
        runner = FakeRunner({("rev-parse", "--show-toplevel"): "/work/repo\n"})

        result = await to_path_spec(runner, "/work/repo/app", "app/README.md")  # pyright: ignore[reportArgumentType]

        assert result == "README.md"
        assert runner.calls == [("rev-parse", "--show-toplevel")]

    async def test_to_path_spec_uses_given_context(self) -> None:
        runner = FakeRunner({("rev-parse", "--show-toplevel"): GitCommandError("unused")})
        context = RepoContext(repo_root="/r", project_relative_to_repo="")

        result = await to_path_spec(runner, "/r", "docs/a.md", context)  # pyright: ignore[reportArgumentType]

        assert result == "docs/a.md"
        assert runner.calls == []
