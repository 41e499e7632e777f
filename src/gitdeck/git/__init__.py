"""Git command orchestration for a developer dashboard.

This package runs git against arbitrary repositories on behalf of a UI.

Key Components:
    - GitService: Entry point owning the runtime, runner and write queue
    - GitInspector: Read-only queries (status, history, diffs, overviews)
    - GitRuntime: Resolved git binary and subprocess environment
    - GitRunner: Async subprocess execution with timeouts
    - WriteQueue: Per-repository FIFO serialization of mutating commands
    - with_lock_recovery / cleanup_stale_index_lock: index.lock recovery
    - checkout_branch: Checkout with remote-tracking, lock and stash fallbacks
    - compact_patch_for_ai / format_changes_for_ai: Budgeted diff summaries
    - parse_commit_log: Commit log parsing with numstat totals

Example:
    >>> from gitdeck.git import GitService
    >>> service = GitService()
    >>> await service.stage_files("/work/app", ["src/main.py"])
    >>> result = await service.checkout_branch("/work/app", "feature-x")
    >>> result.stashed
    False
"""

from ._checkout import CheckoutFallback, auto_stash_message, checkout_branch
from ._compact import (
    NOISY_FILE_PATTERN,
    CompactionLimits,
    compact_patch_for_ai,
    format_changes_for_ai,
    is_noisy_path,
    split_diff_blocks,
)
from ._errors import (
    GitErrorKind,
    classify_git_error,
    error_message,
    is_blocked_by_local_changes,
    is_index_lock_conflict,
    is_pathspec_not_found,
    normalized_failures,
    require_non_empty,
    require_ref_name,
    to_operation_error,
)
from ._gitignore import (
    GitignorePattern,
    generate_custom_gitignore_content,
    generate_gitignore_content,
    list_gitignore_patterns,
    list_gitignore_templates,
)
from ._inspect import DiffMode, GitInspector, count_tracked_changes, status_map
from ._locks import LockRetryPolicy, cleanup_stale_index_lock, find_index_lock, with_lock_recovery
from ._log import LOG_FORMAT, parse_commit_log, parse_numstat, parse_repo_owner
from ._models import (
    CheckoutOptions,
    CheckoutResult,
    CompactPatchResult,
    GitBranchSummary,
    GitCommit,
    GitFileStatus,
    GitRemoteSummary,
    GitStashEntry,
    GitStatusDetail,
    GitTagSummary,
    GitUser,
    IndexLockState,
    ProjectGitOverview,
    RepoContext,
)
from ._paths import (
    build_repo_context,
    get_repo_context,
    resolve_path_spec,
    sanitize_path_spec,
    strip_path_prefix,
    to_path_spec,
)
from ._queue import WriteQueue, queue_key
from ._runner import GitRunner
from ._runtime import GitRuntime, build_augmented_env
from ._service import GitService

__all__ = [
    "LOG_FORMAT",
    "NOISY_FILE_PATTERN",
    "CheckoutFallback",
    "CheckoutOptions",
    "CheckoutResult",
    "CompactPatchResult",
    "CompactionLimits",
    "DiffMode",
    "GitBranchSummary",
    "GitCommit",
    "GitErrorKind",
    "GitFileStatus",
    "GitInspector",
    "GitRemoteSummary",
    "GitRunner",
    "GitRuntime",
    "GitService",
    "GitStashEntry",
    "GitStatusDetail",
    "GitTagSummary",
    "GitUser",
    "GitignorePattern",
    "IndexLockState",
    "LockRetryPolicy",
    "ProjectGitOverview",
    "RepoContext",
    "WriteQueue",
    "auto_stash_message",
    "build_augmented_env",
    "build_repo_context",
    "checkout_branch",
    "classify_git_error",
    "cleanup_stale_index_lock",
    "compact_patch_for_ai",
    "count_tracked_changes",
    "error_message",
    "find_index_lock",
    "format_changes_for_ai",
    "generate_custom_gitignore_content",
    "generate_gitignore_content",
    "get_repo_context",
    "is_blocked_by_local_changes",
    "is_index_lock_conflict",
    "is_noisy_path",
    "is_pathspec_not_found",
    "list_gitignore_patterns",
    "list_gitignore_templates",
    "normalized_failures",
    "parse_commit_log",
    "parse_numstat",
    "parse_repo_owner",
    "queue_key",
    "require_non_empty",
    "require_ref_name",
    "resolve_path_spec",
    "sanitize_path_spec",
    "split_diff_blocks",
    "status_map",
    "strip_path_prefix",
    "to_operation_error",
    "to_path_spec",
    "with_lock_recovery",
]
