"""Repository discovery functionality.

Discovers git repository information from a given path without requiring
a full GitStackContext (enables config loading before context creation).
"""

from dataclasses import dataclass
from pathlib import Path

from gitstack.core.git.abc import Git


@dataclass(frozen=True)
class RepoContext:
    """Represents a git repo root and where its branch metadata lives."""

    root: Path
    git_common_dir: Path
    metadata_path: Path  # <git-common-dir>/gitstack/branches.toml


@dataclass(frozen=True)
class NoRepoSentinel:
    """Sentinel value indicating execution outside a git repository.

    Commands that require repo context check for this sentinel and fail fast.
    """

    message: str = "Not inside a git repository"


def discover_repo_or_sentinel(cwd: Path, git: Git) -> RepoContext | NoRepoSentinel:
    """Locate the repository containing `cwd`.

    Metadata is stored under the common git directory so every worktree of
    the repository sees the same branch records.

    Args:
        cwd: Current working directory to start search from
        git: Git operations interface

    Returns:
        RepoContext if inside a git repository, NoRepoSentinel otherwise
    """
    if not cwd.exists():
        return NoRepoSentinel(message=f"Start path '{cwd}' does not exist")

    root = git.get_repository_root(cwd)
    common_dir = git.get_git_common_dir(cwd)
    if root is None or common_dir is None:
        return NoRepoSentinel(message="Not inside a git repository")

    return RepoContext(
        root=root,
        git_common_dir=common_dir,
        metadata_path=common_dir / "gitstack" / "branches.toml",
    )
