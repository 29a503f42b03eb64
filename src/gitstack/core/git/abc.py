"""High-level git operations interface.

This module provides a clean abstraction over git subprocess calls, making the
branch operations testable without a real repository.

Architecture:
- Git: Abstract base class defining the interface
- RealGit: Production implementation using subprocess
- FakeGit (tests/fakes/git.py): In-memory implementation for tests
"""

from abc import ABC, abstractmethod
from pathlib import Path


class Git(ABC):
    """Abstract interface for git operations.

    All implementations (real and fake) must implement this interface.
    This interface contains ONLY runtime operations - no test setup methods.

    Mutating operations either succeed or raise; a failed call leaves the
    repository as it was.
    """

    @abstractmethod
    def get_repository_root(self, cwd: Path) -> Path | None:
        """Get the top-level directory of the working tree containing `cwd`.

        Returns:
            Repository root, or None if `cwd` is not inside a git repository
        """
        ...

    @abstractmethod
    def get_git_common_dir(self, cwd: Path) -> Path | None:
        """Get the common git directory (shared by all worktrees)."""
        ...

    @abstractmethod
    def get_current_branch(self, cwd: Path) -> str | None:
        """Get the currently checked-out branch, or None on detached HEAD."""
        ...

    @abstractmethod
    def get_remote_name(self, repo_root: Path, configured: str | None = None) -> str:
        """Get the name of the remote that trunk is fetched from.

        Args:
            repo_root: Path to the repository root
            configured: Remote name from configuration, used as-is when given

        Returns:
            Remote name (e.g. 'origin')
        """
        ...

    @abstractmethod
    def get_default_branch(
        self, repo_root: Path, remote: str, configured: str | None = None
    ) -> str:
        """Get the repository's default (trunk) branch name.

        Args:
            repo_root: Path to the repository root
            remote: Remote whose HEAD pointer names the default branch
            configured: Optional configured trunk branch. If provided, validates
                that this branch exists locally or on the remote.

        Returns:
            The trunk branch name (e.g. 'main')

        Raises:
            DefaultBranchNotFoundError: If no default branch can be determined
        """
        ...

    @abstractmethod
    def rev_parse(self, cwd: Path, ref: str) -> str:
        """Resolve `ref` to a full commit SHA.

        Raises:
            RuntimeError: If the ref cannot be resolved
        """
        ...

    @abstractmethod
    def branch_exists(self, cwd: Path, branch: str) -> bool:
        """Check whether a local branch named `branch` exists."""
        ...

    @abstractmethod
    def list_local_branches(self, repo_root: Path) -> list[str]:
        """List all local branch names in the repository."""
        ...

    @abstractmethod
    def checkout_branch(self, cwd: Path, branch: str) -> None:
        """Checkout an existing branch in the given directory."""
        ...

    @abstractmethod
    def create_and_checkout_branch(self, cwd: Path, branch: str, start_point: str) -> None:
        """Create a new branch at `start_point` and check it out.

        Args:
            cwd: Working directory to run command in
            branch: Name of the branch to create
            start_point: Commit SHA (or ref) to base the new branch on
        """
        ...

    @abstractmethod
    def delete_branch(self, cwd: Path, branch: str, *, force: bool) -> None:
        """Delete a local branch.

        Args:
            cwd: Working directory to run command in
            branch: Name of the branch to delete
            force: Use -D (force delete) instead of -d
        """
        ...

    @abstractmethod
    def rename_branch(self, cwd: Path, old: str, new: str) -> None:
        """Rename local branch `old` to `new`."""
        ...
