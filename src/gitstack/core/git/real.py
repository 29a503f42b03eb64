"""Production Git implementation using subprocess.

This module provides the real Git implementation that executes actual git
commands via subprocess.
"""

import subprocess
from pathlib import Path

from gitstack.core.errors import DefaultBranchNotFoundError
from gitstack.core.git.abc import Git
from gitstack.core.subprocess import run_subprocess_with_context

DEFAULT_REMOTE = "origin"

# ============================================================================
# Production Implementation
# ============================================================================


class RealGit(Git):
    """Production implementation using subprocess.

    All git operations execute actual git commands via subprocess.
    """

    def get_repository_root(self, cwd: Path) -> Path | None:
        """Get the top-level directory of the working tree containing `cwd`."""
        result = subprocess.run(
            ["git", "rev-parse", "--show-toplevel"],
            cwd=cwd,
            capture_output=True,
            text=True,
            check=False,
        )
        if result.returncode != 0:
            return None
        return Path(result.stdout.strip()).resolve()

    def get_git_common_dir(self, cwd: Path) -> Path | None:
        """Get the common git directory."""
        result = subprocess.run(
            ["git", "rev-parse", "--git-common-dir"],
            cwd=cwd,
            capture_output=True,
            text=True,
            check=False,
        )
        if result.returncode != 0:
            return None

        git_dir = Path(result.stdout.strip())
        if not git_dir.is_absolute():
            git_dir = cwd / git_dir

        return git_dir.resolve()

    def get_current_branch(self, cwd: Path) -> str | None:
        """Get the currently checked-out branch."""
        result = subprocess.run(
            ["git", "rev-parse", "--abbrev-ref", "HEAD"],
            cwd=cwd,
            capture_output=True,
            text=True,
            check=False,
        )
        if result.returncode != 0:
            return None

        branch = result.stdout.strip()
        if branch == "HEAD":
            return None

        return branch

    def get_remote_name(self, repo_root: Path, configured: str | None = None) -> str:
        """Get the remote name: configured, else the only remote, else 'origin'."""
        if configured:
            return configured

        result = subprocess.run(
            ["git", "remote"],
            cwd=repo_root,
            capture_output=True,
            text=True,
            check=False,
        )
        if result.returncode == 0:
            remotes = [line.strip() for line in result.stdout.splitlines() if line.strip()]
            if len(remotes) == 1:
                return remotes[0]

        return DEFAULT_REMOTE

    def get_default_branch(
        self, repo_root: Path, remote: str, configured: str | None = None
    ) -> str:
        """Detect the default branch from config, the remote HEAD, or main/master."""
        # If trunk is explicitly configured, validate and use it
        if configured is not None:
            for ref in (f"refs/heads/{configured}", f"refs/remotes/{remote}/{configured}"):
                if self._ref_exists(repo_root, ref):
                    return configured
            raise DefaultBranchNotFoundError(
                f"Configured trunk branch '{configured}' does not exist in repository"
            )

        # Auto-detection: try remote HEAD first
        result = subprocess.run(
            ["git", "symbolic-ref", f"refs/remotes/{remote}/HEAD"],
            cwd=repo_root,
            capture_output=True,
            text=True,
            check=False,
        )
        prefix = f"refs/remotes/{remote}/"
        if result.returncode == 0:
            remote_head = result.stdout.strip()
            if remote_head.startswith(prefix):
                return remote_head[len(prefix) :]

        # Fallback: check main first, then master
        for candidate in ["main", "master"]:
            if self._ref_exists(repo_root, f"refs/heads/{candidate}"):
                return candidate

        raise DefaultBranchNotFoundError(
            f"Could not determine the default branch: {prefix}HEAD is not set "
            "and neither 'main' nor 'master' exists"
        )

    def rev_parse(self, cwd: Path, ref: str) -> str:
        """Resolve a ref to a full commit SHA."""
        result = run_subprocess_with_context(
            ["git", "rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}"],
            operation_context=f"resolve '{ref}' to a commit",
            cwd=cwd,
        )
        return result.stdout.strip()

    def branch_exists(self, cwd: Path, branch: str) -> bool:
        """Check if a local branch exists."""
        return self._ref_exists(cwd, f"refs/heads/{branch}")

    def list_local_branches(self, repo_root: Path) -> list[str]:
        """List all local branch names in the repository."""
        result = run_subprocess_with_context(
            ["git", "branch", "--format=%(refname:short)"],
            operation_context="list local branches",
            cwd=repo_root,
        )
        return [line.strip() for line in result.stdout.splitlines() if line.strip()]

    def checkout_branch(self, cwd: Path, branch: str) -> None:
        """Checkout a branch in the given directory."""
        run_subprocess_with_context(
            ["git", "checkout", branch],
            operation_context=f"checkout branch '{branch}'",
            cwd=cwd,
        )

    def create_and_checkout_branch(self, cwd: Path, branch: str, start_point: str) -> None:
        """Create a branch at `start_point` and check it out."""
        run_subprocess_with_context(
            ["git", "checkout", "-b", branch, start_point],
            operation_context=f"create branch '{branch}' at '{start_point}'",
            cwd=cwd,
        )

    def delete_branch(self, cwd: Path, branch: str, *, force: bool) -> None:
        """Delete a local branch."""
        flag = "-D" if force else "-d"
        run_subprocess_with_context(
            ["git", "branch", flag, branch],
            operation_context=f"delete branch '{branch}'",
            cwd=cwd,
        )

    def rename_branch(self, cwd: Path, old: str, new: str) -> None:
        """Rename a local branch."""
        run_subprocess_with_context(
            ["git", "branch", "-m", old, new],
            operation_context=f"rename branch '{old}' to '{new}'",
            cwd=cwd,
        )

    def _ref_exists(self, cwd: Path, ref: str) -> bool:
        result = subprocess.run(
            ["git", "show-ref", "--verify", "--quiet", ref],
            cwd=cwd,
            capture_output=True,
            check=False,
        )
        if result.returncode not in (0, 1):
            raise RuntimeError(
                f"Failed to check whether ref '{ref}' exists\nExit code: {result.returncode}"
            )
        return result.returncode == 0
