"""CLI error handling utilities with styled output.

This module provides the Ensure class for asserting invariants in CLI commands
with consistent, user-friendly error messages. All errors use red "Error:" prefix
for visual consistency.
"""

from typing import TYPE_CHECKING, NoReturn

import click

from gitstack.cli.output import user_output
from gitstack.core.repo_discovery import NoRepoSentinel, RepoContext

if TYPE_CHECKING:
    from gitstack.core.context import GitStackContext


def error_exit(error_message: str, exit_code: int = 1) -> NoReturn:
    """Output a styled error and exit.

    Raises:
        SystemExit: Always, with `exit_code`
    """
    user_output(click.style("Error: ", fg="red") + error_message)
    raise SystemExit(exit_code)


class Ensure:
    """Helper class for asserting invariants with consistent error handling."""

    @staticmethod
    def invariant(condition: bool, error_message: str) -> None:
        """Ensure condition is true, otherwise output styled error and exit.

        Args:
            condition: Boolean condition to check
            error_message: Error message to display if condition is false.
                          "Error: " prefix will be added automatically in red.

        Raises:
            SystemExit: If condition is false (with exit code 1)
        """
        if not condition:
            error_exit(error_message)

    @staticmethod
    def in_repo(ctx: "GitStackContext") -> RepoContext:
        """Ensure the command runs inside a git repository.

        Returns:
            The discovered RepoContext

        Raises:
            SystemExit: If not inside a repository (with exit code 1)
        """
        if isinstance(ctx.repo, NoRepoSentinel):
            error_exit(f"{ctx.repo.message}. This command requires a git repository.")
        return ctx.repo
