"""Progress and outcome messages for branch operations.

Core operations report through ctx.feedback instead of printing. Messages fall
into four kinds:

- info: neutral progress
- warning: the operation went ahead but did less than asked (for example a
  rename that only touched metadata)
- success: final outcome of a command
- rollback: a compensation step undoing a partial change

Rollback messages always accompany a failure, so they are shown even with
--quiet.
"""

from abc import ABC, abstractmethod

import click

from gitstack.cli.output import user_output


class UserFeedback(ABC):
    """Sink for user-facing messages emitted by core operations."""

    @abstractmethod
    def info(self, message: str) -> None: ...

    @abstractmethod
    def warning(self, message: str) -> None: ...

    @abstractmethod
    def success(self, message: str) -> None: ...

    @abstractmethod
    def rollback(self, message: str) -> None:
        """Report a compensation step. Never suppressed."""


class ConsoleFeedback(UserFeedback):
    """Writes messages to stderr; `quiet` drops everything except rollback."""

    def __init__(self, *, quiet: bool = False) -> None:
        self.quiet = quiet

    def info(self, message: str) -> None:
        if not self.quiet:
            user_output(message)

    def warning(self, message: str) -> None:
        if not self.quiet:
            user_output(click.style(message, fg="yellow"))

    def success(self, message: str) -> None:
        if not self.quiet:
            user_output(click.style(message, fg="green"))

    def rollback(self, message: str) -> None:
        user_output(click.style(f"  - {message}", dim=True))
