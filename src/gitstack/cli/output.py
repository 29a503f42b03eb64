"""Output utilities for CLI commands with clear intent.

user_output() is for messages meant for a person and goes to stderr, keeping
stdout free for anything a script might consume.
"""

import click


def user_output(message: str = "", nl: bool = True) -> None:
    """Write a user-facing message to stderr."""
    click.echo(message, err=True, nl=nl)


def machine_output(message: str = "", nl: bool = True) -> None:
    """Write machine-readable output to stdout."""
    click.echo(message, nl=nl)
