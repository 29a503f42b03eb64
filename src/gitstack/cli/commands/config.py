"""Show and change gitstack configuration."""

import click

from gitstack.cli.ensure import error_exit
from gitstack.cli.output import machine_output, user_output
from gitstack.core.config_store import CONFIG_KEYS, GitStackConfig
from gitstack.core.context import GitStackContext


def _format_value(value: str | tuple[str, ...] | None) -> str:
    if value is None:
        return "(auto)"
    if isinstance(value, tuple):
        return ", ".join(value) if value else "(none)"
    return value


@click.group("config")
def config_group() -> None:
    """Manage gitstack configuration."""


@config_group.command("show")
@click.pass_obj
def config_show(ctx: GitStackContext) -> None:
    """Print the effective configuration for the current repository."""
    config: GitStackConfig = ctx.config
    for key in CONFIG_KEYS:
        machine_output(f"{key} = {_format_value(getattr(config, key))}")


@config_group.command("set")
@click.argument("key", type=click.Choice(CONFIG_KEYS))
@click.argument("values", nargs=-1, required=True)
@click.pass_obj
def config_set(ctx: GitStackContext, key: str, values: tuple[str, ...]) -> None:
    """Set KEY in the global config file.

    additional_trunk_branches takes one or more branch names; the other keys
    take exactly one value.
    """
    if key == "additional_trunk_branches":
        value: str | list[str] = list(values)
    else:
        if len(values) != 1:
            error_exit(f"'{key}' takes exactly one value")
        value = values[0]

    try:
        ctx.config_store.set_value(key, value)
    except ValueError as e:
        error_exit(str(e))

    user_output(click.style("✓", fg="green") + f" Set {key} in {ctx.config_store.path()}")
