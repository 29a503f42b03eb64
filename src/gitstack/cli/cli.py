import logging
import os

import click

from gitstack.cli.commands.branch import branch_cmd
from gitstack.cli.commands.config import config_group
from gitstack.core.context import create_context

CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])  # terse help flags

DEBUG_ENV_VAR = "GITSTACK_DEBUG"


def configure_logging(debug: bool) -> None:
    """Enable debug logging when requested by flag or GITSTACK_DEBUG."""
    if debug or os.getenv(DEBUG_ENV_VAR):
        logging.basicConfig(level=logging.DEBUG, format="[DEBUG %(name)s:%(lineno)d] %(message)s")


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(package_name="gitstack")
@click.option("--debug", is_flag=True, help="Log debug output to stderr.")
@click.option("-q", "--quiet", is_flag=True, help="Only print errors.")
@click.pass_context
def cli(ctx: click.Context, debug: bool, quiet: bool) -> None:
    """Create and rename stacked git branches."""
    configure_logging(debug)
    # Only create context if not already provided (e.g., by tests)
    if ctx.obj is None:
        ctx.obj = create_context(quiet=quiet)


cli.add_command(branch_cmd)
cli.add_command(config_group)


def main() -> None:
    """CLI entry point used by the `gitstack` console script."""
    cli()
