"""Create or rename a branch in the stack."""

import click
from click.shell_completion import CompletionItem

from gitstack.cli.ensure import Ensure, error_exit
from gitstack.cli.output import user_output
from gitstack.core.branch_ops import create_branch, rename_branch
from gitstack.core.context import GitStackContext, create_context
from gitstack.core.errors import ExitSilently, GitStackError, OrphanedPullRequestError
from gitstack.core.repo_discovery import NoRepoSentinel


def complete_branch_names(
    ctx: click.Context, param: click.Parameter, incomplete: str
) -> list[CompletionItem]:
    """Complete local branch names for --parent."""
    root_obj = ctx.find_root().obj
    gitstack_ctx = root_obj if isinstance(root_obj, GitStackContext) else create_context()
    if isinstance(gitstack_ctx.repo, NoRepoSentinel):
        return []

    try:
        branches = gitstack_ctx.git.list_local_branches(gitstack_ctx.repo.root)
    except RuntimeError:
        return []
    return [CompletionItem(b) for b in branches if b.startswith(incomplete)]


@click.command("branch")
@click.argument("branch_name", required=False)
@click.argument("parent_branch", required=False)
@click.option(
    "--parent",
    "parent_option",
    default=None,
    shell_complete=complete_branch_names,
    help="The parent branch to base the new branch off of.",
)
@click.option("-m", "--rename", is_flag=True, help="Rename the current branch.")
@click.option(
    "--force",
    is_flag=True,
    help="Force rename the current branch, even if a pull request exists.",
)
@click.pass_context
def branch_cmd(
    click_ctx: click.Context,
    branch_name: str | None,
    parent_branch: str | None,
    parent_option: str | None,
    rename: bool,
    force: bool,
) -> None:
    """Create or rename a branch in the stack.

    Create a new branch BRANCH_NAME stacked on PARENT_BRANCH. If omitted, the
    new branch bases off the current branch.

    With --rename/-m, the current branch is renamed to BRANCH_NAME. Use
    OLD:NEW to rename a branch other than the current one. Branches should
    only be renamed with this command (not with git branch -m) because
    gitstack also updates the metadata that orders branches within a stack.
    """
    if branch_name is None:
        click.echo(click_ctx.get_help())
        return

    ctx: GitStackContext = click_ctx.obj
    Ensure.in_repo(ctx)

    try:
        if rename:
            Ensure.invariant(
                parent_branch is None and parent_option is None,
                "a parent branch cannot be given when renaming",
            )
            branch = rename_branch(ctx, branch_name, force=force)
            ctx.feedback.success(f"Renamed branch to {branch.name}")
            return

        parent = parent_branch if parent_branch is not None else parent_option
        branch = create_branch(ctx, branch_name, parent)
    except OrphanedPullRequestError as e:
        user_output(click.style(str(e), fg="red"))
        user_output(click.style("  - Use --force to override this check.", dim=True))
        raise SystemExit(e.exit_code) from None
    except ExitSilently as e:
        raise SystemExit(e.exit_code) from None
    except (GitStackError, RuntimeError) as e:
        error_exit(str(e))

    ctx.feedback.success(f"Created branch {branch.name} on {branch.parent.name}")
