"""Stacked branch creation and rename.

Both operations change two stores: git refs and gitstack's branch metadata.
Git changes cannot be staged, so they happen first and each registers a
reversal with a Cleanup; metadata writes are staged in a single write
transaction that is committed last. Any failure before the commit runs the
reversals and aborts the transaction, leaving both stores as they were.
"""

import logging
from dataclasses import replace

from gitstack.core.cleanup import Cleanup
from gitstack.core.context import GitStackContext
from gitstack.core.errors import (
    BranchAlreadyExistsError,
    BranchOperationError,
    DefaultBranchNotFoundError,
    GitStackError,
    InvalidRenameArgumentError,
    OrphanedPullRequestError,
    ParentNotAdoptedError,
)
from gitstack.core.metadata.abc import MetadataStore, WriteTransaction
from gitstack.core.metadata.types import Branch, BranchState
from gitstack.core.repo_discovery import NoRepoSentinel

logger = logging.getLogger(__name__)

RENAME_SEPARATOR = ":"


def parse_rename_argument(argument: str) -> tuple[str | None, str]:
    """Split a rename argument into (old, new).

    Accepts "NEW" (old is None, meaning the current branch) or "OLD:NEW".

    Raises:
        InvalidRenameArgumentError: If there is more than one separator or a
            name is empty
    """
    if argument.count(RENAME_SEPARATOR) > 1:
        raise InvalidRenameArgumentError(
            "the branch name should be NEW_BRANCH or OLD_BRANCH:NEW_BRANCH"
        )

    old: str | None = None
    new = argument
    if RENAME_SEPARATOR in argument:
        old, new = argument.split(RENAME_SEPARATOR)
        if not old:
            raise InvalidRenameArgumentError("the old branch name must not be empty")

    if not new:
        raise InvalidRenameArgumentError("the new branch name must not be empty")

    return old, new


def normalize_parent_name(parent: str, remote: str, default_branch: str) -> str:
    """Map remote-qualified parent names onto local branch names.

    "<remote>/HEAD" means the default branch; a leading "<remote>/" is dropped.
    """
    if parent == f"{remote}/HEAD":
        return default_branch
    return parent.removeprefix(f"{remote}/")


def is_trunk_branch(ctx: GitStackContext, name: str, default_branch: str) -> bool:
    """Check if `name` is the default branch or a configured additional trunk."""
    return name == default_branch or name in ctx.config.additional_trunk_branches


def create_branch(
    ctx: GitStackContext,
    branch_name: str,
    parent_branch_name: str | None = None,
) -> Branch:
    """Create and check out a new branch stacked on a parent.

    Args:
        ctx: Application context
        branch_name: Name of the branch to create
        parent_branch_name: Branch to stack on. None or empty means the
            currently checked-out branch.

    Returns:
        The committed metadata record for the new branch

    Raises:
        DefaultBranchNotFoundError: If the repository has no default branch
        ParentNotAdoptedError: If a non-trunk parent has no metadata record
        BranchOperationError: If resolving refs, checkout, or commit fails
    """
    store = _require_metadata(ctx)
    remote = ctx.git.get_remote_name(ctx.repo_root, ctx.config.remote)
    default_branch = _resolve_default_branch(ctx, remote)

    tx = store.write_transaction()
    with Cleanup(tx.abort) as cleanup:
        # Determine the parent branch
        parent = parent_branch_name or _require_current_branch(ctx)
        parent = normalize_parent_name(parent, remote, default_branch)

        parent_is_trunk = is_trunk_branch(ctx, parent, default_branch)
        parent_head: str | None = None
        if parent_is_trunk:
            # New stacks start from the last fetched trunk, not the local copy
            start_point = _resolve_trunk_start_point(ctx, remote, parent)
        else:
            if tx.branch(parent) is None:
                raise ParentNotAdoptedError(parent)
            try:
                parent_head = ctx.git.rev_parse(ctx.cwd, parent)
            except RuntimeError as e:
                raise _wrap(f"failed to determine head commit of branch '{parent}'", e) from e
            start_point = parent_head

        # Branch from a commit SHA so git does not guess upstream tracking config
        logger.debug("creating branch %s from parent %s at %s", branch_name, parent, start_point)
        try:
            ctx.git.create_and_checkout_branch(ctx.cwd, branch_name, start_point)
        except RuntimeError as e:
            raise _wrap("checkout error", e) from e

        cleanup.add(lambda: _undo_create(ctx, branch_name, parent))

        branch = Branch(
            name=branch_name,
            parent=BranchState(name=parent, trunk=parent_is_trunk, head=parent_head),
        )
        tx.set_branch(branch)
        tx.ancestors(branch_name)

        _commit(tx)
        cleanup.cancel()

    return branch


def rename_branch(ctx: GitStackContext, argument: str, *, force: bool = False) -> Branch:
    """Rename a branch in git and metadata, re-parenting its children.

    Args:
        ctx: Application context
        argument: "NEW" to rename the current branch, or "OLD:NEW"
        force: Rename even if the branch is linked to a pull request. The link
            is dropped.

    Returns:
        The committed metadata record under the new name

    Raises:
        InvalidRenameArgumentError: If the argument is malformed, names one branch
            twice, or either name is a trunk branch
        BranchAlreadyExistsError: If the new name already has a metadata record
        OrphanedPullRequestError: If the branch has a pull request and force is False
        BranchCycleError: If the renamed records would no longer lead back to trunk
        BranchOperationError: If the git rename or the metadata commit fails
    """
    store = _require_metadata(ctx)
    old_arg, new = parse_rename_argument(argument)
    old = old_arg if old_arg is not None else _require_current_branch(ctx)

    if old == new:
        raise InvalidRenameArgumentError("cannot rename branch to itself")

    remote = ctx.git.get_remote_name(ctx.repo_root, ctx.config.remote)
    default_branch = _resolve_default_branch(ctx, remote)
    if is_trunk_branch(ctx, old, default_branch):
        raise InvalidRenameArgumentError(f"cannot rename trunk branch '{old}'")
    if is_trunk_branch(ctx, new, default_branch):
        raise InvalidRenameArgumentError(f"cannot rename branch to trunk branch name '{new}'")

    tx = store.write_transaction()
    with Cleanup(tx.abort) as cleanup:
        current = tx.branch(old)
        if current is None:
            # Untracked branches are treated as stacked directly on trunk
            current = Branch(name=old, parent=BranchState(name=default_branch, trunk=True))

        if tx.branch(new) is not None:
            raise BranchAlreadyExistsError(f"branch '{new}' is already tracked by gitstack")

        if not force and current.pull_request is not None:
            raise OrphanedPullRequestError(old, current.pull_request.number)

        renamed = replace(current, name=new, pull_request=None)
        tx.set_branch(renamed)

        # Update all child branches to refer to the renamed parent
        children = tx.children(old)
        for child in children:
            tx.set_branch(replace(child, parent=replace(child.parent, name=new)))
            ctx.feedback.info(f"Updated parent of {child.name} to {new}")
        tx.delete_branch(old)

        tx.ancestors(new)
        for child in children:
            tx.ancestors(child.name)

        # Git last, so a failure here only has the metadata transaction to undo
        if _branch_exists(ctx, old):
            try:
                ctx.git.rename_branch(ctx.cwd, old, new)
            except RuntimeError as e:
                raise _wrap("failed to rename git branch", e) from e
            cleanup.add(lambda: _undo_rename(ctx, old, new))
        else:
            ctx.feedback.warning(
                f"Branch {old} does not exist in git. Updating gitstack metadata only."
            )

        _commit(tx)
        cleanup.cancel()

    return renamed


def _undo_create(ctx: GitStackContext, branch_name: str, parent: str) -> None:
    ctx.feedback.rollback(
        f"Cleaning up branch {branch_name} because the operation was not successful."
    )
    try:
        ctx.git.checkout_branch(ctx.cwd, parent)
    except RuntimeError:
        logger.exception("failed to return to original branch %s during cleanup", parent)
    try:
        ctx.git.delete_branch(ctx.cwd, branch_name, force=True)
    except RuntimeError:
        logger.exception("failed to delete branch %s during cleanup", branch_name)


def _undo_rename(ctx: GitStackContext, old: str, new: str) -> None:
    ctx.feedback.rollback(f"Restoring branch name {old} because the operation was not successful.")
    try:
        ctx.git.rename_branch(ctx.cwd, new, old)
    except RuntimeError:
        logger.exception("failed to rename branch %s back to %s during cleanup", new, old)


def _resolve_trunk_start_point(ctx: GitStackContext, remote: str, trunk: str) -> str:
    remote_ref = f"{remote}/{trunk}"
    try:
        return ctx.git.rev_parse(ctx.cwd, remote_ref)
    except RuntimeError as e:
        # Repositories without a fetched remote can only branch from local trunk
        logger.debug("cannot resolve %s (%s); falling back to local %s", remote_ref, e, trunk)

    try:
        return ctx.git.rev_parse(ctx.cwd, trunk)
    except RuntimeError as e:
        raise _wrap("failed to determine commit hash of starting point", e) from e


def _resolve_default_branch(ctx: GitStackContext, remote: str) -> str:
    try:
        return ctx.git.get_default_branch(ctx.repo_root, remote, ctx.config.trunk_branch)
    except DefaultBranchNotFoundError as e:
        raise DefaultBranchNotFoundError(
            f"failed to determine repository default branch: {e}"
        ) from e


def _require_metadata(ctx: GitStackContext) -> MetadataStore:
    if isinstance(ctx.repo, NoRepoSentinel) or ctx.metadata is None:
        message = ctx.repo.message if isinstance(ctx.repo, NoRepoSentinel) else "no metadata store"
        raise GitStackError(message)
    return ctx.metadata


def _require_current_branch(ctx: GitStackContext) -> str:
    branch = ctx.git.get_current_branch(ctx.cwd)
    if branch is None:
        raise BranchOperationError("failed to get current branch name (HEAD is detached)")
    return branch


def _branch_exists(ctx: GitStackContext, branch: str) -> bool:
    try:
        return ctx.git.branch_exists(ctx.cwd, branch)
    except RuntimeError as e:
        raise _wrap(f"failed to check whether branch '{branch}' exists", e) from e


def _commit(tx: WriteTransaction) -> None:
    try:
        tx.commit()
    except OSError as e:
        raise _wrap("failed to save branch metadata", e) from e


def _wrap(message: str, error: Exception) -> BranchOperationError:
    return BranchOperationError(f"{message}: {error}")
