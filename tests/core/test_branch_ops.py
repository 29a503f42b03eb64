"""Tests for stacked branch creation and rename."""

import logging

import pytest

from gitstack.core.branch_ops import (
    create_branch,
    normalize_parent_name,
    parse_rename_argument,
    rename_branch,
)
from gitstack.core.config_store import GitStackConfig
from gitstack.core.context import GitStackContext
from gitstack.core.errors import (
    BranchAlreadyExistsError,
    BranchCycleError,
    BranchOperationError,
    DefaultBranchNotFoundError,
    GitStackError,
    InvalidRenameArgumentError,
    OrphanedPullRequestError,
    ParentNotAdoptedError,
)
from gitstack.core.metadata import Branch, BranchState, InMemoryMetadataStore, PullRequest
from gitstack.core.repo_discovery import NoRepoSentinel
from tests.fakes.git import FakeGit
from tests.fakes.user_feedback import FakeUserFeedback

MAIN_SHA = "a" * 40
ORIGIN_MAIN_SHA = "b" * 40
FEATURE_1_SHA = "c" * 40


class FailingSaveStore(InMemoryMetadataStore):
    """Metadata store whose save always fails, as a full disk would."""

    def save_branches(self, branches: dict[str, Branch]) -> None:
        raise OSError("No space left on device")


def _ctx(
    git: FakeGit,
    metadata: InMemoryMetadataStore | None = None,
    config: GitStackConfig | None = None,
) -> tuple[GitStackContext, FakeUserFeedback]:
    feedback = FakeUserFeedback()
    ctx = GitStackContext.for_test(
        git=git,
        metadata=metadata if metadata is not None else InMemoryMetadataStore(),
        config=config,
        feedback=feedback,
    )
    return ctx, feedback


# parse_rename_argument / normalize_parent_name


def test_parse_rename_argument_new_only() -> None:
    assert parse_rename_argument("feature-2") == (None, "feature-2")


def test_parse_rename_argument_old_and_new() -> None:
    assert parse_rename_argument("feature-1:feature-2") == ("feature-1", "feature-2")


@pytest.mark.parametrize("argument", ["a:b:c", ":new", "old:", ""])
def test_parse_rename_argument_rejects_malformed(argument: str) -> None:
    with pytest.raises(InvalidRenameArgumentError):
        parse_rename_argument(argument)


def test_parse_rename_argument_two_separators_message() -> None:
    with pytest.raises(InvalidRenameArgumentError, match="NEW_BRANCH or OLD_BRANCH:NEW_BRANCH"):
        parse_rename_argument("a:b:c")


@pytest.mark.parametrize(
    ("parent", "expected"),
    [
        ("origin/HEAD", "main"),
        ("origin/main", "main"),
        ("origin/feature-1", "feature-1"),
        ("feature-1", "feature-1"),
        ("upstream/feature-1", "upstream/feature-1"),
    ],
)
def test_normalize_parent_name(parent: str, expected: str) -> None:
    assert normalize_parent_name(parent, "origin", "main") == expected


# create_branch


def test_create_branch_on_trunk_uses_remote_tracking_commit() -> None:
    git = FakeGit(
        branches={"main": MAIN_SHA},
        remote_refs={"origin/main": ORIGIN_MAIN_SHA},
    )
    store = InMemoryMetadataStore()
    ctx, _ = _ctx(git, store)

    branch = create_branch(ctx, "feature-1", "main")

    assert git.created_branches == [("feature-1", ORIGIN_MAIN_SHA)]
    assert git.current_branch == "feature-1"
    assert branch == Branch.on_trunk("feature-1")
    assert store.read_branch("feature-1") == Branch.on_trunk("feature-1")


def test_create_branch_on_trunk_falls_back_to_local_trunk() -> None:
    git = FakeGit(branches={"main": MAIN_SHA})
    ctx, _ = _ctx(git)

    create_branch(ctx, "feature-1", "main")

    assert git.created_branches == [("feature-1", MAIN_SHA)]


def test_create_branch_on_adopted_parent_records_head() -> None:
    git = FakeGit(
        branches={"main": MAIN_SHA, "feature-1": FEATURE_1_SHA},
        current_branch="feature-1",
    )
    store = InMemoryMetadataStore([Branch.on_trunk("feature-1")])
    ctx, _ = _ctx(git, store)

    branch = create_branch(ctx, "feature-2", "feature-1")

    assert git.created_branches == [("feature-2", FEATURE_1_SHA)]
    assert branch.parent == BranchState(name="feature-1", trunk=False, head=FEATURE_1_SHA)
    assert store.read_branch("feature-2") == branch
    assert store.read_branch("feature-1") == Branch.on_trunk("feature-1")


def test_create_branch_defaults_parent_to_current_branch() -> None:
    git = FakeGit(
        branches={"main": MAIN_SHA, "feature-1": FEATURE_1_SHA},
        current_branch="feature-1",
    )
    store = InMemoryMetadataStore([Branch.on_trunk("feature-1")])
    ctx, _ = _ctx(git, store)

    branch = create_branch(ctx, "feature-2")

    assert branch.parent.name == "feature-1"


def test_create_branch_empty_parent_means_current_branch() -> None:
    git = FakeGit(branches={"main": MAIN_SHA})
    ctx, _ = _ctx(git)

    branch = create_branch(ctx, "feature-1", "")

    assert branch.parent == BranchState(name="main", trunk=True)


def test_create_branch_normalizes_remote_parent_names() -> None:
    git = FakeGit(branches={"main": MAIN_SHA})
    ctx, _ = _ctx(git)

    first = create_branch(ctx, "feature-1", "origin/HEAD")
    second = create_branch(ctx, "feature-2", "origin/main")

    assert first.parent.name == "main"
    assert second.parent.name == "main"


def test_create_branch_on_additional_trunk_starts_from_that_trunk() -> None:
    origin_release_sha = "e" * 40
    git = FakeGit(
        branches={"main": MAIN_SHA, "release": FEATURE_1_SHA},
        remote_refs={"origin/main": ORIGIN_MAIN_SHA, "origin/release": origin_release_sha},
    )
    ctx, _ = _ctx(git, config=GitStackConfig(additional_trunk_branches=("release",)))

    branch = create_branch(ctx, "hotfix", "release")

    assert branch.parent == BranchState(name="release", trunk=True)
    assert git.created_branches == [("hotfix", origin_release_sha)]


def test_create_branch_parent_not_adopted_changes_nothing() -> None:
    git = FakeGit(branches={"main": MAIN_SHA, "feature-1": FEATURE_1_SHA})
    store = InMemoryMetadataStore()
    ctx, _ = _ctx(git, store)

    with pytest.raises(ParentNotAdoptedError, match="feature-1"):
        create_branch(ctx, "feature-2", "feature-1")

    assert git.created_branches == []
    assert git.checked_out_branches == []
    assert "feature-2" not in git.branches
    assert store.save_count == 0


def test_create_branch_checkout_failure_is_wrapped() -> None:
    git = FakeGit(
        branches={"main": MAIN_SHA},
        raises={"create_and_checkout_branch": RuntimeError("fatal: bad ref")},
    )
    store = InMemoryMetadataStore()
    ctx, _ = _ctx(git, store)

    with pytest.raises(BranchOperationError, match="checkout error: fatal: bad ref"):
        create_branch(ctx, "feature-1", "main")

    assert store.save_count == 0
    assert git.deleted_branches == []


def test_create_branch_existing_git_branch_fails_without_metadata() -> None:
    git = FakeGit(branches={"main": MAIN_SHA, "feature-1": FEATURE_1_SHA})
    store = InMemoryMetadataStore()
    ctx, _ = _ctx(git, store)

    with pytest.raises(BranchOperationError, match="checkout error"):
        create_branch(ctx, "feature-1", "main")

    assert git.branches["feature-1"] == FEATURE_1_SHA
    assert store.load_branches() == {}


def test_create_branch_commit_failure_deletes_new_branch() -> None:
    git = FakeGit(branches={"main": MAIN_SHA})
    ctx, feedback = _ctx(git, FailingSaveStore())

    with pytest.raises(BranchOperationError, match="failed to save branch metadata"):
        create_branch(ctx, "feature-1", "main")

    assert "feature-1" not in git.branches
    assert git.deleted_branches == ["feature-1"]
    assert git.current_branch == "main"
    assert feedback.rollback_messages == [
        "Cleaning up branch feature-1 because the operation was not successful."
    ]


def test_create_branch_failed_cleanup_is_logged_and_original_error_raised(
    caplog: pytest.LogCaptureFixture,
) -> None:
    git = FakeGit(
        branches={"main": MAIN_SHA},
        raises={"delete_branch": RuntimeError("cannot lock ref")},
    )
    ctx, _ = _ctx(git, FailingSaveStore())

    with caplog.at_level(logging.ERROR, logger="gitstack.core.branch_ops"):
        with pytest.raises(BranchOperationError, match="failed to save branch metadata"):
            create_branch(ctx, "feature-1", "main")

    assert "failed to delete branch feature-1 during cleanup" in caplog.text
    assert "feature-1" in git.branches


def test_create_branch_detached_head_without_parent() -> None:
    git = FakeGit(current_branch=None)
    ctx, _ = _ctx(git)

    with pytest.raises(BranchOperationError, match="HEAD is detached"):
        create_branch(ctx, "feature-1")


def test_create_branch_without_default_branch() -> None:
    git = FakeGit(default_branch=None)
    ctx, _ = _ctx(git)

    with pytest.raises(DefaultBranchNotFoundError, match="failed to determine repository default"):
        create_branch(ctx, "feature-1", "main")

    assert git.created_branches == []


def test_create_branch_outside_repository() -> None:
    ctx = GitStackContext.for_test(repo=NoRepoSentinel())

    with pytest.raises(GitStackError, match="Not inside a git repository"):
        create_branch(ctx, "feature-1", "main")


# rename_branch


def test_rename_branch_reparents_children() -> None:
    git = FakeGit(
        branches={"main": MAIN_SHA, "feature-1": FEATURE_1_SHA, "feature-2": "d" * 40},
        current_branch="feature-1",
    )
    store = InMemoryMetadataStore(
        [
            Branch.on_trunk("feature-1"),
            Branch.on_branch("feature-2", "feature-1", head=FEATURE_1_SHA),
        ]
    )
    ctx, _ = _ctx(git, store)

    renamed = rename_branch(ctx, "feature-1-renamed")

    assert renamed == Branch.on_trunk("feature-1-renamed")
    assert git.renamed_branches == [("feature-1", "feature-1-renamed")]
    assert git.current_branch == "feature-1-renamed"

    branches = store.load_branches()
    assert set(branches) == {"feature-1-renamed", "feature-2"}
    assert branches["feature-2"].parent == BranchState(
        name="feature-1-renamed", trunk=False, head=FEATURE_1_SHA
    )
    assert store.save_count == 1


def test_rename_branch_with_explicit_old_name() -> None:
    git = FakeGit(branches={"main": MAIN_SHA, "feature-1": FEATURE_1_SHA})
    store = InMemoryMetadataStore([Branch.on_trunk("feature-1")])
    ctx, _ = _ctx(git, store)

    rename_branch(ctx, "feature-1:feature-x")

    assert git.renamed_branches == [("feature-1", "feature-x")]
    assert git.current_branch == "main"
    assert set(store.load_branches()) == {"feature-x"}


def test_rename_branch_untracked_branch_is_adopted_on_trunk() -> None:
    git = FakeGit(
        branches={"main": MAIN_SHA, "feature-1": FEATURE_1_SHA},
        current_branch="feature-1",
    )
    store = InMemoryMetadataStore()
    ctx, _ = _ctx(git, store)

    renamed = rename_branch(ctx, "feature-2")

    assert renamed == Branch.on_trunk("feature-2")
    assert store.read_branch("feature-2") == Branch.on_trunk("feature-2")


def test_rename_branch_metadata_only_when_git_branch_missing() -> None:
    git = FakeGit(branches={"main": MAIN_SHA})
    store = InMemoryMetadataStore([Branch.on_trunk("feature-1")])
    ctx, feedback = _ctx(git, store)

    rename_branch(ctx, "feature-1:feature-2")

    assert git.renamed_branches == []
    assert set(store.load_branches()) == {"feature-2"}
    assert feedback.warning_messages == [
        "Branch feature-1 does not exist in git. Updating gitstack metadata only."
    ]


def test_rename_branch_with_pull_request_is_refused() -> None:
    git = FakeGit(
        branches={"main": MAIN_SHA, "feature-1": FEATURE_1_SHA},
        current_branch="feature-1",
    )
    with_pr = Branch(
        name="feature-1",
        parent=BranchState(name="main", trunk=True),
        pull_request=PullRequest(number=12),
    )
    store = InMemoryMetadataStore([with_pr])
    ctx, _ = _ctx(git, store)

    with pytest.raises(OrphanedPullRequestError) as exc_info:
        rename_branch(ctx, "feature-2")

    assert exc_info.value.exit_code == 127
    assert str(exc_info.value) == (
        "Cannot rename branch feature-1: pull request #12 would be orphaned."
    )
    assert git.renamed_branches == []
    assert store.read_branch("feature-1") == with_pr
    assert store.save_count == 0


def test_rename_branch_force_drops_pull_request() -> None:
    git = FakeGit(
        branches={"main": MAIN_SHA, "feature-1": FEATURE_1_SHA},
        current_branch="feature-1",
    )
    store = InMemoryMetadataStore(
        [
            Branch(
                name="feature-1",
                parent=BranchState(name="main", trunk=True),
                pull_request=PullRequest(number=12),
            )
        ]
    )
    ctx, _ = _ctx(git, store)

    renamed = rename_branch(ctx, "feature-2", force=True)

    assert renamed.pull_request is None
    assert store.read_branch("feature-2") == Branch.on_trunk("feature-2")
    assert git.renamed_branches == [("feature-1", "feature-2")]


def test_rename_branch_to_itself() -> None:
    git = FakeGit(branches={"main": MAIN_SHA, "feature-1": FEATURE_1_SHA})
    ctx, _ = _ctx(git)

    with pytest.raises(InvalidRenameArgumentError, match="cannot rename branch to itself"):
        rename_branch(ctx, "feature-1:feature-1")


def test_rename_branch_target_already_tracked() -> None:
    git = FakeGit(branches={"main": MAIN_SHA, "feature-1": FEATURE_1_SHA})
    store = InMemoryMetadataStore([Branch.on_trunk("feature-1"), Branch.on_trunk("feature-2")])
    ctx, _ = _ctx(git, store)

    with pytest.raises(BranchAlreadyExistsError, match="feature-2"):
        rename_branch(ctx, "feature-1:feature-2")

    assert git.renamed_branches == []
    assert store.save_count == 0


def test_rename_branch_git_failure_leaves_metadata_untouched() -> None:
    git = FakeGit(
        branches={"main": MAIN_SHA, "feature-1": FEATURE_1_SHA},
        current_branch="feature-1",
        raises={"rename_branch": RuntimeError("fatal: cannot lock ref")},
    )
    original = [
        Branch.on_trunk("feature-1"),
        Branch.on_branch("feature-2", "feature-1", head=FEATURE_1_SHA),
    ]
    store = InMemoryMetadataStore(original)
    ctx, _ = _ctx(git, store)

    with pytest.raises(BranchOperationError, match="failed to rename git branch"):
        rename_branch(ctx, "feature-1-renamed")

    assert store.load_branches() == {b.name: b for b in original}
    assert store.save_count == 0
    assert "feature-1" in git.branches


def test_rename_branch_commit_failure_restores_git_name() -> None:
    git = FakeGit(
        branches={"main": MAIN_SHA, "feature-1": FEATURE_1_SHA},
        current_branch="feature-1",
    )
    ctx, feedback = _ctx(git, FailingSaveStore([Branch.on_trunk("feature-1")]))

    with pytest.raises(BranchOperationError, match="failed to save branch metadata"):
        rename_branch(ctx, "feature-2")

    assert git.renamed_branches == [("feature-1", "feature-2"), ("feature-2", "feature-1")]
    assert git.current_branch == "feature-1"
    assert feedback.rollback_messages == [
        "Restoring branch name feature-1 because the operation was not successful."
    ]


def test_rename_branch_detached_head() -> None:
    git = FakeGit(current_branch=None)
    ctx, _ = _ctx(git)

    with pytest.raises(BranchOperationError, match="HEAD is detached"):
        rename_branch(ctx, "feature-2")


def test_rename_branch_reparents_every_child_and_leaves_grandchildren() -> None:
    git = FakeGit(
        branches={"main": MAIN_SHA, "feature-1": FEATURE_1_SHA},
        current_branch="feature-1",
    )
    store = InMemoryMetadataStore(
        [
            Branch.on_trunk("feature-1"),
            Branch.on_branch("child-a", "feature-1", head=FEATURE_1_SHA),
            Branch.on_branch("child-b", "feature-1", head=FEATURE_1_SHA),
            Branch.on_branch("child-c", "feature-1", head=FEATURE_1_SHA),
            Branch.on_branch("grandchild", "child-b", head="d" * 40),
            Branch.on_trunk("unrelated"),
        ]
    )
    ctx, feedback = _ctx(git, store)

    rename_branch(ctx, "stack-base")

    branches = store.load_branches()
    assert all(b.parent.name != "feature-1" for b in branches.values())
    for name in ("child-a", "child-b", "child-c"):
        assert branches[name].parent == BranchState(
            name="stack-base", trunk=False, head=FEATURE_1_SHA
        )
    assert branches["grandchild"] == Branch.on_branch("grandchild", "child-b", head="d" * 40)
    assert branches["unrelated"] == Branch.on_trunk("unrelated")
    assert feedback.info_messages == [
        "Updated parent of child-a to stack-base",
        "Updated parent of child-b to stack-base",
        "Updated parent of child-c to stack-base",
    ]


def test_rename_branch_to_trunk_name_is_refused() -> None:
    # Local main is absent, so git itself would accept the rename
    git = FakeGit(
        branches={"feature-1": FEATURE_1_SHA, "feature-2": "d" * 40},
        remote_refs={"origin/main": ORIGIN_MAIN_SHA},
        current_branch="feature-1",
    )
    original = [
        Branch.on_trunk("feature-1"),
        Branch.on_branch("feature-2", "feature-1", head=FEATURE_1_SHA),
    ]
    store = InMemoryMetadataStore(original)
    ctx, _ = _ctx(git, store)

    with pytest.raises(InvalidRenameArgumentError, match="trunk branch name 'main'"):
        rename_branch(ctx, "main")

    assert git.renamed_branches == []
    assert store.load_branches() == {b.name: b for b in original}
    assert store.save_count == 0


def test_rename_branch_to_additional_trunk_name_is_refused() -> None:
    git = FakeGit(branches={"main": MAIN_SHA, "feature-1": FEATURE_1_SHA})
    store = InMemoryMetadataStore([Branch.on_trunk("feature-1")])
    ctx, _ = _ctx(git, store, config=GitStackConfig(additional_trunk_branches=("release",)))

    with pytest.raises(InvalidRenameArgumentError, match="'release'"):
        rename_branch(ctx, "feature-1:release")

    assert git.renamed_branches == []


def test_rename_trunk_branch_is_refused() -> None:
    git = FakeGit(branches={"main": MAIN_SHA})
    ctx, _ = _ctx(git)

    with pytest.raises(InvalidRenameArgumentError, match="cannot rename trunk branch 'main'"):
        rename_branch(ctx, "main:trunk")

    assert git.renamed_branches == []


def test_rename_branch_cycle_is_rolled_back() -> None:
    git = FakeGit(branches={"main": MAIN_SHA, "a": "1" * 40, "b": "2" * 40})
    original = [
        Branch.on_branch("a", "b", head="2" * 40),
        Branch.on_branch("b", "a", head="1" * 40),
    ]
    store = InMemoryMetadataStore(original)
    ctx, _ = _ctx(git, store)

    with pytest.raises(BranchCycleError):
        rename_branch(ctx, "a:c")

    assert git.renamed_branches == []
    assert "a" in git.branches
    assert store.load_branches() == {b.name: b for b in original}
    assert store.save_count == 0
