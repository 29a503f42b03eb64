"""Branch metadata data types.

These records describe the stack structure that git itself does not know
about: which branch each tracked branch was stacked on, and which pull request
(if any) it is linked to.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class BranchState:
    """Reference to the branch a stacked branch sits on.

    Attributes:
        name: Parent branch name
        trunk: True if the parent is a trunk branch (e.g. main)
        head: Parent's commit SHA when the child was created. Only recorded for
            non-trunk parents; always None when trunk is True.
    """

    name: str
    trunk: bool
    head: str | None = None

    def __post_init__(self) -> None:
        if self.trunk and self.head is not None:
            raise ValueError(f"trunk parent '{self.name}' must not record a head commit")


@dataclass(frozen=True)
class PullRequest:
    """Pull request linked to a branch."""

    number: int
    id: str | None = None
    permalink: str | None = None
    state: str | None = None


@dataclass(frozen=True)
class Branch:
    """Metadata record for a single tracked branch."""

    name: str
    parent: BranchState
    pull_request: PullRequest | None = None

    @staticmethod
    def on_trunk(name: str, trunk: str = "main") -> "Branch":
        """Create a record for a branch stacked directly on trunk."""
        return Branch(name=name, parent=BranchState(name=trunk, trunk=True))

    @staticmethod
    def on_branch(name: str, parent: str, head: str | None) -> "Branch":
        """Create a record for a branch stacked on another tracked branch."""
        return Branch(name=name, parent=BranchState(name=parent, trunk=False, head=head))
