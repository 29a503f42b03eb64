"""Metadata store interface and write transactions.

Architecture:
- MetadataStore: Abstract base class for loading and saving the full branch set
- WriteTransaction: Staged view over one snapshot of the store. Reads see the
  transaction's own staged writes; nothing becomes visible to other readers
  until commit() hands the whole set back to the store in one save.
"""

import logging
from abc import ABC, abstractmethod

from gitstack.core.errors import BranchCycleError, TransactionClosedError
from gitstack.core.metadata.types import Branch

logger = logging.getLogger(__name__)


class MetadataStore(ABC):
    """Interface for branch metadata persistence."""

    @abstractmethod
    def load_branches(self) -> dict[str, Branch]:
        """Load every branch record, keyed by branch name."""
        ...

    @abstractmethod
    def save_branches(self, branches: dict[str, Branch]) -> None:
        """Durably replace the stored branch set with `branches`."""
        ...

    def read_branch(self, name: str) -> Branch | None:
        """Read a single committed record, or None if the branch is untracked."""
        return self.load_branches().get(name)

    def write_transaction(self) -> "WriteTransaction":
        """Open a write transaction over the current committed state."""
        return WriteTransaction(self)


class WriteTransaction:
    """Batch of staged metadata writes resolved by commit() or abort().

    Usage:
        tx = store.write_transaction()
        tx.set_branch(Branch.on_trunk("feature"))
        tx.commit()
    """

    def __init__(self, store: MetadataStore) -> None:
        self._store = store
        self._branches = dict(store.load_branches())
        self._closed = False
        self._committed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def branch(self, name: str) -> Branch | None:
        """Get the transaction-visible record for `name`."""
        self._check_open()
        return self._branches.get(name)

    def all_branches(self) -> dict[str, Branch]:
        self._check_open()
        return dict(self._branches)

    def set_branch(self, branch: Branch) -> None:
        """Stage `branch` under its own name, replacing any existing record."""
        self._check_open()
        self._branches[branch.name] = branch

    def delete_branch(self, name: str) -> None:
        """Stage removal of the record for `name` (no-op if absent)."""
        self._check_open()
        self._branches.pop(name, None)

    def children(self, name: str) -> list[Branch]:
        """Return records whose parent is `name`, sorted by branch name.

        Computed from the transaction-visible state on every call, so staged
        renames and deletions are reflected.
        """
        self._check_open()
        return sorted(
            (b for b in self._branches.values() if b.parent.name == name),
            key=lambda b: b.name,
        )

    def ancestors(self, name: str) -> list[str]:
        """Follow parent links from `name` until reaching trunk or an untracked branch.

        Returns:
            Parent names nearest-first, ending with the trunk (or untracked) root.
            Empty if `name` itself is untracked.

        Raises:
            BranchCycleError: If a parent link leads back to a visited branch
        """
        self._check_open()
        result: list[str] = []
        seen = [name]
        current = self._branches.get(name)
        while current is not None:
            parent = current.parent.name
            if parent in seen:
                raise BranchCycleError([*seen, parent])
            result.append(parent)
            if current.parent.trunk:
                break
            seen.append(parent)
            current = self._branches.get(parent)
        return result

    def commit(self) -> None:
        """Durably apply every staged write."""
        self._check_open()
        self._store.save_branches(dict(self._branches))
        self._closed = True
        self._committed = True

    def abort(self) -> None:
        """Discard every staged write. Safe to call after commit (no-op)."""
        if self._committed:
            return
        if not self._closed:
            logger.debug("aborting metadata transaction")
        self._closed = True
        self._branches = {}

    def _check_open(self) -> None:
        if self._closed:
            raise TransactionClosedError("metadata transaction is already closed")
