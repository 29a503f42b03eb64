"""In-memory metadata store for testing."""

from gitstack.core.metadata.abc import MetadataStore
from gitstack.core.metadata.types import Branch


class InMemoryMetadataStore(MetadataStore):
    """Dictionary-backed metadata store.

    Tracks how many times the branch set was saved so tests can assert that a
    failed operation never reached commit.
    """

    def __init__(self, branches: list[Branch] | None = None) -> None:
        self._branches = {b.name: b for b in branches} if branches is not None else {}
        self._save_count = 0

    @property
    def save_count(self) -> int:
        return self._save_count

    def load_branches(self) -> dict[str, Branch]:
        return dict(self._branches)

    def save_branches(self, branches: dict[str, Branch]) -> None:
        self._branches = dict(branches)
        self._save_count += 1
