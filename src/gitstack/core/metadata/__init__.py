"""Branch metadata subpackage.

Records the stack structure (parents, pull request links) that lives beside
git's own ref state, with transactional writes.
"""

from gitstack.core.metadata.abc import MetadataStore, WriteTransaction
from gitstack.core.metadata.memory import InMemoryMetadataStore
from gitstack.core.metadata.toml_store import TomlMetadataStore
from gitstack.core.metadata.types import Branch, BranchState, PullRequest

__all__ = [
    "Branch",
    "BranchState",
    "InMemoryMetadataStore",
    "MetadataStore",
    "PullRequest",
    "TomlMetadataStore",
    "WriteTransaction",
]
