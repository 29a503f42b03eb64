"""TOML file-backed metadata store.

Branch records live in <git-common-dir>/gitstack/branches.toml so every
worktree of a repository shares them:

    version = 1

    [branches."feature-1".parent]
    name = "main"
    trunk = true

    [branches."feature-2".parent]
    name = "feature-1"
    trunk = false
    head = "3f2a9c..."

    [branches."feature-2".pull_request]
    number = 42
"""

import os
import tempfile
import tomllib
from pathlib import Path
from typing import Any

import tomli_w

from gitstack.core.errors import MetadataFormatError
from gitstack.core.metadata.abc import MetadataStore
from gitstack.core.metadata.types import Branch, BranchState, PullRequest

FORMAT_VERSION = 1


class TomlMetadataStore(MetadataStore):
    """Real filesystem-based metadata store."""

    def __init__(self, path: Path) -> None:
        """Initialize with the path of the branches.toml file."""
        self.path = path

    def load_branches(self) -> dict[str, Branch]:
        """Load branch records from the TOML file (empty if it doesn't exist)."""
        if not self.path.exists():
            return {}

        with open(self.path, "rb") as f:
            try:
                data = tomllib.load(f)
            except tomllib.TOMLDecodeError as e:
                raise MetadataFormatError(f"Cannot parse {self.path}: {e}") from e

        version = data.get("version", FORMAT_VERSION)
        if version != FORMAT_VERSION:
            raise MetadataFormatError(
                f"Unsupported metadata version {version} in {self.path} "
                f"(expected {FORMAT_VERSION})"
            )

        branches = {}
        for name, entry in data.get("branches", {}).items():
            branches[name] = _branch_from_toml(name, entry, self.path)
        return branches

    def save_branches(self, branches: dict[str, Branch]) -> None:
        """Atomically replace the TOML file with `branches`."""
        data: dict[str, Any] = {
            "version": FORMAT_VERSION,
            "branches": {name: _branch_to_toml(b) for name, b in sorted(branches.items())},
        }

        # Ensure parent directory exists
        if not self.path.parent.exists():
            self.path.parent.mkdir(parents=True, exist_ok=True)

        # Write beside the target, then swap it into place
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
        )
        try:
            with os.fdopen(fd, "wb") as f:
                tomli_w.dump(data, f)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


def _branch_to_toml(branch: Branch) -> dict[str, Any]:
    parent: dict[str, Any] = {"name": branch.parent.name, "trunk": branch.parent.trunk}
    if branch.parent.head is not None:
        parent["head"] = branch.parent.head

    entry: dict[str, Any] = {"parent": parent}
    pr = branch.pull_request
    if pr is not None:
        pr_data: dict[str, Any] = {"number": pr.number}
        for key in ("id", "permalink", "state"):
            value = getattr(pr, key)
            if value is not None:
                pr_data[key] = value
        entry["pull_request"] = pr_data
    return entry


def _branch_from_toml(name: str, entry: dict[str, Any], path: Path) -> Branch:
    parent = entry.get("parent")
    if not isinstance(parent, dict) or "name" not in parent:
        raise MetadataFormatError(f"Branch '{name}' in {path} has no parent")

    trunk = bool(parent.get("trunk", False))
    state = BranchState(
        name=parent["name"],
        trunk=trunk,
        head=None if trunk else parent.get("head"),
    )

    pull_request = None
    pr = entry.get("pull_request")
    if pr is not None:
        if "number" not in pr:
            raise MetadataFormatError(f"Pull request for branch '{name}' in {path} has no number")
        pull_request = PullRequest(
            number=int(pr["number"]),
            id=pr.get("id"),
            permalink=pr.get("permalink"),
            state=pr.get("state"),
        )

    return Branch(name=name, parent=state, pull_request=pull_request)
