"""Configuration data structures and loading.

Configuration is read once at the CLI entry point and stored in the
GitStackContext. Two sources are merged, later overriding earlier:

1. Global file ~/.gitstack/config.toml
2. Repository file <repo-root>/pyproject.toml, section [tool.gitstack]
"""

import tomllib
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

import tomlkit

CONFIG_KEYS = ("remote", "trunk_branch", "additional_trunk_branches")


@dataclass(frozen=True)
class GitStackConfig:
    """Immutable gitstack configuration.

    Attributes:
        remote: Remote to treat as upstream; None means auto-detect
        trunk_branch: Explicit default branch; None means auto-detect
        additional_trunk_branches: Extra branch names treated as trunk
    """

    remote: str | None = None
    trunk_branch: str | None = None
    additional_trunk_branches: tuple[str, ...] = ()


def config_from_mapping(data: dict[str, Any], source: str) -> dict[str, Any]:
    """Validate a raw config mapping and return only the recognized fields.

    Raises:
        ValueError: If a value has the wrong type
    """
    fields: dict[str, Any] = {}
    for key in ("remote", "trunk_branch"):
        if key in data:
            value = data[key]
            if not isinstance(value, str) or not value:
                raise ValueError(f"'{key}' in {source} must be a non-empty string")
            fields[key] = value

    if "additional_trunk_branches" in data:
        value = data["additional_trunk_branches"]
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise ValueError(f"'additional_trunk_branches' in {source} must be a list of strings")
        fields["additional_trunk_branches"] = tuple(value)

    return fields


def read_repo_config(repo_root: Path) -> dict[str, Any]:
    """Read the [tool.gitstack] section of the repository's pyproject.toml.

    Args:
        repo_root: Path to the repository root directory

    Returns:
        Recognized config fields, empty if the file or section is absent
    """
    pyproject_path = repo_root / "pyproject.toml"

    if not pyproject_path.exists():
        return {}

    with pyproject_path.open("rb") as f:
        data = tomllib.load(f)

    tool_section = data.get("tool")
    if tool_section is None:
        return {}

    gitstack_section = tool_section.get("gitstack")
    if gitstack_section is None:
        return {}

    return config_from_mapping(gitstack_section, str(pyproject_path))


class ConfigStore(ABC):
    """Abstract interface for global config access.

    Provides dependency injection for config access, enabling in-memory
    implementations for tests without touching the filesystem.
    """

    @abstractmethod
    def load(self) -> GitStackConfig:
        """Load the global config (defaults if none has been saved)."""
        ...

    @abstractmethod
    def set_value(self, key: str, value: str | list[str]) -> None:
        """Persist a single config value.

        Raises:
            ValueError: If `key` is not a recognized config key
        """
        ...

    @abstractmethod
    def path(self) -> Path:
        """Get the path to the global config file (for messages)."""
        ...

    def load_for_repo(self, repo_root: Path | None) -> GitStackConfig:
        """Load the global config overlaid with the repository's settings."""
        config = self.load()
        if repo_root is None:
            return config
        return replace(config, **read_repo_config(repo_root))


class FilesystemConfigStore(ConfigStore):
    """Production implementation that reads/writes ~/.gitstack/config.toml."""

    def __init__(self, config_path: Path | None = None) -> None:
        self._path = config_path if config_path is not None else default_config_path()

    def load(self) -> GitStackConfig:
        """Load global config from the TOML file."""
        if not self._path.exists():
            return GitStackConfig()

        data = tomllib.loads(self._path.read_text(encoding="utf-8"))
        return GitStackConfig(**config_from_mapping(data, str(self._path)))

    def set_value(self, key: str, value: str | list[str]) -> None:
        """Update one key, preserving formatting and comments using tomlkit."""
        if key not in CONFIG_KEYS:
            raise ValueError(f"Unknown config key '{key}'. Valid keys: {', '.join(CONFIG_KEYS)}")

        # Validate before touching the file
        config_from_mapping({key: value}, "value")

        if self._path.exists():
            with self._path.open("r", encoding="utf-8") as f:
                doc = tomlkit.load(f)
        else:
            doc = tomlkit.document()
            doc.add(tomlkit.comment("Global gitstack configuration"))

        doc[key] = value

        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._path.open("w", encoding="utf-8") as f:
            tomlkit.dump(doc, f)

    def path(self) -> Path:
        return self._path


class InMemoryConfigStore(ConfigStore):
    """Test implementation that stores config in memory without touching filesystem."""

    def __init__(self, config: GitStackConfig | None = None) -> None:
        self._config = config if config is not None else GitStackConfig()

    def load(self) -> GitStackConfig:
        return self._config

    def set_value(self, key: str, value: str | list[str]) -> None:
        if key not in CONFIG_KEYS:
            raise ValueError(f"Unknown config key '{key}'. Valid keys: {', '.join(CONFIG_KEYS)}")
        self._config = replace(self._config, **config_from_mapping({key: value}, "value"))

    def path(self) -> Path:
        """Get fake path for error messages."""
        return Path("/fake/gitstack/config.toml")


def default_config_path() -> Path:
    """Get the path to the global config file.

    Returns:
        Path to ~/.gitstack/config.toml
    """
    return Path.home() / ".gitstack" / "config.toml"
