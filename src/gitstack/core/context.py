"""Application context with dependency injection."""

from dataclasses import dataclass
from pathlib import Path

from gitstack.core.config_store import ConfigStore, FilesystemConfigStore, GitStackConfig
from gitstack.core.git.abc import Git
from gitstack.core.git.real import RealGit
from gitstack.core.metadata.abc import MetadataStore
from gitstack.core.metadata.toml_store import TomlMetadataStore
from gitstack.core.repo_discovery import NoRepoSentinel, RepoContext, discover_repo_or_sentinel
from gitstack.core.user_feedback import ConsoleFeedback, UserFeedback


@dataclass(frozen=True)
class GitStackContext:
    """Immutable context holding all dependencies for gitstack operations.

    Created at CLI entry point and threaded through the application.
    Frozen to prevent accidental modification at runtime.

    Note: metadata is None when running outside a repository. Commands that
    need it check ctx.repo for NoRepoSentinel first.
    """

    git: Git
    metadata: MetadataStore | None
    config_store: ConfigStore
    config: GitStackConfig
    feedback: UserFeedback
    cwd: Path  # Current working directory at CLI invocation
    repo: RepoContext | NoRepoSentinel

    @property
    def repo_root(self) -> Path:
        """Repository root, falling back to cwd outside a repository."""
        if isinstance(self.repo, NoRepoSentinel):
            return self.cwd
        return self.repo.root

    @staticmethod
    def for_test(
        git: Git | None = None,
        metadata: MetadataStore | None = None,
        config_store: ConfigStore | None = None,
        config: GitStackConfig | None = None,
        feedback: UserFeedback | None = None,
        cwd: Path | None = None,
        repo: RepoContext | NoRepoSentinel | None = None,
    ) -> "GitStackContext":
        """Create test context with optional pre-configured integration classes.

        Args:
            git: Optional Git implementation. If None, creates FakeGit.
            metadata: Optional MetadataStore. If None, creates empty InMemoryMetadataStore.
            config_store: Optional ConfigStore. If None, creates InMemoryConfigStore.
            config: Optional config. If None, loads it from config_store.
            feedback: Optional UserFeedback. If None, creates FakeUserFeedback.
            cwd: Optional current working directory. If None, uses Path("/test/repo").
            repo: Optional RepoContext or NoRepoSentinel. If None, builds a
                RepoContext rooted at cwd.

        Returns:
            GitStackContext configured with provided values and test defaults

        Example:
            >>> git = FakeGit(current_branch="main")
            >>> ctx = GitStackContext.for_test(git=git)
        """
        from tests.fakes.git import FakeGit
        from tests.fakes.user_feedback import FakeUserFeedback

        from gitstack.core.config_store import InMemoryConfigStore
        from gitstack.core.metadata.memory import InMemoryMetadataStore

        if git is None:
            git = FakeGit()

        if metadata is None:
            metadata = InMemoryMetadataStore()

        if config_store is None:
            config_store = InMemoryConfigStore()

        if config is None:
            config = config_store.load()

        if feedback is None:
            feedback = FakeUserFeedback()

        if cwd is None:
            cwd = Path("/test/repo")

        if repo is None:
            repo = RepoContext(
                root=cwd,
                git_common_dir=cwd / ".git",
                metadata_path=cwd / ".git" / "gitstack" / "branches.toml",
            )

        return GitStackContext(
            git=git,
            metadata=metadata,
            config_store=config_store,
            config=config,
            feedback=feedback,
            cwd=cwd,
            repo=repo,
        )


def create_context(*, quiet: bool = False) -> GitStackContext:
    """Create production context with real implementations.

    Called at CLI entry point to create the context for the entire
    command execution.

    Args:
        quiet: If True, suppress informational output (errors still shown)

    Returns:
        GitStackContext with real implementations
    """
    # 1. Capture cwd (no deps)
    cwd = Path.cwd()

    # 2. Discover repo (only needs cwd and git)
    git: Git = RealGit()
    repo = discover_repo_or_sentinel(cwd, git)

    # 3. Load config, overlaying repo settings when inside a repo
    config_store: ConfigStore = FilesystemConfigStore()
    repo_root = None if isinstance(repo, NoRepoSentinel) else repo.root
    config = config_store.load_for_repo(repo_root)

    # 4. Metadata store lives in the common git dir
    metadata: MetadataStore | None = None
    if isinstance(repo, RepoContext):
        metadata = TomlMetadataStore(repo.metadata_path)

    feedback: UserFeedback = ConsoleFeedback(quiet=quiet)

    return GitStackContext(
        git=git,
        metadata=metadata,
        config_store=config_store,
        config=config,
        feedback=feedback,
        cwd=cwd,
        repo=repo,
    )
