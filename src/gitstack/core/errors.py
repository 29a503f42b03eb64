"""Error types raised by gitstack core operations.

GitStackError and its subclasses are ordinary failures: the command layer
prints them with an "Error:" prefix and exits 1.

ExitSilently is deliberately NOT a GitStackError. It signals a refusal that the
command layer reports in its own words and turns into a specific exit status.
"""


class GitStackError(Exception):
    """Base class for all gitstack failures."""


class InvalidRenameArgumentError(GitStackError):
    """The rename argument is malformed or names the same branch twice."""


class BranchAlreadyExistsError(GitStackError):
    """A metadata record already exists under the requested name."""


class DefaultBranchNotFoundError(GitStackError):
    """The repository's default (trunk) branch could not be determined."""


class ParentNotAdoptedError(GitStackError):
    """The requested parent is neither a trunk branch nor a tracked branch."""

    def __init__(self, parent: str) -> None:
        super().__init__(
            f"parent branch '{parent}' is not adopted by gitstack; "
            "a stacked branch can only be created on trunk or another tracked branch"
        )
        self.parent = parent


class BranchOperationError(GitStackError):
    """A git or metadata operation failed; the cause is chained."""


class BranchCycleError(GitStackError):
    """Following parent links from a branch loops back on itself."""

    def __init__(self, path: list[str]) -> None:
        super().__init__("branch parents form a cycle: " + " -> ".join(path))
        self.path = path


class TransactionClosedError(GitStackError):
    """A write transaction was used after commit or abort."""


class MetadataFormatError(GitStackError):
    """The persisted metadata file cannot be understood."""


class ExitSilently(Exception):
    """Request a specific process exit status without a generic error message.

    Only the outermost command boundary handles this. The code raising it is
    responsible for any message the user should see.
    """

    def __init__(self, exit_code: int, message: str = "") -> None:
        super().__init__(message or f"exit status {exit_code}")
        self.exit_code = exit_code


class OrphanedPullRequestError(ExitSilently):
    """Renaming the branch would detach it from its open pull request."""

    EXIT_CODE = 127

    def __init__(self, branch: str, pr_number: int) -> None:
        super().__init__(
            self.EXIT_CODE,
            f"Cannot rename branch {branch}: pull request #{pr_number} would be orphaned.",
        )
        self.branch = branch
        self.pr_number = pr_number
