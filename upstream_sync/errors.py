"""
Exception types for upstream_sync.

Every error carries the process exit code the command-line tools use when
the error reaches them.
"""


class SyncError(Exception):
    """Base class for all upstream_sync errors."""

    exit_code = 1


class ConfigurationError(SyncError):
    """Invalid arguments or settings, detected before any side effect."""

    exit_code = 1


class PreconditionError(SyncError):
    """The environment is not fit to run in (not a repo root, missing tool)."""

    exit_code = 3


class BranchNotFoundError(PreconditionError):
    """A branch is missing from the remote-tracking references."""

    exit_code = 4

    def __init__(self, branch: str, repository: str):
        self.branch = branch
        self.repository = repository
        super().__init__(
            f"the {branch} branch does not exist on {repository} repository. "
            "Make sure the branch exists before retrying the synchronization process."
        )


class MergeConflictError(SyncError):
    """A cherry-pick could not be applied cleanly."""

    def __init__(self, commit: str, details: str = ""):
        self.commit = commit
        self.details = details
        super().__init__(f"cannot cherry-pick {commit}: {details or 'conflict'}")


class SyncAborted(SyncError):
    """The synchronization was stopped (operator quit or manual fix required)."""


class CommandError(SyncError):
    """An external command exited with a non-zero status."""

    def __init__(self, command: list[str], returncode: int):
        self.command = command
        self.returncode = returncode
        super().__init__(f"'{' '.join(command)}' failed with exit code {returncode}")


class GitOperationError(SyncError):
    """A git command outside the cherry-pick procedure failed."""

    def __init__(self, operation: str, details: str = ""):
        self.operation = operation
        self.details = details
        super().__init__(f"cannot {operation}: {details or 'git failed'}")
