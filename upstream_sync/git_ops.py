"""
Git operations for the syncer.

Provides the narrow version-control interface the sync workflow depends on,
and its implementation on top of GitPython.
"""

import re
from pathlib import Path
from typing import Protocol

from git import Repo
from git.exc import GitCommandError, InvalidGitRepositoryError, NoSuchPathError

from .errors import GitOperationError, MergeConflictError, PreconditionError


HEX_IDENTIFIER = re.compile(r"[0-9a-fA-F]{4,40}")


def error_details(error: GitCommandError) -> str:
    """git's own error output, without GitPython's ``stderr: '...'`` wrapper."""
    details = error.stderr.strip() if isinstance(error.stderr, str) else ""
    prefix = "stderr: '"
    if details.startswith(prefix) and details.endswith("'"):
        details = details[len(prefix) : -1]
    return details.strip()


class VersionControl(Protocol):
    """The version-control capabilities used by the sync workflow."""

    def remote_exists(self, name: str) -> bool: ...

    def add_remote(self, name: str, url: str) -> None: ...

    def remove_remote(self, name: str) -> None: ...

    def fetch(self, remote: str) -> None: ...

    def has_remote_branch(self, remote: str, branch: str) -> bool: ...

    def checkout(self, ref: str) -> None: ...

    def list_commits(self, ref: str) -> list[str]: ...

    def commit_message(self, commit: str) -> str: ...

    def commit_title(self, commit: str) -> str: ...

    def resolve(self, identifier: str) -> str | None: ...

    def describe(self, commit: str) -> str: ...

    def cherry_pick(self, commit: str) -> None: ...

    def abort_cherry_pick(self) -> None: ...

    def commit(self, message: str, allow_empty: bool = False) -> str: ...

    def head_message(self) -> str: ...

    def amend(self, message: str) -> str: ...

    def push(self, remote: str, branch: str) -> None: ...


class GitRepository:
    """Wrapper around a git repository for sync operations."""

    def __init__(self, path: Path):
        """Initialize repository wrapper; ``path`` must be the repository root."""
        self.path = Path(path).resolve()
        try:
            self.repo = Repo(self.path)
        except (InvalidGitRepositoryError, NoSuchPathError) as e:
            raise PreconditionError(
                f"Not a GIT repo or not in the parent directory of the project: {self.path}. "
                "Make sure to run a checkout before running this action."
            ) from e

    def get_current_commit(self) -> str:
        """Get the current HEAD commit hash."""
        return self.repo.head.commit.hexsha

    def remote_exists(self, name: str) -> bool:
        return name in [remote.name for remote in self.repo.remotes]

    def add_remote(self, name: str, url: str) -> None:
        try:
            self.repo.create_remote(name, url)
        except GitCommandError as e:
            raise GitOperationError(f"add remote {name}", error_details(e)) from e

    def remove_remote(self, name: str) -> None:
        self.repo.delete_remote(name)

    def fetch(self, remote: str) -> None:
        """Fetch from remote."""
        try:
            self.repo.remote(remote).fetch()
        except GitCommandError as e:
            raise GitOperationError(f"fetch {remote}", error_details(e)) from e

    def has_remote_branch(self, remote: str, branch: str) -> bool:
        """Check whether ``remote/branch`` exists as a remote-tracking reference."""
        try:
            self.repo.git.rev_parse("--verify", "--quiet", f"refs/remotes/{remote}/{branch}")
            return True
        except GitCommandError:
            return False

    def checkout(self, ref: str) -> None:
        try:
            self.repo.git.checkout(ref)
        except GitCommandError as e:
            raise GitOperationError(f"check out {ref}", error_details(e)) from e

    def list_commits(self, ref: str) -> list[str]:
        """
        List the full identifiers of all commits reachable from ``ref``.

        Newest first, and a commit is always listed before its parents.
        """
        return [commit.hexsha for commit in self.repo.iter_commits(ref, topo_order=True)]

    def commit_message(self, commit: str) -> str:
        return self.repo.commit(commit).message

    def commit_title(self, commit: str) -> str:
        """Subject line of a commit: its first paragraph joined into one line."""
        return self.repo.git.show("-s", "--format=%s", commit)

    def resolve(self, identifier: str) -> str | None:
        """
        Expand a possibly abbreviated identifier to the full commit hash.

        Returns None when the identifier is not hexadecimal, unknown to this
        repository, or ambiguous.
        """
        if not HEX_IDENTIFIER.fullmatch(identifier):
            return None
        try:
            return self.repo.git.rev_parse("--verify", "--quiet", f"{identifier}^{{commit}}")
        except GitCommandError:
            return None

    def describe(self, commit: str) -> str:
        """Header and message of a commit, as ``git show -s`` prints it."""
        return self.repo.git.show(commit, "-s")

    def cherry_pick(self, commit: str) -> None:
        """
        Apply a commit on top of HEAD.

        Commits whose changes are already present are kept as empty commits
        so they can still be annotated. Merge commits are applied as their
        diff against the first parent, the branch they were merged into.

        Raises:
            MergeConflictError: if git cannot apply the commit
        """
        args = ["--keep-redundant-commits"]
        if len(self.repo.commit(commit).parents) > 1:
            args += ["-m", "1"]
        try:
            self.repo.git.cherry_pick(*args, commit)
        except GitCommandError as e:
            raise MergeConflictError(commit, error_details(e)) from e

    def cherry_pick_in_progress(self) -> bool:
        return (Path(self.repo.git_dir) / "CHERRY_PICK_HEAD").exists()

    def abort_cherry_pick(self) -> None:
        """
        Abort the cherry-pick in progress.

        Does nothing when git stopped before starting one, for instance when
        untracked files would have been overwritten.
        """
        if not self.cherry_pick_in_progress():
            return
        self.repo.git.cherry_pick("--abort")

    def commit(self, message: str, allow_empty: bool = False) -> str:
        """Create a commit with the staged changes and return its hash."""
        cmd_args = ["-m", message]
        if allow_empty:
            cmd_args.insert(0, "--allow-empty")
        self.repo.git.commit(*cmd_args)
        return self.get_current_commit()

    def head_message(self) -> str:
        return self.repo.head.commit.message

    def amend(self, message: str) -> str:
        """Replace the message of the HEAD commit and return the new hash."""
        self.repo.git.commit("--amend", "--allow-empty", "-m", message)
        return self.get_current_commit()

    def push(self, remote: str, branch: str) -> None:
        """Push HEAD to ``branch`` on ``remote``."""
        try:
            self.repo.git.push(remote, f"HEAD:refs/heads/{branch}")
        except GitCommandError as e:
            raise GitOperationError(f"push to {remote}/{branch}", error_details(e)) from e

    def stage_all(self) -> None:
        """Stage every change in the working tree, including deletions."""
        self.repo.git.add("--all")

    def has_staged_changes(self) -> bool:
        """Check if the index differs from HEAD."""
        if not self.repo.head.is_valid():
            # No commit yet: anything in the index is a change
            return len(self.repo.index.entries) > 0
        return len(self.repo.index.diff("HEAD")) > 0
