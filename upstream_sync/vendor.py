"""
Vendor directory refresh.

Regenerates the vendored dependencies of a Go module, runs the code
generators against them and commits the result when anything changed.
"""

import subprocess
from collections.abc import Callable
from pathlib import Path

from rich.console import Console

from .errors import CommandError, ConfigurationError, PreconditionError
from .git_ops import GitRepository

console = Console()

VENDOR_COMMIT_MESSAGE = "Vendor directory refresh"
VENDOR_COMMAND = ["go", "mod", "vendor"]
GENERATE_COMMAND = ["go", "generate", "-mod=vendor"]

CommandRunner = Callable[[list[str], Path], None]


def run_command(args: list[str], cwd: Path) -> None:
    """
    Run an external command in ``cwd``, streaming its output.

    Raises:
        PreconditionError: if the program is not installed
        CommandError: if it exits with a non-zero status
    """
    try:
        completed = subprocess.run(args, cwd=cwd, check=False)
    except FileNotFoundError as e:
        raise PreconditionError(f"'{args[0]}' is not installed or not on PATH") from e
    if completed.returncode != 0:
        raise CommandError(args, completed.returncode)


def validate_source_path(source_path: str | None) -> str:
    """Reject an empty source path before anything touches the repository."""
    if not source_path or not source_path.strip():
        raise ConfigurationError(
            "Please, provide a directory where your Go source code is stored, ie ./pkg/..."
        )
    return source_path.strip()


class VendorRefresher:
    """Refreshes the vendor directory of a repository and commits changes."""

    def __init__(
        self,
        repo: GitRepository,
        source_path: str,
        runner: CommandRunner | None = None,
        vendor_command: list[str] | None = None,
        generate_command: list[str] | None = None,
    ):
        self.repo = repo
        self.source_path = validate_source_path(source_path)
        self.runner = runner or run_command
        self.vendor_command = vendor_command or list(VENDOR_COMMAND)
        self.generate_command = generate_command or list(GENERATE_COMMAND)

    def refresh(self) -> str | None:
        """
        Vendor, generate, stage everything and commit if the tree changed.

        Returns:
            The new commit hash, or None when nothing changed
        """
        console.print("🔄 refreshing vendor directory")
        self.runner(self.vendor_command, self.repo.path)
        self.runner([*self.generate_command, self.source_path], self.repo.path)

        self.repo.stage_all()
        if not self.repo.has_staged_changes():
            console.print("[green]Vendor directory is up to date.[/green]")
            return None

        new_hash = self.repo.commit(VENDOR_COMMIT_MESSAGE)
        console.print(f"[green]✓ Created commit {new_hash[:8]}[/green]")
        return new_hash
