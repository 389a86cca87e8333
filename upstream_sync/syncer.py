"""
Main syncer logic for upstream to downstream synchronization.

This module computes which upstream commits are not yet present downstream,
using provenance annotations in the downstream history, and replays them
with cherry-picks.
"""

from dataclasses import dataclass, field
from typing import Literal

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .commit_log import Workspace, format_annotation, missing, parse_annotations, write_log
from .config import SyncConfig
from .errors import BranchNotFoundError, GitOperationError, MergeConflictError, SyncAborted
from .git_ops import VersionControl
from .prompt import Action, AutomaticPrompter, ConflictAction, Prompter, TerminalPrompter

console = Console()

CommitOutcome = Literal["picked", "skipped", "deferred"]

# Remote name used for the downstream repo in the manual recovery recipe
RECIPE_DOWNSTREAM_REMOTE = "downstream"


@dataclass
class SyncResult:
    """Result of a sync run."""

    missing_downstream: list[str] = field(default_factory=list)
    missing_upstream: list[str] = field(default_factory=list)
    picked: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    deferred: list[str] = field(default_factory=list)
    pushed: bool = False


class CherryPickSyncer:
    """Synchronizes a downstream branch with the commits of an upstream branch."""

    def __init__(
        self,
        config: SyncConfig,
        vcs: VersionControl,
        prompter: Prompter | None = None,
    ):
        """Initialize the syncer with configuration and a version-control backend."""
        self.config = config
        self.vcs = vcs
        if prompter is None:
            prompter = TerminalPrompter(console) if config.interactive else AutomaticPrompter()
        self.prompter = prompter
        self.workspace = Workspace(
            config.settings.workspace, config.upstream.repo, config.downstream.repo
        )

    @property
    def annotation_slug(self) -> str:
        return self.config.upstream.slug

    def setup_remotes(self) -> None:
        """
        Add the upstream remote if needed and fetch both remotes.

        A remote added here is removed again when it cannot be fetched.
        """
        settings = self.config.settings
        added = False
        if not self.vcs.remote_exists(settings.upstream_remote):
            console.print(
                f"🚜 adding {self.config.upstream.slug} remote as {settings.upstream_remote}"
            )
            self.vcs.add_remote(settings.upstream_remote, settings.remote_url(self.config.upstream))
            added = True
        try:
            self.vcs.fetch(settings.upstream_remote)
        except GitOperationError:
            if added:
                console.print(f"[dim]Removing remote {settings.upstream_remote}[/dim]")
                self.vcs.remove_remote(settings.upstream_remote)
            raise
        self.vcs.fetch(settings.downstream_remote)

    def check_branches(self) -> None:
        """
        Verify both branches exist as remote-tracking references.

        Raises:
            BranchNotFoundError: naming the first missing branch
        """
        settings = self.config.settings
        downstream, upstream = self.config.downstream, self.config.upstream
        if not self.vcs.has_remote_branch(settings.downstream_remote, downstream.branch):
            raise BranchNotFoundError(downstream.branch, downstream.slug)
        if not self.vcs.has_remote_branch(settings.upstream_remote, upstream.branch):
            raise BranchNotFoundError(upstream.branch, upstream.slug)

    def upstream_log(self) -> list[str]:
        """Identifiers of the upstream branch history, newest first."""
        console.print(
            f"🔎 calculating list of upstream commits ({self.config.upstream.repo} {self.config.upstream_ref})"
        )
        commits = self.vcs.list_commits(self.config.upstream_ref)
        write_log(self.workspace.upstream_log, commits)
        return commits

    def downstream_log(self) -> list[str]:
        """
        Identifiers of the downstream branch history, newest first.

        A commit carrying provenance annotations for the upstream repo is
        recorded as the upstream commits it references; any other commit is
        recorded as itself. Checks out the downstream branch.
        """
        console.print(f"🔎 calculating list of downstream commits ({self.config.downstream_ref})")
        self.vcs.checkout(self.config.downstream_ref)

        commits = []
        for commit in self.vcs.list_commits(self.config.downstream_ref):
            origins = parse_annotations(self.vcs.commit_message(commit), self.annotation_slug)
            if origins:
                commits.extend(self._normalize(origin) for origin in origins)
            else:
                commits.append(commit)

        write_log(self.workspace.downstream_log, commits)
        return commits

    def _normalize(self, identifier: str) -> str:
        """Expand abbreviated annotation identifiers so they compare exactly."""
        return self.vcs.resolve(identifier) or identifier.lower()

    def compute(self, result: SyncResult) -> None:
        """Fill in the missing sets and write them to the workspace."""
        upstream = self.upstream_log()
        downstream = self.downstream_log()

        result.missing_downstream = missing(upstream, downstream)
        result.missing_upstream = missing(downstream, upstream)
        write_log(self.workspace.missing_downstream, result.missing_downstream)
        write_log(self.workspace.missing_upstream, result.missing_upstream)

    def run(self) -> SyncResult:
        """
        Perform the synchronization.

        Returns:
            SyncResult with the missing sets and what happened to each commit

        Raises:
            BranchNotFoundError: if a branch is missing from the remotes
            SyncAborted: if the operator quits or a conflict needs a manual fix
            GitOperationError: if fetching, checking out or pushing fails
        """
        result = SyncResult()

        if self.config.force:
            for path in self.workspace.clear():
                console.print(f"[dim]Removed {path}[/dim]")

        self.setup_remotes()
        self.check_branches()
        self.compute(result)

        if result.missing_upstream:
            console.print(
                f"INFO: there are {len(result.missing_upstream)} commits diverged downstream "
                "- just an info, no action required"
            )

        if not result.missing_downstream:
            console.print("[green]🍒 no upstream commits missing from downstream repo.[/green]")
            return result

        console.print(f"INFO: there are {len(result.missing_downstream)} commits missing downstream.")
        # Missing commits keep upstream order (newest first); replay oldest first
        pending = list(reversed(result.missing_downstream))

        if not self.config.cherry_pick:
            self.print_pending(pending)
            return result

        console.print("INFO: I'll attempt to cherry-pick and sync. Keep tight!")
        for commit in pending:
            outcome = self.process_commit(commit)
            getattr(result, outcome).append(commit)

        if self.config.push and (result.picked or result.skipped):
            console.print(f"[bold]Pushing to {self.config.downstream_ref}...[/bold]")
            self.vcs.push(self.config.settings.downstream_remote, self.config.downstream.branch)
            result.pushed = True

        self._print_summary(result)
        return result

    def print_pending(self, pending: list[str]) -> None:
        """Show the commits not yet ported, oldest first."""
        table = Table(title="🍒 Commits not yet ported to downstream repo (sorted by time)")
        table.add_column("Commit", style="cyan", no_wrap=True)
        table.add_column("Title", style="white")
        for commit in pending:
            title = self.vcs.commit_title(commit)
            table.add_row(commit, escape(title))
        console.print(table)

    def process_commit(self, commit: str) -> CommitOutcome:
        """
        Run the cherry-pick procedure for one upstream commit.

        Raises:
            SyncAborted: on quit, or on a conflict that needs a manual fix
        """
        if self.config.interactive:
            console.print(escape(self.vcs.describe(commit)), highlight=False)
            console.print()

        action = self.prompter.choose_action(commit)
        if action is Action.QUIT:
            raise SyncAborted(f"process stopped by the operator at {commit}")
        if action is Action.DEFER:
            console.print(f"[dim]Skipping {commit} for later[/dim]")
            return "deferred"
        if action is Action.SKIP:
            self.record_skip(commit)
            return "skipped"

        console.print(f"🍒 cherry-picking {commit}")
        try:
            self.vcs.cherry_pick(commit)
        except MergeConflictError:
            return self._handle_conflict(commit)

        message = self.vcs.head_message().rstrip("\n")
        self.vcs.amend(f"{message}\n\n{format_annotation(self.annotation_slug, commit)}")
        return "picked"

    def _handle_conflict(self, commit: str) -> CommitOutcome:
        if self.config.interactive:
            console.print("[red]Cannot merge... we have a conflict :([/red]")

        choice = self.prompter.choose_conflict_action(commit)
        if choice is ConflictAction.MANUAL_FIX:
            console.print(
                f"[red]❗ Some conflict detected on commit {commit}. Sorry, I cannot do much more, "
                "please rerun with -i/--interactive or fix it manually.[/red]"
            )
            console.print(self.manual_fix_recipe(commit), markup=False, highlight=False, soft_wrap=True)
            raise SyncAborted(f"conflict on {commit} requires a manual fix")

        self.vcs.abort_cherry_pick()
        if choice is ConflictAction.ABORT_SKIP:
            self.record_skip(commit)
            return "skipped"
        console.print(f"[dim]Skipping {commit} for later[/dim]")
        return "deferred"

    def record_skip(self, commit: str) -> str:
        """Create an empty commit marking an upstream commit as handled."""
        title = self.vcs.commit_title(commit)
        message = f"skipped: {title}\n\n{format_annotation(self.annotation_slug, commit)}"
        console.print(f"[yellow]Skipping {commit} definitely[/yellow]")
        return self.vcs.commit(message, allow_empty=True)

    def manual_fix_recipe(self, commit: str) -> str:
        """Step-by-step instructions to port a conflicting commit by hand."""
        upstream, downstream = self.config.upstream, self.config.downstream
        settings = self.config.settings
        remote = RECIPE_DOWNSTREAM_REMOTE
        annotation = format_annotation(upstream.slug, commit)
        generic = format_annotation(upstream.slug, "commit-hash")
        return "\n".join(
            [
                "Here a suggestion to help you fix the problem:",
                "",
                f"  git clone {settings.remote_url(upstream)}",
                f"  cd {upstream.repo}",
                f"  git remote add -f {remote} {settings.remote_url(downstream)}",
                f"  git checkout {remote}/{downstream.branch}",
                f"  git cherry-pick {commit}",
                "  # FIX the conflict manually",
                "  git cherry-pick --continue",
                f'  git commit --amend -m "$(git log --format=%B -n1)" -m "Conflict fixed manually" -m "{annotation}"',
                f"  git push {remote} HEAD:{downstream.branch}",
                "",
                "Notice that you must report the fixed resolution in a downstream commit "
                f'appending the following message line: "{annotation}"',
                "",
                f'NOTE: you may even provide a single empty commit adding the line "{generic}" '
                "for each upstream commit manually fixed in the downstream repo. This last strategy "
                "can be used also as a workaround in the rare case you need to skip some commit "
                "from the synchronization process.",
            ]
        )

    def _print_summary(self, result: SyncResult) -> None:
        """Print sync summary."""
        console.print("\n[bold]Sync Summary:[/bold]")
        console.print(f"  [green]✓ Cherry-picked {len(result.picked)} commits[/green]")
        if result.skipped:
            console.print(f"  [yellow]Skipped: {len(result.skipped)}[/yellow]")
        if result.deferred:
            console.print(f"  [yellow]Left for later: {len(result.deferred)}[/yellow]")
        if result.pushed:
            console.print(f"  Pushed to {self.config.downstream_ref}")
