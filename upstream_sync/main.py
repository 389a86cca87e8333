"""
CLI entry points for upstream_sync.

Provides ``sync-cherry-pick`` to port upstream commits to a downstream
branch, and ``sync-vendor`` to refresh a vendored dependency directory.
"""

from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape

from .config import create_sync_config
from .errors import SyncError
from .git_ops import GitRepository
from .syncer import CherryPickSyncer
from .vendor import VendorRefresher, validate_source_path

console = Console()

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


def fail(error: SyncError) -> None:
    """Report an error and exit with its code."""
    console.print(f"[red]❗ {escape(str(error))}[/red]")
    raise SystemExit(error.exit_code)


@click.command(context_settings=CONTEXT_SETTINGS)
@click.version_option(package_name="upstream-sync")
@click.argument("downstream", metavar="<downstream_org/repo/branch>")
@click.option(
    "--upstream",
    "-u",
    required=True,
    metavar="<org/repo/branch>",
    help="Upstream org/repository/branch from where to sync",
)
@click.option(
    "--no-cherry-pick",
    is_flag=True,
    help="Don't cherry pick the commits (will list them only)",
)
@click.option(
    "--interactive",
    "-i",
    is_flag=True,
    help="Enable cherry pick interactive mode (useful to run from a local machine)",
)
@click.option(
    "--force",
    "-f",
    is_flag=True,
    help="Clean any support files previously created",
)
@click.option(
    "--push",
    is_flag=True,
    help="Push the downstream branch after cherry-picking",
)
@click.option(
    "--workspace",
    "-w",
    type=click.Path(file_okay=False, dir_okay=True, path_type=Path),
    default=None,
    help="Directory for support files (defaults to the system temp dir)",
)
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML file with remote names, URL template and workspace",
)
def sync_cherry_pick(
    downstream: str,
    upstream: str,
    no_cherry_pick: bool,
    interactive: bool,
    force: bool,
    push: bool,
    workspace: Path | None,
    config_path: Path | None,
):
    """Synchronize a (downstream) GIT repository with changes performed in another (upstream) GIT repository."""
    try:
        config = create_sync_config(
            downstream=downstream,
            upstream=upstream,
            cherry_pick=not no_cherry_pick,
            interactive=interactive,
            force=force,
            push=push,
            settings_path=config_path,
            workspace=workspace,
        )
        repo = GitRepository(Path.cwd())
        CherryPickSyncer(config, repo).run()
    except SyncError as e:
        fail(e)


@click.command(context_settings=CONTEXT_SETTINGS)
@click.version_option(package_name="upstream-sync")
@click.argument("source_path")
def sync_vendor(source_path: str):
    """Refresh the vendor directory for SOURCE_PATH (ie ./pkg/...) and commit any change."""
    try:
        source_path = validate_source_path(source_path)
        repo = GitRepository(Path.cwd())
        VendorRefresher(repo, source_path).refresh()
    except SyncError as e:
        fail(e)


if __name__ == "__main__":
    sync_cherry_pick()
