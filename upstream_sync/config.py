"""
Configuration handling for upstream_sync.

Defines the repository triple parsed from the command line, the tunable
settings that can be loaded from a YAML file, and the immutable configuration
handed to the syncer.
"""

import tempfile
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ConfigurationError


DEFAULT_REMOTE_URL_TEMPLATE = "https://github.com/{org}/{repo}.git"


class RepoRef(BaseModel):
    """An org/repo/branch triple identifying a branch of a hosted repository."""

    model_config = ConfigDict(frozen=True)

    org: str = Field(..., min_length=1, description="Organization owning the repository")
    repo: str = Field(..., min_length=1, description="Repository name")
    branch: str = Field(..., min_length=1, description="Branch name")

    @classmethod
    def parse(cls, value: str | None, option: str = "org/repo/branch") -> "RepoRef":
        """
        Parse an ``org/repo/branch`` string.

        The branch keeps any further slashes (``acme/widgets/release/1.0``).

        Raises:
            ConfigurationError: if any of the three segments is missing or empty
        """
        parts = (value or "").strip().split("/", 2)
        if len(parts) != 3 or not all(parts):
            raise ConfigurationError(
                f"you must provide {option} as <org/repo/branch>, got {value!r}"
            )
        org, repo, branch = parts
        return cls(org=org, repo=repo, branch=branch)

    @property
    def slug(self) -> str:
        """The ``org/repo`` part, as used in provenance annotations."""
        return f"{self.org}/{self.repo}"

    def __str__(self) -> str:
        return f"{self.org}/{self.repo}/{self.branch}"


class SyncSettings(BaseModel):
    """Tunables for the sync orchestrator, optionally loaded from YAML."""

    # Directory holding the commit logs and missing-set files
    workspace: Path = Field(
        default_factory=lambda: Path(tempfile.gettempdir()),
        description="Directory where commit logs and missing-set files are written",
    )
    upstream_remote: str = Field(
        default="upstream", description="Git remote name used for the upstream repo"
    )
    downstream_remote: str = Field(
        default="origin", description="Git remote name of the downstream repo"
    )
    # Formatted with org and repo to build the upstream remote URL
    remote_url_template: str = Field(
        default=DEFAULT_REMOTE_URL_TEMPLATE,
        description="Template for remote URLs, formatted with {org} and {repo}",
    )

    def remote_url(self, ref: RepoRef) -> str:
        """Build the remote URL for a repository."""
        return self.remote_url_template.format(org=ref.org, repo=ref.repo)

    @classmethod
    def from_yaml(cls, path: Path) -> "SyncSettings":
        """Load settings from a YAML file."""
        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
            return cls.model_validate(data)
        except (OSError, yaml.YAMLError, ValidationError) as e:
            raise ConfigurationError(f"cannot load settings from {path}: {e}") from e

    def to_yaml(self, path: Path) -> None:
        """Save settings to a YAML file."""
        with open(path, "w") as f:
            yaml.dump(
                self.model_dump(mode="json"),
                f,
                default_flow_style=False,
                sort_keys=False,
            )


class SyncConfig(BaseModel):
    """Immutable configuration for one sync run."""

    model_config = ConfigDict(frozen=True)

    downstream: RepoRef = Field(..., description="Repository/branch receiving changes")
    upstream: RepoRef = Field(..., description="Repository/branch changes come from")

    cherry_pick: bool = Field(
        default=True, description="Replay missing commits (otherwise only list them)"
    )
    interactive: bool = Field(
        default=False, description="Ask the operator what to do with each commit"
    )
    force: bool = Field(
        default=False, description="Remove support files from previous runs first"
    )
    push: bool = Field(
        default=False, description="Push the downstream branch after replaying"
    )

    settings: SyncSettings = Field(default_factory=SyncSettings)

    @property
    def upstream_ref(self) -> str:
        """Remote-tracking ref of the upstream branch."""
        return f"{self.settings.upstream_remote}/{self.upstream.branch}"

    @property
    def downstream_ref(self) -> str:
        """Remote-tracking ref of the downstream branch."""
        return f"{self.settings.downstream_remote}/{self.downstream.branch}"


def create_sync_config(
    downstream: str,
    upstream: str | None,
    cherry_pick: bool = True,
    interactive: bool = False,
    force: bool = False,
    push: bool = False,
    settings_path: Path | None = None,
    workspace: Path | None = None,
) -> SyncConfig:
    """
    Build the run configuration from command-line values.

    Both triples are validated before anything else happens, so a malformed
    value never reaches git.
    """
    downstream_ref = RepoRef.parse(downstream, "a downstream configuration")
    upstream_ref = RepoRef.parse(upstream, "an upstream repo as -u")

    settings = SyncSettings.from_yaml(settings_path) if settings_path else SyncSettings()
    if workspace is not None:
        settings = settings.model_copy(update={"workspace": workspace})

    return SyncConfig(
        downstream=downstream_ref,
        upstream=upstream_ref,
        cherry_pick=cherry_pick,
        interactive=interactive,
        force=force,
        push=push,
        settings=settings,
    )
