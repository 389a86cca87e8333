"""Pytest configuration and fixtures for upstream_sync tests."""

import tempfile
from pathlib import Path

import pytest
from git import Repo

from upstream_sync.config import RepoRef, SyncConfig, SyncSettings


def configure_user(repo: Repo) -> None:
    """Configure a git identity so commits can be created."""
    repo.config_writer().set_value("user", "name", "Test User").release()
    repo.config_writer().set_value("user", "email", "test@example.com").release()


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def commit_file():
    """Return a helper writing a file in a repo and committing it."""

    def _commit(repo_path: Path, name: str, content: str, message: str) -> str:
        repo = Repo(repo_path)
        (repo_path / name).write_text(content)
        repo.index.add([name])
        return repo.index.commit(message).hexsha

    return _commit


@pytest.fixture
def git_repo(temp_dir: Path):
    """Create a temporary git repository with one commit on main."""
    repo_path = temp_dir / "repo"
    repo_path.mkdir()

    repo = Repo.init(repo_path)
    configure_user(repo)

    (repo_path / "README.md").write_text("# Repo\n")
    repo.index.add(["README.md"])
    repo.index.commit("Initial commit")
    repo.git.branch("-M", "main")

    yield repo_path


@pytest.fixture
def upstream_repo(temp_dir: Path, commit_file):
    """Create the upstream repository acme/widgets with a short history."""
    repo_path = temp_dir / "acme" / "widgets"
    repo_path.mkdir(parents=True)

    repo = Repo.init(repo_path)
    configure_user(repo)

    commit_file(repo_path, "README.md", "# Widgets\n", "Initial commit")
    repo.git.branch("-M", "main")
    commit_file(repo_path, "widget.py", "WIDGETS = []\n", "Add widget registry")

    yield repo_path


@pytest.fixture
def downstream_origin(temp_dir: Path, upstream_repo: Path):
    """Create corp/widgets, a bare fork of the upstream repository."""
    origin_path = temp_dir / "corp" / "widgets"
    origin_path.parent.mkdir(parents=True)
    Repo.clone_from(str(upstream_repo), str(origin_path), bare=True)
    yield origin_path


@pytest.fixture
def working_repo(temp_dir: Path, downstream_origin: Path):
    """Create a working clone of the downstream fork, as a CI checkout would."""
    repo_path = temp_dir / "work"
    repo = Repo.clone_from(str(downstream_origin), str(repo_path))
    configure_user(repo)
    yield repo_path


@pytest.fixture
def sync_settings(temp_dir: Path):
    """Settings resolving org/repo to the repositories under temp_dir."""
    return SyncSettings(
        workspace=temp_dir / "workspace",
        remote_url_template=str(temp_dir) + "/{org}/{repo}",
    )


@pytest.fixture
def sync_config(sync_settings: SyncSettings):
    """Sync corp/widgets/main from acme/widgets/main."""
    return SyncConfig(
        downstream=RepoRef(org="corp", repo="widgets", branch="main"),
        upstream=RepoRef(org="acme", repo="widgets", branch="main"),
        settings=sync_settings,
    )
