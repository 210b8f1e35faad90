"""Shared test fixtures."""

from pathlib import Path

import pygit2
import pytest

from contrack.storage.db import close_database, get_session, open_database
from contrack.storage.models import Commit, Contribution, Repository

REPO_URL = "https://github.com/acme/widgets"


def make_repository(**overrides):
    """Create a detached Repository record for testing."""
    defaults = {
        "url": REPO_URL,
        "organization": "acme",
        "name": "widgets",
        "description": None,
    }
    defaults.update(overrides)
    return Repository(**defaults)


def make_contribution(**overrides):
    """Create a detached Contribution record for testing."""
    defaults = {
        "id": None,
        "repository_url": REPO_URL,
        "name": "Test Feature",
        "overview": "Test overview",
        "description": "Test description",
        "key_commits": ["abc123"],
        "related_commits": [],
        "technical_details": {},
        "resume_bullets": [],
        "category": "Feature",
        "priority": 5,
    }
    defaults.update(overrides)
    return Contribution(**defaults)


def make_commit(**overrides):
    """Create a detached Commit record for testing."""
    defaults = {
        "hash": "abc123def4567890abc123def4567890abc123de",
        "repository_url": REPO_URL,
        "contribution_id": None,
        "author": "Alice",
        "author_email": "alice@example.com",
        "date": "2026-02-01T12:00:00+00:00",
        "message": "Add widget support\n\nLonger body.",
        "files_changed": ["src/widget.py"],
        "lines_added": 10,
        "lines_deleted": 2,
    }
    defaults.update(overrides)
    return Commit(**defaults)


@pytest.fixture
def db_path(tmp_path, monkeypatch) -> Path:
    """Point contrack at a throwaway database and config file."""
    path = tmp_path / "contributions.db"
    monkeypatch.setenv("CONTRACK_DB_PATH", str(path))
    monkeypatch.setenv("CONTRACK_CONFIG_PATH", str(tmp_path / "config.toml"))
    monkeypatch.setattr("contrack.config._settings", None)
    close_database()
    yield path
    close_database()


@pytest.fixture
def session(db_path):
    """An open session on a freshly created and seeded database."""
    open_database(db_path)
    with get_session() as s:
        yield s


# ---------------------------------------------------------------------------
# git fixtures
# ---------------------------------------------------------------------------

def git_commit(
    repo: pygit2.Repository,
    filename: str,
    content: str,
    message: str,
    author: str = "Alice",
    email: str = "alice@example.com",
    when: int = 1_767_225_600,
) -> str:
    """Write ``filename``, commit it on HEAD and return the full hash."""
    workdir = Path(repo.workdir)
    target = workdir / filename
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(content)
    repo.index.add(filename)
    repo.index.write()
    tree = repo.index.write_tree()
    signature = pygit2.Signature(author, email, when, 0)
    parents = [] if repo.head_is_unborn else [repo.head.target]
    return str(repo.create_commit("HEAD", signature, signature, message, tree, parents))


@pytest.fixture
def git_repo(tmp_path) -> pygit2.Repository:
    """An empty working copy with an ``origin`` remote."""
    repo = pygit2.init_repository(str(tmp_path / "work"))
    repo.remotes.create("origin", REPO_URL)
    return repo
