"""Tests for git history extraction (src: contrack/processing/history.py)."""

from pathlib import Path

import pygit2
import pytest

from contrack.exceptions import ExternalToolError, NotFoundError
from contrack.processing.history import (
    UNKNOWN_REMOTE,
    extract_commits,
    get_commit_details,
    remote_url,
)
from tests.conftest import REPO_URL, git_commit


@pytest.fixture
def two_commits(git_repo):
    first = git_commit(git_repo, "a.txt", "one\n", "Initial commit")
    second = git_commit(
        git_repo,
        "a.txt",
        "uno\ntwo\n",
        "Rework a.txt\n\nReplace one and add two.",
        author="Bob",
        email="bob@example.com",
        when=1_767_312_000,
    )
    return git_repo, first, second


class TestExtractCommits:
    def test_every_commit_once(self, two_commits):
        repo, first, second = two_commits
        commits = extract_commits(repo.workdir)
        assert sorted(c.hash for c in commits) == sorted([first, second])

    def test_fields(self, two_commits):
        repo, _, second = two_commits
        by_hash = {c.hash: c for c in extract_commits(repo.workdir)}
        c = by_hash[second]

        assert c.repository_url == REPO_URL
        assert c.author == "Bob"
        assert c.author_email == "bob@example.com"
        assert c.date == "2026-01-02T00:00:00+00:00"
        assert c.message.startswith("Rework a.txt")
        assert c.summary == "Rework a.txt"
        assert c.contribution_id is None

    def test_diff_stats_against_parent(self, two_commits):
        repo, _, second = two_commits
        c = {c.hash: c for c in extract_commits(repo.workdir)}[second]

        assert c.files_changed == ["a.txt"]
        assert c.lines_added == 2
        assert c.lines_deleted == 1

    def test_root_commit_has_no_stats(self, two_commits):
        repo, first, _ = two_commits
        c = {c.hash: c for c in extract_commits(repo.workdir)}[first]

        assert c.files_changed == []
        assert c.lines_added is None
        assert c.lines_deleted is None

    def test_missing_path(self, tmp_path):
        with pytest.raises(ExternalToolError) as exc:
            extract_commits(tmp_path / "nope")
        assert "nope" in str(exc.value)

    def test_plain_directory_inside_working_copy(self, two_commits):
        repo, _, _ = two_commits
        plain = Path(repo.workdir) / "plain"
        plain.mkdir()
        with pytest.raises(ExternalToolError):
            extract_commits(plain)

    def test_repository_without_commits(self, git_repo):
        with pytest.raises(ExternalToolError):
            extract_commits(git_repo.workdir)


class TestRemoteUrl:
    def test_origin(self, git_repo):
        assert remote_url(git_repo) == REPO_URL

    def test_no_origin(self, tmp_path):
        repo = pygit2.init_repository(str(tmp_path / "bare-remote"))
        assert remote_url(repo) == UNKNOWN_REMOTE

    def test_unknown_remote_flows_into_commits(self, tmp_path):
        repo = pygit2.init_repository(str(tmp_path / "no-origin"))
        git_commit(repo, "x.txt", "x\n", "Only commit")
        [commit] = extract_commits(repo.workdir)
        assert commit.repository_url == UNKNOWN_REMOTE


class TestGetCommitDetails:
    def test_abbreviated_hash(self, two_commits):
        repo, _, second = two_commits
        c = get_commit_details(second[:10], repo.workdir)
        assert c.hash == second
        assert c.author == "Bob"

    def test_unknown_hash(self, two_commits):
        repo, _, _ = two_commits
        with pytest.raises(NotFoundError):
            get_commit_details("not-a-commit", repo.workdir)
