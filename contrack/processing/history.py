"""Commit history extraction from a local git working copy."""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import pygit2
from pygit2.enums import RepositoryOpenFlag

from contrack.exceptions import ExternalToolError, NotFoundError
from contrack.storage.models import Commit

logger = logging.getLogger(__name__)

UNKNOWN_AUTHOR = "Unknown"
UNKNOWN_EMAIL = "unknown@example.com"
UNKNOWN_REMOTE = "unknown"


def open_repository(repo_path: Path) -> pygit2.Repository:
    path = Path(repo_path)
    if not path.exists():
        raise ExternalToolError(str(path), "path does not exist")
    try:
        # The path itself must be the working copy; parents are not searched
        return pygit2.Repository(str(path), flags=RepositoryOpenFlag.NO_SEARCH)
    except (pygit2.GitError, KeyError) as e:
        raise ExternalToolError(str(path), f"not a git repository ({e})") from e


def remote_url(repo: pygit2.Repository) -> str:
    """URL of the ``origin`` remote, or ``"unknown"``."""
    try:
        url = repo.remotes["origin"].url
    except (KeyError, ValueError):
        return UNKNOWN_REMOTE
    return url or UNKNOWN_REMOTE


def _iso_utc(seconds: int) -> str:
    return datetime.fromtimestamp(seconds, tz=timezone.utc).isoformat()


def _diff_stats(commit: pygit2.Commit) -> tuple[Optional[int], Optional[int], list[str]]:
    """Added/deleted line counts and new-side paths against the first parent.

    Root commits have no parent diff: (None, None, []).
    """
    if not commit.parents:
        return None, None, []
    parent = commit.parents[0]
    diff = parent.tree.diff_to_tree(commit.tree)
    files = [delta.new_file.path for delta in diff.deltas]
    stats = diff.stats
    return stats.insertions, stats.deletions, files


def _to_record(commit: pygit2.Commit, repository_url: str) -> Commit:
    lines_added, lines_deleted, files = _diff_stats(commit)
    return Commit(
        hash=str(commit.id),
        repository_url=repository_url,
        contribution_id=None,
        author=commit.author.name or UNKNOWN_AUTHOR,
        author_email=commit.author.email or UNKNOWN_EMAIL,
        date=_iso_utc(commit.commit_time),
        message=commit.message or "",
        files_changed=files,
        lines_added=lines_added,
        lines_deleted=lines_deleted,
    )


def extract_commits(repo_path: Path) -> list[Commit]:
    """Every commit reachable from HEAD, each visited once, as detached records.

    Any unreadable commit aborts the whole extraction.
    """
    repo = open_repository(repo_path)
    if repo.head_is_unborn:
        raise ExternalToolError(str(repo_path), "repository has no commits")
    url = remote_url(repo)

    commits = []
    try:
        for commit in repo.walk(repo.head.target):
            commits.append(_to_record(commit, url))
    except (pygit2.GitError, KeyError, ValueError) as e:
        raise ExternalToolError(str(repo_path), str(e)) from e

    logger.info("Extracted %d commits from %s (%s)", len(commits), repo_path, url)
    return commits


def get_commit_details(commit_hash: str, repo_path: Path) -> Commit:
    """A single commit by full or abbreviated hash."""
    repo = open_repository(repo_path)
    try:
        obj = repo.revparse_single(commit_hash)
        commit = obj.peel(pygit2.Commit)
    except (KeyError, ValueError, pygit2.GitError) as e:
        raise NotFoundError(f"Commit not found: {commit_hash}") from e
    try:
        return _to_record(commit, remote_url(repo))
    except (pygit2.GitError, KeyError, ValueError) as e:
        raise ExternalToolError(str(repo_path), str(e)) from e
