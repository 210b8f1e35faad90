"""Reconciliation: assign extracted commits to contributions by hash prefix."""

import logging
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from contrack.storage.models import Commit, Contribution, Repository
from contrack.storage.records import list_contributions, list_repositories

logger = logging.getLogger(__name__)


def contribution_matches(contribution: Contribution, commit_hash: str) -> bool:
    """True if any key or related commit id is a prefix of ``commit_hash``."""
    return any(commit_hash.startswith(ref) for ref in contribution.commit_refs() if ref)


def find_contribution_id(
    commit: Commit,
    repositories: Iterable[Repository],
    contributions_by_repo: dict[str, list[Contribution]],
) -> Optional[int]:
    """First matching contribution in (priority desc, name asc) order, or None.

    Only repositories whose URL equals the commit's repository URL are scanned;
    the first hit ends the search.
    """
    for repo in repositories:
        if repo.url != commit.repository_url:
            continue
        for contribution in contributions_by_repo.get(repo.url, []):
            if contribution.id is not None and contribution_matches(contribution, commit.hash):
                return contribution.id
    return None


class Reconciler:
    """Matches a batch of commits against the contributions currently stored.

    Contributions are read once per repository per batch.
    """

    def __init__(self, session: Session):
        self.session = session
        self.repositories = list_repositories(session)
        self._contributions: dict[str, list[Contribution]] = {}

    def _contributions_for(self, repo_url: str) -> list[Contribution]:
        if repo_url not in self._contributions:
            self._contributions[repo_url] = list_contributions(self.session, repo_url)
        return self._contributions[repo_url]

    def assign(self, commit: Commit) -> Optional[int]:
        """Set and return ``commit.contribution_id`` (None when unmatched)."""
        for repo in self.repositories:
            if repo.url == commit.repository_url:
                self._contributions_for(repo.url)
        commit.contribution_id = find_contribution_id(
            commit, self.repositories, self._contributions
        )
        if commit.contribution_id is not None:
            logger.debug("Commit %s -> contribution %s", commit.hash[:8], commit.contribution_id)
        return commit.contribution_id
