"""Repository, contribution and commit records: upserts and read queries."""

import logging
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from contrack.exceptions import ValidationError
from contrack.storage.models import (
    AgentRule,
    Commit,
    Contribution,
    Loadout,
    Prompt,
    Repository,
)

logger = logging.getLogger(__name__)

# Fields fully replaced on every contribution upsert, with their empty values
_CONTRIBUTION_FIELDS = {
    "overview": "",
    "description": "",
    "key_commits": [],
    "related_commits": [],
    "technical_details": {},
    "resume_bullets": [],
    "category": "Feature",
}

_COMMIT_FIELDS = (
    "repository_url",
    "contribution_id",
    "author",
    "author_email",
    "date",
    "message",
    "files_changed",
    "lines_added",
    "lines_deleted",
)


def split_commit_list(raw: Optional[str]) -> list[str]:
    """Split a comma-separated commit list, dropping blank entries."""
    if not raw:
        return []
    return [part.strip() for part in raw.split(",") if part.strip()]


# ---------------------------------------------------------------------------
# Repositories
# ---------------------------------------------------------------------------

def upsert_repository(session: Session, repo: Repository) -> Repository:
    """Insert or overwrite a repository keyed by URL."""
    existing = session.get(Repository, repo.url)
    if existing is None:
        existing = Repository(url=repo.url)
        session.add(existing)
    existing.organization = repo.organization
    existing.name = repo.name
    existing.description = repo.description
    session.flush()
    logger.debug("Upserted repository %s", repo.url)
    return existing


def get_repository(session: Session, url: str) -> Optional[Repository]:
    return session.get(Repository, url)


def list_repositories(session: Session) -> list[Repository]:
    result = session.execute(select(Repository).order_by(Repository.name.asc()))
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# Contributions
# ---------------------------------------------------------------------------

def get_contribution(session: Session, repo_url: str, name: str) -> Optional[Contribution]:
    result = session.execute(
        select(Contribution).where(
            Contribution.repository_url == repo_url,
            Contribution.name == name,
        )
    )
    return result.scalar_one_or_none()


def get_contribution_id(session: Session, repo_url: str, name: str) -> Optional[int]:
    result = session.execute(
        select(Contribution.id).where(
            Contribution.repository_url == repo_url,
            Contribution.name == name,
        )
    )
    return result.scalar_one_or_none()


def upsert_contribution(session: Session, contribution: Contribution) -> int:
    """Insert or fully replace a contribution; return its id after the write.

    ``contribution`` is a detached value object. Without an id it is matched on
    (repository URL, name); with an id, that row is replaced in place (which may
    rename it). Row ids never change once assigned.
    """
    priority = contribution.priority if contribution.priority is not None else 5
    if not 0 <= priority <= 255:
        raise ValidationError(f"Priority must be between 0 and 255, got {priority}")

    target = get_contribution(session, contribution.repository_url, contribution.name)
    if contribution.id is not None:
        by_id = session.get(Contribution, contribution.id)
        if target is not None and by_id is not None and target.id != by_id.id:
            raise ValidationError(
                f"Contribution '{contribution.name}' already exists for "
                f"{contribution.repository_url} with id {target.id}"
            )
        target = by_id or target

    if target is None:
        target = Contribution(
            repository_url=contribution.repository_url,
            name=contribution.name,
        )
        session.add(target)
    else:
        target.repository_url = contribution.repository_url
        target.name = contribution.name

    for field, empty in _CONTRIBUTION_FIELDS.items():
        value = getattr(contribution, field)
        if value is None:
            value = empty
        # Fresh containers so JSON columns register the change
        if isinstance(value, list):
            value = list(value)
        elif isinstance(value, dict):
            value = dict(value)
        setattr(target, field, value)
    target.priority = priority

    session.flush()
    logger.debug("Upserted contribution %s (id=%s)", contribution.name, target.id)
    return get_contribution_id(session, target.repository_url, target.name)


def list_contributions(session: Session, repo_url: str) -> list[Contribution]:
    """Contributions for a repository, highest priority first, then by name."""
    result = session.execute(
        select(Contribution)
        .where(Contribution.repository_url == repo_url)
        .order_by(Contribution.priority.desc(), Contribution.name.asc())
    )
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# Commits
# ---------------------------------------------------------------------------

def upsert_commit(session: Session, commit: Commit) -> Commit:
    """Insert or overwrite a commit keyed by hash.

    Every field is replaced, including ``contribution_id``: a commit that no
    longer matches any contribution loses its previous assignment.
    """
    existing = session.get(Commit, commit.hash)
    if existing is None:
        existing = Commit(hash=commit.hash)
        session.add(existing)
    for field in _COMMIT_FIELDS:
        value = getattr(commit, field)
        if field == "files_changed":
            value = list(value or [])
        setattr(existing, field, value)
    session.flush()
    return existing


def get_commit(session: Session, commit_hash: str) -> Optional[Commit]:
    return session.get(Commit, commit_hash)


def list_commits_for_contribution(session: Session, repo_url: str, name: str) -> list[Commit]:
    """Commits assigned to a contribution, newest first."""
    result = session.execute(
        select(Commit)
        .join(Contribution, Commit.contribution_id == Contribution.id)
        .where(
            Contribution.repository_url == repo_url,
            Contribution.name == name,
        )
        .order_by(Commit.date.desc())
    )
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# Reference data and statistics
# ---------------------------------------------------------------------------

def list_agent_rules(session: Session) -> list[AgentRule]:
    result = session.execute(
        select(AgentRule).order_by(AgentRule.priority.desc(), AgentRule.name.asc())
    )
    return list(result.scalars().all())


def list_prompts(session: Session) -> list[Prompt]:
    result = session.execute(
        select(Prompt).order_by(Prompt.category.asc(), Prompt.name.asc())
    )
    return list(result.scalars().all())


def get_statistics(session: Session) -> dict[str, int]:
    counts = {}
    for model, name in [
        (Repository, "repositories"),
        (Contribution, "contributions"),
        (Commit, "commits"),
        (AgentRule, "agent_rules"),
        (Prompt, "prompts"),
        (Loadout, "loadouts"),
    ]:
        counts[name] = session.execute(select(func.count()).select_from(model)).scalar_one()
    return counts
