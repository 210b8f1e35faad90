"""Loadouts: named sets of active agent rules and prompts.

Loading a loadout is destructive: every prompt and rule outside the loadout is
deleted outright. Save the current set into another loadout first to keep it.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from contrack.exceptions import NotFoundError, ValidationError
from contrack.storage.models import AgentRule, Loadout, LoadoutPrompt, LoadoutRule, Prompt
from contrack.storage.seed import DEFAULT_LOADOUT

logger = logging.getLogger(__name__)


@dataclass
class LoadoutSummary:
    name: str
    description: Optional[str]
    is_default: bool
    prompt_count: int
    rule_count: int


def get_loadout(session: Session, name: str) -> Optional[Loadout]:
    result = session.execute(select(Loadout).where(Loadout.name == name))
    return result.scalar_one_or_none()


def _require_loadout(session: Session, name: str) -> Loadout:
    loadout = get_loadout(session, name)
    if loadout is None:
        raise NotFoundError(f"Loadout not found: {name}")
    return loadout


def create_loadout(session: Session, name: str, description: Optional[str] = None) -> Loadout:
    """Create an empty loadout. Fails if the name is taken."""
    if get_loadout(session, name) is not None:
        raise ValidationError(f"Loadout already exists: {name}")
    loadout = Loadout(name=name, description=description, is_default=False)
    session.add(loadout)
    session.flush()
    logger.info("Created loadout %s", name)
    return loadout


def list_loadouts(session: Session) -> list[LoadoutSummary]:
    """All loadouts, default first, then by name, with membership counts."""
    prompt_counts = dict(
        session.execute(
            select(LoadoutPrompt.loadout_id, func.count()).group_by(LoadoutPrompt.loadout_id)
        ).all()
    )
    rule_counts = dict(
        session.execute(
            select(LoadoutRule.loadout_id, func.count()).group_by(LoadoutRule.loadout_id)
        ).all()
    )
    loadouts = session.execute(
        select(Loadout).order_by(Loadout.is_default.desc(), Loadout.name.asc())
    ).scalars().all()
    return [
        LoadoutSummary(
            name=lo.name,
            description=lo.description,
            is_default=bool(lo.is_default),
            prompt_count=prompt_counts.get(lo.id, 0),
            rule_count=rule_counts.get(lo.id, 0),
        )
        for lo in loadouts
    ]


def delete_loadout(session: Session, name: str) -> None:
    """Delete a loadout and its membership rows. The default cannot be deleted."""
    loadout = _require_loadout(session, name)
    if loadout.is_default:
        raise ValidationError(f"Cannot delete the default loadout: {name}")
    session.execute(delete(LoadoutPrompt).where(LoadoutPrompt.loadout_id == loadout.id))
    session.execute(delete(LoadoutRule).where(LoadoutRule.loadout_id == loadout.id))
    session.delete(loadout)
    session.flush()
    logger.info("Deleted loadout %s", name)


def save_loadout(session: Session, name: str) -> Loadout:
    """Snapshot every current prompt and rule into ``name``, replacing its members.

    The loadout is created when missing.
    """
    loadout = get_loadout(session, name) or create_loadout(session, name)

    session.execute(delete(LoadoutPrompt).where(LoadoutPrompt.loadout_id == loadout.id))
    session.execute(delete(LoadoutRule).where(LoadoutRule.loadout_id == loadout.id))

    prompt_ids = session.execute(select(Prompt.id)).scalars().all()
    rule_ids = session.execute(select(AgentRule.id)).scalars().all()
    session.add_all(LoadoutPrompt(loadout_id=loadout.id, prompt_id=pid) for pid in prompt_ids)
    session.add_all(LoadoutRule(loadout_id=loadout.id, rule_id=rid) for rid in rule_ids)
    session.flush()
    logger.info("Saved %d prompts and %d rules into loadout %s", len(prompt_ids), len(rule_ids), name)
    return loadout


def load_loadout(session: Session, name: str) -> tuple[int, int]:
    """Delete every prompt and rule not in ``name``.

    Returns (prompts_removed, rules_removed).
    """
    loadout = _require_loadout(session, name)

    kept_prompts = select(LoadoutPrompt.prompt_id).where(LoadoutPrompt.loadout_id == loadout.id)
    kept_rules = select(LoadoutRule.rule_id).where(LoadoutRule.loadout_id == loadout.id)

    doomed_prompts = select(Prompt.id).where(Prompt.id.not_in(kept_prompts))
    doomed_rules = select(AgentRule.id).where(AgentRule.id.not_in(kept_rules))

    # Membership rows in other loadouts go with the deleted rows
    session.execute(
        delete(LoadoutPrompt)
        .where(LoadoutPrompt.prompt_id.in_(doomed_prompts))
        .execution_options(synchronize_session=False)
    )
    session.execute(
        delete(LoadoutRule)
        .where(LoadoutRule.rule_id.in_(doomed_rules))
        .execution_options(synchronize_session=False)
    )

    prompts_removed = session.execute(
        delete(Prompt)
        .where(Prompt.id.not_in(kept_prompts))
        .execution_options(synchronize_session=False)
    ).rowcount
    rules_removed = session.execute(
        delete(AgentRule)
        .where(AgentRule.id.not_in(kept_rules))
        .execution_options(synchronize_session=False)
    ).rowcount
    session.flush()
    session.expire_all()
    logger.info(
        "Loaded loadout %s: removed %d prompts and %d rules", name, prompts_removed, rules_removed
    )
    return prompts_removed, rules_removed


def reload_default_loadout(session: Session) -> tuple[int, int]:
    return load_loadout(session, DEFAULT_LOADOUT)
