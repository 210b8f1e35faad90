"""Tests for seeding and loadout operations (src: contrack/storage/loadouts.py, seed.py)."""

import pytest
from sqlalchemy import func, select

from contrack.exceptions import NotFoundError, ValidationError
from contrack.storage.loadouts import (
    create_loadout,
    delete_loadout,
    get_loadout,
    list_loadouts,
    load_loadout,
    reload_default_loadout,
    save_loadout,
)
from contrack.storage.models import AgentRule, LoadoutPrompt, Prompt
from contrack.storage.records import list_agent_rules, list_prompts
from contrack.storage.seed import DEFAULT_LOADOUT, ensure_seeded


def _prompt_names(session):
    return sorted(p.name for p in list_prompts(session))


class TestSeed:
    def test_defaults_present(self, session):
        assert [r.name for r in list_agent_rules(session)] == [
            "read_contributions_database",
            "generate_contributions_markdown",
            "maintain_consistency",
        ]
        assert _prompt_names(session) == ["analyze_contributions", "generate_contributions_markdown"]

    def test_default_loadout_holds_everything(self, session):
        [summary] = list_loadouts(session)
        assert summary.name == DEFAULT_LOADOUT
        assert summary.is_default is True
        assert summary.rule_count == 3
        assert summary.prompt_count == 2

    def test_seeding_is_idempotent(self, session):
        ensure_seeded(session)
        ensure_seeded(session)
        assert session.execute(select(func.count()).select_from(AgentRule)).scalar_one() == 3
        assert len(list_loadouts(session)) == 1


class TestCreateAndDelete:
    def test_create_empty_loadout(self, session):
        create_loadout(session, "minimal", description="Nothing loaded")
        summary = next(lo for lo in list_loadouts(session) if lo.name == "minimal")
        assert summary.description == "Nothing loaded"
        assert summary.is_default is False
        assert (summary.prompt_count, summary.rule_count) == (0, 0)

    def test_duplicate_name_rejected(self, session):
        create_loadout(session, "minimal")
        with pytest.raises(ValidationError):
            create_loadout(session, "minimal")

    def test_list_puts_default_first(self, session):
        create_loadout(session, "aaa")
        create_loadout(session, "zzz")
        assert [lo.name for lo in list_loadouts(session)] == [DEFAULT_LOADOUT, "aaa", "zzz"]

    def test_delete(self, session):
        save_loadout(session, "scratch")
        delete_loadout(session, "scratch")
        assert get_loadout(session, "scratch") is None
        # Prompts and rules themselves survive
        assert len(list_prompts(session)) == 2

    def test_delete_default_rejected(self, session):
        with pytest.raises(ValidationError):
            delete_loadout(session, DEFAULT_LOADOUT)
        assert get_loadout(session, DEFAULT_LOADOUT) is not None
        assert list_loadouts(session)[0].prompt_count == 2

    def test_delete_missing_rejected(self, session):
        with pytest.raises(NotFoundError):
            delete_loadout(session, "ghost")


class TestSaveAndLoad:
    def test_save_creates_missing_loadout(self, session):
        save_loadout(session, "snapshot")
        summary = next(lo for lo in list_loadouts(session) if lo.name == "snapshot")
        assert (summary.prompt_count, summary.rule_count) == (2, 3)

    def test_save_replaces_members(self, session):
        save_loadout(session, "snapshot")
        session.add(Prompt(name="extra", prompt_text="Do more", category="Misc", variables=[]))
        session.flush()
        save_loadout(session, "snapshot")

        summary = next(lo for lo in list_loadouts(session) if lo.name == "snapshot")
        assert summary.prompt_count == 3

    def test_load_deletes_prompts_outside_loadout(self, session):
        save_loadout(session, "A")
        session.add(Prompt(name="p3", prompt_text="Third prompt", category="Misc", variables=[]))
        session.flush()
        assert len(list_prompts(session)) == 3

        prompts_removed, rules_removed = load_loadout(session, "A")

        assert (prompts_removed, rules_removed) == (1, 0)
        assert "p3" not in _prompt_names(session)
        assert len(list_agent_rules(session)) == 3

    def test_load_empty_loadout_clears_everything(self, session):
        create_loadout(session, "empty")
        prompts_removed, rules_removed = load_loadout(session, "empty")

        assert (prompts_removed, rules_removed) == (2, 3)
        assert list_prompts(session) == []
        assert list_agent_rules(session) == []
        # The default loadout's memberships went with the deleted rows
        assert session.execute(select(func.count()).select_from(LoadoutPrompt)).scalar_one() == 0

    def test_load_missing_rejected(self, session):
        with pytest.raises(NotFoundError):
            load_loadout(session, "ghost")

    def test_reload_default_drops_additions(self, session):
        session.add(AgentRule(name="extra_rule", instruction="Be brief", priority=1, category="Style"))
        session.flush()

        prompts_removed, rules_removed = reload_default_loadout(session)

        assert (prompts_removed, rules_removed) == (0, 1)
        assert "extra_rule" not in [r.name for r in list_agent_rules(session)]
