"""Default agent rules, prompts and the default loadout.

Seeded once, when the database is first created. Each step is skipped when
its table already has rows, so running it on every open is harmless.
"""

import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from contrack.storage.models import AgentRule, Loadout, LoadoutPrompt, LoadoutRule, Prompt

logger = logging.getLogger(__name__)

DEFAULT_LOADOUT = "default"

DEFAULT_RULES = [
    {
        "name": "read_contributions_database",
        "instruction": (
            "When a user provides a SQLite contributions database file, you should:\n"
            "1. First, read the agent_rules table to understand how to use this database\n"
            "2. Read the repositories table to understand what repositories are tracked\n"
            "3. Read the contributions table to see what features/contributions have been documented\n"
            "4. Read the commits table for detailed commit information when needed\n"
            "5. Use the prompts table to find reusable prompts for common tasks\n"
            "6. Always check the updated_at timestamps to understand data freshness"
        ),
        "priority": 10,
        "category": "Database Usage",
    },
    {
        "name": "generate_contributions_markdown",
        "instruction": (
            "To generate or update a contributions markdown file:\n"
            "1. Query contributions table for the repository, ordered by priority DESC, then by name\n"
            "2. For each contribution, include: Name and overview, Key commits (look up details in "
            "commits table), Related commits, Technical details (from JSON field), Resume bullet "
            "points (from JSON array)\n"
            "3. Group related contributions by category\n"
            "4. Include timestamps from commits table for human-readable dates\n"
            "5. Always include author information from commits\n"
            "6. Maintain consistent formatting across all contribution files\n"
            "7. Update the markdown file, preserving existing structure where possible"
        ),
        "priority": 9,
        "category": "Documentation",
    },
    {
        "name": "maintain_consistency",
        "instruction": (
            "When working with contributions data:\n"
            "1. Always use the same structure and format for similar contributions\n"
            "2. Keep resume bullet points concise and action-oriented\n"
            "3. Technical details should include: technology_stack, patterns, integrations, "
            "storage, security\n"
            "4. Categories should be consistent: Core Feature, Integration, Infrastructure, "
            "Feature Enhancement, Feature, Configuration, Performance, Bug Fix\n"
            "5. Priority should reflect importance: 10 = critical/core, 9-8 = major features, "
            "7-5 = important features, 4-1 = minor features/fixes\n"
            "6. When adding new contributions, follow existing patterns in the database"
        ),
        "priority": 8,
        "category": "Data Quality",
    },
]

DEFAULT_PROMPTS = [
    {
        "name": "analyze_contributions",
        "prompt_text": (
            "Analyze the contributions database for repository {repository_url}.\n\n"
            "1. Read all agent rules from the agent_rules table\n"
            "2. Query all contributions for this repository\n"
            "3. For each contribution, provide:\n"
            "   - Summary of what was built\n"
            "   - Key technical details\n"
            "   - Resume bullet points\n"
            "   - Associated commits with dates\n\n"
            "Generate a comprehensive analysis following the patterns established in the database."
        ),
        "description": "Prompt for analyzing all contributions in a repository",
        "category": "Analysis",
        "variables": ["repository_url"],
    },
    {
        "name": "generate_contributions_markdown",
        "prompt_text": (
            "Update the contributions markdown file for repository {repository_url} based on the "
            "contributions database.\n\n"
            "1. Read the current markdown file if it exists\n"
            "2. Query contributions from database ordered by priority and category\n"
            "3. Generate/update markdown following the established format\n"
            "4. Include all contributions with their details\n"
            "5. Maintain consistency with existing documentation style\n"
            "6. Update timestamps and author information from commits table"
        ),
        "description": "Prompt for updating contributions markdown file",
        "category": "Documentation",
        "variables": ["repository_url"],
    },
]


def _count(session: Session, model) -> int:
    return session.execute(select(func.count()).select_from(model)).scalar_one()


def ensure_seeded(session: Session) -> None:
    """Insert default rules, prompts and the default loadout where missing."""
    if _count(session, AgentRule) == 0:
        session.add_all(AgentRule(**rule) for rule in DEFAULT_RULES)
        logger.info("Seeded %d agent rules", len(DEFAULT_RULES))

    if _count(session, Prompt) == 0:
        session.add_all(Prompt(**prompt) for prompt in DEFAULT_PROMPTS)
        logger.info("Seeded %d prompts", len(DEFAULT_PROMPTS))
    session.flush()

    if _count(session, Loadout) == 0:
        loadout = Loadout(
            name=DEFAULT_LOADOUT,
            description="Built-in rules and prompts",
            is_default=True,
        )
        session.add(loadout)
        session.flush()

        rule_ids = session.execute(select(AgentRule.id)).scalars().all()
        prompt_ids = session.execute(select(Prompt.id)).scalars().all()
        session.add_all(LoadoutRule(loadout_id=loadout.id, rule_id=rid) for rid in rule_ids)
        session.add_all(LoadoutPrompt(loadout_id=loadout.id, prompt_id=pid) for pid in prompt_ids)
        session.flush()
        logger.info(
            "Created default loadout with %d rules and %d prompts", len(rule_ids), len(prompt_ids)
        )
