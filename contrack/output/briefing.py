"""Operator/agent briefing printed by ``contrack ai``."""

from typing import Sequence

from contrack.storage.models import AgentRule, Prompt

BRIEFING = """\
# contrack — agent briefing

contrack keeps a per-repository record of contributions (features, changes)
tied to git commit evidence, stored in a SQLite database.

## Workflow

1. Register the repository:
   contrack init -r <repo-url> -o <org> -n <name> [-d <description>]
2. Record each contribution with the commits that prove it:
   contrack add -r <repo-url> -n <name> -o <overview> -d <description> \\
       -k <key,commits> [--related-commits <more,commits>] \\
       [-c <category>] [-p <1-10>] [--details '<json object>'] [--bullet <text>]...
   Abbreviated hashes are fine: a recorded id matches any commit it prefixes.
3. Pull commit details from the working copy and link them:
   contrack update [<path>]
4. Inspect:
   contrack query contributions <repo-url>
   contrack query contribution <repo-url> <name>
   contrack query commits <repo-url> <name>
   contrack query stats
5. Publish:
   contrack generate -r <repo-url> [-o CONTRIBUTIONS.md] [-a <author>]

Re-running `add` with the same repository and name replaces the contribution.
Re-running `update` refreshes every commit and re-derives its contribution link
from the current key/related commit lists.

Database: {db_path}
"""


def render_briefing(db_path: str, rules: Sequence[AgentRule], prompts: Sequence[Prompt]) -> str:
    lines = [BRIEFING.format(db_path=db_path)]

    if rules:
        lines.append("## Agent rules")
        lines.append("")
        for rule in rules:
            category = f" [{rule.category}]" if rule.category else ""
            lines.append(f"### {rule.name} (priority {rule.priority}){category}")
            lines.append("")
            lines.append(rule.instruction)
            if rule.examples:
                lines.append("")
                lines.append(f"Examples: {rule.examples}")
            lines.append("")

    if prompts:
        lines.append("## Prompts")
        lines.append("")
        for prompt in prompts:
            category = f" [{prompt.category}]" if prompt.category else ""
            lines.append(f"### {prompt.name}{category}")
            lines.append("")
            if prompt.description:
                lines.append(f"_{prompt.description}_")
                lines.append("")
            if prompt.variables:
                lines.append(f"Variables: {', '.join(prompt.variables)}")
                lines.append("")
            lines.append(prompt.prompt_text)
            lines.append("")

    return "\n".join(lines).rstrip("\n") + "\n"
