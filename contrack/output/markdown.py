"""Contributions markdown generator."""

import json
import logging
from pathlib import Path
from typing import Any, Optional, Sequence

from contrack.exceptions import StorageError
from contrack.storage.models import Commit, Contribution

logger = logging.getLogger(__name__)

UNCATEGORIZED = "Uncategorized"

ContributionWithCommits = tuple[Contribution, Sequence[Commit]]


def render_contributions(
    repo_url: str,
    contributions: Sequence[ContributionWithCommits],
    author: Optional[str] = None,
) -> str:
    """Render a repository's contributions as a markdown document.

    Contributions keep their given order (priority desc, name asc) and are
    grouped under a heading per category, categories in order of first
    appearance. With ``author`` set, each commit listing only shows that
    author's commits and key/related ids by other authors are listed bare;
    contributions left with none are still listed.
    """
    lines = [f"# Contributions: {repo_url}", ""]
    if author:
        lines.append(f"_Commits filtered to author: {author}_")
        lines.append("")

    if not contributions:
        lines.append("_No contributions recorded._")
        return "\n".join(lines) + "\n"

    for category, group in _group_by_category(contributions):
        lines.append(f"## {category}")
        lines.append("")
        for contribution, commits in group:
            lines.extend(_render_contribution(contribution, commits, author))

    return "\n".join(lines).rstrip("\n") + "\n"


def write_contributions(output: Path, markdown: str) -> None:
    try:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(markdown)
    except OSError as e:
        raise StorageError(f"Failed to write {output}: {e}") from e
    logger.info("Wrote %s", output)


def _group_by_category(
    contributions: Sequence[ContributionWithCommits],
) -> list[tuple[str, list[ContributionWithCommits]]]:
    groups: dict[str, list[ContributionWithCommits]] = {}
    for contribution, commits in contributions:
        groups.setdefault(_category_label(contribution), []).append((contribution, commits))
    return list(groups.items())


def _render_contribution(
    contribution: Contribution,
    commits: Sequence[Commit],
    author: Optional[str],
) -> list[str]:
    lines = [f"### {contribution.name}", ""]
    lines.append(f"**Category:** {_category_label(contribution)} | **Priority:** {contribution.priority}")
    lines.append("")

    if contribution.overview:
        lines.append(contribution.overview)
        lines.append("")

    if contribution.description:
        lines.append("#### Description")
        lines.append("")
        lines.append(contribution.description)
        lines.append("")

    # Under an author filter, key/related ids only resolve to that author's commits
    shown = [c for c in commits if c.author == author] if author else list(commits)

    if contribution.key_commits:
        lines.append("#### Key Commits")
        lines.append("")
        for ref in contribution.key_commits:
            lines.append(_commit_ref_line(ref, shown))
        lines.append("")

    if contribution.related_commits:
        lines.append("#### Related Commits")
        lines.append("")
        for ref in contribution.related_commits:
            lines.append(_commit_ref_line(ref, shown))
        lines.append("")

    if shown or author:
        lines.append("#### Commits")
        lines.append("")
        if shown:
            for commit in shown:
                lines.append(f"- {_commit_detail(commit)}")
        else:
            lines.append(f"_No commits by {author}._")
        lines.append("")

    if contribution.technical_details:
        lines.append("#### Technical Details")
        lines.append("")
        for key, value in contribution.technical_details.items():
            lines.extend(_detail_lines(key, value, depth=0))
        lines.append("")

    if contribution.resume_bullets:
        lines.append("#### Resume Bullets")
        lines.append("")
        for i, bullet in enumerate(contribution.resume_bullets, 1):
            lines.append(f"{i}. {bullet}")
        lines.append("")

    return lines


def _category_label(contribution: Contribution) -> str:
    return contribution.category or UNCATEGORIZED


def _commit_ref_line(ref: str, commits: Sequence[Commit]) -> str:
    match = next((c for c in commits if c.hash.startswith(ref)), None)
    if match is None:
        return f"- `{ref}`"
    return f"- `{ref}` — {_commit_detail(match)}"


def _commit_detail(commit: Commit) -> str:
    text = f"`{commit.short_hash}` {commit.summary} ({commit.author}, {commit.date[:10]}"
    if commit.lines_added is not None and commit.lines_deleted is not None:
        text += f", +{commit.lines_added}/-{commit.lines_deleted}"
    return text + ")"


def _format_scalar(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value)


def _detail_lines(key: str, value: Any, depth: int) -> list[str]:
    indent = "  " * depth
    if isinstance(value, dict):
        lines = [f"{indent}- **{key}:**"]
        for sub_key, sub_value in value.items():
            lines.extend(_detail_lines(str(sub_key), sub_value, depth + 1))
        return lines
    if isinstance(value, list) and all(not isinstance(v, (dict, list)) for v in value):
        return [f"{indent}- **{key}:** {', '.join(_format_scalar(v) for v in value)}"]
    if isinstance(value, list):
        return [f"{indent}- **{key}:** {json.dumps(value)}"]
    return [f"{indent}- **{key}:** {_format_scalar(value)}"]
