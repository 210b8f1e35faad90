"""Tests for the contributions markdown generator (src: contrack/output/markdown.py)."""

from contrack.output.markdown import render_contributions, write_contributions
from tests.conftest import REPO_URL, make_commit, make_contribution

KEY_HASH = "abc123def4567890abc123def4567890abc123de"
OTHER_HASH = "0123456789abcdef0123456789abcdef01234567"
SECOND_KEY_HASH = "fedcba9876543210fedcba9876543210fedcba98"


def _full_contribution():
    return make_contribution(
        name="Widget Engine",
        overview="Rebuilt the widget engine.",
        description="Replaced the legacy renderer with a streaming one.",
        key_commits=["abc123", "fedcba98"],
        related_commits=["012345"],
        technical_details={
            "technology_stack": ["Python", "SQLite"],
            "storage": {"engine": "sqlite", "wal": True},
        },
        resume_bullets=[
            "Cut render time by 40%",
            "Removed 3k lines of legacy code",
            "Added chunked streaming to disk",
        ],
        category="Core Feature",
        priority=9,
    )


def _commits():
    return [
        make_commit(hash=KEY_HASH, author="Alice", message="Add streaming renderer\n\nDetails."),
        make_commit(hash=SECOND_KEY_HASH, author="Alice", message="Stream chunks to disk", lines_added=40, lines_deleted=5),
        make_commit(hash=OTHER_HASH, author="Bob", message="Tidy imports", lines_added=None, lines_deleted=None),
    ]


class TestRenderContributions:
    def test_all_sections_present(self):
        md = render_contributions(REPO_URL, [(_full_contribution(), _commits())])

        assert md.startswith(f"# Contributions: {REPO_URL}\n")
        assert "## Core Feature" in md
        assert "### Widget Engine" in md
        assert "**Category:** Core Feature | **Priority:** 9" in md
        assert "Rebuilt the widget engine." in md
        for heading in ("Description", "Key Commits", "Related Commits", "Commits", "Technical Details", "Resume Bullets"):
            assert f"#### {heading}\n" in md
        assert "1. Cut render time by 40%" in md
        assert "2. Removed 3k lines of legacy code" in md
        assert "3. Added chunked streaming to disk" in md

    def test_every_field_appears_verbatim(self):
        md = render_contributions(REPO_URL, [(_full_contribution(), _commits())])

        assert "### Widget Engine" in md
        assert "Rebuilt the widget engine." in md
        assert "Replaced the legacy renderer with a streaming one." in md
        assert "- `abc123` — `abc123de` Add streaming renderer" in md
        assert "- `fedcba98` — `fedcba98` Stream chunks to disk (Alice, 2026-02-01, +40/-5)" in md
        related = md.split("#### Related Commits\n", 1)[1].split("####", 1)[0]
        assert "- `012345` — `01234567` Tidy imports" in related
        assert "- **technology_stack:** Python, SQLite" in md
        assert "  - **engine:** sqlite" in md
        for i, bullet in enumerate(_full_contribution().resume_bullets, 1):
            assert f"{i}. {bullet}" in md

    def test_key_commit_resolved_to_details(self):
        md = render_contributions(REPO_URL, [(_full_contribution(), _commits())])
        assert "- `abc123` — `abc123de` Add streaming renderer (Alice, 2026-02-01, +10/-2)" in md

    def test_commit_without_stats(self):
        md = render_contributions(REPO_URL, [(_full_contribution(), _commits())])
        assert "- `01234567` Tidy imports (Bob, 2026-02-01)" in md

    def test_unresolved_ref_listed_bare(self):
        c = make_contribution(key_commits=["feedface"])
        md = render_contributions(REPO_URL, [(c, [])])
        assert "- `feedface`\n" in md

    def test_technical_details_nested(self):
        md = render_contributions(REPO_URL, [(_full_contribution(), [])])
        assert "- **technology_stack:** Python, SQLite" in md
        assert "- **storage:**\n  - **engine:** sqlite\n  - **wal:** true" in md

    def test_empty_sections_omitted(self):
        c = make_contribution(description="", key_commits=[], technical_details={}, resume_bullets=[])
        md = render_contributions(REPO_URL, [(c, [])])
        assert "####" not in md
        assert "### Test Feature" in md

    def test_grouped_by_category_in_order(self):
        items = [
            (make_contribution(name="A", category="Core Feature", priority=9), []),
            (make_contribution(name="B", category="Bug Fix", priority=7), []),
            (make_contribution(name="C", category="Core Feature", priority=5), []),
        ]
        md = render_contributions(REPO_URL, items)

        assert md.count("## Core Feature") == 1
        assert md.index("## Core Feature") < md.index("### A") < md.index("### C") < md.index("## Bug Fix")
        assert md.index("## Bug Fix") < md.index("### B")

    def test_author_filter(self):
        md = render_contributions(REPO_URL, [(_full_contribution(), _commits())], author="Bob")

        assert "_Commits filtered to author: Bob_" in md
        commits_section = md.split("#### Commits\n", 1)[1].split("####", 1)[0]
        assert "Tidy imports" in commits_section
        assert "Add streaming renderer" not in commits_section

    def test_author_filter_without_matches(self):
        md = render_contributions(REPO_URL, [(_full_contribution(), _commits())], author="Carol")
        assert "_No commits by Carol._" in md

    def test_author_filter_hides_other_authors_key_commits(self):
        c = make_contribution(key_commits=["abc123"], related_commits=["012345"])
        md = render_contributions(REPO_URL, [(c, _commits())], author="Carol")

        assert "Add streaming renderer" not in md
        assert "Tidy imports" not in md
        assert "Alice" not in md
        assert "- `abc123`\n" in md
        assert "- `012345`\n" in md

    def test_author_filter_resolves_own_key_commits(self):
        md = render_contributions(REPO_URL, [(_full_contribution(), _commits())], author="Bob")

        key_section = md.split("#### Key Commits\n", 1)[1].split("####", 1)[0]
        assert "- `abc123`\n" in key_section
        assert "Add streaming renderer" not in key_section
        related = md.split("#### Related Commits\n", 1)[1].split("####", 1)[0]
        assert "- `012345` — `01234567` Tidy imports (Bob, 2026-02-01)" in related

    def test_missing_category_uses_same_label(self):
        md = render_contributions(REPO_URL, [(make_contribution(category=None), [])])

        assert "## Uncategorized" in md
        assert "**Category:** Uncategorized | **Priority:** 5" in md
        assert "None" not in md

    def test_no_contributions(self):
        md = render_contributions(REPO_URL, [])
        assert "_No contributions recorded._" in md


class TestWriteContributions:
    def test_creates_parent_dirs(self, tmp_path):
        output = tmp_path / "docs" / "CONTRIBUTIONS.md"
        write_contributions(output, "# hi\n")
        assert output.read_text() == "# hi\n"
