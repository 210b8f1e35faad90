"""CLI commands for read-only inspection of the database."""

import json

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from contrack.cli.common import exit_on_error

app = typer.Typer(no_args_is_help=True)
console = Console()

RELATED_PREVIEW = 5


@app.command("contributions")
def query_contributions(repo_url: str = typer.Argument(help="Repository URL")):
    """List all contributions for a repository."""
    from contrack.storage.db import get_session
    from contrack.storage.records import list_contributions

    with exit_on_error():
        with get_session() as session:
            contributions = list_contributions(session, repo_url)

    if not contributions:
        console.print(f"No contributions found for repository: {escape(repo_url)}")
        return

    console.print(f"\n[bold]Contributions for {escape(repo_url)}[/bold]")
    console.print("=" * 80)
    for c in contributions:
        console.print(f"\n[green]•[/green] [bold]{escape(c.name)}[/bold]")
        console.print(f"  Category: {escape(c.category)} | Priority: {c.priority}")
        console.print(f"  Overview: {escape(c.overview)}")
        console.print(f"  Key Commits: {len(c.key_commits)}")


@app.command("contribution")
def query_contribution(
    repo_url: str = typer.Argument(help="Repository URL"),
    name: str = typer.Argument(help="Contribution name"),
):
    """Show details for a specific contribution."""
    from contrack.exceptions import NotFoundError
    from contrack.storage.db import get_session
    from contrack.storage.records import get_contribution

    with exit_on_error():
        with get_session() as session:
            c = get_contribution(session, repo_url, name)
        if c is None:
            raise NotFoundError(f"Contribution '{name}' not found")

    console.print(f"\n[bold]Contribution: {escape(c.name)}[/bold]")
    console.print("=" * 80)
    console.print(f"Repository: {escape(c.repository_url)}")
    console.print(f"Category: {escape(c.category)} | Priority: {c.priority}")
    console.print(f"\nOverview:\n{escape(c.overview)}")
    console.print(f"\nDescription:\n{escape(c.description)}")

    if c.key_commits:
        console.print(f"\nKey Commits ({len(c.key_commits)}):")
        for ref in c.key_commits:
            console.print(f"  - {escape(ref)}")

    if c.related_commits:
        console.print(f"\nRelated Commits ({len(c.related_commits)}):")
        for ref in c.related_commits[:RELATED_PREVIEW]:
            console.print(f"  - {escape(ref)}")
        if len(c.related_commits) > RELATED_PREVIEW:
            console.print(f"  ... and {len(c.related_commits) - RELATED_PREVIEW} more")

    if c.technical_details:
        console.print("\nTechnical Details:")
        for key, value in c.technical_details.items():
            shown = value if isinstance(value, str) else json.dumps(value)
            console.print(f"  {escape(key)}: {escape(shown)}")

    if c.resume_bullets:
        console.print(f"\nResume Bullets ({len(c.resume_bullets)}):")
        for i, bullet in enumerate(c.resume_bullets, 1):
            console.print(f"  {i}. {escape(bullet)}")


@app.command("commits")
def query_commits(
    repo_url: str = typer.Argument(help="Repository URL"),
    name: str = typer.Argument(help="Contribution name"),
):
    """Show commits linked to a contribution."""
    from contrack.storage.db import get_session
    from contrack.storage.records import list_commits_for_contribution

    with exit_on_error():
        with get_session() as session:
            commits = list_commits_for_contribution(session, repo_url, name)

    if not commits:
        console.print(f"No commits found for contribution '{escape(name)}'")
        return

    console.print(f"\n[bold]Commits for '{escape(name)}'[/bold]")
    console.print("=" * 80)
    for commit in commits:
        console.print(f"\n[green]•[/green] [yellow]{commit.short_hash}[/yellow]")
        console.print(f"  Author: {escape(commit.author)} <{escape(commit.author_email or '')}>")
        console.print(f"  Date: {commit.date}")
        console.print(f"  Message: {escape(commit.message.strip())}")
        if commit.lines_added is not None and commit.lines_deleted is not None:
            console.print(
                f"  Changes: [green]+{commit.lines_added}[/green] [red]-{commit.lines_deleted}[/red]"
            )


@app.command("stats")
def query_stats():
    """Show database statistics."""
    from contrack.storage.db import get_session
    from contrack.storage.records import get_statistics

    with exit_on_error():
        with get_session() as session:
            stats = get_statistics(session)

    table = Table(title="Database Statistics")
    table.add_column("Entity", style="cyan")
    table.add_column("Count", style="green", justify="right")
    for name, count in stats.items():
        table.add_row(name.replace("_", " ").title(), str(count))
    console.print(table)
