"""contrack CLI — main entry point using Typer."""

import json
import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape

from contrack.cli.common import exit_on_error, setup_logging
from contrack.cli.config_cmd import app as config_app
from contrack.cli.loadout_cmd import app as loadout_app
from contrack.cli.query_cmd import app as query_app

app = typer.Typer(
    name="contrack",
    help="Track and document code contributions against git history.",
    no_args_is_help=True,
)
console = Console()
logger = logging.getLogger(__name__)

# Register subcommands
app.add_typer(query_app, name="query", help="Query the database")
app.add_typer(config_app, name="config", help="Manage the config.toml registry")
app.add_typer(loadout_app, name="loadout", help="Manage prompt and rule loadouts")


def _version_callback(value: bool) -> None:
    if value:
        from importlib.metadata import PackageNotFoundError, version

        try:
            console.print(f"contrack {version('contrack')}")
        except PackageNotFoundError:
            console.print("contrack (not installed)")
        raise typer.Exit()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show version and exit"
    ),
):
    """Track and document code contributions against git history."""
    setup_logging(verbose)


@app.command()
def init(
    repo_url: str = typer.Option(..., "--repo-url", "-r", help="Repository URL (e.g., https://github.com/org/repo)"),
    org: str = typer.Option(..., "--org", "-o", help="Organization name"),
    name: str = typer.Option(..., "--name", "-n", help="Repository name"),
    description: Optional[str] = typer.Option(None, "--description", "-d", help="Repository description"),
    config: bool = typer.Option(False, "--config", help="Also record the repository in config.toml"),
    local: bool = typer.Option(False, "--local", help="Create a project-local .contrack directory here first"),
):
    """Register a repository."""
    from contrack.paths import MARKER_DIR, get_config_path
    from contrack.storage.db import get_session
    from contrack.storage.models import Repository
    from contrack.storage.records import upsert_repository

    with exit_on_error():
        if local:
            marker = Path.cwd() / MARKER_DIR
            marker.mkdir(exist_ok=True)
            console.print(f"  Local directory: {marker}")

        repo = Repository(url=repo_url, organization=org, name=name, description=description)
        with get_session() as session:
            upsert_repository(session, repo)

        if config:
            from contrack.config import ConfigFile, Organization, RepositoryConfig

            config_path = get_config_path()
            registry = ConfigFile.load_or_new(config_path)
            registry.organizations.setdefault(org, Organization(name=org))
            registry.repositories[repo_url] = RepositoryConfig(
                organization=org, name=name, description=description
            )
            registry.save(config_path)
            console.print(f"  Config updated: {config_path}")

    console.print("[green]✓[/green] Repository initialized successfully!")
    console.print(f"  URL: {escape(repo_url)}")


@app.command()
def add(
    repo_url: str = typer.Option(..., "--repo-url", "-r", help="Repository URL"),
    name: str = typer.Option(..., "--name", "-n", help="Contribution name"),
    overview: str = typer.Option(..., "--overview", "-o", help="Brief overview"),
    description: str = typer.Option(..., "--description", "-d", help="Detailed description"),
    key_commits: str = typer.Option(..., "--key-commits", "-k", help="Key commit hashes (comma-separated)"),
    related_commits: Optional[str] = typer.Option(None, "--related-commits", help="Related commit hashes (comma-separated)"),
    category: str = typer.Option("Feature", "--category", "-c", help="Category (Core Feature, Integration, Infrastructure, ...)"),
    priority: int = typer.Option(5, "--priority", "-p", min=0, max=255, help="Priority (1-10, higher is more important)"),
    details: Optional[str] = typer.Option(None, "--details", help="Technical details as a JSON object"),
    bullet: Optional[List[str]] = typer.Option(None, "--bullet", "-b", help="Resume bullet (repeatable)"),
):
    """Add (or replace) a contribution."""
    from contrack.exceptions import ValidationError
    from contrack.storage.db import get_session
    from contrack.storage.models import Contribution
    from contrack.storage.records import get_repository, split_commit_list, upsert_contribution

    with exit_on_error():
        technical_details = {}
        if details:
            try:
                technical_details = json.loads(details)
            except json.JSONDecodeError as e:
                raise ValidationError(f"--details is not valid JSON: {e}") from e
            if not isinstance(technical_details, dict):
                raise ValidationError("--details must be a JSON object")

        contribution = Contribution(
            repository_url=repo_url,
            name=name,
            overview=overview,
            description=description,
            key_commits=split_commit_list(key_commits),
            related_commits=split_commit_list(related_commits),
            technical_details=technical_details,
            resume_bullets=list(bullet or []),
            category=category,
            priority=priority,
        )
        with get_session() as session:
            if get_repository(session, repo_url) is None:
                logger.warning("Repository %s is not registered; run 'contrack init' for it", repo_url)
            contribution_id = upsert_contribution(session, contribution)

    console.print(f"[green]✓[/green] Contribution '{escape(name)}' added successfully! (id {contribution_id})")


@app.command()
def update(
    repo_path: Optional[Path] = typer.Argument(None, help="Path to git repository (defaults to current directory)"),
):
    """Update commit details from a git repository and link them to contributions."""
    from contrack.config import get_settings
    from contrack.processing.history import extract_commits
    from contrack.processing.reconcile import Reconciler
    from contrack.storage.db import get_session
    from contrack.storage.records import upsert_commit

    path = repo_path or Path(".")
    interval = get_settings().progress_interval

    with exit_on_error():
        console.print("Extracting commit details from git repository...")
        commits = extract_commits(path)
        console.print(f"Found {len(commits)} commits to process")

        processed = 0
        matched = 0
        # One transaction for the whole pass
        with get_session() as session:
            reconciler = Reconciler(session)
            for commit in commits:
                if reconciler.assign(commit) is not None:
                    matched += 1
                upsert_commit(session, commit)
                processed += 1
                if processed % interval == 0:
                    console.print(f"Processed {processed} commits...")

    console.print(
        f"[green]✓[/green] Update complete: {processed} processed, {matched} linked to contributions"
    )


@app.command()
def generate(
    repo_url: str = typer.Option(..., "--repo-url", "-r", help="Repository URL"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output file path (defaults to CONTRIBUTIONS.md)"),
    author: Optional[str] = typer.Option(None, "--author", "-a", help="Only list commits by this author"),
):
    """Generate the contributions markdown file."""
    from contrack.config import get_settings
    from contrack.output.markdown import render_contributions, write_contributions
    from contrack.storage.db import get_session
    from contrack.storage.records import list_commits_for_contribution, list_contributions

    output = output or Path(get_settings().default_output)

    with exit_on_error():
        with get_session() as session:
            contributions = list_contributions(session, repo_url)
            if not contributions:
                console.print(f"[yellow]⚠ No contributions found for repository: {escape(repo_url)}[/yellow]")
                return
            items = [
                (c, list_commits_for_contribution(session, repo_url, c.name))
                for c in contributions
            ]

        markdown = render_contributions(repo_url, items, author=author)
        write_contributions(output, markdown)

    console.print(f"[green]✓[/green] Generated contributions markdown: {output}")
    console.print(f"  {len(contributions)} contributions documented")


@app.command("list")
def list_repositories(
    detailed: bool = typer.Option(False, "--detailed", "-d", help="Show contribution counts"),
):
    """List repositories in the database."""
    from contrack.storage.db import get_session
    from contrack.storage.records import list_contributions
    from contrack.storage.records import list_repositories as _list_repositories

    with exit_on_error():
        with get_session() as session:
            repos = _list_repositories(session)
            if not repos:
                console.print("[yellow]No repositories found in database[/yellow]")
                return

            console.print("\n[bold]Repositories[/bold]")
            console.print("=" * 80)
            for repo in repos:
                console.print(f"\n[green]•[/green] [bold]{escape(repo.name)}[/bold]")
                console.print(f"  URL: {escape(repo.url)}")
                console.print(f"  Organization: {escape(repo.organization)}")
                if repo.description:
                    console.print(f"  Description: {escape(repo.description)}")
                if detailed:
                    console.print(f"  Contributions: {len(list_contributions(session, repo.url))}")


@app.command()
def locations():
    """Show where the database and config file are resolved from."""
    from contrack.paths import describe_locations

    with exit_on_error():
        info = describe_locations()

    def _mark(path: Optional[Path], active: Path) -> str:
        if path is None:
            return "[dim](none)[/dim]"
        suffix = " [green](active)[/green]" if path == active else ""
        exists = "" if path.exists() else " [dim](missing)[/dim]"
        return f"{escape(str(path))}{suffix}{exists}"

    console.print("\n[bold]contrack locations[/bold]")
    console.print("=" * 80)
    local_dir = info["local_dir"]
    console.print(f"Project-local directory: {escape(str(local_dir)) if local_dir else '[dim](none found)[/dim]'}")
    console.print(f"  Database: {_mark(info['local_db'], info['active_db'])}")
    console.print(f"  Config:   {_mark(info['local_config'], info['active_config'])}")
    console.print("Global:")
    console.print(f"  Database: {_mark(info['global_db'], info['active_db'])}")
    console.print(f"  Config:   {_mark(info['global_config'], info['active_config'])}")
    if info["active_db"] not in (info["local_db"], info["global_db"]):
        console.print(f"Override database: {_mark(info['active_db'], info['active_db'])}")
    if info["active_config"] not in (info["local_config"], info["global_config"]):
        console.print(f"Override config:   {_mark(info['active_config'], info['active_config'])}")


@app.command()
def ai():
    """Print the agent briefing with the current rules and prompts."""
    from contrack.output.briefing import render_briefing
    from contrack.paths import get_database_path
    from contrack.storage.db import get_session
    from contrack.storage.records import list_agent_rules, list_prompts

    with exit_on_error():
        db_path = get_database_path()
        with get_session() as session:
            text = render_briefing(str(db_path), list_agent_rules(session), list_prompts(session))

    # Plain output: the briefing is meant to be piped to an agent
    typer.echo(text, nl=False)


if __name__ == "__main__":
    app()
