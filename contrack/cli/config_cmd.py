"""CLI commands for the config.toml registry of organizations and repositories."""

from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from contrack.cli.common import exit_on_error

app = typer.Typer(no_args_is_help=True)
console = Console()


@app.command("sync")
def config_sync():
    """Write the database's repositories into config.toml."""
    from contrack.config import ConfigFile, Organization, RepositoryConfig
    from contrack.paths import get_config_path
    from contrack.storage.db import get_session
    from contrack.storage.records import list_repositories

    with exit_on_error():
        config_path = get_config_path()
        registry = ConfigFile.load_or_new(config_path)
        with get_session() as session:
            repos = list_repositories(session)

        for repo in repos:
            registry.organizations.setdefault(repo.organization, Organization(name=repo.organization))
            registry.repositories[repo.url] = RepositoryConfig(
                organization=repo.organization,
                name=repo.name,
                description=repo.description,
            )
        registry.save(config_path)

    console.print(f"[green]✓[/green] Synced {len(repos)} repositories to {escape(str(config_path))}")


@app.command("load")
def config_load():
    """Load config.toml into the database."""
    from contrack.config import ConfigFile
    from contrack.paths import get_config_path
    from contrack.storage.db import get_session
    from contrack.storage.models import Repository
    from contrack.storage.records import upsert_repository

    with exit_on_error():
        config_path = get_config_path()
        registry = ConfigFile.load(config_path)
        with get_session() as session:
            for url, entry in registry.repositories.items():
                upsert_repository(
                    session,
                    Repository(
                        url=url,
                        organization=entry.organization,
                        name=entry.name,
                        description=entry.description,
                    ),
                )

    console.print(
        f"[green]✓[/green] Loaded {len(registry.repositories)} repositories from {escape(str(config_path))}"
    )


@app.command("add-org")
def config_add_org(
    id: str = typer.Option(..., "--id", "-i", help="Organization identifier (key in config)"),
    name: str = typer.Option(..., "--name", "-n", help="Organization name"),
    description: Optional[str] = typer.Option(None, "--description", "-d", help="Organization description"),
):
    """Add or replace an organization in config.toml."""
    from contrack.config import ConfigFile, Organization
    from contrack.paths import get_config_path

    with exit_on_error():
        config_path = get_config_path()
        registry = ConfigFile.load_or_new(config_path)
        registry.organizations[id] = Organization(name=name, description=description)
        registry.save(config_path)

    console.print(f"[green]✓[/green] Organization '{escape(id)}' saved to {escape(str(config_path))}")


@app.command("add-repo")
def config_add_repo(
    url: str = typer.Option(..., "--url", "-u", help="Repository URL"),
    org: str = typer.Option(..., "--org", "-o", help="Organization identifier"),
    name: str = typer.Option(..., "--name", "-n", help="Repository name"),
    description: Optional[str] = typer.Option(None, "--description", "-d", help="Repository description"),
):
    """Add a repository to config.toml and the database."""
    from contrack.config import ConfigFile, Organization, RepositoryConfig
    from contrack.paths import get_config_path
    from contrack.storage.db import get_session
    from contrack.storage.models import Repository
    from contrack.storage.records import upsert_repository

    with exit_on_error():
        config_path = get_config_path()
        registry = ConfigFile.load_or_new(config_path)
        if org not in registry.organizations:
            console.print(f"[yellow]Organization '{escape(org)}' not in config; adding it[/yellow]")
            registry.organizations[org] = Organization(name=org)
        registry.repositories[url] = RepositoryConfig(organization=org, name=name, description=description)
        registry.save(config_path)

        with get_session() as session:
            upsert_repository(
                session,
                Repository(url=url, organization=org, name=name, description=description),
            )

    console.print(f"[green]✓[/green] Repository '{escape(name)}' saved to {escape(str(config_path))}")
