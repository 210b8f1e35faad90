"""CLI commands for managing prompt and rule loadouts."""

from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from contrack.cli.common import exit_on_error

app = typer.Typer(no_args_is_help=True)
console = Console()


@app.command("list")
def list_loadouts():
    """List all loadouts."""
    from contrack.storage.db import get_session
    from contrack.storage.loadouts import list_loadouts as _list_loadouts

    with exit_on_error():
        with get_session() as session:
            loadouts = _list_loadouts(session)

    table = Table(title="Loadouts")
    table.add_column("Name", style="cyan")
    table.add_column("Default", justify="center")
    table.add_column("Prompts", justify="right")
    table.add_column("Rules", justify="right")
    table.add_column("Description")
    for lo in loadouts:
        default = "[green]YES[/green]" if lo.is_default else ""
        table.add_row(
            escape(lo.name), default, str(lo.prompt_count), str(lo.rule_count), escape(lo.description or "")
        )
    console.print(table)


@app.command("create")
def create_loadout(
    name: str = typer.Argument(help="Loadout name"),
    description: Optional[str] = typer.Option(None, "--description", "-d", help="What this loadout is for"),
):
    """Create a new empty loadout."""
    from contrack.storage.db import get_session
    from contrack.storage.loadouts import create_loadout as _create_loadout

    with exit_on_error():
        with get_session() as session:
            _create_loadout(session, name, description=description)

    console.print(f"[green]✓[/green] Loadout [cyan]{escape(name)}[/cyan] created")


@app.command("load")
def load_loadout(name: str = typer.Argument(help="Loadout name")):
    """Load a loadout: delete every prompt and rule not in it."""
    from contrack.storage.db import get_session
    from contrack.storage.loadouts import load_loadout as _load_loadout

    with exit_on_error():
        with get_session() as session:
            prompts_removed, rules_removed = _load_loadout(session, name)

    console.print(
        f"[green]✓[/green] Loadout [cyan]{escape(name)}[/cyan] loaded "
        f"({prompts_removed} prompts and {rules_removed} rules removed)"
    )


@app.command("save")
def save_loadout(name: str = typer.Argument(help="Loadout name")):
    """Save the current prompts and rules into a loadout."""
    from contrack.storage.db import get_session
    from contrack.storage.loadouts import save_loadout as _save_loadout

    with exit_on_error():
        with get_session() as session:
            _save_loadout(session, name)

    console.print(f"[green]✓[/green] Current prompts and rules saved to [cyan]{escape(name)}[/cyan]")


@app.command("delete")
def delete_loadout(name: str = typer.Argument(help="Loadout name")):
    """Delete a loadout (the default loadout cannot be deleted)."""
    from contrack.storage.db import get_session
    from contrack.storage.loadouts import delete_loadout as _delete_loadout

    with exit_on_error():
        with get_session() as session:
            _delete_loadout(session, name)

    console.print(f"[green]✓[/green] Loadout [cyan]{escape(name)}[/cyan] deleted")


@app.command("reload-default")
def reload_default():
    """Reload the default loadout."""
    from contrack.storage.db import get_session
    from contrack.storage.loadouts import reload_default_loadout

    with exit_on_error():
        with get_session() as session:
            prompts_removed, rules_removed = reload_default_loadout(session)

    console.print(
        f"[green]✓[/green] Default loadout reloaded "
        f"({prompts_removed} prompts and {rules_removed} rules removed)"
    )
