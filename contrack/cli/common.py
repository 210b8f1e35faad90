"""Helpers shared by the CLI command modules."""

import logging
from contextlib import contextmanager
from typing import Iterator

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from contrack.exceptions import ContrackError

err_console = Console(stderr=True)


def setup_logging(verbose: bool = False) -> None:
    from contrack.config import get_settings

    level = logging.DEBUG if verbose else get_settings().log_level.upper()
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, show_time=False, console=err_console)],
    )


@contextmanager
def exit_on_error() -> Iterator[None]:
    """Turn contrack errors into a red message and exit status 1."""
    try:
        yield
    except ContrackError as e:
        err_console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)
