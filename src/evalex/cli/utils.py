"""
evalex CLI utilities.

Shared helpers used across CLI modules.
"""

from __future__ import annotations

import logging
import platform

import typer
from rich.console import Console
from rich.markup import escape

from evalex._version import get_version
from evalex.core.errors import ExpressionError

console = Console()
err_console = Console(stderr=True)


def version_callback(value: bool) -> None:
    """Display version and environment information."""
    if value:
        typer.echo(f"evalex version {get_version()}")
        typer.echo(f"  Python:        {platform.python_implementation()} {platform.python_version()}")
        typer.echo(f"  Platform:      {platform.system()} {platform.release()}")
        raise typer.Exit()


def configure_logging(verbose: bool) -> None:
    """Send debug records to stderr when --verbose is given."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(name)s %(levelname)s: %(message)s",
        )


def fail(error: ExpressionError) -> typer.Exit:
    """Print an expression error to stderr and return the exit to raise."""
    err_console.print(f"[red]{type(error).__name__}:[/red]", escape(str(error)), highlight=False)
    return typer.Exit(code=1)
