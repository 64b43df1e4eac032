"""
evalex CLI application.

Registers the expression commands and the global options.
"""

from __future__ import annotations

import typer

from evalex.cli.expr import eval_command, tokens_command, tree_command
from evalex.cli.utils import configure_logging, version_callback

app = typer.Typer(
    help="evalex: parse and evaluate small expressions",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    version: bool | None = typer.Option(
        None,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show version and environment information",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log debug output to stderr",
    ),
) -> None:
    """evalex CLI main callback for global options."""
    configure_logging(verbose)


app.command(name="eval")(eval_command)
app.command(name="tree")(tree_command)
app.command(name="tokens")(tokens_command)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
