"""Main CLI application module.

Commands:
- sync: replicate a remote database into the local development database
- backups: list local backups
- connections: list configured remote connections
"""

import sys
from typing import Annotated

import typer
from loguru import logger

from .commands import backups, connections, sync

app = typer.Typer(
    help="🔄 MilkSync - Sync a remote PostgreSQL database to your local environment",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


@app.callback()
def configure(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logging on stderr"),
    ] = False,
) -> None:
    """Configure logging for all commands."""
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")


app.command()(sync)
app.command()(backups)
app.command()(connections)


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
