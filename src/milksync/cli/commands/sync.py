"""The `sync` command: replicate a remote database into the local one."""

from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv

from milksync.cli.shared.console import console, with_error_handling
from milksync.core.errors import SyncError
from milksync.core.orchestrator import SyncOptions, SyncOrchestrator, SyncOutcome
from milksync.runtime.config import SyncConfig, load_config

ConfigFileOption = Annotated[
    Path | None,
    typer.Option(
        "--config-file",
        help="Path to milksync.yaml (default: $MILKSYNC_CONFIG or ./milksync.yaml)",
    ),
]


def load_settings(config_file: Path | None) -> SyncConfig:
    """Load .env and the YAML configuration."""
    load_dotenv()
    return load_config(config_file)


@with_error_handling
def sync(
    connection: Annotated[
        str | None,
        typer.Option(
            "--connection",
            "-c",
            help="Remote connection name (default: default_connection from config)",
        ),
    ] = None,
    include_only: Annotated[
        str | None,
        typer.Option(
            "--include-only",
            help="Comma-separated list of tables to include only",
        ),
    ] = None,
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Skip confirmation prompts"),
    ] = False,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Show what would be done without executing"),
    ] = False,
    config_file: ConfigFileOption = None,
) -> None:
    """Sync a remote database to the local development database.

    Backs up the local database, dumps the remote database (minus the default
    excluded tables), imports the dump locally and rotates old backups.

    Examples:
        milksync sync
        milksync sync --connection staging --include-only users,orders
        milksync sync --dry-run
    """
    console.print_header("🔄 MilkSync")

    options = SyncOptions.from_cli(
        connection=connection,
        include_only=include_only,
        force=force,
        dry_run=dry_run,
    )
    try:
        settings = load_settings(config_file)
        orchestrator = SyncOrchestrator(
            settings,
            options,
            confirm=console.confirm,
            console=console,
        )
        outcome = orchestrator.run()
    except SyncError as e:
        console.handle_error(f"Sync failed: {e.message}", e.details)
        return

    if outcome is SyncOutcome.CANCELLED:
        raise typer.Exit(0)
