"""Read-only commands for inspecting configuration and backups."""

from milksync.cli.commands.sync import ConfigFileOption, load_settings
from milksync.cli.shared.console import console, with_error_handling
from milksync.infra.postgres import list_backups


@with_error_handling
def backups(config_file: ConfigFileOption = None) -> None:
    """List local backups, newest first."""
    settings = load_settings(config_file)
    found = list_backups(settings.backup.path)

    if not found:
        console.info(f"No backups found in {settings.backup.path}")
        return

    rows = [
        (
            backup.path.name,
            backup.created_at.strftime("%Y-%m-%d %H:%M:%S"),
            f"{backup.size / 1024:.1f} KiB",
        )
        for backup in found
    ]
    console.print_table(
        f"Backups in {settings.backup.path} (keeping {settings.backup.keep_backups})",
        ["File", "Created", "Size"],
        rows,
    )


@with_error_handling
def connections(config_file: ConfigFileOption = None) -> None:
    """List configured remote connections. Passwords are never shown."""
    settings = load_settings(config_file)

    if not settings.connections:
        console.warn("No connections configured")
        return

    rows = []
    for name, conn in settings.connections.items():
        marker = " (default)" if name == settings.default_connection else ""
        via = "direct"
        if conn.ssh and conn.ssh.enabled:
            via = f"ssh {conn.ssh.username}@{conn.ssh.host}"
        rows.append(
            (
                f"{name}{marker}",
                f"{conn.host or '-'}:{conn.port or 5432}",
                conn.database or "-",
                via,
            )
        )
    console.print_table("Connections", ["Name", "Host", "Database", "Route"], rows)
