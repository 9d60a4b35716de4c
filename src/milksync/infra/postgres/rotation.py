"""Retention of local database backups.

The backup directory is the only record of past backups: files are found by
name pattern and ordered by modification time every time rotation runs.
"""

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from milksync.utils.console_like import ConsoleLike, coalesce_console

BACKUP_PREFIX = "local_backup_"
BACKUP_GLOB = f"{BACKUP_PREFIX}*.sql"


@dataclass(frozen=True)
class BackupFile:
    path: Path
    created_at: datetime
    size: int


def _sort_key(path: Path) -> tuple[float, str]:
    # Equal mtimes fall back to the name, which embeds a sortable timestamp
    return (path.stat().st_mtime, path.name)


def list_backups(directory: Path) -> list[BackupFile]:
    """Return the backups in a directory, newest first."""
    if not directory.is_dir():
        return []

    paths = sorted(directory.glob(BACKUP_GLOB), key=_sort_key, reverse=True)
    backups = []
    for path in paths:
        stat = path.stat()
        backups.append(
            BackupFile(
                path=path,
                created_at=datetime.fromtimestamp(stat.st_mtime),
                size=stat.st_size,
            )
        )
    return backups


class BackupRotator:
    """Keeps the N most recent local backups and deletes the rest."""

    def __init__(self, console: ConsoleLike | None = None) -> None:
        self._console = coalesce_console(console)

    def rotate(self, directory: Path, keep: int) -> int:
        """Delete the oldest backups beyond the retention count.

        Args:
            directory: Backup directory
            keep: Number of most recent backups to keep; <= 0 disables cleanup

        Returns:
            Number of files deleted
        """
        if keep <= 0 or not directory.is_dir():
            return 0

        backup_files = list(directory.glob(BACKUP_GLOB))
        if len(backup_files) <= keep:
            return 0

        backup_files.sort(key=_sort_key)
        to_delete = backup_files[: len(backup_files) - keep]

        for path in to_delete:
            path.unlink(missing_ok=True)

        self._console.info(f"🧹 Cleaned up {len(to_delete)} old backup(s)")
        return len(to_delete)
