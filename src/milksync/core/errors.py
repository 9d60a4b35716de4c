"""Error kinds raised by the sync orchestrator.

Components report expected failures as result objects; the orchestrator
turns the fatal ones into these exceptions, and the CLI reports them as a
single failure message.
"""


class SyncError(Exception):
    """Base class for fatal sync errors."""

    def __init__(self, message: str, details: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class ConfigError(SyncError):
    """Connection configuration is missing or invalid."""


class EnvironmentGuardError(SyncError):
    """The current environment is not allowed to run a sync."""


class Unreachable(SyncError):
    """The connectivity probe could not reach the remote database."""


class BackupAborted(SyncError):
    """The local backup failed and the operator declined to continue."""


class DumpFailed(SyncError):
    """The remote dump failed. The local database is untouched."""


class ImportFailed(SyncError):
    """The import into the local database failed.

    The local database may be partially imported.
    """
