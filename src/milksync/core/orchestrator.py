"""Sync orchestration.

Replicates a remote PostgreSQL database into the local development database:
pre-flight checks, optional dry-run report, confirmation, local backup,
remote dump, import and backup rotation. Every step blocks until the
previous one has finished; nothing here runs concurrently.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from pathlib import Path

from loguru import logger

from milksync.core.errors import (
    BackupAborted,
    ConfigError,
    DumpFailed,
    EnvironmentGuardError,
    ImportFailed,
    Unreachable,
)
from milksync.core.executors import (
    DumpExecutor,
    ImportExecutor,
    Probe,
    Rotator,
    TunnelFactory,
)
from milksync.infra.postgres import (
    DUMP_BINARY,
    IMPORT_BINARY,
    BackupRotator,
    ConnectionProbe,
    ConnectionSpec,
    DumpRequest,
    PgDumpExecutor,
    PsqlImportExecutor,
    ssh_tunnel,
)
from milksync.infra.postgres.rotation import BACKUP_PREFIX
from milksync.infra.shell import CommandRunner
from milksync.runtime.config import SyncConfig
from milksync.utils.console_like import ConsoleLike, coalesce_console

TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"


class SyncState(StrEnum):
    INIT = "init"
    CONFIG_LOADED = "config_loaded"
    ENVIRONMENT_VALIDATED = "environment_validated"
    DRY_RUN_REPORT = "dry_run_report"
    CONFIRMED = "confirmed"
    LOCAL_BACKED_UP = "local_backed_up"
    REMOTE_DUMPED = "remote_dumped"
    LOCAL_IMPORTED = "local_imported"
    BACKUPS_ROTATED = "backups_rotated"
    FAILED = "failed"


class SyncOutcome(StrEnum):
    COMPLETED = "completed"
    DRY_RUN = "dry_run"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class SyncOptions:
    """Per-run options.

    Attributes:
        connection: Remote connection name (None uses the configured default)
        include_tables: Only sync these tables; empty means all tables
        force: Skip the confirmation prompt
        dry_run: Report what would happen without touching any data
    """

    connection: str | None = None
    include_tables: tuple[str, ...] = ()
    force: bool = False
    dry_run: bool = False

    @classmethod
    def from_cli(
        cls,
        *,
        connection: str | None = None,
        include_only: str | None = None,
        force: bool = False,
        dry_run: bool = False,
    ) -> SyncOptions:
        tables: tuple[str, ...] = ()
        if include_only:
            tables = tuple(t.strip() for t in include_only.split(",") if t.strip())
        return cls(
            connection=connection,
            include_tables=tables,
            force=force,
            dry_run=dry_run,
        )


class SyncOrchestrator:
    """Runs one sync of a remote database into the local database.

    Configuration is passed in whole at construction; collaborators default
    to the process-backed PostgreSQL implementations.
    """

    def __init__(
        self,
        config: SyncConfig,
        options: SyncOptions,
        *,
        confirm: Callable[[str], bool],
        console: ConsoleLike | None = None,
        probe: Probe | None = None,
        dumper: DumpExecutor | None = None,
        importer: ImportExecutor | None = None,
        rotator: Rotator | None = None,
        tool_available: Callable[[str], bool] = CommandRunner.is_available,
        tunnel: TunnelFactory = ssh_tunnel,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._config = config
        self._options = options
        self._confirm = confirm
        self._console = coalesce_console(console)
        self._probe = probe or ConnectionProbe()
        self._dumper = dumper or PgDumpExecutor()
        self._importer = importer or PsqlImportExecutor()
        self._rotator = rotator or BackupRotator(self._console)
        self._tool_available = tool_available
        self._tunnel = tunnel
        self._clock = clock

        self._state = SyncState.INIT
        self.backup_file: Path | None = None

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def backup_dir(self) -> Path:
        return self._config.backup.path

    @property
    def connection_name(self) -> str:
        return self._options.connection or self._config.default_connection

    def run(self) -> SyncOutcome:
        """Run the sync.

        Returns:
            COMPLETED, DRY_RUN, or CANCELLED when the operator declined

        Raises:
            SyncError: Any fatal failure; the state becomes FAILED
            OSError: If an external tool cannot be spawned
        """
        try:
            return self._run()
        except BaseException:
            self._state = SyncState.FAILED
            raise

    def _run(self) -> SyncOutcome:
        remote, local = self._load_configuration()
        self._validate_environment()

        with self._tunnel(remote, self._console) as reachable:
            self._check_connection(reachable)
            self._state = SyncState.ENVIRONMENT_VALIDATED

            if self._options.dry_run:
                self._show_dry_run(remote, local)
                self._state = SyncState.DRY_RUN_REPORT
                return SyncOutcome.DRY_RUN

            if not self._confirm_sync(remote, local):
                self._console.info("Sync cancelled.")
                return SyncOutcome.CANCELLED
            self._state = SyncState.CONFIRMED

            self._create_backup(local)
            self._state = SyncState.LOCAL_BACKED_UP

            self._sync_database(reachable, local)

        self._cleanup_old_backups()
        self._state = SyncState.BACKUPS_ROTATED
        self._console.ok("Database sync completed successfully!")
        return SyncOutcome.COMPLETED

    # ------------------------------------------------------------------
    # Pre-flight
    # ------------------------------------------------------------------

    def _load_configuration(self) -> tuple[ConnectionSpec, ConnectionSpec]:
        name = self.connection_name
        connection = self._config.connections.get(name)
        if connection is None:
            raise ConfigError(f"Connection '{name}' not found in config")

        remote = ConnectionSpec.load(name, connection, kind="remote")
        local = ConnectionSpec.load("local", self._config.local, kind="local")
        self._state = SyncState.CONFIG_LOADED
        logger.debug(f"Resolved connection '{name}' -> {remote.host}:{remote.port}")
        return remote, local

    def _validate_environment(self) -> None:
        if self._config.is_production:
            raise EnvironmentGuardError(
                "This command cannot be run in production environment!"
            )

        for binary in (DUMP_BINARY, IMPORT_BINARY):
            if not self._tool_available(binary):
                raise EnvironmentGuardError(
                    f"{binary} is not available. Please install the PostgreSQL client tools."
                )

    def _check_connection(self, remote: ConnectionSpec) -> None:
        name = self.connection_name
        self._console.info(f"🔍 Testing {name} database connection...")

        result = self._probe.probe(remote)
        if not result.ok:
            raise Unreachable(
                f"Cannot connect to {name} database", details=result.message
            )

        self._console.ok(f"{name} database connection successful")

    # ------------------------------------------------------------------
    # Dry run and confirmation
    # ------------------------------------------------------------------

    def dry_run_rows(
        self, remote: ConnectionSpec, local: ConnectionSpec
    ) -> list[tuple[str, str]]:
        include = self._options.include_tables
        excludes = self._config.default_excludes
        if include:
            excluded = "None (include-list given)"
        else:
            excluded = ", ".join(excludes) or "None"

        return [
            ("Source Database", f"{remote.name}: {remote.database}"),
            ("Target Database", f"local: {local.database}"),
            ("Include Only", ", ".join(include) or "All tables"),
            ("Excluded Tables", excluded),
        ]

    def _show_dry_run(self, remote: ConnectionSpec, local: ConnectionSpec) -> None:
        self._console.info("🔍 Dry Run Mode - Showing what would be executed:")
        self._console.print_table(
            "Dry Run", ["Action", "Details"], self.dry_run_rows(remote, local)
        )

    def _confirm_sync(self, remote: ConnectionSpec, local: ConnectionSpec) -> bool:
        if self._options.force:
            return True

        self._console.warn(
            f"This will replace your local database '{local.database}' "
            f"with data from {remote.name} '{remote.database}'"
        )
        return self._confirm("Do you want to continue?")

    # ------------------------------------------------------------------
    # Destructive steps
    # ------------------------------------------------------------------

    def _timestamp(self) -> str:
        return self._clock().strftime(TIMESTAMP_FORMAT)

    def _create_backup(self, local: ConnectionSpec) -> None:
        if not self._config.backup.enabled:
            self._console.info("Local backups are disabled; skipping backup")
            return

        self._console.info("📦 Creating backup of local database...")
        self.backup_dir.mkdir(parents=True, exist_ok=True)
        backup_file = self.backup_dir / f"{BACKUP_PREFIX}{self._timestamp()}.sql"

        try:
            result = self._dumper.dump(
                DumpRequest(
                    source=local,
                    output_path=backup_file,
                    flags=tuple(self._config.postgres.dump_options),
                )
            )
        except OSError:
            backup_file.unlink(missing_ok=True)
            raise

        if result.success:
            self.backup_file = backup_file
            self._console.ok(f"Backup created: {backup_file.name}")
            return

        # A failed dump must not be mistaken for a backup during rotation
        backup_file.unlink(missing_ok=True)
        self._console.warn(f"Backup failed: {result.error}")
        if not self._confirm("Continue without backup?"):
            raise BackupAborted(
                "Sync cancelled due to backup failure", details=result.error
            )

    def _sync_database(self, remote: ConnectionSpec, local: ConnectionSpec) -> None:
        name = self.connection_name
        self._console.info("🔄 Starting database sync...")

        self.backup_dir.mkdir(parents=True, exist_ok=True)
        dump_file = self.backup_dir / f"{name}_dump_{self._timestamp()}.sql"

        try:
            self._console.print(f"📥 Dumping {name} database...")
            dumped = self._dumper.dump(
                DumpRequest(
                    source=remote,
                    output_path=dump_file,
                    include_tables=self._options.include_tables,
                    exclude_tables=tuple(self._config.default_excludes),
                    flags=tuple(self._config.postgres.dump_options),
                )
            )
            if not dumped.success:
                raise DumpFailed(f"Failed to dump {name} database", details=dumped.error)
            self._state = SyncState.REMOTE_DUMPED
            logger.debug(f"Dumped {dumped.bytes_written} bytes to {dump_file}")

            self._console.print("📤 Importing to local database...")
            imported = self._importer.import_dump(
                local, dump_file, self._config.postgres.import_options
            )
            if not imported.success:
                raise ImportFailed("Failed to import database", details=imported.error)
            self._state = SyncState.LOCAL_IMPORTED
        finally:
            dump_file.unlink(missing_ok=True)

    def _cleanup_old_backups(self) -> None:
        if not self._config.backup.auto_cleanup:
            return

        try:
            self._rotator.rotate(self.backup_dir, self._config.backup.keep_backups)
        except OSError as e:
            self._console.warn(f"Could not clean up old backups: {e}")
