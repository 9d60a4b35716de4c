"""Database dumps with pg_dump.

Used for both the local backup (full dump) and the remote dump (filtered by
the include-list or the default exclusion list).
"""

from dataclasses import dataclass, field
from pathlib import Path

from milksync.infra.shell import CommandRunner

from .connection import ConnectionSpec

DUMP_BINARY = "pg_dump"


@dataclass(frozen=True)
class DumpRequest:
    """One pg_dump invocation.

    Attributes:
        source: Database to dump
        output_path: File the dump is written to
        include_tables: Only dump these tables (empty means all)
        exclude_tables: Skip these tables; ignored when include_tables is set
        flags: Extra pg_dump flags, passed verbatim and in order
    """

    source: ConnectionSpec
    output_path: Path
    include_tables: tuple[str, ...] = ()
    exclude_tables: tuple[str, ...] = ()
    flags: tuple[str, ...] = field(default_factory=tuple)

    def table_filter_args(self) -> list[str]:
        if self.include_tables:
            return [f"--table={table}" for table in self.include_tables]
        return [f"--exclude-table={table}" for table in self.exclude_tables]


@dataclass(frozen=True)
class DumpResult:
    success: bool
    path: Path
    bytes_written: int = 0
    error: str | None = None


def build_dump_command(request: DumpRequest) -> list[str]:
    """Build the pg_dump argument list for a request.

    The password is not part of the command; see ConnectionSpec.tool_env().
    """
    src = request.source
    return [
        DUMP_BINARY,
        "--host",
        src.host,
        "--port",
        str(src.port),
        "--username",
        src.username,
        "--no-password",
        *request.flags,
        *request.table_filter_args(),
        src.database,
    ]


class PgDumpExecutor:
    """Runs pg_dump with its output redirected to the request's file."""

    def __init__(self, runner: CommandRunner | None = None) -> None:
        self._runner = runner or CommandRunner()

    def dump(self, request: DumpRequest) -> DumpResult:
        """Dump a database to request.output_path.

        Returns:
            DumpResult; a non-zero exit is reported, not raised

        Raises:
            OSError: If pg_dump cannot be spawned or the output file cannot be opened
        """
        request.output_path.parent.mkdir(parents=True, exist_ok=True)
        result = self._runner.run(
            build_dump_command(request),
            env=request.source.tool_env(),
            stdout_path=request.output_path,
        )

        if not result.success:
            return DumpResult(
                success=False,
                path=request.output_path,
                error=result.stderr or f"pg_dump exited with code {result.returncode}",
            )

        return DumpResult(
            success=True,
            path=request.output_path,
            bytes_written=request.output_path.stat().st_size,
        )
