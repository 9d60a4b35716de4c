"""Loading dump files into the local database with psql."""

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from milksync.infra.shell import CommandRunner

from .connection import ConnectionSpec

IMPORT_BINARY = "psql"


@dataclass(frozen=True)
class ImportResult:
    success: bool
    error: str | None = None


def build_import_command(target: ConnectionSpec, flags: Sequence[str]) -> list[str]:
    return [
        IMPORT_BINARY,
        "--host",
        target.host,
        "--port",
        str(target.port),
        "--username",
        target.username,
        "--no-password",
        *flags,
        "--dbname",
        target.database,
    ]


class PsqlImportExecutor:
    """Feeds a dump file to psql on standard input.

    Does not remove the dump file; the caller owns it.
    """

    def __init__(self, runner: CommandRunner | None = None) -> None:
        self._runner = runner or CommandRunner()

    def import_dump(
        self, target: ConnectionSpec, input_path: Path, flags: Sequence[str]
    ) -> ImportResult:
        result = self._runner.run(
            build_import_command(target, flags),
            env=target.tool_env(),
            stdin_path=input_path,
        )
        if not result.success:
            return ImportResult(
                success=False,
                error=result.stderr or f"psql exited with code {result.returncode}",
            )
        return ImportResult(success=True)
