"""PostgreSQL infrastructure for database sync.

Process-backed implementations of the probe, dump, import and rotation
capabilities the sync orchestrator depends on.
"""

from .connection import ConnectionProbe, ConnectionSpec, ProbeResult, SshTunnelSpec
from .dump import DUMP_BINARY, DumpRequest, DumpResult, PgDumpExecutor
from .restore import IMPORT_BINARY, ImportResult, PsqlImportExecutor
from .rotation import BackupFile, BackupRotator, list_backups
from .tunnel import ssh_tunnel

__all__ = [
    "BackupFile",
    "BackupRotator",
    "ConnectionProbe",
    "ConnectionSpec",
    "DUMP_BINARY",
    "DumpRequest",
    "DumpResult",
    "IMPORT_BINARY",
    "ImportResult",
    "PgDumpExecutor",
    "ProbeResult",
    "PsqlImportExecutor",
    "SshTunnelSpec",
    "list_backups",
    "ssh_tunnel",
]
