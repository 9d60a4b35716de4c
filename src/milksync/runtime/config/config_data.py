"""Configuration models for milksync.

These mirror the `config:` section of milksync.yaml. Connection entries are
kept permissive here; required fields are enforced when a connection is
resolved into a ConnectionSpec so the error can name the missing field.
"""

import os
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_DUMP_OPTIONS = [
    "--clean",
    "--if-exists",
    "--no-owner",
    "--no-privileges",
]

DEFAULT_IMPORT_OPTIONS = [
    "--quiet",
    "--no-psqlrc",
]


class SshTunnelConfig(BaseModel):
    """SSH tunnel used to reach a remote database."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    enabled: bool = True
    host: str | None = None
    port: int = 22
    username: str | None = None
    key_path: str | None = None
    local_port: int = 54330


class ConnectionConfig(BaseModel):
    """Raw connection settings for one database."""

    # ${VAR} values are substituted before parsing, so numeric secrets arrive as ints
    model_config = ConfigDict(coerce_numbers_to_str=True)

    host: str | None = None
    port: int | None = 5432
    database: str | None = None
    username: str | None = None
    password: str | None = None
    sslmode: str = "prefer"
    ssh: SshTunnelConfig | None = None


class BackupConfig(BaseModel):
    """Local backup settings."""

    enabled: bool = True
    path: Path = Path("storage/db-backups")
    keep_backups: int = 3
    auto_cleanup: bool = True


class PostgresToolConfig(BaseModel):
    """Flags passed verbatim to pg_dump and psql."""

    dump_options: list[str] = Field(default_factory=lambda: list(DEFAULT_DUMP_OPTIONS))
    import_options: list[str] = Field(
        default_factory=lambda: list(DEFAULT_IMPORT_OPTIONS)
    )


class SyncConfig(BaseModel):
    """Top-level milksync configuration."""

    environment: str = Field(
        default_factory=lambda: os.getenv("APP_ENVIRONMENT", "development")
    )
    connections: dict[str, ConnectionConfig] = Field(default_factory=dict)
    default_connection: str = "production"
    default_excludes: list[str] = Field(default_factory=list)
    local: ConnectionConfig = Field(default_factory=ConnectionConfig)
    backup: BackupConfig = Field(default_factory=BackupConfig)
    postgres: PostgresToolConfig = Field(default_factory=PostgresToolConfig)

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() == "production"
