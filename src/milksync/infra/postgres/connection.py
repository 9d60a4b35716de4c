"""PostgreSQL connection specs and the connectivity probe."""

from contextlib import closing
from dataclasses import dataclass
from typing import Any

import psycopg2
from loguru import logger
from pydantic import BaseModel, ConfigDict

from milksync.core.errors import ConfigError
from milksync.runtime.config.config_data import ConnectionConfig

REQUIRED_FIELDS = ("host", "database", "username", "password")

PROBE_TIMEOUT_SECONDS = 10


class SshTunnelSpec(BaseModel):
    """Validated SSH tunnel descriptor."""

    model_config = ConfigDict(frozen=True)

    host: str
    port: int = 22
    username: str
    key_path: str | None = None
    local_port: int = 54330


class ConnectionSpec(BaseModel):
    """Immutable connection details for one database.

    Built from a ConnectionConfig with all required fields checked, so
    components never see a half-configured connection.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    host: str
    port: int = 5432
    database: str
    username: str
    password: str
    sslmode: str = "prefer"
    ssh: SshTunnelSpec | None = None

    @classmethod
    def load(
        cls, name: str, config: ConnectionConfig, *, kind: str = "remote"
    ) -> "ConnectionSpec":
        """Validate a raw connection config.

        Args:
            name: Connection name used in messages and temp file names
            config: Raw settings from milksync.yaml
            kind: "remote" or "local", used in error messages

        Raises:
            ConfigError: Naming the first missing required field
        """
        for key in REQUIRED_FIELDS:
            if not getattr(config, key):
                raise ConfigError(f"Missing {kind} database configuration: {key}")

        ssh: SshTunnelSpec | None = None
        if config.ssh is not None and config.ssh.enabled:
            for key in ("host", "username"):
                if not getattr(config.ssh, key):
                    raise ConfigError(f"Missing SSH tunnel configuration: {key}")
            ssh = SshTunnelSpec(
                host=str(config.ssh.host),
                port=config.ssh.port,
                username=str(config.ssh.username),
                key_path=config.ssh.key_path,
                local_port=config.ssh.local_port,
            )

        return cls(
            name=name,
            host=str(config.host),
            port=config.port or 5432,
            database=str(config.database),
            username=str(config.username),
            password=str(config.password),
            sslmode=config.sslmode,
            ssh=ssh,
        )

    def through_tunnel(self) -> "ConnectionSpec":
        """Return the spec as seen through its SSH tunnel's local end."""
        if self.ssh is None:
            return self
        return self.model_copy(update={"host": "127.0.0.1", "port": self.ssh.local_port})

    def get_dsn(self) -> dict[str, Any]:
        """Get connection parameters for psycopg2.connect()."""
        return {
            "host": self.host,
            "port": self.port,
            "dbname": self.database,
            "user": self.username,
            "password": self.password,
            "sslmode": self.sslmode,
            "connect_timeout": PROBE_TIMEOUT_SECONDS,
        }

    def tool_env(self) -> dict[str, str]:
        """Environment for pg_dump/psql so the password stays off the command line."""
        return {"PGPASSWORD": self.password, "PGSSLMODE": self.sslmode}


@dataclass(frozen=True)
class ProbeResult:
    ok: bool
    message: str


class ConnectionProbe:
    """Checks that a database accepts connections.

    Uses a real psycopg2 handshake bounded by PROBE_TIMEOUT_SECONDS.
    """

    def probe(self, spec: ConnectionSpec) -> ProbeResult:
        try:
            with closing(psycopg2.connect(**spec.get_dsn())) as conn:
                with conn.cursor() as cur:
                    cur.execute("SELECT version()")
                    row = cur.fetchone()
        except psycopg2.Error as e:
            logger.debug(f"Probe of {spec.host}:{spec.port} failed: {e}")
            return ProbeResult(ok=False, message=str(e).strip())

        if row:
            return ProbeResult(ok=True, message=f"Connected: {row[0]}")
        return ProbeResult(ok=True, message="Connected")
