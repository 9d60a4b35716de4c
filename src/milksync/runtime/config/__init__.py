from .config_data import (
    BackupConfig,
    ConnectionConfig,
    PostgresToolConfig,
    SshTunnelConfig,
    SyncConfig,
)
from .config_loader import default_config_path, load_config

__all__ = [
    "BackupConfig",
    "ConnectionConfig",
    "PostgresToolConfig",
    "SshTunnelConfig",
    "SyncConfig",
    "default_config_path",
    "load_config",
]
