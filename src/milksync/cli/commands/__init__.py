"""CLI command modules.

- sync: replicate a remote database into the local database
- backups: list local backups
- connections: list configured remote connections
"""

from .info import backups, connections
from .sync import sync

__all__ = ["backups", "connections", "sync"]
