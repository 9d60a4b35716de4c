import os
from pathlib import Path

# Keep the developer's shell from leaking into config defaults
os.environ["APP_ENVIRONMENT"] = "test"
os.environ.pop("MILKSYNC_CONFIG", None)
os.environ.pop("MILKSYNC_SECRETS_DIR", None)
# Wide enough that rich tables are not wrapped in captured CLI output
os.environ["COLUMNS"] = "200"

import pytest

from milksync.runtime.config import (
    BackupConfig,
    ConnectionConfig,
    SyncConfig,
)
from tests.fakes import (
    FakeDumpExecutor,
    FakeImportExecutor,
    FakeProbe,
    FakeServer,
    FakeTunnel,
    RecordingConsole,
)


@pytest.fixture
def backup_dir(tmp_path: Path) -> Path:
    return tmp_path / "db-backups"


@pytest.fixture
def sync_config(backup_dir: Path) -> SyncConfig:
    """A development config with one remote and a local database."""
    return SyncConfig(
        environment="development",
        connections={
            "production": ConnectionConfig(
                host="db.example.com",
                port=5432,
                database="shop",
                username="reader",
                password="s3cret",
            ),
        },
        default_connection="production",
        default_excludes=["sessions", "jobs"],
        local=ConnectionConfig(
            host="127.0.0.1",
            port=5432,
            database="shop_dev",
            username="postgres",
            password="postgres",
        ),
        backup=BackupConfig(path=backup_dir, keep_backups=3),
    )


@pytest.fixture
def server() -> FakeServer:
    return FakeServer(
        {
            "shop": {"t": {3, 4, 5}, "sessions": {9}},
            "shop_dev": {"t": {1, 2}},
        }
    )


@pytest.fixture
def probe() -> FakeProbe:
    return FakeProbe()


@pytest.fixture
def dumper(server: FakeServer) -> FakeDumpExecutor:
    return FakeDumpExecutor(server)


@pytest.fixture
def importer(server: FakeServer) -> FakeImportExecutor:
    return FakeImportExecutor(server)


@pytest.fixture
def tunnel() -> FakeTunnel:
    return FakeTunnel()


@pytest.fixture
def recording_console() -> RecordingConsole:
    return RecordingConsole()
