"""Tests for the milksync typer commands."""

import os
from pathlib import Path
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from milksync.cli import app
from milksync.core.errors import DumpFailed
from milksync.core.orchestrator import SyncOptions, SyncOutcome

CONFIG_YAML = """
config:
  environment: development
  connections:
    production:
      host: db.example.com
      database: shop
      username: reader
      password: do-not-print-me
    staging:
      host: staging.internal
      database: shop_staging
      username: reader
      password: do-not-print-me
      ssh:
        host: bastion.example.com
        username: deploy
  local:
    host: 127.0.0.1
    database: shop_dev
    username: postgres
    password: postgres
  backup:
    path: {backup_dir}
"""


@pytest.fixture
def cli_runner():
    return CliRunner()


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "milksync.yaml"
    path.write_text(CONFIG_YAML.format(backup_dir=tmp_path / "backups"))
    return path


@patch("milksync.cli.commands.sync.SyncOrchestrator")
def test_sync_builds_options_from_flags(mock_orchestrator, cli_runner, config_file):
    mock_orchestrator.return_value.run.return_value = SyncOutcome.COMPLETED

    result = cli_runner.invoke(
        app,
        [
            "sync",
            "--config-file",
            str(config_file),
            "--connection",
            "staging",
            "--include-only",
            "users, orders",
            "--force",
        ],
    )

    assert result.exit_code == 0, result.output
    config, options = mock_orchestrator.call_args.args
    assert config.connections["staging"].database == "shop_staging"
    assert options == SyncOptions(
        connection="staging",
        include_tables=("users", "orders"),
        force=True,
        dry_run=False,
    )


@patch("milksync.cli.commands.sync.SyncOrchestrator")
def test_sync_cancelled_exits_zero(mock_orchestrator, cli_runner, config_file):
    mock_orchestrator.return_value.run.return_value = SyncOutcome.CANCELLED

    result = cli_runner.invoke(app, ["sync", "--config-file", str(config_file)])

    assert result.exit_code == 0


@patch("milksync.cli.commands.sync.SyncOrchestrator")
def test_sync_dry_run_exits_zero(mock_orchestrator, cli_runner, config_file):
    mock_orchestrator.return_value.run.return_value = SyncOutcome.DRY_RUN

    result = cli_runner.invoke(
        app, ["sync", "--config-file", str(config_file), "--dry-run"]
    )

    assert result.exit_code == 0
    assert mock_orchestrator.call_args.args[1].dry_run is True


@patch("milksync.cli.commands.sync.SyncOrchestrator")
def test_sync_error_exits_one_with_message(mock_orchestrator, cli_runner, config_file):
    mock_orchestrator.return_value.run.side_effect = DumpFailed(
        "Failed to dump production database", details="pg_dump: error"
    )

    result = cli_runner.invoke(app, ["sync", "--config-file", str(config_file)])

    assert result.exit_code == 1
    assert "Sync failed: Failed to dump production database" in result.output


def test_sync_with_missing_config_exits_one(cli_runner, tmp_path):
    result = cli_runner.invoke(
        app, ["sync", "--config-file", str(tmp_path / "missing.yaml")]
    )

    assert result.exit_code == 1
    assert "Could not find configuration file" in result.output


def test_backups_with_missing_config_is_not_reported_as_sync_failure(cli_runner, tmp_path):
    result = cli_runner.invoke(
        app, ["backups", "--config-file", str(tmp_path / "missing.yaml")]
    )

    assert result.exit_code == 1
    assert "Could not find configuration file" in result.output
    assert "Sync failed" not in result.output


def test_backups_lists_newest_first(cli_runner, config_file, tmp_path):
    backup_dir = tmp_path / "backups"
    backup_dir.mkdir()
    for i, name in enumerate(["2026-10-01_10-00-00", "2026-10-02_10-00-00"]):
        path = backup_dir / f"local_backup_{name}.sql"
        path.write_text("-- dump")
        os.utime(path, (1_700_000_000 + i, 1_700_000_000 + i))

    result = cli_runner.invoke(app, ["backups", "--config-file", str(config_file)])

    assert result.exit_code == 0, result.output
    newer = result.output.index("2026-10-02_10-00-00")
    older = result.output.index("2026-10-01_10-00-00")
    assert newer < older


def test_backups_with_empty_directory(cli_runner, config_file):
    result = cli_runner.invoke(app, ["backups", "--config-file", str(config_file)])

    assert result.exit_code == 0
    assert "No backups found" in result.output


def test_connections_never_shows_passwords(cli_runner, config_file):
    result = cli_runner.invoke(app, ["connections", "--config-file", str(config_file)])

    assert result.exit_code == 0, result.output
    assert "production" in result.output
    assert "bastion.example.com" in result.output
    assert "do-not-print-me" not in result.output
