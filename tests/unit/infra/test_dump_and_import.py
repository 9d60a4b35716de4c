"""Tests for pg_dump and psql command construction and execution."""

from pathlib import Path
from unittest.mock import Mock

import pytest

from milksync.infra.postgres import (
    ConnectionSpec,
    DumpRequest,
    PgDumpExecutor,
    PsqlImportExecutor,
)
from milksync.infra.postgres.dump import build_dump_command
from milksync.infra.postgres.restore import build_import_command
from milksync.infra.shell import CommandResult, CommandRunner


@pytest.fixture
def remote_spec():
    return ConnectionSpec(
        name="production",
        host="db.example.com",
        port=6543,
        database="shop",
        username="reader",
        password="s3cret",
        sslmode="require",
    )


@pytest.fixture
def mock_runner():
    runner = Mock(spec=CommandRunner)
    runner.run.return_value = CommandResult(success=True, stdout="", stderr="", returncode=0)
    return runner


def test_dump_command_excludes_default_tables(remote_spec, tmp_path):
    request = DumpRequest(
        source=remote_spec,
        output_path=tmp_path / "dump.sql",
        exclude_tables=("sessions", "jobs"),
        flags=("--clean", "--no-owner"),
    )

    assert build_dump_command(request) == [
        "pg_dump",
        "--host",
        "db.example.com",
        "--port",
        "6543",
        "--username",
        "reader",
        "--no-password",
        "--clean",
        "--no-owner",
        "--exclude-table=sessions",
        "--exclude-table=jobs",
        "shop",
    ]


def test_dump_command_with_include_list_emits_no_exclusions(remote_spec, tmp_path):
    request = DumpRequest(
        source=remote_spec,
        output_path=tmp_path / "dump.sql",
        include_tables=("users", "orders"),
        exclude_tables=("sessions",),
    )

    cmd = build_dump_command(request)

    assert "--table=users" in cmd
    assert "--table=orders" in cmd
    assert not any(arg.startswith("--exclude-table") for arg in cmd)
    assert cmd[-1] == "shop"


def test_dump_flags_keep_their_order(remote_spec, tmp_path):
    flags = ("--if-exists", "--clean", "--no-privileges")
    request = DumpRequest(source=remote_spec, output_path=tmp_path / "d.sql", flags=flags)

    cmd = build_dump_command(request)

    start = cmd.index("--if-exists")
    assert tuple(cmd[start : start + 3]) == flags


def test_dump_command_never_contains_password(remote_spec, tmp_path):
    request = DumpRequest(source=remote_spec, output_path=tmp_path / "d.sql")

    assert "s3cret" not in " ".join(build_dump_command(request))


def test_pg_dump_executor_redirects_output_and_passes_password_in_env(
    remote_spec, mock_runner, tmp_path
):
    output = tmp_path / "nested" / "dump.sql"

    def fake_run(cmd, *, env=None, stdout_path=None, stdin_path=None):
        stdout_path.write_text("CREATE TABLE t ();")
        return CommandResult(success=True, stdout="", stderr="", returncode=0)

    mock_runner.run.side_effect = fake_run
    executor = PgDumpExecutor(mock_runner)

    result = executor.dump(DumpRequest(source=remote_spec, output_path=output))

    assert result.success is True
    assert result.bytes_written == len("CREATE TABLE t ();")
    kwargs = mock_runner.run.call_args.kwargs
    assert kwargs["stdout_path"] == output
    assert kwargs["env"] == {"PGPASSWORD": "s3cret", "PGSSLMODE": "require"}


def test_pg_dump_executor_reports_failure_with_stderr(remote_spec, mock_runner, tmp_path):
    mock_runner.run.return_value = CommandResult(
        success=False,
        stdout="",
        stderr='pg_dump: error: password authentication failed for user "reader"',
        returncode=1,
    )
    executor = PgDumpExecutor(mock_runner)

    result = executor.dump(DumpRequest(source=remote_spec, output_path=tmp_path / "d.sql"))

    assert result.success is False
    assert "password authentication failed" in result.error


def test_pg_dump_executor_propagates_spawn_errors(remote_spec, mock_runner, tmp_path):
    mock_runner.run.side_effect = FileNotFoundError("pg_dump")
    executor = PgDumpExecutor(mock_runner)

    with pytest.raises(FileNotFoundError):
        executor.dump(DumpRequest(source=remote_spec, output_path=tmp_path / "d.sql"))


def test_import_command_targets_local_database():
    local = ConnectionSpec(
        name="local",
        host="127.0.0.1",
        database="shop_dev",
        username="postgres",
        password="postgres",
    )

    assert build_import_command(local, ["--quiet"]) == [
        "psql",
        "--host",
        "127.0.0.1",
        "--port",
        "5432",
        "--username",
        "postgres",
        "--no-password",
        "--quiet",
        "--dbname",
        "shop_dev",
    ]


def test_psql_import_executor_feeds_dump_on_stdin(remote_spec, mock_runner):
    executor = PsqlImportExecutor(mock_runner)
    dump_file = Path("/tmp/production_dump.sql")

    result = executor.import_dump(remote_spec, dump_file, ["--quiet"])

    assert result.success is True
    assert mock_runner.run.call_args.kwargs["stdin_path"] == dump_file


def test_psql_import_executor_reports_failure(remote_spec, mock_runner):
    mock_runner.run.return_value = CommandResult(
        success=False, stdout="", stderr="", returncode=3
    )
    executor = PsqlImportExecutor(mock_runner)

    result = executor.import_dump(remote_spec, Path("/tmp/d.sql"), [])

    assert result.success is False
    assert result.error == "psql exited with code 3"
