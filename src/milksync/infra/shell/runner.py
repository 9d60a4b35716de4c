"""Command runner for executing external database tools.

pg_dump and psql are both invoked through this runner so that output
redirection, environment handling and result capture behave the same way
for every external process.
"""

from __future__ import annotations

import os
import shutil
import subprocess
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

from loguru import logger


@dataclass(frozen=True)
class CommandResult:
    """Outcome of an external command.

    Attributes:
        success: Whether the command exited with code 0
        stdout: Captured standard output (empty when redirected to a file)
        stderr: Captured standard error
        returncode: Process exit code
    """

    success: bool
    stdout: str
    stderr: str
    returncode: int


class CommandRunner:
    """Low-level command executor with consistent result handling.

    Commands are always run as argument lists, never through a shell, so
    file redirection is done with real file handles instead of `>` and `<`.
    """

    def run(
        self,
        cmd: Sequence[str],
        *,
        env: Mapping[str, str] | None = None,
        stdout_path: Path | None = None,
        stdin_path: Path | None = None,
    ) -> CommandResult:
        """Execute a command and return a structured result.

        Blocks until the command exits; no timeout is applied.

        Args:
            cmd: Command and arguments as a sequence
            env: Extra environment variables layered over os.environ
            stdout_path: Write standard output to this file instead of capturing it
            stdin_path: Feed this file to the command's standard input

        Returns:
            CommandResult with success status, output, and return code

        Raises:
            OSError: If the process cannot be spawned or a file cannot be opened
        """
        merged_env = {**os.environ, **env} if env else None
        logger.debug(f"Running: {' '.join(cmd)}")

        stdout_file = open(stdout_path, "wb") if stdout_path else None
        stdin_file = open(stdin_path, "rb") if stdin_path else None
        try:
            result = subprocess.run(
                list(cmd),
                env=merged_env,
                stdin=stdin_file,
                stdout=stdout_file if stdout_file else subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
        except OSError:
            # Spawn failed, so the output file is empty
            if stdout_file:
                stdout_file.close()
                stdout_path.unlink(missing_ok=True)
            raise
        finally:
            if stdout_file:
                stdout_file.close()
            if stdin_file:
                stdin_file.close()

        stdout = result.stdout.decode(errors="replace") if result.stdout else ""
        stderr = result.stderr.decode(errors="replace") if result.stderr else ""
        logger.debug(f"{cmd[0]} exited with code {result.returncode}")

        return CommandResult(
            success=result.returncode == 0,
            stdout=stdout,
            stderr=stderr.strip(),
            returncode=result.returncode,
        )

    @staticmethod
    def is_available(binary: str) -> bool:
        """Check whether a binary is on the execution path."""
        return shutil.which(binary) is not None
