"""SSH tunnel context manager for remote databases behind a bastion host.

Starts `ssh -N -L` for the duration of the context and yields the connection
spec rewritten to point at the tunnel's local end.
"""

import socket
import subprocess
import time
from collections.abc import Iterator
from contextlib import contextmanager

from loguru import logger

from milksync.core.errors import Unreachable
from milksync.utils.console_like import ConsoleLike, coalesce_console

from .connection import ConnectionSpec

SSH_BINARY = "ssh"


def _is_port_in_use(port: int, host: str = "127.0.0.1") -> bool:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        try:
            sock.bind((host, port))
            return False
        except OSError:
            return True


def build_tunnel_command(spec: ConnectionSpec) -> list[str]:
    if spec.ssh is None:
        raise ValueError(f"Connection '{spec.name}' has no SSH tunnel configured")

    ssh = spec.ssh
    cmd = [
        SSH_BINARY,
        "-N",
        "-o",
        "ExitOnForwardFailure=yes",
        "-o",
        "BatchMode=yes",
        "-p",
        str(ssh.port),
        "-L",
        f"{ssh.local_port}:{spec.host}:{spec.port}",
    ]
    if ssh.key_path:
        cmd += ["-i", ssh.key_path]
    cmd.append(f"{ssh.username}@{ssh.host}")
    return cmd


@contextmanager
def ssh_tunnel(
    spec: ConnectionSpec,
    console: ConsoleLike | None = None,
    *,
    wait_time: float = 2.0,
) -> Iterator[ConnectionSpec]:
    """Open an SSH tunnel to the spec's database if it has one.

    Connections without an SSH descriptor are yielded unchanged.

    Args:
        spec: Remote connection spec
        console: Console for progress output
        wait_time: Seconds to wait for ssh to establish the forward

    Yields:
        The spec to connect through (127.0.0.1:local_port when tunneled)

    Raises:
        Unreachable: If the local port is taken or ssh exits early
    """
    if spec.ssh is None:
        yield spec
        return

    out = coalesce_console(console)
    local_port = spec.ssh.local_port
    if _is_port_in_use(local_port):
        raise Unreachable(f"Local tunnel port {local_port} is already in use")

    out.info(f"Opening SSH tunnel via {spec.ssh.username}@{spec.ssh.host}")
    process = subprocess.Popen(
        build_tunnel_command(spec),
        stdout=subprocess.DEVNULL,
        stderr=subprocess.PIPE,
        text=True,
    )

    time.sleep(wait_time)

    if process.poll() is not None:
        _, stderr = process.communicate()
        raise Unreachable(
            f"SSH tunnel to {spec.ssh.host} failed to start", details=stderr.strip()
        )

    logger.debug(f"SSH tunnel active: 127.0.0.1:{local_port} -> {spec.host}:{spec.port}")

    try:
        yield spec.through_tunnel()
    finally:
        if process.poll() is None:
            process.terminate()
            try:
                process.wait(timeout=5)
            except subprocess.TimeoutExpired:
                process.kill()
                process.wait()
        logger.debug("SSH tunnel closed")
