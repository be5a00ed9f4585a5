"""SSH helpers: connecting to the VM, running commands and copying files."""

from __future__ import annotations

import io
import posixpath
from dataclasses import dataclass
from typing import Any, BinaryIO, Protocol

import paramiko

_CHUNK_SIZE = 32 * 1024


class SSHDriver(Protocol):
    """What a VM driver must offer to be reached over SSH."""

    def get_ssh_hostname(self) -> str: ...

    def get_ssh_port(self) -> int: ...

    def get_ssh_key_path(self) -> str: ...

    def get_ssh_username(self) -> str: ...


@dataclass
class SSHHost:
    """Connection details for a host reachable over SSH."""

    ip: str
    port: int
    ssh_key_path: str
    username: str


def new_ssh_host(driver: SSHDriver) -> SSHHost:
    """Collect the SSH connection details from a driver."""
    try:
        ip = driver.get_ssh_hostname()
    except Exception as exc:
        raise RuntimeError(f"Error getting ssh host name for driver: {exc}") from exc
    try:
        port = driver.get_ssh_port()
    except Exception as exc:
        raise RuntimeError(f"Error getting ssh port for driver: {exc}") from exc
    return SSHHost(
        ip=ip,
        port=port,
        ssh_key_path=driver.get_ssh_key_path(),
        username=driver.get_ssh_username(),
    )


def new_ssh_client(driver: SSHDriver) -> paramiko.SSHClient:
    """Open an SSH connection to the driver's host."""
    try:
        host = new_ssh_host(driver)
    except RuntimeError as exc:
        raise RuntimeError(f"Error creating new ssh host from driver: {exc}") from exc
    client = paramiko.SSHClient()
    client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
    options: dict[str, Any] = {
        "hostname": host.ip,
        "port": host.port,
        "username": host.username,
        "look_for_keys": False,
        "allow_agent": False,
    }
    if host.ssh_key_path:
        options["key_filename"] = [host.ssh_key_path]
    try:
        client.connect(**options)
    except (paramiko.SSHException, OSError) as exc:
        client.close()
        raise RuntimeError(f"Error dialing tcp via ssh client: {exc}") from exc
    return client


def run_command(client: paramiko.SSHClient, cmd: str) -> None:
    """Run a command on the remote host; raises RuntimeError on a non-zero exit."""
    _stdin, stdout, _stderr = client.exec_command(cmd)
    channel = stdout.channel
    try:
        status = channel.recv_exit_status()
    finally:
        channel.close()
    if status != 0:
        raise RuntimeError(f"Process exited with status {status}")


def transfer(
    reader: BinaryIO | bytes,
    length: int,
    remote_dir: str,
    filename: str,
    perm: str,
    client: paramiko.SSHClient,
) -> None:
    """Copy data to remote_dir/filename on the remote host using scp.

    The old file is removed first so that its permissions are reset.
    """
    if isinstance(reader, (bytes, bytearray, memoryview)):
        reader = io.BytesIO(bytes(reader))

    delete_cmd = f"sudo rm -f {posixpath.join(remote_dir, filename)}"
    mkdir_cmd = f"sudo mkdir -p {remote_dir}"
    for cmd in (delete_cmd, mkdir_cmd):
        try:
            run_command(client, cmd)
        except Exception as exc:
            raise RuntimeError(f"Error running command: {cmd}: {exc}") from exc

    try:
        channel = client.get_transport().open_session()
    except Exception as exc:
        raise RuntimeError(f"Error creating new session via ssh client: {exc}") from exc

    try:
        channel.exec_command(f"sudo scp -t {remote_dir}")
        channel.sendall(f"C{perm} {length} {filename}\n".encode())
        while chunk := reader.read(_CHUNK_SIZE):
            channel.sendall(chunk)
        channel.sendall(b"\x00")
        channel.shutdown_write()
        status = channel.recv_exit_status()
    finally:
        channel.close()
    if status != 0:
        raise RuntimeError(
            f"Error running scp command: process exited with status {status}"
        )