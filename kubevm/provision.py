"""Provisioner for the Buildroot-based VM image."""

from __future__ import annotations

import dataclasses
import enum
import logging
import posixpath
from dataclasses import dataclass, field
from typing import Any, Protocol

_log = logging.getLogger(__name__)


class ProvisionDriver(Protocol):
    """What the provisioner needs from a VM driver."""

    def driver_name(self) -> str: ...


class PackageAction(enum.Enum):
    """What may be asked of a package manager."""

    INSTALL = "install"
    REMOVE = "remove"
    UPGRADE = "upgrade"


@dataclass
class AuthOptions:
    """Locations of the TLS material, locally and on the VM."""

    cert_dir: str = ""
    store_path: str = ""
    ca_cert_remote_path: str = ""
    server_cert_remote_path: str = ""
    server_key_remote_path: str = ""


@dataclass
class EngineOptions:
    """Options passed to the Docker daemon on the VM."""

    env: list[str] = field(default_factory=list)
    labels: list[str] = field(default_factory=list)
    insecure_registry: list[str] = field(default_factory=list)
    registry_mirror: list[str] = field(default_factory=list)
    arbitrary_flags: list[str] = field(default_factory=list)


@dataclass
class DockerOptions:
    """A rendered Docker service unit and where it belongs on the VM."""

    engine_options: str
    engine_options_path: str


_ENGINE_CONFIG = """[Unit]
Description=Docker Application Container Engine
After=network.target docker.socket
Requires=docker.socket

[Service]
Type=notify

# DOCKER_RAMDISK disables pivot_root in Docker, using MS_MOVE instead.
Environment=DOCKER_RAMDISK=yes

ExecStart={exec_start}
ExecReload=/bin/kill -s HUP $MAINPID

# Having non-zero Limit*s causes performance problems due to accounting overhead
# in the kernel. We recommend using cgroups to do container-local accounting.
LimitNOFILE=infinity
LimitNPROC=infinity
LimitCORE=infinity

# Uncomment TasksMax if your systemd version supports it.
# Only systemd 226 and above support this version.
TasksMax=infinity
TimeoutStartSec=0

# set delegate yes so that systemd does not reset the cgroups of docker containers
Delegate=yes

# kill only the docker process, not all processes in the cgroup
KillMode=process

[Install]
WantedBy=multi-user.target
"""

_ESCAPES = {
    "\0": "\ufffd",
    '"': "&#34;",
    "&": "&amp;",
    "'": "&#39;",
    "+": "&#43;",
    "<": "&lt;",
    ">": "&gt;",
}


def _escape(value: Any) -> str:
    return "".join(_ESCAPES.get(ch, ch) for ch in str(value))


@dataclass
class BuildrootProvisioner:
    """Configures Docker on a systemd-based Buildroot VM."""

    driver: ProvisionDriver
    auth_options: AuthOptions = field(default_factory=AuthOptions)
    engine_options: EngineOptions = field(default_factory=EngineOptions)
    swarm_options: dict[str, Any] = field(default_factory=dict)
    docker_options_dir: str = "/etc/docker"
    daemon_options_file: str = "/etc/systemd/system/docker.service"

    def __str__(self) -> str:
        return "buildroot"

    def generate_docker_options(self, docker_port: int) -> DockerOptions:
        """Render the Docker service unit listening on docker_port.

        Adds a provider label naming the driver to the engine options.
        """
        self.engine_options.labels.append(
            f"provider={self.driver.driver_name()}"
        )
        auth = self.auth_options
        engine = self.engine_options
        parts = [
            f"/usr/bin/docker daemon -H tcp://0.0.0.0:{_escape(docker_port)}"
            " -H unix:///var/run/docker.sock --tlsverify"
            f" --tlscacert {_escape(auth.ca_cert_remote_path)}"
            f" --tlscert {_escape(auth.server_cert_remote_path)}"
            f" --tlskey {_escape(auth.server_key_remote_path)} "
        ]
        parts.extend(f"--label {_escape(v)} " for v in engine.labels)
        parts.extend(
            f"--insecure-registry {_escape(v)} " for v in engine.insecure_registry
        )
        parts.extend(
            f"--registry-mirror {_escape(v)} " for v in engine.registry_mirror
        )
        parts.extend(f"--{_escape(v)} " for v in engine.arbitrary_flags)
        return DockerOptions(
            engine_options=_ENGINE_CONFIG.format(exec_start="".join(parts)),
            engine_options_path=self.daemon_options_file,
        )

    def package(self, name: str, action: PackageAction | str) -> None:
        """Accept a package request; the image has no package manager.

        The action must be a known PackageAction (or its value), otherwise
        ValueError is raised. Valid requests change nothing on the VM.
        """
        requested = PackageAction(action)
        _log.debug(
            "skipping %s of package %r: no package manager on %s",
            requested.value,
            name,
            self,
        )


def set_remote_auth_options(provisioner: BuildrootProvisioner) -> AuthOptions:
    """Return the provisioner's auth options with the VM-side paths filled in.

    Paths are joined with forward slashes whatever the local platform.
    """
    docker_dir = provisioner.docker_options_dir
    return dataclasses.replace(
        provisioner.auth_options,
        ca_cert_remote_path=posixpath.join(docker_dir, "ca.pem"),
        server_cert_remote_path=posixpath.join(docker_dir, "server.pem"),
        server_key_remote_path=posixpath.join(docker_dir, "server-key.pem"),
    )