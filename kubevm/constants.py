"""Paths, defaults and configuration keys shared across the package."""

from __future__ import annotations

import os
import sys
from pathlib import Path

# Name of the VM.
MACHINE_NAME = "minikube"

# Port the API server listens on.
API_SERVER_PORT = 8443

# The user's local state directory. Read at call time by make_mini_path.
MINIPATH = os.path.join(str(Path.home()), ".minikube")

# Path to the Kubernetes client configuration.
KUBECONFIG_PATH = os.path.join(str(Path.home()), ".kube", "config")

# kubeconfig context name used for the local cluster.
MINIKUBE_CONTEXT = "minikube"

# Prefix for environment variables.
MINIKUBE_ENV_PREFIX = "MINIKUBE"

# Only these flags are passed along to localkube.
LOG_FLAGS = ("v", "vmodule")

DEFAULT_ISO_URL = "https://storage.googleapis.com/minikube/minikube-0.7.iso"
DEFAULT_ISO_SHA_URL = "https://storage.googleapis.com/minikube/minikube-0.7.iso.sha256"
DEFAULT_MEMORY = 1024
DEFAULT_CPUS = 1
DEFAULT_DISK_SIZE = "20g"
DEFAULT_VM_DRIVER = "virtualbox"
DEFAULT_STATUS_FORMAT = (
    "minikubeVM: {{.MinikubeStatus}}\n"
    "localkube: {{.LocalkubeStatus}}\n"
)
GITHUB_MINIKUBE_RELEASES_URL = "https://storage.googleapis.com/minikube/releases.json"

# Kubernetes version bundled as the default localkube.
DEFAULT_KUBERNETES_VERSION = "v1.4.0"

REMOTE_LOCALKUBE_ERR_PATH = "/var/lib/localkube/localkube.err"
REMOTE_LOCALKUBE_OUT_PATH = "/var/lib/localkube/localkube.out"
LOCALKUBE_PID_PATH = "/var/run/localkube.pid"

LOCALKUBE_DOWNLOAD_URL_PREFIX = "https://storage.googleapis.com/minikube/k8sReleases/"
LOCALKUBE_LINUX_FILENAME = "localkube-linux-amd64"

# API version implemented by Docker inside the VM.
DOCKER_API_VERSION = "1.23"

# Configuration keys.
WANT_UPDATE_NOTIFICATION = "WantUpdateNotification"
REMINDER_WAIT_PERIOD_IN_HOURS = "ReminderWaitPeriodInHours"
WANT_REPORT_ERROR = "WantReportError"

_DRIVERS_BY_PLATFORM = {
    "darwin": ("virtualbox", "xhyve", "vmwarefusion"),
    "linux": ("virtualbox", "kvm"),
    "windows": ("virtualbox", "hyperv"),
    "gendocs": ("virtualbox", "vmwarefusion", "kvm", "xhyve", "hyperv"),
}

_PLATFORM_ALIASES = {"win32": "windows", "cygwin": "windows"}


def make_mini_path(*args: str) -> str:
    """Join path components onto the local state directory."""
    return os.path.join(MINIPATH, *args)


CONFIG_FILE_PATH = make_mini_path("config")
CONFIG_FILE = make_mini_path("config", "config.json")


def supported_vm_drivers(platform: str | None = None) -> tuple[str, ...]:
    """Return the VM drivers supported on a platform.

    The platform defaults to the running one. "gendocs" lists every driver.
    Raises ValueError for a platform with no supported drivers.
    """
    name = sys.platform if platform is None else platform
    name = _PLATFORM_ALIASES.get(name, name)
    if name.startswith("linux"):
        name = "linux"
    try:
        return _DRIVERS_BY_PLATFORM[name]
    except KeyError:
        raise ValueError(f"Unsupported platform: {platform!r}") from None