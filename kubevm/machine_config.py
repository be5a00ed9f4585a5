"""Parameters for starting the VM and Kubernetes, and caching of the VM image."""

from __future__ import annotations

import hashlib
import logging
import os
from contextlib import closing
from dataclasses import dataclass, field

import requests

from kubevm import constants
from kubevm.provision import EngineOptions

log = logging.getLogger(__name__)

_FILE_SCHEME = "file"


def _scheme(url: str) -> str | None:
    from urllib.parse import urlsplit

    try:
        return urlsplit(url).scheme
    except ValueError:
        return None


def _base(path: str) -> str:
    """Return the last element of a path or URL, "." for an empty one."""
    trimmed = path.rstrip("/" + os.sep)
    if not trimmed:
        return "/" if path else "."
    return os.path.basename(trimmed.replace("/", os.sep)) or "."


@dataclass
class KubernetesConfig:
    """Parameters used to configure Kubernetes inside the VM."""

    kubernetes_version: str = ""
    node_ip: str = ""
    container_runtime: str = ""
    network_plugin: str = ""


@dataclass
class MachineConfig:
    """Parameters used to start the VM."""

    minikube_iso: str = ""
    memory: int = 0
    cpus: int = 0
    disk_size: int = 0
    vm_driver: str = ""
    # Each entry is formatted as KEY=VALUE.
    docker_env: list[str] = field(default_factory=list)
    insecure_registry: list[str] = field(default_factory=list)
    registry_mirror: list[str] = field(default_factory=list)
    # Only used by the virtualbox driver.
    host_only_cidr: str = ""

    def iso_cache_filepath(self) -> str:
        """Return where the VM image is cached locally."""
        return constants.make_mini_path("cache", "iso", _base(self.minikube_iso))

    def iso_file_uri(self) -> str:
        """Return a file:// URI for the VM image.

        A file:// location is returned unchanged; anything else points at
        the local cache.
        """
        scheme = _scheme(self.minikube_iso)
        if scheme is None or scheme == _FILE_SCHEME:
            return self.minikube_iso
        # A file URL never holds backslashes, whatever the platform.
        return "file://" + self.iso_cache_filepath().replace(os.sep, "/")

    def is_minikube_iso_cached(self) -> bool:
        """Return whether the VM image is already in the cache."""
        try:
            os.stat(self.iso_cache_filepath())
        except FileNotFoundError:
            return False
        except OSError:
            return True
        return True

    def should_cache_minikube_iso(self) -> bool:
        """Return whether the VM image has to be downloaded into the cache."""
        scheme = _scheme(self.minikube_iso)
        if scheme is None or scheme == _FILE_SCHEME:
            return False
        return not self.is_minikube_iso_cached()

    def cache_minikube_iso_from_url(self) -> None:
        """Download the VM image into the cache.

        The default image is checked against its published checksum before
        it is written. Raises RuntimeError on any failure.
        """
        try:
            response = requests.get(self.minikube_iso)
        except requests.RequestException as exc:
            raise RuntimeError(
                f"Error getting minikube iso at {self.minikube_iso} via http: {exc}"
            ) from exc
        with closing(response):
            try:
                iso_data = response.content
            except requests.RequestException as exc:
                raise RuntimeError(
                    f"Error reading minikubeISO url response: {exc}"
                ) from exc

        if self.minikube_iso == constants.DEFAULT_ISO_URL:
            if not is_iso_checksum_valid(iso_data, constants.DEFAULT_ISO_SHA_URL):
                raise RuntimeError("Error validating ISO checksum.")

        if response.status_code != 200:
            raise RuntimeError(
                f"Received {response.status_code} response from {self.minikube_iso} "
                "while trying to download minikube.iso"
            )

        path = self.iso_cache_filepath()
        try:
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, "wb") as out:
                out.write(iso_data)
        except OSError as exc:
            raise RuntimeError(f"Error writing iso data to file: {exc}") from exc


def is_iso_checksum_valid(iso_data: bytes, sha_url: str) -> bool:
    """Return whether iso_data matches the SHA-256 published at sha_url."""
    try:
        response = requests.get(sha_url)
    except requests.RequestException as exc:
        log.error("Error downloading ISO checksum: %s", exc)
        return False
    with closing(response):
        if response.status_code != 200:
            log.error(
                "Error downloading ISO checksum. Got HTTP Error: %s",
                response.status_code,
            )
            return False
        try:
            body = response.text
        except requests.RequestException as exc:
            log.error("Error reading ISO checksum: %s", exc)
            return False

    expected = body.strip("\n")
    actual = hashlib.sha256(bytes(iso_data)).hexdigest()
    if expected != actual:
        log.error(
            "Downloaded ISO checksum does not match expected value. "
            "Actual: %s. Expected: %s",
            actual,
            expected,
        )
        return False
    return True


def engine_options(config: MachineConfig) -> EngineOptions:
    """Return the Docker engine options described by a machine configuration."""
    return EngineOptions(
        env=list(config.docker_env),
        insecure_registry=list(config.insecure_registry),
        registry_mirror=list(config.registry_mirror),
    )