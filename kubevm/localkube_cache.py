"""Local caching of localkube binaries and their transfer to the VM."""

from __future__ import annotations

import os
import shutil
from contextlib import closing
from dataclasses import dataclass
from typing import Any, BinaryIO, Iterable
from urllib.parse import quote_plus, urlsplit

import paramiko
import requests

from kubevm import constants
from kubevm.sshutil import transfer
from kubevm.util import get_localkube_download_url, retry

_REMOTE_DIR = "/usr/local/bin"
_REMOTE_NAME = "localkube"
_REMOTE_PERM = "0777"
_CHUNK_SIZE = 64 * 1024


@dataclass
class LocalkubeCacher:
    """Caches the localkube binary for a Kubernetes version or URL."""

    kubernetes_version: str

    def cache_filepath(self) -> str:
        """Return where the binary for this version is cached."""
        name = os.path.basename(
            quote_plus("localkube-" + self.kubernetes_version, safe="")
        )
        return constants.make_mini_path("cache", "localkube", name)

    def is_cached(self) -> bool:
        """Return whether the binary is already in the cache."""
        try:
            os.stat(self.cache_filepath())
        except FileNotFoundError:
            return False
        except OSError:
            return True
        return True

    def cache(self, body: BinaryIO | Iterable[bytes]) -> None:
        """Store the binary read from body in the cache, closing body afterwards."""
        path = self.cache_filepath()
        try:
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, "wb") as out:
                if hasattr(body, "read"):
                    shutil.copyfileobj(body, out)
                else:
                    for chunk in body:
                        out.write(chunk)
        except OSError as exc:
            raise OSError(
                exc.errno, f"Error writing localkube to file: {exc.strerror}", path
            ) from exc
        finally:
            close = getattr(body, "close", None)
            if close is not None:
                close()

    def download_and_cache(self) -> None:
        """Download the binary, retrying up to five times, and cache it."""

        def downloader() -> requests.Response:
            try:
                url = get_localkube_download_url(
                    self.kubernetes_version, constants.LOCALKUBE_LINUX_FILENAME
                )
            except ValueError as exc:
                raise RuntimeError(
                    f"Error getting localkube download url: {exc}"
                ) from exc
            try:
                return requests.get(url, stream=True)
            except requests.RequestException as exc:
                raise RuntimeError(
                    f"Error downloading localkube via http: {exc}"
                ) from exc

        try:
            response = retry(5, downloader)
        except Exception as exc:
            raise RuntimeError(
                f"Max error attempts retrying localkube downloader: {exc}"
            ) from exc
        with closing(response):
            try:
                self.cache(response.iter_content(chunk_size=_CHUNK_SIZE))
            except (OSError, requests.RequestException) as exc:
                raise RuntimeError(
                    f"Error caching localkube to local directory: {exc}"
                ) from exc

    def update_from_uri(self, client: paramiko.SSHClient | Any) -> None:
        """Put the binary named by the version on the VM, from a file or a URL."""
        try:
            scheme = urlsplit(self.kubernetes_version).scheme
        except ValueError as exc:
            raise RuntimeError(
                f"Error parsing --kubernetes-version url: {exc}"
            ) from exc
        if scheme == "file":
            self.update_from_file(client)
        else:
            self.update_from_url(client)

    def update_from_url(self, client: paramiko.SSHClient | Any) -> None:
        """Download the binary unless cached, then copy it to the VM."""
        if not self.is_cached():
            try:
                self.download_and_cache()
            except RuntimeError as exc:
                raise RuntimeError(
                    f"Error attempting to download and cache localkube: {exc}"
                ) from exc
        try:
            self.transfer_cached_to_vm(client)
        except (OSError, RuntimeError) as exc:
            raise RuntimeError(
                f"Error transferring cached localkube to VM: {exc}"
            ) from exc

    def transfer_cached_to_vm(self, client: paramiko.SSHClient | Any) -> None:
        """Copy the cached binary to the VM."""
        with open(self.cache_filepath(), "rb") as handle:
            contents = handle.read()
        try:
            transfer(contents, len(contents), _REMOTE_DIR, _REMOTE_NAME, _REMOTE_PERM, client)
        except Exception as exc:
            raise RuntimeError(
                f"Error transferring cached localkube to VM via ssh: {exc}"
            ) from exc

    def update_from_file(self, client: paramiko.SSHClient | Any) -> None:
        """Copy the local file named by a file:// version to the VM."""
        path = self.kubernetes_version.removeprefix("file://").replace("/", os.sep)
        try:
            with open(path, "rb") as handle:
                contents = handle.read()
        except OSError as exc:
            raise RuntimeError(
                f"Error reading localkube file at {path}: {exc}"
            ) from exc
        try:
            transfer(contents, len(contents), _REMOTE_DIR, _REMOTE_NAME, _REMOTE_PERM, client)
        except Exception as exc:
            raise RuntimeError(
                f"Error transferring specified localkube file at {path} to VM via ssh: {exc}"
            ) from exc