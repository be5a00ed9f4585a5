"""Listing of the Kubernetes versions available for localkube."""

from __future__ import annotations

import logging
from typing import Any, TextIO

import requests

log = logging.getLogger(__name__)

KUBERNETES_VERSION_GCS_URL = "https://storage.googleapis.com/minikube/k8s_releases.json"


def _version_of(entry: Any) -> str:
    if not isinstance(entry, dict):
        raise RuntimeError("expected a list of kubernetes releases")
    for key, value in entry.items():
        if isinstance(key, str) and key.lower() == "version":
            return str(value)
    return ""


def get_k8s_versions_from_url(url: str) -> list[str]:
    """Fetch the available Kubernetes versions listed at url.

    Raises RuntimeError if the list cannot be fetched, decoded, or is empty.
    """
    try:
        data = requests.get(url).json()
    except (requests.RequestException, ValueError) as exc:
        raise RuntimeError(
            f"Error getting json via http with url: {url}: {exc}"
        ) from exc
    if data is None:
        data = []
    if not isinstance(data, list):
        raise RuntimeError(
            f"Error getting json via http with url: {url}: expected a list"
        )
    versions = [_version_of(entry) for entry in data]
    if not versions:
        raise RuntimeError(
            f"There were no json k8s Releases at the url specified: {url}"
        )
    return versions


def print_kubernetes_versions(output: TextIO, url: str) -> None:
    """Write the versions listed at url to output; logs and writes nothing on error."""
    try:
        versions = get_k8s_versions_from_url(url)
    except RuntimeError as exc:
        log.error("%s", exc)
        return
    output.write("The following Kubernetes versions are available: \n")
    for version in versions:
        output.write(f"\t- {version}\n")


def print_kubernetes_versions_from_gcs(output: TextIO) -> None:
    """Write the officially published Kubernetes versions to output."""
    print_kubernetes_versions(output, KUBERNETES_VERSION_GCS_URL)