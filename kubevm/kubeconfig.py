"""Reading and writing Kubernetes client configuration files."""

from __future__ import annotations

import base64
import binascii
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator

import yaml


@dataclass
class Cluster:
    """How to reach a cluster."""

    server: str = ""
    api_version: str = ""
    insecure_skip_tls_verify: bool = False
    certificate_authority: str = ""
    certificate_authority_data: bytes = b""
    extensions: dict[str, Any] = field(default_factory=dict)
    location_of_origin: str = ""


@dataclass
class AuthInfo:
    """Credentials for a user."""

    client_certificate: str = ""
    client_certificate_data: bytes = b""
    client_key: str = ""
    client_key_data: bytes = b""
    token: str = ""
    username: str = ""
    password: str = ""
    extensions: dict[str, Any] = field(default_factory=dict)
    location_of_origin: str = ""


@dataclass
class Context:
    """A named pairing of a cluster and a user."""

    cluster: str = ""
    auth_info: str = ""
    namespace: str = ""
    extensions: dict[str, Any] = field(default_factory=dict)
    location_of_origin: str = ""


@dataclass
class Config:
    """A complete client configuration."""

    kind: str = "Config"
    api_version: str = "v1"
    colors: bool = False
    clusters: dict[str, Cluster] = field(default_factory=dict)
    auth_infos: dict[str, AuthInfo] = field(default_factory=dict)
    contexts: dict[str, Context] = field(default_factory=dict)
    current_context: str = ""
    extensions: dict[str, Any] = field(default_factory=dict)


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _named_list(entries: dict[str, Any], key: str) -> list[dict[str, Any]]:
    return [{"name": name, key: value} for name, value in sorted(entries.items())]


def _put(doc: dict[str, Any], key: str, value: Any) -> None:
    if value:
        doc[key] = value


def _encode_cluster(cluster: Cluster) -> dict[str, Any]:
    doc: dict[str, Any] = {"server": cluster.server}
    _put(doc, "api-version", cluster.api_version)
    _put(doc, "insecure-skip-tls-verify", cluster.insecure_skip_tls_verify)
    _put(doc, "certificate-authority", cluster.certificate_authority)
    if cluster.certificate_authority_data:
        doc["certificate-authority-data"] = _b64(cluster.certificate_authority_data)
    _put(doc, "extensions", _named_list(cluster.extensions, "extension"))
    return doc


def _encode_auth_info(auth: AuthInfo) -> dict[str, Any]:
    doc: dict[str, Any] = {}
    _put(doc, "client-certificate", auth.client_certificate)
    if auth.client_certificate_data:
        doc["client-certificate-data"] = _b64(auth.client_certificate_data)
    _put(doc, "client-key", auth.client_key)
    if auth.client_key_data:
        doc["client-key-data"] = _b64(auth.client_key_data)
    _put(doc, "token", auth.token)
    _put(doc, "username", auth.username)
    _put(doc, "password", auth.password)
    _put(doc, "extensions", _named_list(auth.extensions, "extension"))
    return doc


def _encode_context(context: Context) -> dict[str, Any]:
    doc: dict[str, Any] = {"cluster": context.cluster, "user": context.auth_info}
    _put(doc, "namespace", context.namespace)
    _put(doc, "extensions", _named_list(context.extensions, "extension"))
    return doc


def _encode(config: Config) -> bytes:
    doc: dict[str, Any] = {
        "apiVersion": config.api_version,
        "kind": config.kind,
        "preferences": {"colors": True} if config.colors else {},
        "clusters": [
            {"name": name, "cluster": _encode_cluster(c)}
            for name, c in sorted(config.clusters.items())
        ],
        "users": [
            {"name": name, "user": _encode_auth_info(a)}
            for name, a in sorted(config.auth_infos.items())
        ],
        "contexts": [
            {"name": name, "context": _encode_context(c)}
            for name, c in sorted(config.contexts.items())
        ],
        "current-context": config.current_context,
    }
    _put(doc, "extensions", _named_list(config.extensions, "extension"))
    return yaml.safe_dump(doc, default_flow_style=False, sort_keys=True).encode("utf-8")


def _mapping(value: Any, what: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"{what} must be a mapping")
    return value


def _named_entries(value: Any, key: str, what: str) -> Iterator[tuple[str, dict[str, Any]]]:
    if value is None:
        return
    if not isinstance(value, list):
        raise ValueError(f"{what} must be a list")
    for entry in value:
        entry = _mapping(entry, f"entry in {what}")
        name = entry.get("name")
        if not isinstance(name, str):
            raise ValueError(f"entry in {what} has no name")
        yield name, _mapping(entry.get(key), f"{key} {name!r}")


def _extensions(doc: dict[str, Any]) -> dict[str, Any]:
    return dict(
        (name, entry)
        for name, entry in _named_entries_raw(doc.get("extensions"))
    )


def _named_entries_raw(value: Any) -> Iterator[tuple[str, Any]]:
    if value is None:
        return
    if not isinstance(value, list):
        raise ValueError("extensions must be a list")
    for entry in value:
        entry = _mapping(entry, "extension entry")
        name = entry.get("name")
        if not isinstance(name, str):
            raise ValueError("extension entry has no name")
        yield name, entry.get("extension")


def _data(doc: dict[str, Any], key: str) -> bytes:
    value = doc.get(key)
    if not value:
        return b""
    try:
        return base64.b64decode(str(value), validate=True)
    except binascii.Error as exc:
        raise ValueError(f"invalid base64 in {key}: {exc}") from exc


def _text(doc: dict[str, Any], key: str) -> str:
    value = doc.get(key)
    return "" if value is None else str(value)


def _decode(data: bytes) -> Config:
    if not data:
        return Config()
    try:
        doc = yaml.safe_load(data)
    except yaml.YAMLError as exc:
        raise ValueError(f"Error decoding config from data: {exc}") from exc
    if doc is None:
        return Config()
    doc = _mapping(doc, "config")
    kind = doc.get("kind") or "Config"
    if kind != "Config":
        raise ValueError(f"unexpected kind {kind!r}")
    prefs = _mapping(doc.get("preferences"), "preferences")
    config = Config(
        kind=kind,
        api_version=_text(doc, "apiVersion") or "v1",
        colors=bool(prefs.get("colors", False)),
        current_context=_text(doc, "current-context"),
        extensions=_extensions(doc),
    )
    for name, c in _named_entries(doc.get("clusters"), "cluster", "clusters"):
        config.clusters[name] = Cluster(
            server=_text(c, "server"),
            api_version=_text(c, "api-version"),
            insecure_skip_tls_verify=bool(c.get("insecure-skip-tls-verify", False)),
            certificate_authority=_text(c, "certificate-authority"),
            certificate_authority_data=_data(c, "certificate-authority-data"),
            extensions=_extensions(c),
        )
    for name, u in _named_entries(doc.get("users"), "user", "users"):
        config.auth_infos[name] = AuthInfo(
            client_certificate=_text(u, "client-certificate"),
            client_certificate_data=_data(u, "client-certificate-data"),
            client_key=_text(u, "client-key"),
            client_key_data=_data(u, "client-key-data"),
            token=_text(u, "token"),
            username=_text(u, "username"),
            password=_text(u, "password"),
            extensions=_extensions(u),
        )
    for name, c in _named_entries(doc.get("contexts"), "context", "contexts"):
        config.contexts[name] = Context(
            cluster=_text(c, "cluster"),
            auth_info=_text(c, "user"),
            namespace=_text(c, "namespace"),
            extensions=_extensions(c),
        )
    return config


def read_config_or_new(filename: str | os.PathLike[str]) -> Config:
    """Read a client configuration; a missing or empty file gives an empty one.

    Raises ValueError if the file cannot be decoded.
    """
    try:
        data = Path(filename).read_bytes()
    except FileNotFoundError:
        return Config()
    try:
        return _decode(data)
    except ValueError as exc:
        raise ValueError(f"could not read config: {exc}") from exc


def write_config(config: Config, filename: str | os.PathLike[str]) -> None:
    """Write config to filename, replacing its contents, readable only by the owner."""
    if config is None:
        raise ValueError(f"could not write to '{filename}': config can't be nil")
    data = _encode(config)
    parent = os.path.dirname(os.fspath(filename))
    if parent and not os.path.exists(parent):
        os.makedirs(parent, mode=0o755, exist_ok=True)
    fd = os.open(filename, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "wb") as handle:
        handle.write(data)