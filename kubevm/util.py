"""Retries, error collection and error reporting helpers."""

from __future__ import annotations

import json
import os
import stat
import threading
import time
import traceback
from dataclasses import dataclass, field
from typing import Any, Callable, TextIO
from urllib.parse import urlsplit

import requests
import semver

from kubevm import constants
from kubevm.version import VERSION_PREFIX, get_version


class _CombinedError(RuntimeError):
    """Several errors reported as one, one message per line."""

    def __init__(self, errors: list[BaseException]) -> None:
        super().__init__("\n".join(str(err) for err in errors))
        self.errors = list(errors)


@dataclass
class MultiError:
    """Collects errors and combines them into a single one."""

    errors: list[BaseException] = field(default_factory=list)

    def collect(self, err: BaseException | None) -> None:
        """Add an error; None is ignored."""
        if err is not None:
            self.errors.append(err)

    def to_error(self) -> Exception | None:
        """Return one error holding every collected message, or None."""
        if not self.errors:
            return None
        return _CombinedError(self.errors)


def pad(text: str) -> str:
    """Surround text with newlines."""
    return f"\n{text}\n"


def until(
    fn: Callable[[], Any],
    stream: TextIO,
    name: str,
    sleep: float,
    done: threading.Event,
) -> None:
    """Call fn repeatedly until done is set, reporting each outcome to stream.

    Waits sleep seconds between calls.
    """
    while not done.is_set():
        try:
            fn()
        except Exception as exc:  # every failure is reported and retried
            stream.write(pad("%s: Exit with error: %s") % (name, exc))
        else:
            stream.write(pad("%s: Exited with no errors.\n") % name)
        done.wait(sleep)


def can_read_file(path: str | os.PathLike[str]) -> bool:
    """Return True if the file exists and can be opened for reading."""
    try:
        with open(path, "rb"):
            return True
    except OSError:
        return False


def retry(attempts: int, callback: Callable[[], Any]) -> Any:
    """Call callback up to attempts times without waiting between tries."""
    return retry_after(attempts, callback, 0)


def retry_after(attempts: int, callback: Callable[[], Any], delay: float) -> Any:
    """Call callback until it succeeds, at most attempts times.

    Sleeps delay seconds after each failure. Returns the callback's result;
    if every attempt fails, raises an error combining all of their messages.
    """
    collected = MultiError()
    for _ in range(attempts):
        try:
            return callback()
        except Exception as exc:
            collected.collect(exc)
            time.sleep(delay)
    err = collected.to_error()
    if err is not None:
        raise err
    return None


def get_localkube_download_url(version_or_url: str, filename: str) -> str:
    """Return the download URL for a localkube version, or the URL given.

    Raises ValueError if the input is neither an absolute URL nor a
    semantic version.
    """
    try:
        parts = urlsplit(version_or_url)
    except ValueError as exc:
        raise ValueError(f"Error parsing localkube download url: {exc}") from exc
    if parts.scheme:
        return version_or_url
    if not version_or_url.startswith("v"):
        version_or_url = "v" + version_or_url
    bare = version_or_url[len(VERSION_PREFIX):]
    try:
        semver.Version.parse(bare)
    except ValueError as exc:
        raise ValueError(
            "Error creating semver version from localkube version input string: "
            f"{exc}"
        ) from exc
    return f"{constants.LOCALKUBE_DOWNLOAD_URL_PREFIX}{version_or_url}/{filename}"


def is_directory(path: str | os.PathLike[str]) -> bool:
    """Return whether path is a directory; raises OSError if it cannot be stat'd."""
    try:
        info = os.stat(path)
    except OSError as exc:
        raise OSError(
            exc.errno, f"Error calling stat on file {path}: {exc.strerror}", str(path)
        ) from exc
    return stat.S_ISDIR(info.st_mode)


def format_error(err: BaseException | None) -> str:
    """Format an error and its traceback for an error-reporting service.

    Raises ValueError if err is None or carries no traceback.
    """
    if err is None:
        raise ValueError("Error: ReportError was called with nil error value")
    frames = traceback.extract_tb(err.__traceback__) if err.__traceback__ else []
    if not frames:
        raise ValueError("Error msg with no stack trace cannot be reported")
    lines = [str(err)]
    lines.extend(
        f"\tat {frame.name} ({os.path.basename(frame.filename)}:{frame.lineno})"
        for frame in reversed(frames)
    )
    return "\n".join(lines) + "\n"


def marshall_error(err_msg: str, service: str, version: str) -> bytes:
    """Encode an error report as JSON."""
    message = {
        "message": err_msg,
        "serviceContext": {"service": service, "version": version},
    }
    return json.dumps(message, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def upload_error(data: bytes, url: str) -> None:
    """POST an encoded error report; raises RuntimeError on a non-200 reply."""
    response = requests.post(
        url, data=data, headers={"Content-Type": "application/json"}
    )
    if response.status_code != 200:
        raise RuntimeError(
            f"Error sending error report to {url}, got response code "
            f"{response.status_code}"
        )


def report_error(err: BaseException, url: str) -> None:
    """Format, encode and upload an error report."""
    err_msg = format_error(err)
    data = marshall_error(err_msg, "default", get_version())
    upload_error(data, url)