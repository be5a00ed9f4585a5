"""Checks for newer releases and prints an update notice."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, TextIO

import requests
import semver

from kubevm import constants
from kubevm.version import VERSION_PREFIX, get_semver_version

log = logging.getLogger(__name__)

UPDATE_LINK_PREFIX = "https://github.com/kubernetes/minikube/releases/tag/v"

# The moment used when no previous check has been recorded.
ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)

_DAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
_MONTHS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)
_TIME_PATTERN = re.compile(
    r"^(?:%s), (\d{2}) (%s) (\d{4}) (\d{2}):(\d{2}):(\d{2}) [A-Za-z]+$"
    % ("|".join(_DAYS), "|".join(_MONTHS))
)

_UPDATE_TEXT = """There is a newer version of minikube available ({prefix}{latest}).  Download it here:
{link}{latest}
To disable this notification, add WantUpdateNotification: False to the json config file at {config}
(you may have to create the file config.json in this folder if you have no previous configuration)
"""


@dataclass
class Release:
    """A published release and the checksums of its artifacts."""

    name: str
    checksums: dict[str, str] = field(default_factory=dict)


@dataclass
class NotifySettings:
    """User preferences controlling update notifications."""

    want_update_notification: bool = True
    reminder_wait_period_in_hours: float = 24.0


def _format_time(when: datetime) -> str:
    when = when.astimezone(timezone.utc)
    return (
        f"{_DAYS[when.weekday()]}, {when.day:02d} {_MONTHS[when.month - 1]} "
        f"{when.year:04d} {when.hour:02d}:{when.minute:02d}:{when.second:02d} UTC"
    )


def _parse_time(text: str) -> datetime:
    match = _TIME_PATTERN.match(text.strip())
    if match is None:
        raise ValueError(f"cannot parse time {text!r}")
    day, month, year, hour, minute, second = match.groups()
    return datetime(
        int(year), _MONTHS.index(month) + 1, int(day),
        int(hour), int(minute), int(second), tzinfo=timezone.utc,
    )


def write_time_to_file(path: str | Path, when: datetime) -> None:
    """Record a moment in the file at path."""
    try:
        Path(path).write_text(_format_time(when), encoding="ascii")
    except OSError as exc:
        raise OSError(
            exc.errno, f"Error writing current update time to file: {exc.strerror}"
        ) from exc


def get_time_from_file_if_exists(path: str | Path) -> datetime:
    """Return the moment recorded at path, or ZERO_TIME if there is none."""
    try:
        text = Path(path).read_text(encoding="ascii")
    except (OSError, UnicodeDecodeError):
        return ZERO_TIME
    try:
        return _parse_time(text)
    except ValueError:
        return ZERO_TIME


def should_check_url_version(
    file_path: str | Path, settings: NotifySettings | None = None
) -> bool:
    """Return whether it is time to look for a newer release."""
    settings = settings or NotifySettings()
    if not settings.want_update_notification:
        return False
    last = get_time_from_file_if_exists(file_path)
    hours = (datetime.now(timezone.utc) - last).total_seconds() / 3600
    return hours >= settings.reminder_wait_period_in_hours


def _field(entry: dict[str, Any], name: str) -> Any:
    if name in entry:
        return entry[name]
    for key, value in entry.items():
        if isinstance(key, str) and key.lower() == name.lower():
            return value
    return None


def get_all_versions_from_url(url: str) -> list[Release]:
    """Fetch the list of releases published at url.

    Raises RuntimeError if it cannot be fetched, decoded, or is empty.
    """
    log.info("Checking for updates...")
    try:
        data = requests.get(url).json()
    except (requests.RequestException, ValueError) as exc:
        raise RuntimeError(
            f"Error getting json from minikube version url: {exc}"
        ) from exc
    if data is None:
        data = []
    if not isinstance(data, list) or not all(isinstance(d, dict) for d in data):
        raise RuntimeError(
            "Error getting json from minikube version url: expected a list of releases"
        )
    releases = [
        Release(
            name=str(_field(entry, "Name") or ""),
            checksums=dict(_field(entry, "Checksums") or {}),
        )
        for entry in data
    ]
    if not releases:
        raise RuntimeError(f"There were no json releases at the url specified: {url}")
    return releases


def get_latest_version_from_url(url: str) -> semver.Version:
    """Return the version of the first release listed at url."""
    name = get_all_versions_from_url(url)[0].name
    if name.startswith(VERSION_PREFIX):
        name = name[len(VERSION_PREFIX):]
    return semver.Version.parse(name)


def maybe_print_update_text(
    output: TextIO,
    url: str,
    last_update_path: str | Path,
    settings: NotifySettings | None = None,
) -> None:
    """Write an update notice to output if a newer release is available."""
    if not should_check_url_version(last_update_path, settings):
        return
    try:
        latest = get_latest_version_from_url(url)
    except (RuntimeError, ValueError) as exc:
        log.error("%s", exc)
        return
    try:
        local = get_semver_version()
    except ValueError as exc:
        log.error("%s", exc)
        return
    if local.compare(latest) < 0:
        try:
            write_time_to_file(last_update_path, datetime.now(timezone.utc))
        except OSError as exc:
            log.error("%s", exc)
        output.write(
            _UPDATE_TEXT.format(
                prefix=VERSION_PREFIX,
                latest=latest,
                link=UPDATE_LINK_PREFIX,
                config=constants.make_mini_path("config"),
            )
        )


def maybe_print_update_text_from_github(
    output: TextIO, settings: NotifySettings | None = None
) -> None:
    """Check the official release list and print a notice if needed."""
    maybe_print_update_text(
        output,
        constants.GITHUB_MINIKUBE_RELEASES_URL,
        constants.make_mini_path("last_update_check"),
        settings,
    )