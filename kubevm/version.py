"""Version information for the tool and the localkube binary it ships."""

from __future__ import annotations

import semver

VERSION_PREFIX = "v"

# Replaced at release time; left unset for development builds.
_version = "v0.0.0-unset"


def get_version() -> str:
    """Return the version string, including its "v" prefix."""
    return _version


def get_semver_version() -> semver.Version:
    """Return the version as a parsed semantic version.

    Raises ValueError if the version string is not valid semver.
    """
    text = get_version()
    if text.startswith(VERSION_PREFIX):
        text = text[len(VERSION_PREFIX):]
    return semver.Version.parse(text)