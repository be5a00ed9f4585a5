"""Files that are copied onto the VM: from disk or from memory."""

from __future__ import annotations

import io
import logging
import os
from dataclasses import dataclass, field
from typing import BinaryIO, Iterator

from kubevm.util import is_directory

log = logging.getLogger(__name__)

ADDONS_TARGET_DIR = "/etc/kubernetes/addons"
ADDONS_PERMISSIONS = "0640"


@dataclass
class _Asset:
    """Where a file comes from and where it goes on the VM."""

    asset_name: str
    target_dir: str
    target_name: str
    permissions: str


@dataclass
class FileAsset(_Asset):
    """A file on the local disk, opened when the asset is created.

    Raises OSError if the file cannot be opened.
    """

    _reader: BinaryIO = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        try:
            self._reader = open(self.asset_name, "rb")
        except OSError as exc:
            raise OSError(
                exc.errno,
                f"Error opening file asset: {self.asset_name}: {exc.strerror}",
                self.asset_name,
            ) from exc

    def read(self, size: int = -1) -> bytes:
        """Read up to size bytes of the file; all that is left by default."""
        return self._reader.read(size)

    def length(self) -> int:
        """Return the size of the file, or 0 if it cannot be determined."""
        try:
            return os.path.getsize(self.asset_name)
        except OSError:
            return 0

    def close(self) -> None:
        """Close the underlying file."""
        self._reader.close()

    def __enter__(self) -> FileAsset:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


@dataclass
class MemoryAsset(_Asset):
    """Contents held in memory, such as a bundled manifest."""

    data: bytes = b""
    _reader: io.BytesIO = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self.data = bytes(self.data)
        self._reader = io.BytesIO(self.data)

    def read(self, size: int = -1) -> bytes:
        """Read up to size bytes of the contents; all that is left by default."""
        return self._reader.read(size)

    def length(self) -> int:
        """Return the size of the contents."""
        return len(self.data)

    def close(self) -> None:
        """Nothing to release; present so all assets can be closed alike."""


def _walk(root: str) -> Iterator[str]:
    """Yield root and everything beneath it, in lexical order."""
    yield root
    try:
        entries = sorted(os.listdir(root))
    except OSError:
        return
    for name in entries:
        path = os.path.join(root, name)
        if os.path.isdir(path) and not os.path.islink(path):
            yield from _walk(path)
        else:
            yield path


def addons_dir_assets(search_dir: str) -> list[FileAsset]:
    """Return an asset for every file below search_dir, subdirectories included.

    Each file goes to the VM's addons directory under its own base name.
    Entries that cannot be read are logged and skipped.
    """
    found: list[FileAsset] = []
    for path in _walk(search_dir):
        try:
            if is_directory(path):
                continue
        except OSError as exc:
            log.info("Error encountered while walking addons: %s", exc)
            continue
        try:
            found.append(
                FileAsset(
                    path, ADDONS_TARGET_DIR, os.path.basename(path), ADDONS_PERMISSIONS
                )
            )
        except OSError as exc:
            log.info("Error encountered while walking addons: %s", exc)
    return found