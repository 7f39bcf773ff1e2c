"""On-disk layout of one asset: paths, directory setup and temp files."""

from __future__ import annotations

import logging
import os
import re
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from synchroversion.errors import ConfigurationError, FilesystemError

logger = logging.getLogger(__name__)

ENTRY_SUFFIX = ".txt"
LATEST_POINTER = "latest.txt"
STATE_DIR = "state"
VERSION_DIR = "latest"
LOCK_FILE = ".lock"

FILE_MODE = 0o666
DIR_MODE = 0o777

_ILLEGAL_NAME = re.compile(r"[/\\\x00]")


class AssetLayout:
    """Paths under `root/name/` and the operations that create them."""

    def __init__(self, root: Path, name: str, umask: int = 0o022) -> None:
        if not name or name in (".", "..") or _ILLEGAL_NAME.search(name):
            raise ConfigurationError(f"Invalid asset name: {name!r}")
        self.root = Path(root)
        self.name = name
        self.umask = umask

    # ── Paths ────────────────────────────────────────────────

    @property
    def asset_dir(self) -> Path:
        return self.root / self.name

    @property
    def state_dir(self) -> Path:
        return self.asset_dir / STATE_DIR

    @property
    def version_dir(self) -> Path:
        return self.asset_dir / VERSION_DIR

    @property
    def latest_pointer(self) -> Path:
        return self.asset_dir / LATEST_POINTER

    @property
    def lock_path(self) -> Path:
        return self.asset_dir / LOCK_FILE

    def state_file(self, timestamp: str) -> Path:
        return self.state_dir / f"{timestamp}{ENTRY_SUFFIX}"

    def version_file(self, timestamp: str) -> Path:
        return self.version_dir / f"{timestamp}{ENTRY_SUFFIX}"

    # ── Modes ────────────────────────────────────────────────

    @property
    def file_mode(self) -> int:
        return FILE_MODE & ~self.umask

    @property
    def dir_mode(self) -> int:
        return DIR_MODE & ~self.umask

    # ── Setup ────────────────────────────────────────────────

    def ensure(self) -> None:
        """Create missing directories and an empty latest pointer. Idempotent."""
        try:
            for d in (self.state_dir, self.version_dir):
                if not d.is_dir():
                    d.mkdir(mode=self.dir_mode, parents=True, exist_ok=True)
                    logger.debug("Created directory %s", d)
        except OSError as e:
            raise FilesystemError(f"Cannot set up {self.asset_dir}: {e}") from e

        if self.latest_pointer.exists():
            return
        flags = os.O_WRONLY | os.O_CREAT | os.O_EXCL
        try:
            os.close(os.open(self.latest_pointer, flags, self.file_mode))
        except FileExistsError:
            # Another process created the pointer between the check and the open
            return
        except OSError as e:
            raise FilesystemError(f"Cannot create {self.latest_pointer}: {e}") from e
        logger.debug("Created empty latest pointer %s", self.latest_pointer)

    @contextmanager
    def temp_file(self) -> Iterator[Path]:
        """Allocate a temp file inside the asset directory; always removed on exit."""
        try:
            fd, name = tempfile.mkstemp(dir=self.asset_dir, prefix=self.name, suffix=".tmp")
        except OSError as e:
            raise FilesystemError(f"Cannot create temp file in {self.asset_dir}: {e}") from e
        os.close(fd)
        path = Path(name)
        try:
            yield path
        finally:
            path.unlink(missing_ok=True)

    def staging_path(self) -> Path:
        """Unused hidden sibling of the latest pointer, for the rename swap."""
        return self.asset_dir / f".{LATEST_POINTER}.{os.getpid()}.{os.urandom(4).hex()}"
