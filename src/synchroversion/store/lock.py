"""Advisory per-asset lock so only one commit is in flight at a time."""

from __future__ import annotations

import fcntl
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from synchroversion.errors import FilesystemError

logger = logging.getLogger(__name__)


@contextmanager
def asset_lock(path: Path) -> Iterator[None]:
    """Hold an exclusive ``fcntl.flock`` on *path* for the duration of the block.

    The lock file itself is left in place after release.
    """
    try:
        handle = path.open("a+", encoding="utf-8")
    except OSError as e:
        raise FilesystemError(f"Cannot open lock file {path}: {e}") from e
    with handle:
        logger.debug("Waiting for lock %s", path)
        fcntl.flock(handle.fileno(), fcntl.LOCK_EX)
        try:
            yield
        finally:
            fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
