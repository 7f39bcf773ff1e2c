"""Periodic capture of one asset using pure asyncio.

Jobs:
- Capture: run `VersionedAsset.exec` against a content source every interval
  (the engine itself is synchronous and runs in a worker thread)
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

from synchroversion.errors import FilesystemError

if TYPE_CHECKING:
    from synchroversion.store.asset import ContentSource, VersionedAsset

logger = logging.getLogger(__name__)


def file_source(path: Path) -> Callable[[], bytes]:
    """Producer that reads `path` at call time."""

    def read() -> bytes:
        try:
            return path.read_bytes()
        except OSError as e:
            raise FilesystemError(f"Cannot read source {path}: {e}") from e

    return read


class Watcher:
    """Simple asyncio-based loop that versions an asset at a fixed interval."""

    def __init__(self, asset: VersionedAsset, source: ContentSource, interval: float = 300) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self._asset = asset
        self._source = source
        self._interval = interval
        self.cycles = 0
        self.failures = 0

    async def run_once(self) -> str | None:
        """Run a single capture cycle in a worker thread."""
        self.cycles += 1
        return await asyncio.to_thread(self._asset.exec, self._source)

    async def start(self, shutdown_event: asyncio.Event) -> None:
        """Capture now, then every interval until shutdown_event is set."""
        logger.info("Watcher started (asset=%s, interval=%ss)", self._asset.name, self._interval)

        while not shutdown_event.is_set():
            try:
                committed = await self.run_once()
                if committed:
                    logger.info("New version of %s: %s", self._asset.name, committed)
            except Exception:
                self.failures += 1
                logger.exception("Capture of %s failed", self._asset.name)

            try:
                await asyncio.wait_for(shutdown_event.wait(), timeout=self._interval)
                break  # shutdown requested
            except asyncio.TimeoutError:
                pass  # interval elapsed, capture again

        logger.info("Watcher stopped.")
