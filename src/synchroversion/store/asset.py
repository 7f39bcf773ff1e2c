"""Versioned asset: capture, diff, commit and retention for one named text.

Each `exec` call snapshots the content, diffs it against `latest.txt` and,
when something changed, publishes a state entry (the diff), a version
entry (the full content) and a new latest pointer, all hard links to the
same temp files. Old version entries are purged afterwards.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from contextlib import nullcontext
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Union

from synchroversion.differs import Differ, DiffCommandDiffer, build_differ
from synchroversion.errors import ConfigurationError, FilesystemError
from synchroversion.store.layout import ENTRY_SUFFIX, AssetLayout
from synchroversion.store.lock import asset_lock

if TYPE_CHECKING:
    from synchroversion.config import SynchroversionConfig

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y%m%d-%H%M%S"
MAX_COLLISIONS = 99

Content = Union[str, bytes]
ContentSource = Union[Content, Callable[[], Content]]


class VersionedAsset:
    """Read/write access to one asset directory."""

    def __init__(
        self,
        root: Path,
        name: str,
        *,
        retain_versions: int = 3,
        retain_diffs: int | None = None,
        umask: int = 0o022,
        verbose: bool = False,
        differ: Differ | None = None,
        encoding: str = "utf-8",
        locking: bool = True,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._retain_versions = _check_retention(retain_versions, "retain_versions")
        self._retain_diffs = (
            None if retain_diffs is None else _check_retention(retain_diffs, "retain_diffs")
        )
        self.layout = AssetLayout(Path(root), name, umask=_check_umask(umask))
        self.verbose = verbose
        self.differ = differ or DiffCommandDiffer()
        self.encoding = encoding
        self.locking = locking
        self._clock = clock
        self.layout.ensure()

    @classmethod
    def from_config(cls, config: SynchroversionConfig, name: str, **overrides) -> VersionedAsset:
        """Build an asset from loaded configuration."""
        kwargs = dict(
            retain_versions=config.retention.versions,
            retain_diffs=config.retention.diffs,
            umask=config.storage.umask,
            verbose=config.storage.verbose,
            differ=build_differ(
                config.diff.engine,
                command=config.diff.command,
                timeout=config.diff.timeout,
            ),
            encoding=config.storage.encoding,
            locking=config.storage.locking,
        )
        kwargs.update(overrides)
        return cls(config.root, name, **kwargs)

    # ── Configuration ────────────────────────────────────────

    @property
    def name(self) -> str:
        return self.layout.name

    @property
    def retain_versions(self) -> int:
        return self._retain_versions

    @retain_versions.setter
    def retain_versions(self, value: int) -> None:
        self._retain_versions = _check_retention(value, "retain_versions")

    @property
    def retain_diffs(self) -> int | None:
        return self._retain_diffs

    @retain_diffs.setter
    def retain_diffs(self, value: int | None) -> None:
        self._retain_diffs = None if value is None else _check_retention(value, "retain_diffs")

    @property
    def umask(self) -> int:
        return self.layout.umask

    @umask.setter
    def umask(self, value: int) -> None:
        self.layout.umask = _check_umask(value)

    # ── Update cycle ─────────────────────────────────────────

    def exec(self, source: ContentSource) -> str | None:
        """Capture `source` and commit it if it differs from the latest snapshot.

        `source` is a str/bytes buffer or a zero-argument callable producing
        one. Returns the committed timestamp, or None when nothing changed.
        """
        self.layout.ensure()
        committed: str | None = None

        with self._locked():
            timestamp = self._next_timestamp()
            with self.layout.temp_file() as current, self.layout.temp_file() as diff:
                self.capture(source, current)
                result = self.differ.compare(self.layout.latest_pointer, current)
                if result.changed:
                    _write(diff, result.text)
                    self.commit(timestamp, current, diff)
                    committed = timestamp
                else:
                    logger.debug("%s unchanged, nothing to commit", self.name)
            self.purge()

        if committed:
            logger.info("Committed %s version %s", self.name, committed)
        return committed

    def capture(self, source: ContentSource, path: Path) -> None:
        """Write the content of `source` to `path`, calling a producer exactly once."""
        content = source() if callable(source) else source
        if isinstance(content, str):
            content = content.encode(self.encoding)
        elif not isinstance(content, (bytes, bytearray)):
            raise TypeError(f"Content must be str or bytes, got {type(content).__name__}")
        _write(path, bytes(content))

    def commit(self, timestamp: str, current: Path, diff: Path) -> None:
        """Publish the diff and snapshot under `timestamp` and move the latest pointer."""
        state_file = self.layout.state_file(timestamp)
        version_file = self.layout.version_file(timestamp)

        self._link(diff, state_file)
        try:
            self._link(current, version_file)
        except FilesystemError:
            # A state entry never outlives its missing version entry
            self._unlink(state_file)
            raise
        self._swap_latest(current)

    def _swap_latest(self, current: Path) -> None:
        """Point latest.txt at `current` with a single atomic rename."""
        staging = self.layout.staging_path()
        self._link(current, staging)
        try:
            os.replace(staging, self.layout.latest_pointer)
        except OSError as e:
            staging.unlink(missing_ok=True)
            raise FilesystemError(f"Cannot replace {self.layout.latest_pointer}: {e}") from e
        self._log("Replaced: %s -> %s", staging, self.layout.latest_pointer)

    # ── Retention ────────────────────────────────────────────

    def purge(self) -> int:
        """Remove version entries (and state entries, if bounded) beyond retention."""
        removed = 0
        for path in self.version_entries()[self._retain_versions:]:
            self._unlink(path)
            removed += 1
        if self._retain_diffs is not None:
            for path in self.state_entries()[self._retain_diffs:]:
                self._unlink(path)
                removed += 1
        if removed:
            logger.info("Purged %d old entries of %s", removed, self.name)
        return removed

    def version_entries(self) -> list[Path]:
        """Full snapshots, newest first."""
        return _entries(self.layout.version_dir)

    def state_entries(self) -> list[Path]:
        """Diffs, newest first."""
        return _entries(self.layout.state_dir)

    # ── Queries ──────────────────────────────────────────────

    def latest_bytes(self) -> bytes:
        """Content of the newest version entry, or b"" before the first commit."""
        entries = self.version_entries()
        if not entries:
            return b""
        try:
            return entries[0].read_bytes()
        except OSError as e:
            raise FilesystemError(f"Cannot read {entries[0]}: {e}") from e

    def latest(self) -> str:
        """Content of the newest version entry as text, or "" before the first commit.

        Raises ConfigurationError when the snapshot is not valid in
        `encoding`; use `latest_bytes()` for such content.
        """
        try:
            return self.latest_bytes().decode(self.encoding)
        except UnicodeDecodeError as e:
            raise ConfigurationError(
                f"Latest {self.name} snapshot is not valid {self.encoding}; read it with latest_bytes()"
            ) from e

    # ── Internals ────────────────────────────────────────────

    def _locked(self):
        return asset_lock(self.layout.lock_path) if self.locking else nullcontext()

    def _next_timestamp(self) -> str:
        """Second-resolution key; a counter suffix keeps same-second commits apart."""
        base = self._clock().strftime(TIMESTAMP_FORMAT)
        candidate = base
        for counter in range(1, MAX_COLLISIONS + 1):
            if not (
                self.layout.state_file(candidate).exists()
                or self.layout.version_file(candidate).exists()
            ):
                return candidate
            candidate = f"{base}-{counter:02d}"
        raise FilesystemError(f"More than {MAX_COLLISIONS} commits of {self.name} at {base}")

    def _link(self, target: Path, link: Path) -> None:
        self._log("Linking: %s %s", target, link)
        try:
            os.chmod(target, self.layout.file_mode)
            os.link(target, link)
        except OSError as e:
            raise FilesystemError(f"Cannot link {target} to {link}: {e}") from e

    def _unlink(self, path: Path) -> None:
        self._log("Unlinking: %s", path)
        try:
            path.unlink()
        except OSError as e:
            raise FilesystemError(f"Cannot unlink {path}: {e}") from e

    def _log(self, msg: str, *args) -> None:
        logger.log(logging.INFO if self.verbose else logging.DEBUG, msg, *args)


def _entries(directory: Path) -> list[Path]:
    if not directory.is_dir():
        return []
    return sorted(directory.glob(f"*{ENTRY_SUFFIX}"), key=lambda p: p.stem, reverse=True)


def _write(path: Path, data: bytes) -> None:
    try:
        path.write_bytes(data)
    except OSError as e:
        raise FilesystemError(f"Cannot write {path}: {e}") from e


def _check_retention(value: int, label: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ConfigurationError(f"{label} requires at least one entry, got {value!r}")
    return value


def _check_umask(value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 0o777:
        raise ConfigurationError(f"umask must be an integer in 0..0o777, got {value!r}")
    return value
