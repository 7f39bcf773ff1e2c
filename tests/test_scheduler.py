"""Tests for the periodic watcher."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from synchroversion.differs import NativeDiffer
from synchroversion.errors import FilesystemError
from synchroversion.scheduler.jobs import Watcher, file_source
from synchroversion.store.asset import VersionedAsset


@pytest.fixture
def asset(tmp_path: Path, clock) -> VersionedAsset:
    return VersionedAsset(
        tmp_path / "assets", "syslog", differ=NativeDiffer(), clock=clock, retain_versions=100
    )


class Counter:
    """Producer whose content changes on every call."""

    def __init__(self) -> None:
        self.calls = 0

    def __call__(self) -> str:
        self.calls += 1
        return f"tick {self.calls}\n"


class TestFileSource:
    def test_reads_at_call_time(self, tmp_path: Path):
        path = tmp_path / "system.log"
        path.write_text("first\n")
        source = file_source(path)
        path.write_text("second\n")
        assert source() == b"second\n"

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(FilesystemError):
            file_source(tmp_path / "gone.log")()


class TestWatcher:
    def test_rejects_non_positive_interval(self, asset: VersionedAsset):
        with pytest.raises(ValueError):
            Watcher(asset, "x", interval=0)

    @pytest.mark.asyncio
    async def test_run_once(self, asset: VersionedAsset):
        watcher = Watcher(asset, "hello\n", interval=60)
        committed = await watcher.run_once()
        assert committed is not None
        assert asset.latest() == "hello\n"
        assert await watcher.run_once() is None
        assert watcher.cycles == 2

    @pytest.mark.asyncio
    async def test_stops_on_shutdown(self, asset: VersionedAsset):
        source = Counter()
        watcher = Watcher(asset, source, interval=0.01)
        shutdown = asyncio.Event()

        task = asyncio.create_task(watcher.start(shutdown))
        await asyncio.sleep(0.2)
        shutdown.set()
        await asyncio.wait_for(task, timeout=5)

        assert watcher.cycles >= 1
        assert watcher.failures == 0
        assert len(asset.version_entries()) == source.calls == watcher.cycles

    @pytest.mark.asyncio
    async def test_no_cycle_when_already_shut_down(self, asset: VersionedAsset):
        watcher = Watcher(asset, "x\n", interval=0.01)
        shutdown = asyncio.Event()
        shutdown.set()
        await watcher.start(shutdown)
        assert watcher.cycles == 0

    @pytest.mark.asyncio
    async def test_failed_cycle_is_logged_and_loop_continues(self, asset: VersionedAsset, tmp_path: Path, caplog):
        watcher = Watcher(asset, file_source(tmp_path / "missing.log"), interval=0.01)
        shutdown = asyncio.Event()

        task = asyncio.create_task(watcher.start(shutdown))
        await asyncio.sleep(0.1)
        shutdown.set()
        await asyncio.wait_for(task, timeout=5)

        assert watcher.failures == watcher.cycles >= 1
        assert "Capture of syslog failed" in caplog.text
        assert asset.version_entries() == []

    @pytest.mark.asyncio
    async def test_unexpected_producer_error_does_not_stop_loop(self, asset: VersionedAsset, caplog):
        def rotated() -> str:
            raise RuntimeError("log rotated away")

        watcher = Watcher(asset, rotated, interval=0.01)
        shutdown = asyncio.Event()

        task = asyncio.create_task(watcher.start(shutdown))
        await asyncio.sleep(0.1)
        assert not task.done()
        shutdown.set()
        await asyncio.wait_for(task, timeout=5)

        assert watcher.failures == watcher.cycles >= 1
        assert "log rotated away" in caplog.text
        assert "Watcher stopped." in caplog.text
