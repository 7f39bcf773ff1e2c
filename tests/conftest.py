"""Shared fixtures for the synchroversion test suite."""

from __future__ import annotations

import shutil
from datetime import datetime, timedelta

import pytest

from synchroversion.differs import DiffCommandDiffer, NativeDiffer

requires_diff = pytest.mark.skipif(shutil.which("diff") is None, reason="diff executable not installed")


class TickingClock:
    """Returns a new second on every call, starting at `start`."""

    def __init__(self, start: datetime = datetime(2026, 10, 19, 3, 15, 0), step: int = 1) -> None:
        self.now = start
        self.step = timedelta(seconds=step)

    def __call__(self) -> datetime:
        current = self.now
        self.now += self.step
        return current


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture(params=["difflib", pytest.param("diff", marks=requires_diff)])
def differ(request):
    if request.param == "diff":
        return DiffCommandDiffer()
    return NativeDiffer()
