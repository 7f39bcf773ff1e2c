"""Differ protocol and shared types."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable

PREVIOUS_LABEL = "previous"
CURRENT_LABEL = "current"


@dataclass(frozen=True)
class DiffResult:
    """Unified diff text; empty text means the two sides are identical."""

    text: bytes

    @property
    def changed(self) -> bool:
        return len(self.text) > 0


@runtime_checkable
class Differ(Protocol):
    """Protocol that all diff backends must implement."""

    @property
    def name(self) -> str: ...

    def compare(self, previous: Path, current: Path) -> DiffResult:
        """Diff the file at `previous` against the file at `current`."""
        ...
