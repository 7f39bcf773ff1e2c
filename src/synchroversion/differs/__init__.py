"""Differs turn two snapshots into a unified diff.

`DiffCommandDiffer` shells out to `diff -u`; `NativeDiffer` does the same
in-process with difflib. Both label the sides `previous` and `current`.
"""

from __future__ import annotations

from synchroversion.differs.base import DiffResult, Differ
from synchroversion.differs.diff_cli import DiffCommandDiffer
from synchroversion.differs.native import NativeDiffer
from synchroversion.errors import ConfigurationError

__all__ = ["DiffResult", "Differ", "DiffCommandDiffer", "NativeDiffer", "build_differ"]


def build_differ(
    name: str = "diff",
    *,
    command: str = "diff",
    timeout: float | None = None,
) -> Differ:
    """Build a differ by its configured name."""
    if name == "diff":
        return DiffCommandDiffer(command=command, timeout=timeout)
    if name == "difflib":
        return NativeDiffer()
    raise ConfigurationError(f"Unknown diff engine: {name}")
