"""In-process differ built on difflib, producing `diff -u` style output.

Headers, hunk ranges and the missing-newline marker follow `diff -u`; hunk
boundaries may differ from GNU diff, whose matcher finds minimal edits.
"""

from __future__ import annotations

import difflib
import re
from pathlib import Path

from synchroversion.differs.base import CURRENT_LABEL, PREVIOUS_LABEL, DiffResult
from synchroversion.errors import FilesystemError

NO_NEWLINE_MARKER = b"\\ No newline at end of file\n"
_LINE = re.compile(rb"[^\n]*\n|[^\n]+")


class NativeDiffer:
    """Unified diff without an external process."""

    context_lines = 3

    @property
    def name(self) -> str:
        return "difflib"

    def compare(self, previous: Path, current: Path) -> DiffResult:
        try:
            a = previous.read_bytes() if previous.exists() else b""
            b = current.read_bytes()
        except OSError as e:
            raise FilesystemError(f"Cannot read diff input: {e}") from e
        return DiffResult(text=self.unified(a, b))

    def unified(self, a: bytes, b: bytes) -> bytes:
        """Render the unified diff of two byte strings."""
        if a == b:
            return b""
        lines = difflib.diff_bytes(
            difflib.unified_diff,
            _split(a),
            _split(b),
            fromfile=PREVIOUS_LABEL.encode(),
            tofile=CURRENT_LABEL.encode(),
            n=self.context_lines,
        )
        out = bytearray()
        for line in lines:
            out += line
            # The last line of a side without a trailing newline gets diff's marker
            if not line.endswith(b"\n"):
                out += b"\n" + NO_NEWLINE_MARKER
        return bytes(out)


def _split(data: bytes) -> list[bytes]:
    """Split on LF only, keeping line endings, as diff does."""
    return _LINE.findall(data)
