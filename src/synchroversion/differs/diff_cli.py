"""External differ wrapping `diff -u --label previous --label current`."""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path

from synchroversion.differs.base import CURRENT_LABEL, PREVIOUS_LABEL, DiffResult
from synchroversion.errors import ExternalToolError

logger = logging.getLogger(__name__)


@dataclass
class DiffCommandDiffer:
    """Subprocess wrapper around the system `diff` utility.

    `diff` exits 0 when the inputs match, 1 when they differ and 2 on
    trouble. Anything other than 0 or 1 is an ExternalToolError.
    """

    command: str = "diff"
    timeout: float | None = None

    @property
    def name(self) -> str:
        return "diff"

    def build_command(self, previous: Path, current: Path) -> list[str]:
        return [
            self.command,
            "-u",
            "--label", PREVIOUS_LABEL,
            "--label", CURRENT_LABEL,
            str(previous),
            str(current),
        ]

    def compare(self, previous: Path, current: Path) -> DiffResult:
        cmd = self.build_command(previous, current)
        logger.debug("Running: %s", " ".join(cmd))

        try:
            result = subprocess.run(cmd, capture_output=True, timeout=self.timeout)
        except FileNotFoundError as e:
            raise ExternalToolError(f"`{self.command}` not found. Is diffutils installed?") from e
        except subprocess.TimeoutExpired as e:
            raise ExternalToolError(f"`{self.command}` did not finish in {self.timeout}s") from e

        if result.returncode not in (0, 1):
            stderr = result.stderr.decode(errors="replace").strip()
            logger.error("%s error (rc=%d): %s", self.command, result.returncode, stderr)
            raise ExternalToolError(
                f"{self.command} failed: {stderr or 'unknown error'}",
                returncode=result.returncode,
                stderr=stderr,
            )

        return DiffResult(text=result.stdout)
