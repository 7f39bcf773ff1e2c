"""Error taxonomy shared by the engine, the differs and the CLI."""

from __future__ import annotations


class SynchroversionError(Exception):
    """Base class for every error raised by synchroversion."""


# --- Configuration ---


class ConfigurationError(SynchroversionError, ValueError):
    """Invalid setting (retention, umask, asset name, differ). Raised before any I/O."""


# --- Filesystem ---


class FilesystemError(SynchroversionError, OSError):
    """A mkdir, link, unlink, rename or read on the asset directory failed."""


# --- External tools ---


class ExternalToolError(SynchroversionError):
    """The diff executable could not be run or reported trouble."""

    def __init__(self, message: str, *, returncode: int | None = None, stderr: str = "") -> None:
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr
