"""Configuration loading from environment variables and synchroversion.toml."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib
from pathlib import Path

from synchroversion.errors import ConfigurationError

_DEFAULT_ROOT = Path.home() / ".synchroversion" / "assets"
_CONFIG_FILENAME = "synchroversion.toml"


@dataclass
class RetentionConfig:
    """How many entries of each kind survive a purge."""

    versions: int = 3
    diffs: int | None = None  # None: state entries are never purged


@dataclass
class StorageConfig:
    """On-disk behaviour of an asset directory."""

    umask: int = 0o022
    encoding: str = "utf-8"
    locking: bool = True
    verbose: bool = False


@dataclass
class DiffConfig:
    """Which differ computes state entries."""

    engine: str = "diff"
    command: str = "diff"
    timeout: float | None = None


@dataclass
class WatchConfig:
    """Periodic capture settings."""

    interval: int = 300


@dataclass
class SynchroversionConfig:
    """Top-level configuration."""

    retention: RetentionConfig = field(default_factory=RetentionConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    diff: DiffConfig = field(default_factory=DiffConfig)
    watch: WatchConfig = field(default_factory=WatchConfig)
    root: Path = _DEFAULT_ROOT
    log_level: str = "INFO"


def parse_umask(value: str | int) -> int:
    """Accept 18, "022" or "0o022" and return the integer mask."""
    if isinstance(value, int):
        mask = value
    else:
        text = value.strip().lower().removeprefix("0o")
        try:
            mask = int(text, 8)
        except ValueError:
            raise ConfigurationError(f"umask must be an octal number, got {value!r}") from None
    if not 0 <= mask <= 0o777:
        raise ConfigurationError(f"umask out of range: {oct(mask)}")
    return mask


def _parse_bool(value: str | bool) -> bool:
    if isinstance(value, bool):
        return value
    return value.strip().lower() in ("1", "true", "yes", "on")


def _number(value: str | int | float, label: str, cast=int):
    try:
        return cast(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{label} must be a number, got {value!r}") from None


def _optional_positive(value: str | int | float | None, label: str, cast=int):
    """Map 0 / empty / None to None (meaning "no limit"); negatives are rejected."""
    if value in (None, ""):
        return None
    number = _number(value, label, cast)
    if number < 0:
        raise ConfigurationError(f"{label} must not be negative, got {value!r}")
    return number if number > 0 else None


def _read_toml(path: Path) -> dict:
    try:
        return tomllib.loads(path.read_text())
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"Invalid {path}: {e}") from e


def load_config(config_path: Path | None = None) -> SynchroversionConfig:
    """Load configuration from environment variables and optional synchroversion.toml.

    Priority: environment variables > synchroversion.toml > defaults.
    """
    file_data: dict = {}
    if config_path and config_path.exists():
        file_data = _read_toml(config_path)
    else:
        # Search current dir and ~/.synchroversion/
        for candidate in [
            Path.cwd() / _CONFIG_FILENAME,
            Path.home() / ".synchroversion" / _CONFIG_FILENAME,
        ]:
            if candidate.exists():
                file_data = _read_toml(candidate)
                break

    retention_data = file_data.get("retention", {})
    storage_data = file_data.get("storage", {})
    diff_data = file_data.get("diff", {})
    watch_data = file_data.get("watch", {})

    config = SynchroversionConfig(
        retention=RetentionConfig(
            versions=_number(
                os.getenv("SYNCHROVERSION_RETAIN_VERSIONS", retention_data.get("versions", 3)),
                "retention.versions",
            ),
            diffs=_optional_positive(
                os.getenv("SYNCHROVERSION_RETAIN_DIFFS", retention_data.get("diffs")),
                "retention.diffs",
            ),
        ),
        storage=StorageConfig(
            umask=parse_umask(os.getenv("SYNCHROVERSION_UMASK", storage_data.get("umask", 0o022))),
            encoding=storage_data.get("encoding", "utf-8"),
            locking=_parse_bool(storage_data.get("locking", True)),
            verbose=_parse_bool(
                os.getenv("SYNCHROVERSION_VERBOSE", storage_data.get("verbose", False))
            ),
        ),
        diff=DiffConfig(
            engine=os.getenv("SYNCHROVERSION_DIFF", diff_data.get("engine", "diff")),
            command=diff_data.get("command", "diff"),
            timeout=_optional_positive(diff_data.get("timeout"), "diff.timeout", cast=float),
        ),
        watch=WatchConfig(
            interval=_number(
                os.getenv("SYNCHROVERSION_INTERVAL", watch_data.get("interval", 300)),
                "watch.interval",
            ),
        ),
        root=Path(os.getenv("SYNCHROVERSION_ROOT", file_data.get("root", str(_DEFAULT_ROOT)))),
        log_level=os.getenv("SYNCHROVERSION_LOG_LEVEL", file_data.get("log_level", "INFO")),
    )
    return config
