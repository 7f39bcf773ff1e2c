"""Entry point: python -m synchroversion <command> NAME

- capture:  Version the content of --file (or stdin) once
- latest:   Print the newest snapshot
- versions: List snapshot files, newest first
- diffs:    List diff files, newest first
- purge:    Apply retention without capturing
- watch:    Capture --file every --interval seconds until SIGINT/SIGTERM
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path

from synchroversion.config import SynchroversionConfig, load_config
from synchroversion.errors import SynchroversionError
from synchroversion.scheduler.jobs import Watcher, file_source
from synchroversion.store.asset import VersionedAsset

logger = logging.getLogger(__name__)


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="synchroversion")
    p.add_argument("--config", type=Path, help="Path to synchroversion.toml")
    p.add_argument("--root", type=Path, help="Root directory of assets (overrides config)")
    p.add_argument("-v", "--verbose", action="store_true", help="Log every link and unlink")
    sub = p.add_subparsers(dest="command", required=True)

    capture = sub.add_parser("capture", help="Version the current content once")
    capture.add_argument("name")
    capture.add_argument("--file", type=Path, help="Read content from this file (default: stdin)")
    capture.add_argument("--retain", type=int, help="Version entries to keep")

    for cmd, help_text in [
        ("latest", "Print the newest snapshot"),
        ("versions", "List snapshot files, newest first"),
        ("diffs", "List diff files, newest first"),
    ]:
        sp = sub.add_parser(cmd, help=help_text)
        sp.add_argument("name")

    purge = sub.add_parser("purge", help="Remove entries beyond retention")
    purge.add_argument("name")
    purge.add_argument("--retain", type=int, help="Version entries to keep")

    watch = sub.add_parser("watch", help="Capture a file periodically")
    watch.add_argument("name")
    watch.add_argument("--file", type=Path, required=True, help="File to version")
    watch.add_argument("--interval", type=float, help="Seconds between captures")
    watch.add_argument("--retain", type=int, help="Version entries to keep")
    return p


def _open_asset(config: SynchroversionConfig, args: argparse.Namespace) -> VersionedAsset:
    overrides = {}
    if getattr(args, "retain", None) is not None:
        overrides["retain_versions"] = args.retain
    return VersionedAsset.from_config(config, args.name, **overrides)


async def _watch(asset: VersionedAsset, source_path: Path, interval: float) -> None:
    """Run the watcher until SIGINT/SIGTERM."""
    shutdown_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, shutdown_event.set)

    watcher = Watcher(asset, file_source(source_path), interval=interval)
    await watcher.start(shutdown_event)


def run(args: argparse.Namespace, config: SynchroversionConfig) -> int:
    asset = _open_asset(config, args)

    if args.command == "capture":
        source = file_source(args.file) if args.file else sys.stdin.buffer.read
        committed = asset.exec(source)
        print(committed or "unchanged")
    elif args.command == "latest":
        sys.stdout.buffer.write(asset.latest_bytes())
        sys.stdout.flush()
    elif args.command == "versions":
        for path in asset.version_entries():
            print(path)
    elif args.command == "diffs":
        for path in asset.state_entries():
            print(path)
    elif args.command == "purge":
        print(asset.purge())
    elif args.command == "watch":
        interval = args.interval or config.watch.interval
        asyncio.run(_watch(asset, args.file, interval))
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config)
        if args.root:
            config.root = args.root
        if args.verbose:
            config.storage.verbose = True
        _setup_logging(config.log_level)
        return run(args, config)
    except SynchroversionError as e:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"synchroversion: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
