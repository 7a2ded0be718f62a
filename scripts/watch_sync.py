#!/usr/bin/env python3
"""
AutoSync Mirror Script.

Watches a directory and mirrors changes into a target directory.
Requires Python 3.11+.

Usage:
    python scripts/watch_sync.py /path/to/source /path/to/mirror --files "**/*"
"""

import argparse
import asyncio
import signal
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

from autosync.dispatch.transport import LocalMirrorTransport
from autosync.models import WatcherConfig
from autosync.utils.config import get_settings
from autosync.utils.logger import configure_logging, get_logger
from autosync.watcher.registry import WatcherRegistry


configure_logging()
logger = get_logger("watch_sync")


async def watch_sync(source: Path, target: Path, config: WatcherConfig) -> None:
    """
    Mirror source into target until interrupted.

    Args:
        source: Directory to watch
        target: Directory receiving the mirror
        config: Watch configuration for the source root
    """
    settings = get_settings()
    stop = asyncio.Event()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:
            # Windows event loops do not support signal handlers
            pass

    registry = WatcherRegistry(transport=LocalMirrorTransport(source, target))
    watcher = registry.create(source, config)
    if watcher is None:
        logger.warning("nothing_to_watch", source=str(source))
        return

    logger.info(
        "mirroring_started",
        source=str(source),
        target=str(target),
        interval_ms=settings.watcher.action_interval_ms,
    )
    try:
        await stop.wait()
    finally:
        await registry.aclose()
        logger.info("mirroring_stopped")


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Mirror a directory into another as files change"
    )
    parser.add_argument("source", type=Path, help="Directory to watch")
    parser.add_argument("target", type=Path, help="Directory receiving the mirror")
    parser.add_argument(
        "--files",
        default="**/*",
        help="Glob of files to sync, relative to source (default: **/*)",
    )
    parser.add_argument(
        "--no-upload",
        action="store_true",
        help="Do not copy created or modified files",
    )
    parser.add_argument(
        "--no-delete",
        action="store_true",
        help="Do not remove deleted files from the mirror",
    )

    args = parser.parse_args()

    if not args.source.is_dir():
        print(f"Error: Source directory does not exist: {args.source}")
        sys.exit(1)

    config = WatcherConfig(
        files=args.files,
        auto_upload=not args.no_upload,
        auto_delete=not args.no_delete,
    )

    try:
        asyncio.run(watch_sync(args.source.resolve(), args.target.resolve(), config))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
