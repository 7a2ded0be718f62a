"""
AutoSync Transports.

The remote operations invoked per dispatched item.
Requires Python 3.11+.
"""

import asyncio
import os
import shutil
from pathlib import Path
from typing import Protocol

from autosync.utils.logger import LoggerMixin
from autosync.utils.paths import canonical


class Transport(Protocol):
    """Remote synchronization operations. Both raise on failure."""

    async def upload(self, path: Path) -> None:
        """Push the local path to its remote counterpart."""
        ...

    async def remove(self, path: Path) -> None:
        """Delete the remote counterpart of the local path."""
        ...


def atomic_temp_name(dest_path: Path) -> Path:
    """Name of the temporary file written before the final rename."""
    return dest_path.with_name(dest_path.name + ".part")


class LocalMirrorTransport(LoggerMixin):
    """
    Mirrors a source tree into a target directory.

    Files are written to a ``.part`` sibling and renamed into place so
    readers of the target never see a half-written file. Blocking
    filesystem work runs in a worker thread.
    """

    def __init__(self, source_root: Path | str, target_root: Path | str) -> None:
        """
        Initialize the transport.

        Args:
            source_root: Local tree being watched
            target_root: Directory receiving the mirror
        """
        self._source_root = canonical(source_root)
        self._target_root = canonical(target_root)

    @property
    def target_root(self) -> Path:
        return self._target_root

    def target_for(self, path: Path | str) -> Path:
        """
        Map a source path to its mirrored location.

        Raises:
            ValueError: If the path is not under the source root
        """
        rel = canonical(path).relative_to(self._source_root)
        return self._target_root / rel

    async def upload(self, path: Path) -> None:
        dest = self.target_for(path)
        await asyncio.to_thread(self._copy, canonical(path), dest)
        self.log.debug("mirror_uploaded", path=str(path), dest=str(dest))

    async def remove(self, path: Path) -> None:
        dest = self.target_for(path)
        await asyncio.to_thread(self._delete, dest)
        self.log.debug("mirror_removed", path=str(path), dest=str(dest))

    @staticmethod
    def _copy(src: Path, dest: Path) -> None:
        if src.is_dir():
            dest.mkdir(parents=True, exist_ok=True)
            return

        dest.parent.mkdir(parents=True, exist_ok=True)
        tmp = atomic_temp_name(dest)
        try:
            shutil.copy2(src, tmp)
            os.replace(tmp, dest)
        except BaseException:
            tmp.unlink(missing_ok=True)
            raise

    @staticmethod
    def _delete(dest: Path) -> None:
        if dest.is_dir() and not dest.is_symlink():
            shutil.rmtree(dest)
        else:
            dest.unlink(missing_ok=True)
