"""LocalDiskAdapter — host filesystem access for listings and resolution."""

from __future__ import annotations

import asyncio
import os


class LocalDiskAdapter:
    """Implements ``FileSystemAdapter`` on the host disk.

    Blocking calls run on a worker thread via ``asyncio.to_thread``.
    ``OSError`` propagates unchanged so callers can branch on ``errno``.
    """

    async def stat(self, path: str | os.PathLike[str]) -> os.stat_result:
        """Stat *path*, following symlinks."""
        return await asyncio.to_thread(os.stat, path)

    async def readdir(self, path: str | os.PathLike[str]) -> list[str]:
        """Return the entry names of *path*, sorted for stable ordering."""
        names = await asyncio.to_thread(os.listdir, path)
        return sorted(names)
