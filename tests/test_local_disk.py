"""Tests for LocalDiskAdapter — host filesystem access."""

from __future__ import annotations

import errno
import os
import stat

import pytest

from pathgate.local_disk import LocalDiskAdapter
from pathgate.protocols import FileSystemAdapter


@pytest.fixture
def disk() -> LocalDiskAdapter:
    return LocalDiskAdapter()


class TestLocalDiskAdapter:
    def test_satisfies_protocol(self, disk):
        assert isinstance(disk, FileSystemAdapter)

    async def test_readdir_sorted(self, disk, tmp_path):
        for name in ("b.txt", "a.txt", "C"):
            (tmp_path / name).write_text("")
        assert await disk.readdir(tmp_path) == ["C", "a.txt", "b.txt"]

    async def test_stat(self, disk, tmp_path):
        (tmp_path / "f.txt").write_text("hello")
        st = await disk.stat(tmp_path / "f.txt")
        assert st.st_size == 5

    async def test_stat_missing_raises_enoent(self, disk, tmp_path):
        with pytest.raises(FileNotFoundError) as exc_info:
            await disk.stat(tmp_path / "nope")
        assert exc_info.value.errno == errno.ENOENT

    async def test_stat_follows_symlinks(self, disk, tmp_path):
        (tmp_path / "d").mkdir()
        os.symlink(tmp_path / "d", tmp_path / "link")
        st = await disk.stat(tmp_path / "link")
        assert stat.S_ISDIR(st.st_mode)

    async def test_broken_symlink_raises_enoent(self, disk, tmp_path):
        os.symlink(tmp_path / "gone", tmp_path / "link")
        with pytest.raises(FileNotFoundError):
            await disk.stat(tmp_path / "link")

    async def test_readdir_missing_raises(self, disk, tmp_path):
        with pytest.raises(FileNotFoundError):
            await disk.readdir(tmp_path / "nope")
