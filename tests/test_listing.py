"""Tests for DirectoryLister — access-filtered directory listings."""

from __future__ import annotations

import errno
import os

import pytest

from pathgate.cache import LookupCache
from pathgate.context import CallerContext
from pathgate.listing import DirectoryLister, ListingOptions, file_kind
from pathgate.local_disk import LocalDiskAdapter

ALICE = CallerContext.for_user("alice")


class FlakyDisk(LocalDiskAdapter):
    """LocalDiskAdapter whose ``stat`` fails for chosen names."""

    def __init__(self, failures: dict[str, int]) -> None:
        super().__init__()
        self.failures = failures

    async def stat(self, path):
        name = os.path.basename(os.fspath(path))
        if name in self.failures:
            code = self.failures[name]
            raise OSError(code, os.strerror(code), os.fspath(path))
        return await super().stat(path)


@pytest.fixture
def docs(config):
    """``docs/`` under the volume root with a few files."""
    root = config.volume_root / "docs"
    root.mkdir()
    (root / "a.txt").write_text("a")
    (root / "secret.txt").write_text("s")
    (root / "photo.JPG").write_bytes(b"\xff\xd8")
    (root / "sub").mkdir()
    return root


@pytest.fixture
def lister(access_engine) -> DirectoryLister:
    return DirectoryLister(access_engine, LocalDiskAdapter())


def _names(items):
    return [item.name for item in items]


# ---------------------------------------------------------------------------
# file_kind
# ---------------------------------------------------------------------------


class TestFileKind:
    def test_directory(self):
        assert file_kind("photos", True) == "directory"

    def test_extension_is_lowercased(self):
        assert file_kind("IMG_1.JPG", False) == "jpg"

    def test_no_extension(self):
        assert file_kind("Makefile", False) == "unknown"

    def test_long_extension(self):
        assert file_kind("a.averyveryverylongext", False) == "unknown"
        assert file_kind("a.averyveryverylongext", False, max_length=30) == "averyveryverylongext"


# ---------------------------------------------------------------------------
# Filtering
# ---------------------------------------------------------------------------


class TestFiltering:
    async def test_hidden_child_is_omitted(self, lister, docs, rule_store):
        rule_store.add("docs/secret.txt", "hidden")
        items = await lister.list(docs, "docs", ALICE)
        assert _names(items) == ["a.txt", "photo.JPG", "sub"]

    async def test_hidden_recursive_directory_is_omitted(self, lister, docs, rule_store):
        rule_store.add("docs/sub", "hidden", recursive=True)
        assert "sub" not in _names(await lister.list(docs, "docs", ALICE))

    async def test_read_only_child_is_kept(self, lister, docs, rule_store):
        rule_store.add("docs/a.txt", "ro")
        assert "a.txt" in _names(await lister.list(docs, "docs", ALICE))

    async def test_excluded_files(self, lister, docs):
        (docs / ".DS_Store").write_text("")
        (docs / "Thumbs.db").write_text("")
        items = await lister.list(docs, "docs", ALICE)
        assert ".DS_Store" not in _names(items)
        assert "Thumbs.db" not in _names(items)

    async def test_download_artifacts(self, lister, docs):
        (docs / "movie.mp4.download").write_text("")
        assert "movie.mp4.download" in _names(await lister.list(docs, "docs", ALICE))
        items = await lister.list(
            docs, "docs", ALICE, ListingOptions(exclude_download_artifacts=True)
        )
        assert "movie.mp4.download" not in _names(items)

    async def test_rules_fetched_once(self, lister, docs, rule_store):
        await lister.list(docs, "docs", ALICE)
        assert rule_store.get_calls == 1

    async def test_supplied_rules_skip_store(self, lister, docs, rule_store):
        rule_store.add("docs/a.txt", "hidden")
        options = ListingOptions(rules=[])
        items = await lister.list(docs, "docs", ALICE, options)
        assert "a.txt" in _names(items)
        assert rule_store.get_calls == 0

    async def test_supplied_mapping_rules(self, lister, docs, rule_store):
        options = ListingOptions(rules=[{"path": "docs/secret.txt", "permissions": "hidden"}])
        items = await lister.list(docs, "docs", ALICE, options)
        assert _names(items) == ["a.txt", "photo.JPG", "sub"]
        assert rule_store.get_calls == 0

    async def test_supplied_rules_replace_cached_snapshot(self, lister, access_engine, docs):
        cache = LookupCache(resolver=access_engine.compile_rules([]))
        options = ListingOptions(rules=[{"path": "docs/secret.txt", "permissions": "hidden"}])
        items = await lister.list(docs, "docs", ALICE, options, cache=cache)
        assert "secret.txt" not in _names(items)

    async def test_backslash_name_is_skipped(self, lister, docs):
        (docs / "a\\b").write_text("")
        items = await lister.list(docs, "docs", ALICE)
        assert _names(items) == ["a.txt", "photo.JPG", "secret.txt", "sub"]

    async def test_share_listing_hides_children(self, lister, docs, rule_store, share_store):
        rule_store.add("docs/secret.txt", "hidden")
        share = share_store.add("tok", "docs")
        guest = CallerContext.for_guest(share.id)
        cache = LookupCache()
        items = await lister.list(docs, "share/tok", guest, cache=cache)
        assert _names(items) == ["a.txt", "photo.JPG", "sub"]
        assert share_store.token_lookups == 1


# ---------------------------------------------------------------------------
# User volumes
# ---------------------------------------------------------------------------


@pytest.fixture
def media(config):
    """``media/dir/`` under the volume root."""
    root = config.volume_root / "media" / "dir"
    root.mkdir(parents=True)
    for name in ("a.jpg", "b.jpg", "secret.txt"):
        (root / name).write_text("x")
    return root


class TestUserVolumeListing:
    async def test_volume_looked_up_once(self, lister, media, config, rule_store, volume_store):
        config.user_volumes_enabled = True
        volume_store.add("alice", "media")
        rule_store.add("media/dir/secret.txt", "hidden")
        items = await lister.list(media, "media/dir", ALICE, cache=LookupCache())
        assert _names(items) == ["a.jpg", "b.jpg"]
        assert volume_store.lookups == 1

    async def test_other_users_volume_lists_nothing(self, lister, media, config, volume_store):
        config.user_volumes_enabled = True
        volume_store.add("bob", "media")
        assert await lister.list(media, "media/dir", ALICE) == []

    async def test_user_volume_share_looked_up_once(
        self, lister, media, rule_store, volume_store, share_store
    ):
        volume_store.add("alice", "media", volume_id="v1")
        rule_store.add("media/dir/secret.txt", "hidden")
        share = share_store.add("tok", "v1/dir", owner_id="alice", source_space="user_volume")
        guest = CallerContext.for_guest(share.id)
        items = await lister.list(media, "share/tok", guest)
        assert _names(items) == ["a.jpg", "b.jpg"]
        assert volume_store.lookups == 1
        assert share_store.token_lookups == 1


# ---------------------------------------------------------------------------
# Stat failures
# ---------------------------------------------------------------------------


class TestStatFailures:
    @pytest.mark.parametrize("code", [errno.EACCES, errno.EPERM, errno.ENOENT, errno.ELOOP])
    async def test_skippable_errors_drop_entry(self, access_engine, docs, code):
        lister = DirectoryLister(access_engine, FlakyDisk({"a.txt": code}))
        items = await lister.list(docs, "docs", ALICE)
        assert _names(items) == ["photo.JPG", "secret.txt", "sub"]

    async def test_other_errors_propagate(self, access_engine, docs):
        lister = DirectoryLister(access_engine, FlakyDisk({"a.txt": errno.EIO}))
        with pytest.raises(OSError):
            await lister.list(docs, "docs", ALICE)

    async def test_broken_symlink_is_skipped(self, lister, docs):
        os.symlink(docs / "missing", docs / "dangling")
        assert "dangling" not in _names(await lister.list(docs, "docs", ALICE))


# ---------------------------------------------------------------------------
# Item fields
# ---------------------------------------------------------------------------


class TestItems:
    async def test_fields(self, lister, docs):
        items = {item.name: item for item in await lister.list(docs, "docs", ALICE)}
        a = items["a.txt"]
        assert a.kind == "txt"
        assert a.size == 1
        assert a.path == "docs"
        assert not a.is_directory
        assert items["sub"].kind == "directory"
        assert items["sub"].is_directory

    async def test_thumbnails(self, lister, docs):
        (docs / "doc.pdf").write_text("%PDF")
        items = {item.name: item for item in await lister.list(docs, "docs", ALICE)}
        assert items["photo.JPG"].supports_thumbnail
        assert not items["a.txt"].supports_thumbnail
        assert not items["doc.pdf"].supports_thumbnail
        assert not items["sub"].supports_thumbnail

    async def test_thumbnails_disabled(self, lister, docs):
        items = await lister.list(docs, "docs", ALICE, ListingOptions(thumbnails_enabled=False))
        assert not any(item.supports_thumbnail for item in items)

    async def test_to_dict(self, lister, docs):
        items = {item.name: item for item in await lister.list(docs, "docs", ALICE)}
        data = items["photo.JPG"].to_dict()
        assert data["name"] == "photo.JPG"
        assert data["kind"] == "jpg"
        assert data["supportsThumbnail"] is True
        assert "dateModified" in data
        assert "supportsThumbnail" not in items["a.txt"].to_dict()
