"""DirectoryLister — lists a physical directory, filtered per child by access.

Every child is re-evaluated with ``AccessEngine.decide`` on its own logical
path, so hidden rules beneath a share or a volume remove entries instead of
merely marking them read-only.  One rule snapshot and one ``LookupCache``
serve the whole listing.

Per-entry stat failures (permission denied, vanished, symlink loop) skip
the entry and are logged; they never fail the listing.
"""

from __future__ import annotations

import asyncio
import errno
import logging
import os
import stat as stat_module
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from .cache import LookupCache
from .exceptions import PathValidationError
from .paths import combine_relative_path

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .config import AccessConfig
    from .context import CallerContext
    from .engine import AccessEngine
    from .protocols import FileSystemAdapter
    from .rules import RuleSpec

logger = logging.getLogger(__name__)

# Stat errors that skip a single entry instead of failing the listing.
SKIPPABLE_ERRNOS = frozenset({errno.EPERM, errno.EACCES, errno.ENOENT, errno.ELOOP})


@dataclass(frozen=True, slots=True)
class ListingOptions:
    """Per-request listing switches.

    Attributes:
        thumbnails_enabled: Mark previewable files as thumbnail-capable.
            ``None`` uses the config default.
        exclude_download_artifacts: Drop in-progress download files.
        rules: Pre-fetched rules; compiled once instead of fetched.  They
            replace any rule snapshot already held by the listing cache.
    """

    thumbnails_enabled: bool | None = None
    exclude_download_artifacts: bool = False
    rules: Sequence[RuleSpec] | None = None


@dataclass(frozen=True, slots=True)
class DirectoryItem:
    """One visible child of a listed directory."""

    name: str
    path: str
    kind: str
    size: int
    modified: datetime
    is_directory: bool = False
    supports_thumbnail: bool = False

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = {
            "name": self.name,
            "path": self.path,
            "kind": self.kind,
            "size": self.size,
            "dateModified": self.modified.isoformat(),
        }
        if self.supports_thumbnail:
            data["supportsThumbnail"] = True
        return data


def file_kind(name: str, is_directory: bool, max_length: int = 10) -> str:
    """Classify an entry: ``directory``, its lower-case extension, or ``unknown``."""
    if is_directory:
        return "directory"
    _, ext = os.path.splitext(name)
    ext = ext[1:].lower()
    if not ext or len(ext) > max_length:
        return "unknown"
    return ext


class DirectoryLister:
    """Access-filtered directory listing."""

    def __init__(
        self,
        engine: AccessEngine,
        filesystem: FileSystemAdapter,
        config: AccessConfig | None = None,
    ) -> None:
        self._engine = engine
        self._fs = filesystem
        self._config = config or engine.config

    @property
    def filesystem(self) -> FileSystemAdapter:
        return self._fs

    def _is_excluded(self, name: str, options: ListingOptions) -> bool:
        if name in self._config.excluded_files:
            return True
        suffix = self._config.download_artifact_suffix
        return bool(
            options.exclude_download_artifacts and suffix and name.lower().endswith(suffix)
        )

    async def list(
        self,
        absolute_dir: str | os.PathLike[str],
        parent_logical_path: str,
        context: CallerContext,
        options: ListingOptions | None = None,
        *,
        cache: LookupCache | None = None,
    ) -> list[DirectoryItem]:
        """List *absolute_dir*, keeping only children *context* may access.

        Items come back in the adapter's ``readdir`` order.
        """
        options = options or ListingOptions()
        cache = cache if cache is not None else LookupCache()

        if options.rules is not None:
            if cache.resolver is not None:
                logger.debug("Replacing cached rule snapshot with supplied rules")
            cache.resolver = self._engine.compile_rules(options.rules)
        resolver = await self._engine.rule_resolver(cache)

        thumbnails = (
            self._config.thumbnails_enabled
            if options.thumbnails_enabled is None
            else options.thumbnails_enabled
        )

        names = [
            name
            for name in await self._fs.readdir(absolute_dir)
            if not self._is_excluded(name, options)
        ]

        async def build(name: str) -> DirectoryItem | None:
            child_physical = os.path.join(absolute_dir, name)
            try:
                st = await self._fs.stat(child_physical)
            except OSError as e:
                if e.errno in SKIPPABLE_ERRNOS:
                    logger.warning("Skipping unreadable entry %s: %s", child_physical, e)
                    return None
                raise

            try:
                child_logical = combine_relative_path(parent_logical_path, name)
            except PathValidationError:
                logger.warning("Skipping entry with invalid name %r in %s", name, absolute_dir)
                return None

            decision = await self._engine.decide(
                context, child_logical, resolver=resolver, cache=cache
            )
            if not decision.can_access:
                return None

            is_dir = stat_module.S_ISDIR(st.st_mode)
            kind = file_kind(name, is_dir, self._config.max_kind_length)
            return DirectoryItem(
                name=name,
                path=parent_logical_path,
                kind=kind,
                size=st.st_size,
                modified=datetime.fromtimestamp(st.st_mtime, tz=UTC),
                is_directory=is_dir,
                supports_thumbnail=(
                    thumbnails
                    and stat_module.S_ISREG(st.st_mode)
                    and kind != "pdf"
                    and kind in self._config.previewable_extensions
                ),
            )

        items = await asyncio.gather(*(build(name) for name in names))
        return [item for item in items if item is not None]
