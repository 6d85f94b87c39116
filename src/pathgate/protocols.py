"""Collaborator protocols — runtime-checkable interfaces.

The access engine depends only on these shapes.  ``pathgate.stores``
provides SQL-backed implementations and ``pathgate.local_disk`` a host
filesystem adapter, but any object with matching methods will do.

Every lookup is a suspension point: implementations may hit a database
or the disk and must not be assumed to be in-memory.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    import os
    from collections.abc import Sequence
    from datetime import datetime

    from .models.shares import ShareBase
    from .models.volumes import UserVolumeBase
    from .rules import RuleLike, RuleSpec


@runtime_checkable
class RuleStore(Protocol):
    """Ordered storage of administrator path rules."""

    async def get_rules(self) -> list[RuleLike]:
        """Return all rules in evaluation order."""
        ...

    async def set_rules(self, rules: Sequence[RuleSpec]) -> list[RuleLike]:
        """Replace all rules, returning the sanitized list as stored."""
        ...


@runtime_checkable
class UserVolumeStore(Protocol):
    """Lookup of per-user volume assignments."""

    async def get_user_volume_for_path(
        self, user_id: str, relative_path: str
    ) -> UserVolumeBase | None:
        """Return the volume of *user_id* whose label is the first segment of *relative_path*."""
        ...

    async def get_volume_by_id(self, volume_id: str) -> UserVolumeBase | None: ...


@runtime_checkable
class ShareStore(Protocol):
    """Lookup of share links and their per-user grants."""

    async def get_share_by_token(self, token: str) -> ShareBase | None: ...

    async def has_user_permission(self, share_id: str, user_id: str) -> bool: ...

    def is_share_expired(self, share: ShareBase, now: datetime | None = None) -> bool: ...


@runtime_checkable
class FileSystemAdapter(Protocol):
    """Physical filesystem access.

    Errors are raised as ``OSError`` with POSIX ``errno`` values
    (``ENOENT``, ``EACCES``/``EPERM``, ``ELOOP``).
    """

    async def stat(self, path: str | os.PathLike[str]) -> os.stat_result: ...

    async def readdir(self, path: str | os.PathLike[str]) -> list[str]: ...
