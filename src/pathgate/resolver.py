"""LocationResolver — maps an allowed logical path to a physical path.

Only called after ``AccessEngine.decide`` returned ``can_access``.  The
share and user-volume records carried on the decision are reused; the
stores are consulted only when a decision arrives without them.

The resolver never checks existence: a missing target surfaces as a
not-found error from whichever filesystem operation uses the location.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING

from .decisions import ResolvedLocation
from .exceptions import AccessDeniedError, PathValidationError
from .paths import Space, normalize_relative_path, parse_path_space, split_first_segment
from .permissions import SourceSpace

if TYPE_CHECKING:
    from .cache import LookupCache
    from .config import AccessConfig
    from .context import CallerContext
    from .decisions import AccessDecision
    from .models.shares import ShareBase
    from .models.volumes import UserVolumeBase
    from .protocols import ShareStore, UserVolumeStore


def _join_within(root: Path, relative: str) -> Path:
    """Join *relative* onto *root*, refusing results outside *root*."""
    rel = normalize_relative_path(relative)
    if not rel:
        return root
    candidate = Path(os.path.normpath(root / rel))
    try:
        candidate.relative_to(root)
    except ValueError:
        raise PathValidationError(
            f"Path traversal detected: {relative!r} resolves outside {root}"
        ) from None
    return candidate


class LocationResolver:
    """Resolves logical paths against the configured physical roots."""

    def __init__(
        self,
        config: AccessConfig,
        *,
        volumes: UserVolumeStore,
        shares: ShareStore,
    ) -> None:
        self._config = config
        self._volumes = volumes
        self._shares = shares

    def volume_root(self, volume: UserVolumeBase) -> Path:
        """Physical root of a user volume."""
        if volume.root_path:
            return Path(volume.root_path).expanduser().resolve()
        return self._config.volume_dir(volume.label)

    async def resolve(
        self,
        context: CallerContext,
        logical_path: str,
        decision: AccessDecision,
        *,
        cache: LookupCache | None = None,
    ) -> ResolvedLocation:
        """Return the physical location of *logical_path*.

        Raises ``AccessDeniedError`` if *decision* does not grant access and
        ``PathValidationError`` if the path escapes its root.
        """
        if not decision.can_access:
            raise AccessDeniedError(decision.denial_reason or "Access denied")

        relative_path = normalize_relative_path(logical_path)
        parsed = parse_path_space(relative_path)

        if parsed.space is Space.VOLUME:
            absolute = self._resolve_volume(parsed.relative_path, decision)
        elif parsed.space is Space.PERSONAL:
            user_id = context.user_id
            if not user_id:
                raise AccessDeniedError("Authentication required")
            absolute = _join_within(self._config.personal_dir(user_id), parsed.relative_path)
        elif parsed.space is Space.SHARE:
            absolute = await self._resolve_share(
                parsed.share_token or "", parsed.inner_path or "", decision, cache
            )
        else:
            raise PathValidationError(f"Unknown path space: {parsed.space!r}")

        return ResolvedLocation(
            absolute_path=absolute,
            relative_path=relative_path,
            share_info=decision.share_info,
        )

    # ------------------------------------------------------------------
    # Per-space resolution
    # ------------------------------------------------------------------

    def _resolve_volume(self, relative_path: str, decision: AccessDecision) -> Path:
        volume = decision.user_volume
        if volume is None:
            return _join_within(self._config.volume_root, relative_path)
        # The first segment is the volume label; the rest lives under its root.
        _, within = split_first_segment(relative_path)
        return _join_within(self.volume_root(volume), within)

    async def _resolve_share(
        self,
        token: str,
        inner_path: str,
        decision: AccessDecision,
        cache: LookupCache | None,
    ) -> Path:
        share = decision.share
        if share is None:
            share = await self._shares.get_share_by_token(token)
            if share is None:
                raise AccessDeniedError("Share not found")

        source = await self.share_source(share, decision, cache)
        if not inner_path:
            return source
        if not share.is_directory:
            raise PathValidationError("File shares have no inner paths")
        return _join_within(source, inner_path)

    async def share_source(
        self,
        share: ShareBase,
        decision: AccessDecision | None = None,
        cache: LookupCache | None = None,
    ) -> Path:
        """Physical path of the file or directory *share* points at."""
        if cache is not None and share.share_token in cache.share_roots:
            return cache.share_roots[share.share_token]

        source_path = normalize_relative_path(share.source_path)
        if share.source_space == SourceSpace.VOLUME:
            root = _join_within(self._config.volume_root, source_path)
        elif share.source_space == SourceSpace.USER_VOLUME:
            volume_id, within = split_first_segment(source_path)
            volume = decision.user_volume if decision is not None else None
            if volume is None or volume.id != volume_id:
                volume = cache.volumes.get(volume_id) if cache is not None else None
            if volume is None:
                volume = await self._volumes.get_volume_by_id(volume_id)
            if volume is None:
                raise AccessDeniedError("Share source volume not found")
            root = _join_within(self.volume_root(volume), within)
        else:
            raise PathValidationError(f"Unknown share source space: {share.source_space!r}")

        if cache is not None:
            cache.share_roots[share.share_token] = root
        return root
