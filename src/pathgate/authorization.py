"""Authorizer — the single allow/deny entry point for route handlers.

Maps a coarse action name to exactly one capability flag of an
``AccessDecision`` and optionally resolves the physical location.  Route
handlers must go through here rather than consulting rules directly.
"""

from __future__ import annotations

import logging
import stat
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

from .cache import LookupCache
from .decisions import AccessDecision
from .engine import AccessEngine
from .exceptions import PathNotFoundError
from .listing import DirectoryLister, ListingOptions
from .local_disk import LocalDiskAdapter
from .paths import normalize_relative_path
from .permissions import ACTION_CAPABILITIES, Action
from .resolver import LocationResolver

if TYPE_CHECKING:
    from .config import AccessConfig
    from .context import CallerContext
    from .decisions import ResolvedLocation, ShareInfo
    from .listing import DirectoryItem
    from .protocols import FileSystemAdapter, RuleStore, ShareStore, UserVolumeStore

logger = logging.getLogger(__name__)

UNKNOWN_ACTION = "Unknown action"


@dataclass(frozen=True, slots=True)
class AuthorizationResult:
    """Outcome of ``authorize`` / ``authorize_and_resolve``.

    ``resolved`` is only set when ``allowed`` is True and resolution was
    requested.
    """

    allowed: bool
    decision: AccessDecision
    resolved: ResolvedLocation | None = None

    @property
    def denial_reason(self) -> str | None:
        if self.allowed:
            return None
        return self.decision.denial_reason or "Access denied"


@dataclass(frozen=True, slots=True)
class DirectoryListing:
    """Visible children of a directory plus the caller's access to it."""

    path: str
    items: list[DirectoryItem] = field(default_factory=list)
    access: AccessDecision | None = None
    share_info: ShareInfo | None = None

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = {
            "path": self.path,
            "items": [item.to_dict() for item in self.items],
        }
        if self.access is not None:
            data["access"] = {
                "canRead": self.access.can_read,
                "canWrite": self.access.can_write,
                "canUpload": self.access.can_upload,
                "canDelete": self.access.can_delete,
                "canShare": self.access.can_share,
                "canDownload": self.access.can_download,
            }
        if self.share_info is not None:
            data["shareInfo"] = {
                "label": self.share_info.label,
                "sourceFolderName": self.share_info.source_folder_name,
            }
        return data


class Authorizer:
    """Action-level authorization over an ``AccessEngine``."""

    def __init__(
        self,
        engine: AccessEngine,
        resolver: LocationResolver,
        lister: DirectoryLister,
    ) -> None:
        self._engine = engine
        self._resolver = resolver
        self._lister = lister

    @classmethod
    def from_stores(
        cls,
        config: AccessConfig,
        *,
        rules: RuleStore,
        volumes: UserVolumeStore,
        shares: ShareStore,
        filesystem: FileSystemAdapter | None = None,
    ) -> Authorizer:
        """Wire engine, resolver, and lister from collaborators."""
        engine = AccessEngine(config, rules=rules, volumes=volumes, shares=shares)
        resolver = LocationResolver(config, volumes=volumes, shares=shares)
        lister = DirectoryLister(engine, filesystem or LocalDiskAdapter(), config)
        return cls(engine, resolver, lister)

    @property
    def engine(self) -> AccessEngine:
        return self._engine

    # ------------------------------------------------------------------
    # Authorization
    # ------------------------------------------------------------------

    async def _decide(
        self,
        context: CallerContext,
        logical_path: str,
        action: Action | str,
        cache: LookupCache | None,
    ) -> tuple[bool, AccessDecision]:
        # Unknown actions are reported as such whatever the path decision.
        parsed = Action.parse(action)
        if parsed is None:
            logger.debug("Rejecting unknown action %r on %r", action, logical_path)
            return False, AccessDecision.denied(UNKNOWN_ACTION)
        decision = await self._engine.decide(context, logical_path, cache=cache)
        if not decision.can_access:
            return False, decision
        return decision.allows(ACTION_CAPABILITIES[parsed]), decision

    async def authorize(
        self,
        context: CallerContext,
        logical_path: str,
        action: Action | str,
        *,
        cache: LookupCache | None = None,
    ) -> AuthorizationResult:
        """Decide whether *context* may perform *action* on *logical_path*."""
        allowed, decision = await self._decide(context, logical_path, action, cache)
        return AuthorizationResult(allowed=allowed, decision=decision)

    async def authorize_and_resolve(
        self,
        context: CallerContext,
        logical_path: str,
        action: Action | str,
        *,
        cache: LookupCache | None = None,
    ) -> AuthorizationResult:
        """Like ``authorize`` but also resolve the physical location when allowed."""
        allowed, decision = await self._decide(context, logical_path, action, cache)
        if not allowed:
            return AuthorizationResult(allowed=False, decision=decision)
        resolved = await self._resolver.resolve(context, logical_path, decision, cache=cache)
        return AuthorizationResult(allowed=True, decision=decision, resolved=resolved)

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    async def list_directory(
        self,
        context: CallerContext,
        logical_path: str,
        options: ListingOptions | None = None,
    ) -> DirectoryListing:
        """List a logical directory, filtered to what *context* may see.

        Denied directories come back with no items and the denial on
        ``access``; a missing directory raises ``PathNotFoundError``.
        """
        relative_path = normalize_relative_path(logical_path)
        cache = LookupCache()
        if options is not None and options.rules is not None:
            cache.resolver = self._engine.compile_rules(options.rules)
            options = replace(options, rules=None)

        result = await self.authorize_and_resolve(
            context, relative_path, Action.LIST, cache=cache
        )
        if not result.allowed or result.resolved is None:
            return DirectoryListing(path=relative_path, access=result.decision)

        directory = result.resolved.absolute_path
        try:
            st = await self._lister.filesystem.stat(directory)
        except (FileNotFoundError, NotADirectoryError):
            raise PathNotFoundError(f"Directory not found: {relative_path}") from None
        if not stat.S_ISDIR(st.st_mode):
            raise PathNotFoundError(f"Not a directory: {relative_path}")

        items = await self._lister.list(directory, relative_path, context, options, cache=cache)
        logger.debug("Listed %d visible items in %r", len(items), relative_path)
        return DirectoryListing(
            path=relative_path,
            items=items,
            access=result.decision,
            share_info=result.resolved.share_info,
        )

