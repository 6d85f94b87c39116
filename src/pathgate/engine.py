"""AccessEngine — decides what a caller may do with a logical path.

Stateless and reentrant: every call reads a fresh snapshot of rules,
shares, and user volumes from the collaborators (or from the
request-scoped ``LookupCache`` when one is passed in) and returns a new
``AccessDecision``.  Expected policy outcomes are denial *values*; only
malformed paths (``PathValidationError``) and collaborator failures raise.

Space state machine:

- volume — authenticated users only; per-user volume assignment when the
  feature is enabled for non-admins; ``hidden`` rules deny; ``ro`` rules
  make non-admins read-only
- personal — any authenticated user, full access, no rule lookup
- share — token must resolve to an unexpired share the caller is admitted
  to; write access is capped by the current permission of the share's
  underlying source, so rule changes apply to already-issued shares
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from .decisions import AccessDecision, ShareInfo
from .exceptions import PathValidationError
from .paths import (
    ParsedPath,
    Space,
    combine_relative_path,
    normalize_relative_path,
    parse_path_space,
    split_first_segment,
)
from .permissions import (
    AccessMode,
    RulePermission,
    SharingType,
    SourceSpace,
    capabilities_for,
)
from .rules import RuleResolver, RuleTrie

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from .cache import LookupCache
    from .config import AccessConfig
    from .context import CallerContext
    from .models.shares import ShareBase
    from .models.volumes import UserVolumeBase
    from .protocols import RuleStore, ShareStore, UserVolumeStore
    from .rules import RuleSpec

    PermissionResolver = Callable[[str], RulePermission]

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class _ShareSource:
    """Current permission of the path a share points at."""

    permission: RulePermission = RulePermission.READ_WRITE
    read_only: bool = False
    volume: UserVolumeBase | None = None
    denial_reason: str | None = None


class AccessEngine:
    """Central access oracle.

    Collaborators are injected at construction; per-call state (rule
    snapshot, lookup caches) travels through the optional ``resolver`` and
    ``cache`` arguments so bulk operations can reuse it.
    """

    def __init__(
        self,
        config: AccessConfig,
        *,
        rules: RuleStore,
        volumes: UserVolumeStore,
        shares: ShareStore,
        resolver_factory: Callable[[Sequence[RuleSpec]], RuleResolver | RuleTrie] = RuleResolver,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._config = config
        self._rules = rules
        self._volumes = volumes
        self._shares = shares
        self._resolver_factory = resolver_factory
        self._clock = clock or (lambda: datetime.now(UTC))

    @property
    def config(self) -> AccessConfig:
        return self._config

    # ------------------------------------------------------------------
    # Rule snapshot
    # ------------------------------------------------------------------

    def compile_rules(self, rules: Sequence[RuleSpec]) -> RuleResolver | RuleTrie:
        """Compile a rule list with this engine's resolver factory."""
        return self._resolver_factory(rules)

    async def rule_resolver(self, cache: LookupCache | None = None) -> PermissionResolver:
        """Fetch and compile the current rules, reusing the cache's snapshot."""
        if cache is not None and cache.resolver is not None:
            return cache.resolver
        resolver = self.compile_rules(await self._rules.get_rules())
        if cache is not None:
            cache.resolver = resolver
        return resolver

    async def _permission(
        self,
        path: str,
        resolver: PermissionResolver | None,
        cache: LookupCache | None,
    ) -> RulePermission:
        if resolver is None:
            resolver = await self.rule_resolver(cache)
        return resolver(path)

    # ------------------------------------------------------------------
    # Cached lookups
    # ------------------------------------------------------------------

    async def _share_by_token(self, token: str, cache: LookupCache | None) -> ShareBase | None:
        if cache is not None and token in cache.shares:
            return cache.shares[token]
        share = await self._shares.get_share_by_token(token)
        if cache is not None and share is not None:
            cache.shares[token] = share
        return share

    async def _volume_by_id(self, volume_id: str, cache: LookupCache | None) -> UserVolumeBase | None:
        if cache is not None and volume_id in cache.volumes:
            return cache.volumes[volume_id]
        volume = await self._volumes.get_volume_by_id(volume_id)
        if cache is not None and volume is not None:
            cache.volumes[volume_id] = volume
        return volume

    async def _user_volume_for_path(
        self, user_id: str, relative_path: str, cache: LookupCache | None
    ) -> UserVolumeBase | None:
        label, _ = split_first_segment(relative_path)
        key = (user_id, label)
        if cache is not None and key in cache.user_volumes:
            return cache.user_volumes[key]
        volume = await self._volumes.get_user_volume_for_path(user_id, relative_path)
        if cache is not None and volume is not None:
            cache.user_volumes[key] = volume
        return volume

    async def _has_grant(self, share_id: str, user_id: str, cache: LookupCache | None) -> bool:
        key = (share_id, user_id)
        if cache is not None and key in cache.share_grants:
            return cache.share_grants[key]
        permitted = bool(await self._shares.has_user_permission(share_id, user_id))
        if cache is not None:
            cache.share_grants[key] = permitted
        return permitted

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def decide(
        self,
        context: CallerContext,
        logical_path: str,
        *,
        resolver: PermissionResolver | None = None,
        cache: LookupCache | None = None,
    ) -> AccessDecision:
        """Evaluate *context* against *logical_path*.

        Raises ``PathValidationError`` for malformed paths; every policy
        outcome is returned as an ``AccessDecision``.
        """
        parsed = parse_path_space(logical_path)
        return await self.decide_parsed(context, parsed, resolver=resolver, cache=cache)

    async def decide_parsed(
        self,
        context: CallerContext,
        parsed: ParsedPath,
        *,
        resolver: PermissionResolver | None = None,
        cache: LookupCache | None = None,
    ) -> AccessDecision:
        """Evaluate an already-parsed path."""
        if parsed.space is Space.VOLUME:
            decision = await self._volume_access(context, parsed.relative_path, resolver, cache)
        elif parsed.space is Space.PERSONAL:
            decision = self._personal_access(context)
        elif parsed.space is Space.SHARE:
            decision = await self._share_access(
                context, parsed.share_token, parsed.inner_path or "", resolver, cache
            )
        else:
            decision = AccessDecision.denied("Unknown path space")

        if not decision.can_access:
            logger.debug(
                "Access denied in %s space for %r: %s",
                parsed.space.value,
                parsed.relative_path,
                decision.denial_reason,
            )
        return decision

    # ------------------------------------------------------------------
    # Volume space
    # ------------------------------------------------------------------

    async def _volume_access(
        self,
        context: CallerContext,
        relative_path: str,
        resolver: PermissionResolver | None,
        cache: LookupCache | None,
    ) -> AccessDecision:
        # A present user always wins over a stale guest session.
        if context.is_guest_only:
            return AccessDecision.denied("Guests cannot access volumes")
        if not context.is_authenticated or context.user is None:
            return AccessDecision.denied("Authentication required")

        user = context.user

        if self._config.user_volumes_enabled and not user.is_admin:
            volume = await self._user_volume_for_path(user.id, relative_path, cache)
            if volume is None:
                return AccessDecision.denied("You do not have access to this volume")

            permission = await self._permission(relative_path, resolver, cache)
            if permission is RulePermission.HIDDEN:
                return AccessDecision.denied("Path is hidden")

            read_only = (
                volume.access_mode != AccessMode.READ_WRITE
                or permission is RulePermission.READ_ONLY
            )
            return AccessDecision(
                can_access=True,
                capabilities=capabilities_for(read_only=read_only, can_share=True),
                effective_permission=(
                    RulePermission.READ_ONLY if read_only else RulePermission.READ_WRITE
                ),
                user_volume=volume,
            )

        permission = await self._permission(relative_path, resolver, cache)
        if permission is RulePermission.HIDDEN:
            return AccessDecision.denied("Path is hidden")

        # Admins bypass read-only rules, never hidden ones.
        read_only = permission is RulePermission.READ_ONLY and not user.is_admin
        return AccessDecision(
            can_access=True,
            capabilities=capabilities_for(read_only=read_only, can_share=True),
            effective_permission=permission,
        )

    # ------------------------------------------------------------------
    # Personal space
    # ------------------------------------------------------------------

    def _personal_access(self, context: CallerContext) -> AccessDecision:
        if context.is_guest_only:
            return AccessDecision.denied("Guests cannot access personal folders")
        if not context.is_authenticated:
            return AccessDecision.denied("Authentication required")

        return AccessDecision(
            can_access=True,
            capabilities=capabilities_for(read_only=False, can_share=True),
            effective_permission=RulePermission.READ_WRITE,
        )

    # ------------------------------------------------------------------
    # Share space
    # ------------------------------------------------------------------

    async def _share_access(
        self,
        context: CallerContext,
        token: str | None,
        inner_path: str,
        resolver: PermissionResolver | None,
        cache: LookupCache | None,
    ) -> AccessDecision:
        if not token:
            return AccessDecision.denied("Share token is required")

        share = await self._share_by_token(token, cache)
        if share is None:
            return AccessDecision.denied("Share not found")

        if self._shares.is_share_expired(share, self._clock()):
            return AccessDecision.denied("Share has expired")

        user = context.user if context.is_authenticated else None

        if share.sharing_type == SharingType.USERS:
            if user is None:
                return AccessDecision.denied("Authentication required")
            if not await self._has_grant(share.id, user.id, cache):
                return AccessDecision.denied("Access denied")
        elif share.sharing_type == SharingType.ANYONE:
            if user is None:
                if context.guest is None:
                    return AccessDecision.denied("Share access required")
                if context.guest.share_id != share.id:
                    return AccessDecision.denied("Invalid guest session for this share")
        else:
            return AccessDecision.denied("Share has an invalid sharing type")

        if inner_path and not share.is_directory:
            return AccessDecision.denied("Path not found in share")

        source = await self._share_source(share, inner_path, resolver, cache)
        if source.denial_reason is not None:
            return AccessDecision.denied(source.denial_reason)

        # The share's mode is an upper bound; the source's current rules cap it.
        read_write = share.access_mode == AccessMode.READ_WRITE and not source.read_only

        return AccessDecision(
            can_access=True,
            capabilities=capabilities_for(read_only=not read_write, can_share=False),
            effective_permission=(
                RulePermission.READ_WRITE if read_write else RulePermission.READ_ONLY
            ),
            is_shared=True,
            share_info=ShareInfo(
                share_id=share.id,
                share_token=share.share_token,
                access_mode=AccessMode.READ_WRITE if read_write else AccessMode.READ_ONLY,
                expires_at=share.expires_at,
                is_owner=user is not None and str(user.id) == str(share.owner_id),
                label=share.label,
                source_path=share.source_path,
            ),
            share=share,
            user_volume=source.volume,
        )

    async def _share_source(
        self,
        share: ShareBase,
        inner_path: str,
        resolver: PermissionResolver | None,
        cache: LookupCache | None,
    ) -> _ShareSource:
        """Evaluate the rules of the path *share* points at (plus *inner_path*)."""
        try:
            source_path = normalize_relative_path(share.source_path)
        except PathValidationError:
            return _ShareSource(denial_reason="Share source path is invalid")

        if share.source_space == SourceSpace.VOLUME:
            rule_path = combine_relative_path(source_path, inner_path)
            permission = await self._permission(rule_path, resolver, cache)
            if permission is RulePermission.HIDDEN:
                return _ShareSource(denial_reason="Path is hidden")
            return _ShareSource(
                permission=permission,
                read_only=permission is RulePermission.READ_ONLY,
            )

        if share.source_space == SourceSpace.USER_VOLUME:
            volume_id, within = split_first_segment(source_path)
            if not volume_id:
                return _ShareSource(denial_reason="Share source volume is invalid")

            volume = await self._volume_by_id(volume_id, cache)
            if volume is None:
                return _ShareSource(denial_reason="Share source volume not found")
            if str(volume.user_id) != str(share.owner_id):
                return _ShareSource(denial_reason="Share source volume mismatch")

            try:
                rule_path = combine_relative_path(
                    volume.label, combine_relative_path(within, inner_path)
                )
            except PathValidationError:
                return _ShareSource(denial_reason="Share source volume is invalid")

            permission = await self._permission(rule_path, resolver, cache)
            if permission is RulePermission.HIDDEN:
                return _ShareSource(denial_reason="Path is hidden")
            return _ShareSource(
                permission=permission,
                read_only=(
                    volume.access_mode != AccessMode.READ_WRITE
                    or permission is RulePermission.READ_ONLY
                ),
                volume=volume,
            )

        return _ShareSource(denial_reason="Share source is invalid")
