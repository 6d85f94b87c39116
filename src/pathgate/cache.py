"""LookupCache — request-scoped memo for collaborator lookups.

One cache object belongs to one top-level request (a listing, a bulk
transfer) and is discarded afterwards.  It is never shared across requests,
so it can never serve share or volume records that changed between them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

    from .models.shares import ShareBase
    from .models.volumes import UserVolumeBase
    from .rules import RuleResolver, RuleTrie


@dataclass
class LookupCache:
    """Positive-result caches keyed the way the engine looks records up.

    Plain dicts are sufficient: within one event loop, concurrent child
    decisions only race to insert the same record.
    """

    shares: dict[str, ShareBase] = field(default_factory=dict)
    """share_token → share"""

    volumes: dict[str, UserVolumeBase] = field(default_factory=dict)
    """volume_id → user volume"""

    user_volumes: dict[tuple[str, str], UserVolumeBase] = field(default_factory=dict)
    """(user_id, label) → user volume"""

    share_grants: dict[tuple[str, str], bool] = field(default_factory=dict)
    """(share_id, user_id) → has permission"""

    share_roots: dict[str, Path] = field(default_factory=dict)
    """share_token → physical source root"""

    resolver: RuleResolver | RuleTrie | None = None
    """Rule snapshot compiled once for the request."""
