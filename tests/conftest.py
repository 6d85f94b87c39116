"""Shared fixtures for pathgate tests."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

import pytest
from sqlalchemy.ext.asyncio import create_async_engine

from pathgate.config import AccessConfig
from pathgate.engine import AccessEngine
from pathgate.models import PathRule, Share, UserVolume
from pathgate.paths import normalize_relative_path, split_first_segment
from pathgate.stores import create_tables, sanitize_rules, session_factory, share_expired

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Sequence
    from pathlib import Path

    from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

    from pathgate.rules import RuleLike

FIXED_NOW = datetime(2025, 6, 1, 12, 0, tzinfo=UTC)


# ---------------------------------------------------------------------------
# In-memory collaborators
# ---------------------------------------------------------------------------


class MemoryRuleStore:
    """RuleStore backed by a list; counts ``get_rules`` calls."""

    def __init__(self, rules: Sequence[RuleLike] | None = None) -> None:
        self.rules: list[RuleLike] = list(rules or [])
        self.get_calls = 0

    def add(self, path: str, permissions: str, *, recursive: bool = False) -> PathRule:
        rule = PathRule(
            path=path, permissions=permissions, recursive=recursive, position=len(self.rules)
        )
        self.rules.append(rule)
        return rule

    async def get_rules(self) -> list[RuleLike]:
        self.get_calls += 1
        return list(self.rules)

    async def set_rules(self, rules: Sequence[RuleLike]) -> list[RuleLike]:
        self.rules = list(sanitize_rules(rules))
        return list(self.rules)


class MemoryVolumeStore:
    """UserVolumeStore backed by a dict; counts lookups."""

    def __init__(self) -> None:
        self.volumes: dict[str, UserVolume] = {}
        self.lookups = 0

    def add(
        self,
        user_id: str,
        label: str,
        *,
        access_mode: str = "readwrite",
        root_path: str | None = None,
        volume_id: str | None = None,
    ) -> UserVolume:
        volume = UserVolume(
            user_id=user_id, label=label, access_mode=access_mode, root_path=root_path
        )
        if volume_id is not None:
            volume.id = volume_id
        self.volumes[volume.id] = volume
        return volume

    async def get_user_volume_for_path(
        self, user_id: str, relative_path: str
    ) -> UserVolume | None:
        self.lookups += 1
        label, _ = split_first_segment(normalize_relative_path(relative_path))
        for volume in self.volumes.values():
            if volume.user_id == user_id and volume.label == label:
                return volume
        return None

    async def get_volume_by_id(self, volume_id: str) -> UserVolume | None:
        self.lookups += 1
        return self.volumes.get(volume_id)


class MemoryShareStore:
    """ShareStore backed by dicts; counts token lookups."""

    def __init__(self) -> None:
        self.shares: dict[str, Share] = {}
        self.grants: set[tuple[str, str]] = set()
        self.token_lookups = 0

    def add(
        self,
        token: str,
        source_path: str,
        *,
        owner_id: str = "owner",
        source_space: str = "volume",
        is_directory: bool = True,
        sharing_type: str = "anyone",
        access_mode: str = "readonly",
        label: str | None = None,
        expires_at: datetime | None = None,
    ) -> Share:
        share = Share(
            share_token=token,
            owner_id=owner_id,
            source_space=source_space,
            source_path=source_path,
            is_directory=is_directory,
            sharing_type=sharing_type,
            access_mode=access_mode,
            label=label,
            expires_at=expires_at,
        )
        self.shares[token] = share
        return share

    def grant(self, share: Share, user_id: str) -> None:
        self.grants.add((share.id, user_id))

    async def get_share_by_token(self, token: str) -> Share | None:
        self.token_lookups += 1
        return self.shares.get(token)

    async def has_user_permission(self, share_id: str, user_id: str) -> bool:
        return (share_id, user_id) in self.grants

    def is_share_expired(self, share: Share, now: datetime | None = None) -> bool:
        return share_expired(share, now)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def now() -> datetime:
    """The instant the engine fixture treats as the current time."""
    return FIXED_NOW


@pytest.fixture
def config(tmp_path: Path) -> AccessConfig:
    """Config with volume and personal roots under a temporary directory."""
    volume_root = tmp_path / "volumes"
    personal_root = tmp_path / "personal"
    volume_root.mkdir()
    personal_root.mkdir()
    return AccessConfig(volume_root=volume_root, personal_root=personal_root)


@pytest.fixture
def rule_store() -> MemoryRuleStore:
    return MemoryRuleStore()


@pytest.fixture
def volume_store() -> MemoryVolumeStore:
    return MemoryVolumeStore()


@pytest.fixture
def share_store() -> MemoryShareStore:
    return MemoryShareStore()


@pytest.fixture
def access_engine(
    config: AccessConfig,
    rule_store: MemoryRuleStore,
    volume_store: MemoryVolumeStore,
    share_store: MemoryShareStore,
) -> AccessEngine:
    """Engine over the in-memory stores with a fixed clock."""
    return AccessEngine(
        config,
        rules=rule_store,
        volumes=volume_store,
        shares=share_store,
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
async def async_engine() -> AsyncIterator[AsyncEngine]:
    """Async in-memory SQLite engine with the pathgate tables created."""
    eng = create_async_engine("sqlite+aiosqlite://", echo=False)
    await create_tables(eng)
    yield eng
    await eng.dispose()


@pytest.fixture
def sessions(async_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the in-memory engine."""
    return session_factory(async_engine)
