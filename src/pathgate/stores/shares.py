"""SqlShareStore — share links and per-user grants in SQL tables.

Follows the stateless-service pattern: model classes are injected at
construction and every call opens its own session.
"""

from __future__ import annotations

import logging
import secrets
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import delete
from sqlmodel import select

from pathgate.models.shares import Share, ShareBase, ShareGrant, ShareGrantBase
from pathgate.paths import normalize_relative_path
from pathgate.permissions import AccessMode, SharingType, SourceSpace

from .base import SqlStore

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = logging.getLogger(__name__)

TOKEN_BYTES = 16


def share_expired(share: ShareBase, now: datetime | None = None) -> bool:
    """True once *share*'s expiry has passed.

    Naive timestamps (SQLite drops tzinfo) are treated as UTC.
    """
    if share.expires_at is None:
        return False
    now = now or datetime.now(UTC)
    exp = share.expires_at
    if exp.tzinfo is None:
        exp = exp.replace(tzinfo=UTC)
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    return exp <= now


class SqlShareStore(SqlStore):
    """Implements ``ShareStore`` plus share management."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        share_model: type[ShareBase] = Share,
        grant_model: type[ShareGrantBase] = ShareGrant,
    ) -> None:
        super().__init__(session_factory)
        self._share_model = share_model
        self._grant_model = grant_model

    # ------------------------------------------------------------------
    # ShareStore
    # ------------------------------------------------------------------

    async def get_share_by_token(self, token: str) -> ShareBase | None:
        if not token:
            return None
        model = self._share_model
        async with self._session() as session:
            result = await session.execute(select(model).where(model.share_token == token))
            return result.scalars().first()

    async def has_user_permission(self, share_id: str, user_id: str) -> bool:
        model = self._grant_model
        async with self._session() as session:
            result = await session.execute(
                select(model.id).where(model.share_id == share_id, model.user_id == user_id)
            )
            return result.first() is not None

    def is_share_expired(self, share: ShareBase, now: datetime | None = None) -> bool:
        return share_expired(share, now)

    # ------------------------------------------------------------------
    # Management
    # ------------------------------------------------------------------

    async def create_share(
        self,
        owner_id: str,
        source_path: str,
        *,
        source_space: SourceSpace | str = SourceSpace.VOLUME,
        is_directory: bool = False,
        sharing_type: SharingType | str = SharingType.ANYONE,
        access_mode: AccessMode | str = AccessMode.READ_ONLY,
        label: str | None = None,
        expires_at: datetime | None = None,
    ) -> ShareBase:
        """Create a share with a fresh URL-safe token.

        Raises ``ValueError`` for unknown enum values and
        ``PathValidationError`` for a malformed *source_path*.
        """
        space = SourceSpace(source_space)
        audience = SharingType(sharing_type)
        mode = AccessMode(access_mode)
        share = self._share_model(
            share_token=secrets.token_urlsafe(TOKEN_BYTES),
            owner_id=owner_id,
            source_space=space.value,
            source_path=normalize_relative_path(source_path),
            is_directory=is_directory,
            sharing_type=audience.value,
            access_mode=mode.value,
            label=label,
            expires_at=expires_at,
        )
        async with self._session() as session:
            session.add(share)
            await session.flush()
        logger.info("Created %s share %s for owner %s", audience.value, share.id, owner_id)
        return share

    async def grant_user(self, share_id: str, user_id: str) -> ShareGrantBase:
        """Admit *user_id* to a ``users`` share. Idempotent."""
        model = self._grant_model
        async with self._session() as session:
            result = await session.execute(
                select(model).where(model.share_id == share_id, model.user_id == user_id)
            )
            grant = result.scalars().first()
            if grant is None:
                grant = model(share_id=share_id, user_id=user_id)
                session.add(grant)
                await session.flush()
            return grant

    async def revoke_user(self, share_id: str, user_id: str) -> bool:
        """Remove a grant. Returns True if one was removed."""
        model = self._grant_model
        async with self._session() as session:
            result = await session.execute(
                select(model).where(model.share_id == share_id, model.user_id == user_id)
            )
            grant = result.scalars().first()
            if grant is None:
                return False
            await session.delete(grant)
            await session.flush()
        return True

    async def delete_share(self, share_id: str) -> bool:
        """Delete a share and its grants. Returns True if the share existed."""
        async with self._session() as session:
            share = await session.get(self._share_model, share_id)
            if share is None:
                return False
            grant = self._grant_model
            await session.execute(delete(grant).where(grant.share_id == share_id))
            await session.delete(share)
            await session.flush()
        logger.info("Deleted share %s", share_id)
        return True

    async def list_shares_for_owner(
        self, owner_id: str, *, include_expired: bool = True
    ) -> list[ShareBase]:
        model = self._share_model
        async with self._session() as session:
            result = await session.execute(
                select(model).where(model.owner_id == owner_id).order_by(model.created_at)
            )
            shares = list(result.scalars().all())
        if include_expired:
            return shares
        now = datetime.now(UTC)
        return [share for share in shares if not share_expired(share, now)]
