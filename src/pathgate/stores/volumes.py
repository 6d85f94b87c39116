"""SqlUserVolumeStore — per-user volume assignments in a SQL table."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlmodel import select

from pathgate.exceptions import PathValidationError
from pathgate.models.volumes import UserVolume, UserVolumeBase
from pathgate.paths import normalize_relative_path, split_first_segment, validate_label
from pathgate.permissions import AccessMode

from .base import SqlStore

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = logging.getLogger(__name__)


class SqlUserVolumeStore(SqlStore):
    """Implements ``UserVolumeStore`` plus volume management."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        volume_model: type[UserVolumeBase] = UserVolume,
    ) -> None:
        super().__init__(session_factory)
        self._volume_model = volume_model

    async def get_user_volume_for_path(
        self, user_id: str, relative_path: str
    ) -> UserVolumeBase | None:
        """Return *user_id*'s volume labelled by the first segment of *relative_path*."""
        try:
            label, _ = split_first_segment(normalize_relative_path(relative_path))
        except PathValidationError:
            return None
        if not label:
            return None
        model = self._volume_model
        async with self._session() as session:
            result = await session.execute(
                select(model).where(model.user_id == user_id, model.label == label)
            )
            return result.scalars().first()

    async def get_volume_by_id(self, volume_id: str) -> UserVolumeBase | None:
        async with self._session() as session:
            return await session.get(self._volume_model, volume_id)

    async def list_volumes_for_user(self, user_id: str) -> list[UserVolumeBase]:
        model = self._volume_model
        async with self._session() as session:
            result = await session.execute(
                select(model).where(model.user_id == user_id).order_by(model.label)
            )
            return list(result.scalars().all())

    async def create_volume(
        self,
        user_id: str,
        label: str,
        *,
        access_mode: AccessMode | str = AccessMode.READ_WRITE,
        root_path: str | None = None,
    ) -> UserVolumeBase:
        """Assign a new volume to *user_id*.

        Raises:
            ReservedLabelError: *label* is ``personal``, ``share`` or ``volumes``.
            PathValidationError: *label* is not a single segment, or the user
                already has a volume with that label.
            ValueError: *access_mode* is not a known mode.
        """
        label = validate_label(label)
        mode = AccessMode(access_mode)
        model = self._volume_model
        async with self._session() as session:
            existing = await session.execute(
                select(model).where(model.user_id == user_id, model.label == label)
            )
            if existing.scalars().first() is not None:
                raise PathValidationError(
                    f"User {user_id!r} already has a volume labelled {label!r}"
                )
            volume = model(
                user_id=user_id,
                label=label,
                access_mode=mode.value,
                root_path=root_path,
            )
            session.add(volume)
            await session.flush()
        logger.info("Created volume %r for user %s", label, user_id)
        return volume

    async def delete_volume(self, volume_id: str) -> bool:
        """Delete a volume assignment. Returns True if it existed."""
        async with self._session() as session:
            volume = await session.get(self._volume_model, volume_id)
            if volume is None:
                return False
            await session.delete(volume)
            await session.flush()
        return True
