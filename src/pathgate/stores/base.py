"""Shared session handling for the SQL stores."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pathgate.exceptions import StorageError
from pathgate.models import PathRule, Share, ShareGrant, UserVolume

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from sqlalchemy.ext.asyncio import AsyncEngine
    from sqlmodel import SQLModel

logger = logging.getLogger(__name__)


class SqlStore:
    """Base for stores that open one session per operation."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    @asynccontextmanager
    async def _session(self) -> AsyncGenerator[AsyncSession]:
        """Yield a session, committing on success and rolling back on error.

        Database errors surface as ``StorageError``.
        """
        session = self._session_factory()
        try:
            yield session
            await session.commit()
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error("%s operation failed", type(self).__name__, exc_info=True)
            raise StorageError(f"{type(self).__name__} operation failed: {e}") from e
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory for the stores.

    Rows are returned after the session closes, so attributes must not
    expire on commit.
    """
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def create_tables(engine: AsyncEngine, *models: type[SQLModel]) -> None:
    """Create the tables of *models* (default: all pathgate tables) if missing."""
    if not models:
        models = (PathRule, UserVolume, Share, ShareGrant)
    async with engine.begin() as conn:
        for model in models:
            table = model.__table__  # type: ignore[attr-defined]
            await conn.run_sync(lambda c, t=table: t.create(c, checkfirst=True))
