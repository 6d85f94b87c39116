"""UserVolume model — named storage roots assigned to individual users.

Provides ``UserVolumeBase`` (non-table) and ``UserVolume`` (concrete table).
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel


class UserVolumeBase(SQLModel):
    """Base fields for a user volume assignment."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    user_id: str = Field(index=True)
    label: str = Field(index=True)
    access_mode: str = Field(default="readwrite")
    root_path: str | None = Field(default=None)
    """Physical root.  ``None`` means ``<volume_root>/<label>``."""
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_type=DateTime(timezone=True),  # type: ignore[invalid-argument-type]
    )


class UserVolume(UserVolumeBase, table=True):
    """Default user volume table — ``pathgate_user_volumes``."""

    __tablename__ = "pathgate_user_volumes"
