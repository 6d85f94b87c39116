"""Share models — share links and their per-user grants.

Provides ``ShareBase`` / ``Share`` for share records and
``ShareGrantBase`` / ``ShareGrant`` for the users a ``users`` share admits.
Subclass the ``*Base`` models with ``table=True`` and a custom
``__tablename__`` to use different table names per backend.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel


class ShareBase(SQLModel):
    """Base fields for a share record."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    share_token: str = Field(index=True, unique=True)
    owner_id: str = Field(index=True)
    source_space: str = Field(default="volume")
    source_path: str = Field(default="")
    is_directory: bool = Field(default=False)
    sharing_type: str = Field(default="anyone")
    access_mode: str = Field(default="readonly")
    label: str | None = Field(default=None)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_type=DateTime(timezone=True),  # type: ignore[invalid-argument-type]
    )
    expires_at: datetime | None = Field(
        default=None,
        sa_type=DateTime(timezone=True),  # type: ignore[invalid-argument-type]
    )


class Share(ShareBase, table=True):
    """Default share table — ``pathgate_shares``."""

    __tablename__ = "pathgate_shares"


class ShareGrantBase(SQLModel):
    """Base fields for a per-user grant on a ``users`` share."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    share_id: str = Field(index=True)
    user_id: str = Field(index=True)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_type=DateTime(timezone=True),  # type: ignore[invalid-argument-type]
    )


class ShareGrant(ShareGrantBase, table=True):
    """Default share grant table — ``pathgate_share_grants``."""

    __tablename__ = "pathgate_share_grants"
