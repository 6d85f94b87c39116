"""PathRule model — administrator path-prefix permission overrides.

Provides ``PathRuleBase`` (non-table) and ``PathRule`` (concrete table).
Subclass ``PathRuleBase`` with ``table=True`` and a custom ``__tablename__``
to use a different table name per backend.
"""

from __future__ import annotations

import uuid

from sqlmodel import Field, SQLModel


class PathRuleBase(SQLModel):
    """Base fields for a path rule. Rules are evaluated in ``position`` order."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    path: str = Field(default="")
    recursive: bool = Field(default=False)
    permissions: str = Field(default="rw")
    position: int = Field(default=0, index=True)


class PathRule(PathRuleBase, table=True):
    """Default path rule table — ``pathgate_path_rules``."""

    __tablename__ = "pathgate_path_rules"
