"""SqlRuleStore — ordered path rules in a SQL table."""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from sqlalchemy import delete
from sqlmodel import select

from pathgate.exceptions import PathValidationError
from pathgate.models.rules import PathRule, PathRuleBase
from pathgate.paths import normalize_relative_path
from pathgate.permissions import RulePermission
from pathgate.rules import rule_field

from .base import SqlStore

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from pathgate.rules import RuleSpec

logger = logging.getLogger(__name__)


def sanitize_rules(rules: Sequence[RuleSpec], model: type[PathRuleBase] = PathRule) -> list[PathRuleBase]:
    """Return fresh rule rows for *rules*, in order.

    Paths are normalized; rules with empty or invalid paths are dropped.
    Unknown permissions become ``rw``.
    """
    sanitized: list[PathRuleBase] = []
    for rule in rules:
        raw_path = rule_field(rule, "path")
        try:
            path = normalize_relative_path(raw_path or "")
        except PathValidationError:
            logger.warning("Dropping rule with invalid path: %r", raw_path)
            continue
        if not path:
            logger.warning("Dropping rule with empty path: %r", rule)
            continue
        sanitized.append(
            model(
                id=rule_field(rule, "id") or str(uuid.uuid4()),
                path=path,
                recursive=bool(rule_field(rule, "recursive", False)),
                permissions=RulePermission.coerce(rule_field(rule, "permissions")).value,
                position=len(sanitized),
            )
        )
    return sanitized


class SqlRuleStore(SqlStore):
    """Implements ``RuleStore``.

    ``set_rules`` replaces the whole list in one transaction; readers see
    either the old list or the new one.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        rule_model: type[PathRuleBase] = PathRule,
    ) -> None:
        super().__init__(session_factory)
        self._rule_model = rule_model

    async def get_rules(self) -> list[PathRuleBase]:
        model = self._rule_model
        async with self._session() as session:
            result = await session.execute(select(model).order_by(model.position))
            return list(result.scalars().all())

    async def set_rules(self, rules: Sequence[RuleSpec]) -> list[PathRuleBase]:
        model = self._rule_model
        rows = sanitize_rules(rules, model)
        async with self._session() as session:
            await session.execute(delete(model))
            session.add_all(rows)
            await session.flush()
        logger.info("Stored %d path rules", len(rows))
        return rows
