"""Rule resolution — first-match-wins path-prefix permissions.

Rules are evaluated in stored order.  A rule matches a path when its
normalized ``path`` equals the path, or, for ``recursive`` rules, when it
is a segment-aligned prefix of it.  No match yields ``rw``.

Two interchangeable resolvers are provided:

- ``RuleResolver`` — linear scan, O(rules) per call
- ``RuleTrie`` — prefix trie, O(path depth) per call; every rule keeps its
  stored index so overlapping prefixes still resolve to the earliest rule
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol

from .exceptions import PathValidationError
from .paths import is_within, normalize_relative_path
from .permissions import RulePermission

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger(__name__)


class RuleLike(Protocol):
    """Anything with the fields of a path rule (models, plain objects).

    Plain mappings with the same keys are accepted wherever a ``RuleLike``
    is, see ``rule_field``.
    """

    path: str
    recursive: bool
    permissions: str


# A rule object or a plain ``{"path", "recursive", "permissions"}`` mapping.
RuleSpec = RuleLike | Mapping[str, Any]


@dataclass(frozen=True, slots=True)
class CompiledRule:
    """A rule with its path normalized and permission coerced.

    Attributes:
        index: Position in the stored rule order.
        path: Normalized rule path (never empty).
        recursive: Whether the rule applies to descendants.
        permission: Effective permission when the rule matches.
    """

    index: int
    path: str
    recursive: bool
    permission: RulePermission

    def matches(self, path: str) -> bool:
        if self.recursive:
            return is_within(path, self.path)
        return path == self.path


def rule_field(rule: RuleSpec, name: str, default: Any = None) -> Any:
    """Read *name* from a rule given as a mapping or as an attribute object."""
    if isinstance(rule, Mapping):
        return rule.get(name, default)
    return getattr(rule, name, default)


def compile_rules(rules: Iterable[RuleSpec] | None) -> list[CompiledRule]:
    """Normalize a stored rule list, dropping rules with empty or invalid paths."""
    compiled: list[CompiledRule] = []
    for index, rule in enumerate(rules or ()):
        raw_path = rule_field(rule, "path")
        try:
            path = normalize_relative_path(raw_path or "")
        except PathValidationError:
            logger.warning("Ignoring rule with invalid path: %r", raw_path)
            continue
        if not path:
            logger.warning("Ignoring rule with empty path: %r", rule)
            continue
        compiled.append(
            CompiledRule(
                index=index,
                path=path,
                recursive=bool(rule_field(rule, "recursive", False)),
                permission=RulePermission.coerce(rule_field(rule, "permissions")),
            )
        )
    return compiled


class RuleResolver:
    """Linear first-match-wins resolver over a snapshot of rules."""

    def __init__(self, rules: Iterable[RuleSpec] | None = None) -> None:
        self._rules = compile_rules(rules)

    @property
    def rules(self) -> list[CompiledRule]:
        return list(self._rules)

    def resolve(self, path: str) -> RulePermission:
        """Return the effective permission for a volume-relative *path*."""
        rel = normalize_relative_path(path)
        for rule in self._rules:
            if rule.matches(rel):
                return rule.permission
        return RulePermission.READ_WRITE

    __call__ = resolve


@dataclass
class _TrieNode:
    children: dict[str, _TrieNode] = field(default_factory=dict)
    exact: CompiledRule | None = None
    recursive: CompiledRule | None = None


class RuleTrie:
    """Prefix-trie resolver with the same semantics as ``RuleResolver``.

    Each node stores the earliest exact rule and the earliest recursive rule
    for its path.  Resolution walks the path and keeps the candidate with the
    lowest stored index, so stored order decides ties between overlapping
    prefixes exactly as the linear scan does.
    """

    def __init__(self, rules: Iterable[RuleSpec] | None = None) -> None:
        self._root = _TrieNode()
        for rule in compile_rules(rules):
            self._insert(rule)

    def _insert(self, rule: CompiledRule) -> None:
        node = self._root
        for segment in rule.path.split("/"):
            node = node.children.setdefault(segment, _TrieNode())
        if rule.recursive:
            if node.recursive is None:
                node.recursive = rule
        elif node.exact is None:
            node.exact = rule

    def resolve(self, path: str) -> RulePermission:
        """Return the effective permission for a volume-relative *path*."""
        rel = normalize_relative_path(path)
        if not rel:
            return RulePermission.READ_WRITE

        best: CompiledRule | None = None
        node = self._root
        for segment in rel.split("/"):
            child = node.children.get(segment)
            if child is None:
                break
            node = child
            if node.recursive is not None and (best is None or node.recursive.index < best.index):
                best = node.recursive
        else:
            # Walked the whole path: exact rules on the final node also apply.
            if node.exact is not None and (best is None or node.exact.index < best.index):
                best = node.exact

        return best.permission if best is not None else RulePermission.READ_WRITE

    __call__ = resolve


def resolve_permission(rules: Iterable[RuleSpec] | None, path: str) -> RulePermission:
    """One-shot first-match-wins resolution."""
    return RuleResolver(rules).resolve(path)
