"""Logical path parsing: normalization, path spaces, reserved labels.

A logical path is a forward-slash path whose first segment selects its space:

- ``personal/<rest>`` — the caller's private subtree
- ``share/<token>/<inner>`` — delegated access through a share link
- ``volumes/<rest>`` — explicit volume space (prefix stripped)
- anything else — implicit volume space
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .exceptions import PathValidationError, ReservedLabelError

PERSONAL_SEGMENT = "personal"
SHARE_SEGMENT = "share"
VOLUMES_SEGMENT = "volumes"

RESERVED_SEGMENTS = frozenset({PERSONAL_SEGMENT, SHARE_SEGMENT, VOLUMES_SEGMENT})

MAX_PATH_LENGTH = 4096
MAX_NAME_LENGTH = 255


class Space(str, Enum):
    """The three logical path namespaces."""

    VOLUME = "volume"
    PERSONAL = "personal"
    SHARE = "share"


@dataclass(frozen=True, slots=True)
class ParsedPath:
    """A logical path split into its space and the path within that space.

    Attributes:
        space: Which namespace the path belongs to.
        relative_path: Normalized path relative to the space root
            (for shares: ``<token>/<inner>``).
        share_token: Second segment of a ``share/`` path.
        inner_path: Everything after the token of a ``share/`` path.
    """

    space: Space
    relative_path: str
    share_token: str | None = None
    inner_path: str | None = None


# =============================================================================
# Normalization
# =============================================================================


def _check_characters(path: str) -> None:
    if "\x00" in path:
        raise PathValidationError("Path contains null bytes")
    if "\\" in path:
        raise PathValidationError("Path contains a backslash")
    for ch in path:
        code = ord(ch)
        if 0x01 <= code <= 0x1F:
            raise PathValidationError(f"Path contains control character: 0x{code:02x}")
    if len(path) > MAX_PATH_LENGTH:
        raise PathValidationError(f"Path too long (max {MAX_PATH_LENGTH} characters)")


def normalize_relative_path(path: str | None) -> str:
    """Normalize a logical path.

    - Rejects backslashes; only ``/`` separates segments
    - Removes leading/trailing slashes and collapses repeated separators
    - Drops ``.`` segments
    - Rejects ``..`` segments (traversal) with ``PathValidationError``

    Examples:
        normalize_relative_path("/docs//a.txt/") -> "docs/a.txt"
        normalize_relative_path("./docs") -> "docs"
        normalize_relative_path("") -> ""
    """
    if not path:
        return ""

    _check_characters(path)

    segments: list[str] = []
    for segment in path.split("/"):
        if segment in ("", "."):
            continue
        if segment == "..":
            raise PathValidationError(f"Path traversal is not allowed: {path!r}")
        if len(segment) > MAX_NAME_LENGTH:
            raise PathValidationError(f"Name too long (max {MAX_NAME_LENGTH} characters)")
        segments.append(segment)
    return "/".join(segments)


def combine_relative_path(base: str | None, name: str | None) -> str:
    """Join two logical path fragments and normalize the result."""
    base = normalize_relative_path(base)
    name = normalize_relative_path(name)
    if not base:
        return name
    if not name:
        return base
    return f"{base}/{name}"


def split_first_segment(path: str) -> tuple[str, str]:
    """Split a normalized path into ``(first_segment, rest)``."""
    head, _, rest = path.partition("/")
    return head, rest


def is_within(path: str, prefix: str) -> bool:
    """Segment-aligned prefix test: ``a/b`` is within ``a`` but ``ab`` is not."""
    if not prefix:
        return True
    return path == prefix or path.startswith(prefix + "/")


# =============================================================================
# Path-space parsing
# =============================================================================


def parse_path_space(logical_path: str | None) -> ParsedPath:
    """Classify a logical path into its space.

    Raises ``PathValidationError`` for traversal attempts or malformed input.
    """
    rel = normalize_relative_path(logical_path)
    head, rest = split_first_segment(rel)

    if head == PERSONAL_SEGMENT:
        return ParsedPath(space=Space.PERSONAL, relative_path=rest)

    if head == SHARE_SEGMENT:
        token, inner = split_first_segment(rest)
        return ParsedPath(
            space=Space.SHARE,
            relative_path=rest,
            share_token=token or None,
            inner_path=inner,
        )

    if head == VOLUMES_SEGMENT:
        return ParsedPath(space=Space.VOLUME, relative_path=rest)

    return ParsedPath(space=Space.VOLUME, relative_path=rel)


# =============================================================================
# Labels
# =============================================================================


def is_reserved_label(label: str) -> bool:
    """Check whether *label* collides with a reserved first segment."""
    return label.strip().lower() in RESERVED_SEGMENTS


def validate_label(label: str) -> str:
    """Validate a volume or user-volume label and return it stripped.

    A label is a single path segment that is not one of the reserved
    space names.
    """
    label = (label or "").strip()
    if not label:
        raise PathValidationError("Volume label is required")
    _check_characters(label)
    if "/" in label or "\\" in label or label in (".", ".."):
        raise PathValidationError(f"Invalid volume label: {label!r}")
    if len(label) > MAX_NAME_LENGTH:
        raise PathValidationError(f"Volume label too long (max {MAX_NAME_LENGTH} characters)")
    if is_reserved_label(label):
        raise ReservedLabelError(f"Volume label is reserved: {label!r}")
    return label
