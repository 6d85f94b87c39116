"""Permission enums, capability flags, and the action → capability table."""

from __future__ import annotations

from enum import Enum, Flag, auto


class RulePermission(str, Enum):
    """Effective permission of a path under the administrator's rules."""

    READ_WRITE = "rw"
    READ_ONLY = "ro"
    HIDDEN = "hidden"

    @classmethod
    def coerce(cls, value: object) -> RulePermission:
        """Return the matching member, falling back to ``READ_WRITE``."""
        try:
            return cls(value)
        except ValueError:
            return cls.READ_WRITE


class AccessMode(str, Enum):
    """Write mode of a user volume or a share."""

    READ_WRITE = "readwrite"
    READ_ONLY = "readonly"


class SharingType(str, Enum):
    """Audience of a share link."""

    ANYONE = "anyone"
    USERS = "users"


class SourceSpace(str, Enum):
    """Where a share's ``source_path`` lives."""

    VOLUME = "volume"
    USER_VOLUME = "user_volume"


class Capability(Flag):
    """Individual capabilities an access decision can grant."""

    NONE = 0
    READ = auto()
    WRITE = auto()
    DELETE = auto()
    UPLOAD = auto()
    CREATE_FOLDER = auto()
    SHARE = auto()
    DOWNLOAD = auto()

    # Everything a read-only caller loses.
    MUTATE = WRITE | DELETE | UPLOAD | CREATE_FOLDER


class Action(str, Enum):
    """Coarse action names used by route handlers."""

    LIST = "list"
    READ = "read"
    WRITE = "write"
    DELETE = "delete"
    UPLOAD = "upload"
    CREATE_FOLDER = "createFolder"
    RENAME = "rename"
    DOWNLOAD = "download"
    CREATE_SHARE = "createShare"

    @classmethod
    def parse(cls, value: Action | str) -> Action | None:
        """Return the action for *value*, or None if it is not a known name."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


# Each action maps to exactly one capability.
ACTION_CAPABILITIES: dict[Action, Capability] = {
    Action.LIST: Capability.READ,
    Action.READ: Capability.READ,
    Action.WRITE: Capability.WRITE,
    Action.RENAME: Capability.WRITE,
    Action.DELETE: Capability.DELETE,
    Action.UPLOAD: Capability.UPLOAD,
    Action.CREATE_FOLDER: Capability.CREATE_FOLDER,
    Action.DOWNLOAD: Capability.DOWNLOAD,
    Action.CREATE_SHARE: Capability.SHARE,
}


def capabilities_for(*, read_only: bool, can_share: bool) -> Capability:
    """Build the capability set for an accessible path."""
    caps = Capability.READ | Capability.DOWNLOAD
    if not read_only:
        caps |= Capability.MUTATE
    if can_share:
        caps |= Capability.SHARE
    return caps
