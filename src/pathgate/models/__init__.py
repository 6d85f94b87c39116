"""SQLModel database models for pathgate."""

from pathgate.models.rules import PathRule, PathRuleBase
from pathgate.models.shares import Share, ShareBase, ShareGrant, ShareGrantBase
from pathgate.models.volumes import UserVolume, UserVolumeBase

__all__ = [
    "PathRule",
    "PathRuleBase",
    "Share",
    "ShareBase",
    "ShareGrant",
    "ShareGrantBase",
    "UserVolume",
    "UserVolumeBase",
]
