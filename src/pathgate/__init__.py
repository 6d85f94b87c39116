"""pathgate: access control for a multi-space file server.

Logical paths, path rules, user volumes, and share links, resolved to a
single access decision per path.
"""

__version__ = "0.1.0"

from pathgate.authorization import AuthorizationResult, Authorizer, DirectoryListing
from pathgate.cache import LookupCache
from pathgate.config import AccessConfig
from pathgate.context import CallerContext, GuestSession, User
from pathgate.decisions import AccessDecision, ResolvedLocation, ShareInfo
from pathgate.engine import AccessEngine
from pathgate.exceptions import (
    AccessDeniedError,
    PathgateError,
    PathNotFoundError,
    PathValidationError,
    ReservedLabelError,
    StorageError,
)
from pathgate.listing import DirectoryItem, DirectoryLister, ListingOptions
from pathgate.local_disk import LocalDiskAdapter
from pathgate.paths import Space, normalize_relative_path, parse_path_space
from pathgate.permissions import (
    Action,
    AccessMode,
    Capability,
    RulePermission,
    SharingType,
    SourceSpace,
)
from pathgate.protocols import FileSystemAdapter, RuleStore, ShareStore, UserVolumeStore
from pathgate.resolver import LocationResolver
from pathgate.rules import RuleResolver, RuleTrie, resolve_permission

__all__ = [
    "AccessConfig",
    "AccessDecision",
    "AccessDeniedError",
    "AccessEngine",
    "AccessMode",
    "Action",
    "AuthorizationResult",
    "Authorizer",
    "CallerContext",
    "Capability",
    "DirectoryItem",
    "DirectoryListing",
    "DirectoryLister",
    "FileSystemAdapter",
    "GuestSession",
    "ListingOptions",
    "LocalDiskAdapter",
    "LocationResolver",
    "LookupCache",
    "PathNotFoundError",
    "PathValidationError",
    "PathgateError",
    "ReservedLabelError",
    "ResolvedLocation",
    "RulePermission",
    "RuleResolver",
    "RuleStore",
    "RuleTrie",
    "ShareInfo",
    "ShareStore",
    "SharingType",
    "SourceSpace",
    "Space",
    "StorageError",
    "User",
    "UserVolumeStore",
    "normalize_relative_path",
    "parse_path_space",
    "resolve_permission",
]
