"""Custom exception hierarchy for pathgate.

Policy denials are *not* exceptions: they are ``AccessDecision`` values with
a ``denial_reason``.  The classes here cover malformed requests, missing
filesystem targets, and collaborator failures.
"""


class PathgateError(Exception):
    """Base exception for all pathgate errors."""


class PathValidationError(PathgateError, ValueError):
    """Raised when a logical path or name is malformed or attempts traversal."""


class ReservedLabelError(PathValidationError):
    """Raised when a volume label collides with a reserved path-space name."""


class PathNotFoundError(PathgateError):
    """Raised when a resolved file or directory does not exist on disk."""


class StorageError(PathgateError):
    """Raised on persistence failures (DB connection, query errors, etc.)."""


class AccessDeniedError(PathgateError):
    """Raised when a location is resolved for a decision that denies access."""
