"""SQL-backed implementations of the collaborator protocols."""

from pathgate.stores.base import SqlStore, create_tables, session_factory
from pathgate.stores.rules import SqlRuleStore, sanitize_rules
from pathgate.stores.shares import SqlShareStore, share_expired
from pathgate.stores.volumes import SqlUserVolumeStore

__all__ = [
    "SqlRuleStore",
    "SqlShareStore",
    "SqlStore",
    "SqlUserVolumeStore",
    "create_tables",
    "sanitize_rules",
    "session_factory",
    "share_expired",
]
