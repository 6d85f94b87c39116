"""Result types: AccessDecision, ShareInfo, ResolvedLocation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .permissions import AccessMode, Capability, RulePermission

if TYPE_CHECKING:
    from datetime import datetime
    from pathlib import Path

    from .models.shares import ShareBase
    from .models.volumes import UserVolumeBase


@dataclass(frozen=True, slots=True)
class ShareInfo:
    """Share metadata for UI and breadcrumb display.

    ``access_mode`` is the *effective* mode after capping, not the mode
    stored on the share record.
    """

    share_id: str
    share_token: str
    access_mode: AccessMode
    expires_at: datetime | None = None
    is_owner: bool = False
    label: str | None = None
    source_path: str = ""

    @property
    def source_folder_name(self) -> str:
        """Last segment of the share's source path."""
        return self.source_path.rstrip("/").rsplit("/", 1)[-1]

    def to_dict(self) -> dict[str, object]:
        return {
            "shareId": self.share_id,
            "shareToken": self.share_token,
            "accessMode": self.access_mode.value,
            "expiresAt": self.expires_at.isoformat() if self.expires_at else None,
            "isOwner": self.is_owner,
            "label": self.label,
            "sourceFolderName": self.source_folder_name,
        }


@dataclass(frozen=True, slots=True)
class AccessDecision:
    """Outcome of evaluating one caller against one logical path.

    A denial is a regular value: ``can_access`` is False, every capability
    is cleared, ``effective_permission`` is ``hidden``, and
    ``denial_reason`` says why.

    ``share`` and ``user_volume`` carry the records the engine already
    fetched so the physical resolver does not look them up again.
    """

    can_access: bool
    capabilities: Capability = Capability.NONE
    effective_permission: RulePermission = RulePermission.HIDDEN
    is_shared: bool = False
    share_info: ShareInfo | None = None
    denial_reason: str | None = None
    share: ShareBase | None = field(default=None, repr=False, compare=False)
    user_volume: UserVolumeBase | None = field(default=None, repr=False, compare=False)

    @classmethod
    def denied(cls, reason: str) -> AccessDecision:
        return cls(can_access=False, denial_reason=reason)

    def allows(self, capability: Capability) -> bool:
        """True when the decision grants every flag in *capability*."""
        return self.can_access and capability in self.capabilities

    @property
    def can_read(self) -> bool:
        return self.allows(Capability.READ)

    @property
    def can_write(self) -> bool:
        return self.allows(Capability.WRITE)

    @property
    def can_delete(self) -> bool:
        return self.allows(Capability.DELETE)

    @property
    def can_upload(self) -> bool:
        return self.allows(Capability.UPLOAD)

    @property
    def can_create_folder(self) -> bool:
        return self.allows(Capability.CREATE_FOLDER)

    @property
    def can_share(self) -> bool:
        return self.allows(Capability.SHARE)

    @property
    def can_download(self) -> bool:
        return self.allows(Capability.DOWNLOAD)

    def to_dict(self) -> dict[str, object]:
        """Flat flag view, as consumed by HTTP handlers."""
        data: dict[str, object] = {
            "canAccess": self.can_access,
            "canRead": self.can_read,
            "canWrite": self.can_write,
            "canDelete": self.can_delete,
            "canUpload": self.can_upload,
            "canCreateFolder": self.can_create_folder,
            "canShare": self.can_share,
            "canDownload": self.can_download,
            "isShared": self.is_shared,
            "effectivePermission": self.effective_permission.value,
            "denialReason": self.denial_reason,
        }
        if self.share_info is not None:
            data["shareInfo"] = self.share_info.to_dict()
        return data


@dataclass(frozen=True, slots=True)
class ResolvedLocation:
    """Physical location of a logical path.

    Attributes:
        absolute_path: Location on disk (may not exist yet).
        relative_path: The normalized logical path that was resolved.
        share_info: Set when the path was reached through a share.
    """

    absolute_path: Path
    relative_path: str
    share_info: ShareInfo | None = None
