"""AccessConfig — physical roots, feature flags, and listing defaults.

No side effects on import.  Values can be overridden via ``PATHGATE_*``
environment variables with ``AccessConfig.from_env()``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from .exceptions import PathValidationError
from .paths import normalize_relative_path

ENV_PREFIX = "PATHGATE_"

DEFAULT_EXCLUDED_FILES = frozenset(
    {
        ".DS_Store",
        "Thumbs.db",
        "desktop.ini",
        ".upload-in-progress",
        ".pathgate-upload",
    }
)

IMAGE_EXTENSIONS = frozenset(
    {"jpg", "jpeg", "png", "gif", "webp", "bmp", "tif", "tiff", "heic", "heif", "avif", "svg"}
)
RAW_IMAGE_EXTENSIONS = frozenset({"arw", "cr2", "cr3", "dng", "nef", "orf", "raf", "rw2"})
VIDEO_EXTENSIONS = frozenset({"mp4", "mov", "m4v", "mkv", "webm", "avi"})
DOCUMENT_EXTENSIONS = frozenset({"pdf"})

DEFAULT_PREVIEWABLE_EXTENSIONS = (
    IMAGE_EXTENSIONS | RAW_IMAGE_EXTENSIONS | VIDEO_EXTENSIONS | DOCUMENT_EXTENSIONS
)


def _env(name: str, default: str) -> str:
    return os.getenv(ENV_PREFIX + name, default)


def _env_bool(name: str, default: bool) -> bool:
    raw = _env(name, str(default))
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = _env(name, str(default))
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass
class AccessConfig:
    """Configuration shared by the engine, resolver, and listing filter."""

    volume_root: Path
    """Physical directory backing the volume space."""

    personal_root: Path
    """Parent of per-user personal roots (``<personal_root>/<user_id>``)."""

    user_volumes_enabled: bool = False
    """If True, non-admin users only reach volumes assigned to them."""

    excluded_files: frozenset[str] = field(default_factory=lambda: DEFAULT_EXCLUDED_FILES)
    """Names never shown in listings."""

    download_artifact_suffix: str = ".download"
    """Suffix of in-progress download files, hidden on request."""

    previewable_extensions: frozenset[str] = field(
        default_factory=lambda: DEFAULT_PREVIEWABLE_EXTENSIONS
    )
    """Lower-case extensions eligible for thumbnails."""

    max_kind_length: int = 10
    """Extensions longer than this report kind ``unknown``."""

    thumbnails_enabled: bool = True
    """Default thumbnail flag for listings that do not pass one."""

    def __post_init__(self) -> None:
        self.volume_root = Path(self.volume_root).expanduser().resolve()
        self.personal_root = Path(self.personal_root).expanduser().resolve()
        self.excluded_files = frozenset(self.excluded_files)
        self.previewable_extensions = frozenset(
            ext.lower().lstrip(".") for ext in self.previewable_extensions
        )
        if self.max_kind_length < 1:
            raise ValueError(f"max_kind_length must be positive, got {self.max_kind_length}")

    @classmethod
    def from_env(cls, **overrides: object) -> AccessConfig:
        """Build a config from ``PATHGATE_*`` environment variables.

        Keyword *overrides* win over the environment.
        """
        values: dict[str, object] = {
            "volume_root": Path(_env("VOLUME_ROOT", "/data/volumes")),
            "personal_root": Path(_env("PERSONAL_ROOT", "/data/personal")),
            "user_volumes_enabled": _env_bool("USER_VOLUMES", False),
            "thumbnails_enabled": _env_bool("THUMBNAILS", True),
            "max_kind_length": _env_int("MAX_KIND_LENGTH", 10),
        }
        values.update(overrides)
        return cls(**values)  # type: ignore[arg-type]

    def personal_dir(self, user_id: str) -> Path:
        """Physical personal root for *user_id*."""
        segment = normalize_relative_path(user_id)
        if not segment or "/" in segment:
            raise PathValidationError("user id contains invalid characters")
        return self.personal_root / segment

    def volume_dir(self, label: str) -> Path:
        """Default physical root of a user volume labelled *label*."""
        return self.volume_root / normalize_relative_path(label)
