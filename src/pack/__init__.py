"""Models and storage helpers for packwiz modpack files."""

from .schema import (
    CURSEFORGE_METADATA_MODE,
    CurseForgeSource,
    DownloadInfo,
    Index,
    IndexEntry,
    ModMetadata,
    ModrinthSource,
    PackDescriptor,
    UpdateSources,
)
from .store import PackStore, TrackedFile, read_metadata, write_metadata

__all__ = [
    "CURSEFORGE_METADATA_MODE",
    "CurseForgeSource",
    "DownloadInfo",
    "Index",
    "IndexEntry",
    "ModMetadata",
    "ModrinthSource",
    "PackDescriptor",
    "UpdateSources",
    "PackStore",
    "TrackedFile",
    "read_metadata",
    "write_metadata",
]
