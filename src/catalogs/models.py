"""Pydantic views of the catalog responses the matcher relies on.

Only the fields the resolver reads are declared; everything else in the
payloads is ignored.
"""
from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

# CurseForge ``HashAlgo`` value of SHA-1
CURSEFORGE_SHA1 = 1


class RemoteModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class FileHash(RemoteModel):
    value: str
    algo: int


class FileModule(RemoteModel):
    name: Optional[str] = None
    fingerprint: int


class CurseForgeFile(RemoteModel):
    id: int
    mod_id: int = Field(alias="modId")
    file_name: str = Field(alias="fileName")
    display_name: str = Field(alias="displayName")
    file_fingerprint: int = Field(alias="fileFingerprint")
    hashes: List[FileHash] = Field(default_factory=list)
    modules: List[FileModule] = Field(default_factory=list)
    download_url: Optional[str] = Field(default=None, alias="downloadUrl")

    def hash_for(self, algo: int) -> Optional[str]:
        for entry in self.hashes:
            if entry.algo == algo:
                return entry.value
        return None


class DownloadableFile(RemoteModel):
    """Entry of the ``/v1/mods/files`` response."""

    id: int
    display_name: str = Field(default="", alias="displayName")
    download_url: Optional[str] = Field(default=None, alias="downloadUrl")


class VersionFile(RemoteModel):
    url: str
    filename: str
    hashes: Dict[str, str] = Field(default_factory=dict)


class ModrinthVersion(RemoteModel):
    id: str
    project_id: str
    files: List[VersionFile] = Field(default_factory=list)

    def file_for(self, algorithm: str, digest: str) -> Optional[VersionFile]:
        for candidate in self.files:
            if candidate.hashes.get(algorithm, "").lower() == digest:
                return candidate
        return None


class ModrinthProject(RemoteModel):
    id: str
    title: str
    client_side: str = "required"
    server_side: str = "required"
