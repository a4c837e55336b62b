"""Pydantic models and helpers describing the on-disk packwiz schema."""
from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

HashFormat = Literal["sha256", "sha512", "sha1", "md5", "murmur2"]
Side = Literal["both", "client", "server"]

SUPPORTED_PACK_FORMAT_MAJOR = 1
DEFAULT_PACK_FORMAT = "packwiz:1.0.0"
# download.mode of a record created from a fingerprint match whose URL is not cached yet
CURSEFORGE_METADATA_MODE = "metadata:curseforge"


class TomlModel(BaseModel):
    """Base model mapping hyphenated TOML keys and keeping unknown ones."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    def to_toml_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class IndexRef(TomlModel):
    file: str
    hash_format: HashFormat = Field(alias="hash-format")
    hash: str


class PackDescriptor(TomlModel):
    """The top level ``pack.toml`` of a modpack."""

    name: str
    author: Optional[str] = None
    version: Optional[str] = None
    description: Optional[str] = None
    pack_format: str = Field(default=DEFAULT_PACK_FORMAT, alias="pack-format")
    index: IndexRef
    versions: Dict[str, str] = Field(default_factory=dict)
    options: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("pack_format")
    @classmethod
    def validate_pack_format(cls, value: str) -> str:
        prefix, _, semver = value.partition(":")
        if prefix != "packwiz" or not semver:
            raise ValueError(f"pack-format must look like 'packwiz:<semver>'; got {value!r}")
        major = semver.split(".", 1)[0]
        if not major.isdigit():
            raise ValueError(f"pack-format version is not semver: {semver!r}")
        if int(major) > SUPPORTED_PACK_FORMAT_MAJOR:
            raise ValueError(f"pack-format {value!r} is newer than this tool supports")
        return value


class IndexEntry(TomlModel):
    file: str
    hash: str
    alias: Optional[str] = None
    hash_format: Optional[HashFormat] = Field(default=None, alias="hash-format")
    metafile: bool = False
    preserve: bool = False


class Index(TomlModel):
    hash_format: HashFormat = Field(alias="hash-format")
    files: List[IndexEntry] = Field(default_factory=list)


class DownloadInfo(TomlModel):
    hash_format: HashFormat = Field(alias="hash-format")
    hash: str
    url: Optional[str] = None
    mode: Optional[str] = None

    @field_validator("hash")
    @classmethod
    def lowercase_hash(cls, value: str) -> str:
        return value.strip().lower()

    @property
    def is_provisional(self) -> bool:
        return self.url is None or self.mode is not None


class CurseForgeSource(TomlModel):
    file_id: int = Field(alias="file-id")
    project_id: int = Field(alias="project-id")


class ModrinthSource(TomlModel):
    mod_id: str = Field(alias="mod-id")
    version: str


class UpdateSources(TomlModel):
    curseforge: Optional[CurseForgeSource] = None
    modrinth: Optional[ModrinthSource] = None


class ModOption(TomlModel):
    optional: bool
    default: Optional[bool] = None
    description: Optional[str] = None


class ModMetadata(TomlModel):
    """A ``.pw.toml`` record referencing an externally hosted file."""

    name: str
    filename: str
    side: Side = "both"
    download: DownloadInfo
    option: Optional[ModOption] = None
    update: UpdateSources = Field(default_factory=UpdateSources)

    @property
    def is_fully_resolved(self) -> bool:
        """Both update sources are known and the direct URL is cached."""

        return (
            self.update.curseforge is not None
            and self.update.modrinth is not None
            and not self.download.is_provisional
        )

    def to_toml_dict(self) -> Dict[str, Any]:
        data = super().to_toml_dict()
        if not data.get("update"):
            data.pop("update", None)
        return data
