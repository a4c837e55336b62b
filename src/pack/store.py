"""Reading and writing packwiz TOML files."""
from __future__ import annotations

import os
import re
import tempfile
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

import tomli_w
from pydantic import ValidationError

from packutils.errors import PackFormatError
from packutils.logging import get_logger
from packutils.paths import normalise_path, resolve_within

from .schema import Index, IndexEntry, ModMetadata, PackDescriptor

LOGGER = get_logger(__name__)
METAFILE_SUFFIX = ".pw.toml"


def load_toml(path: Path) -> Dict[str, Any]:
    try:
        with path.open("rb") as handle:
            return tomllib.load(handle)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise PackFormatError(f"Unable to read {path}: {exc}") from exc


def write_toml(path: Path, data: Dict[str, Any]) -> None:
    """Replace ``path`` with ``data`` in one step so readers never see half a file."""

    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as handle:
            tomli_w.dump(data, handle)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def slugify(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    return slug or "unnamed"


def load_pack(path: Path) -> PackDescriptor:
    try:
        return PackDescriptor.model_validate(load_toml(path))
    except ValidationError as exc:
        raise PackFormatError(f"Invalid pack file {path}: {exc}") from exc


def read_metadata(path: Path) -> ModMetadata:
    try:
        return ModMetadata.model_validate(load_toml(path))
    except ValidationError as exc:
        raise PackFormatError(f"Invalid metadata file {path}: {exc}") from exc


def write_metadata(path: Path, metadata: ModMetadata) -> None:
    write_toml(path, metadata.to_toml_dict())


@dataclass(slots=True)
class TrackedFile:
    """An index entry together with its resolved location on disk."""

    entry: IndexEntry
    path: Path

    @property
    def is_metafile(self) -> bool:
        return self.entry.metafile


class PackStore:
    """Access to the files of a single pack rooted at the ``pack.toml`` directory."""

    def __init__(self, pack_path: Path) -> None:
        self.pack_path = normalise_path(pack_path)
        self.root = self.pack_path.parent
        self._pack: Optional[PackDescriptor] = None

    @property
    def pack(self) -> PackDescriptor:
        if self._pack is None:
            self._pack = load_pack(self.pack_path)
            LOGGER.debug("Loaded pack %s (%s)", self._pack.name, self.pack_path)
        return self._pack

    @property
    def index_path(self) -> Path:
        try:
            return resolve_within(self.root, self.pack.index.file)
        except ValueError as exc:
            raise PackFormatError(f"Index path in {self.pack_path} is invalid: {exc}") from exc

    def load_index(self) -> Index:
        path = self.index_path
        try:
            return Index.model_validate(load_toml(path))
        except ValidationError as exc:
            raise PackFormatError(f"Invalid index file {path}: {exc}") from exc

    def tracked_files(self) -> List[TrackedFile]:
        """Enumerate the index afresh, dropping entries that point outside the pack."""

        index = self.load_index()
        if not index.files:
            LOGGER.warning("%s has no files indexed", self.index_path)
        return list(self._resolve(index.files))

    def _resolve(self, entries: List[IndexEntry]) -> Iterator[TrackedFile]:
        index_dir = self.index_path.parent
        for entry in entries:
            try:
                path = resolve_within(self.root, str(index_dir.relative_to(self.root) / entry.file))
            except ValueError as exc:
                LOGGER.warning("Skipping index entry outside the pack: %s", exc)
                continue
            yield TrackedFile(entry=entry, path=path)

    def relative(self, path: Path) -> str:
        return normalise_path(path).relative_to(self.root).as_posix()
