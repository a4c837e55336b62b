"""Field-level merging of resolved matches into ``.pw.toml`` records."""
from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Mapping, Optional

from pack.schema import ModMetadata, Side
from packutils.errors import DataError, SideConflictError
from packutils.logging import get_logger

from .resolver import MatchResult

LOGGER = get_logger(__name__)

UNSUPPORTED = "unsupported"


def infer_side(client_side: Optional[str], server_side: Optional[str]) -> Side:
    """Derive the packwiz side from Modrinth's per-environment support flags."""

    client_unsupported = client_side == UNSUPPORTED
    server_unsupported = server_side == UNSUPPORTED
    if client_unsupported and server_unsupported:
        raise SideConflictError("project is marked unsupported on both client and server")
    if server_unsupported:
        return "client"
    if client_unsupported:
        return "server"
    return "both"


@dataclass(slots=True)
class MetadataRecord:
    """A metadata file loaded from disk."""

    path: Path
    metadata: ModMetadata


class MetadataReconciler:
    """Decide which records each mode touches and compute their new contents.

    Nothing here performs I/O: callers hand the returned records to the
    side-effect coordinator, which writes them wholesale.
    """

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self.logger = logger or LOGGER

    def _unresolved(self, records: Iterable[MetadataRecord]) -> Iterator[MetadataRecord]:
        for record in records:
            if record.metadata.is_fully_resolved:
                self.logger.debug("%s is fully resolved", record.metadata.name)
                continue
            yield record

    def select_url_cache(self, records: Iterable[MetadataRecord]) -> List[MetadataRecord]:
        return [
            record
            for record in self._unresolved(records)
            if record.metadata.update.curseforge is not None and record.metadata.download.url is None
        ]

    def select_merge(self, records: Iterable[MetadataRecord]) -> List[MetadataRecord]:
        return [record for record in self._unresolved(records) if record.metadata.update.modrinth is None]

    def detect(self, results: Iterable[MatchResult]) -> List[MatchResult]:
        """Finalise the synthesised records of new matches."""

        detected: List[MatchResult] = []
        for result in results:
            if result.catalog != "modrinth":
                detected.append(result)
                continue
            try:
                side = infer_side(result.client_side, result.server_side)
            except DataError as exc:
                self.logger.warning("Skipping %s: %s", result.path.name, exc)
                continue
            metadata = result.metadata.model_copy(deep=True)
            metadata.side = side
            detected.append(dataclasses.replace(result, metadata=metadata))
        return detected

    def apply_download_urls(
        self, records: Iterable[MetadataRecord], urls: Mapping[int, Optional[str]]
    ) -> List[MetadataRecord]:
        """Cache direct URLs; records without one are left exactly as they were."""

        updated: List[MetadataRecord] = []
        for record in records:
            source = record.metadata.update.curseforge
            if source is None:
                continue
            if source.file_id not in urls:
                self.logger.warning(
                    "Skipping %s: CurseForge did not return file %s", record.metadata.name, source.file_id
                )
                continue
            url = urls[source.file_id]
            if not url:
                self.logger.warning("Third party downloads disabled for %s", record.metadata.name)
                continue
            metadata = record.metadata.model_copy(deep=True)
            metadata.download.url = url
            metadata.download.mode = None
            updated.append(MetadataRecord(record.path, metadata))
        return updated

    def merge(
        self, records: Mapping[Path, MetadataRecord], results: Iterable[MatchResult]
    ) -> List[MetadataRecord]:
        """Link existing records to their Modrinth counterpart, keeping every other field."""

        updated: List[MetadataRecord] = []
        for result in results:
            record = records.get(result.path)
            if record is None:
                self.logger.debug("No metadata record for %s", result.path)
                continue
            if record.metadata.update.modrinth is not None:
                continue
            try:
                side = infer_side(result.client_side, result.server_side)
            except DataError as exc:
                self.logger.warning("Skipping %s: %s", record.metadata.name, exc)
                continue
            metadata = record.metadata.model_copy(deep=True)
            metadata.update.modrinth = result.metadata.update.modrinth
            metadata.download.url = result.metadata.download.url
            metadata.download.mode = None
            metadata.side = side
            self.logger.info("Adding Modrinth metadata for %s", metadata.name)
            updated.append(MetadataRecord(record.path, metadata))
        return updated


def records_by_path(records: Iterable[MetadataRecord]) -> Dict[Path, MetadataRecord]:
    return {record.path: record for record in records}
