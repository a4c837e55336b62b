"""Phase orchestration: digest, look up, resolve, reconcile, apply."""
from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import httpx
from pydantic import ValidationError

from catalogs.curseforge import CurseForgeClient
from catalogs.models import DownloadableFile
from catalogs.modrinth import MODRINTH_ALGORITHMS, ModrinthClient
from pack.store import PackStore, TrackedFile, read_metadata
from packutils.config import MatchConfig
from packutils.errors import ConfigError, PackFormatError
from packutils.logging import get_logger
from packutils.parallel import run_in_executor
from packutils.process import CommandRunner

from .coordinator import SideEffectCoordinator
from .digest import DigestEngine, FingerprintIndex
from .reconciler import MetadataReconciler, MetadataRecord, records_by_path
from .resolver import AcceptedVersion, accept_versions, resolve_curseforge, resolve_modrinth

LOGGER = get_logger(__name__)

CF_DETECT = "cf-detect"
CF_URL = "cf-url"
MR_DETECT = "mr-detect"
MR_MERGE = "mr-merge"
MODES = (CF_DETECT, CF_URL, MR_DETECT, MR_MERGE)
CURSEFORGE_MODES = frozenset({CF_DETECT, CF_URL})


@dataclass(slots=True)
class PhaseReport:
    mode: str
    checked: int = 0
    matched: int = 0
    changed: int = 0


@dataclass(slots=True)
class RunReport:
    phases: List[PhaseReport] = field(default_factory=list)


class PackMatcher:
    """Run the selected modes against one pack, strictly one after another."""

    def __init__(
        self,
        store: PackStore,
        config: MatchConfig,
        *,
        runner: Optional[CommandRunner] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.store = store
        self.config = config
        self.transport = transport
        self.logger = logger or LOGGER
        self.engine = DigestEngine(config.min_size, config.workers, logger=self.logger)
        self.reconciler = MetadataReconciler(logger=self.logger)
        self.coordinator = SideEffectCoordinator(
            store,
            runner=runner,
            command=config.packwiz_command,
            materialize=config.materialize,
            dry_run=config.dry_run,
            logger=self.logger,
        )

    def _client_options(self) -> Dict[str, object]:
        return {
            "timeout": self.config.timeout,
            "batch_size": self.config.batch_size,
            "transport": self.transport,
            "logger": self.logger,
        }

    def curseforge(self) -> CurseForgeClient:
        if not self.config.curseforge_api_key:
            raise ConfigError("A CurseForge API key is required (--cf-api-key or CF_API_KEY)")
        return CurseForgeClient(
            self.config.curseforge_api_key,
            base_url=self.config.curseforge_base_url,
            **self._client_options(),
        )

    def modrinth(self) -> ModrinthClient:
        return ModrinthClient(
            self.config.modrinth_token,
            base_url=self.config.modrinth_base_url,
            user_agent=self.config.user_agent,
            **self._client_options(),
        )

    async def run(self, modes: Sequence[str]) -> RunReport:
        unknown = set(modes) - set(MODES)
        if unknown:
            raise ConfigError(f"Unknown mode(s): {', '.join(sorted(unknown))}")
        if CURSEFORGE_MODES & set(modes) and not self.config.curseforge_api_key:
            raise ConfigError("A CurseForge API key is required (--cf-api-key or CF_API_KEY)")

        phases = {
            CF_DETECT: self.cf_detect,
            CF_URL: self.cf_url,
            MR_DETECT: self.mr_detect,
            MR_MERGE: self.mr_merge,
        }
        report = RunReport()
        for mode in MODES:
            if mode in modes:
                self.logger.info("Running %s", mode)
                report.phases.append(await phases[mode]())
        return report

    def _refresh_and_list(self) -> List[TrackedFile]:
        self.coordinator.refresh()
        return self.store.tracked_files()

    async def _enumerate(self) -> List[TrackedFile]:
        return await run_in_executor(self._refresh_and_list)

    async def _enumerate_records(self) -> List[MetadataRecord]:
        files = await self._enumerate()
        return await run_in_executor(self._load_records, files)

    def _load_records(self, files: Sequence[TrackedFile]) -> List[MetadataRecord]:
        records: List[MetadataRecord] = []
        for tracked in files:
            if not tracked.is_metafile:
                continue
            try:
                records.append(MetadataRecord(tracked.path, read_metadata(tracked.path)))
            except PackFormatError as exc:
                self.logger.warning("Skipping %s: %s", tracked.entry.file, exc)
        return records

    async def cf_detect(self) -> PhaseReport:
        report = PhaseReport(CF_DETECT)
        index = await self.engine.build_index(await self._enumerate(), "murmur2")
        report.checked = len(index)
        self.logger.info("Checking %d files", len(index))
        if not index:
            return report
        async with self.curseforge() as client:
            matches = await client.match_fingerprints(index.digests())
        detections = self.reconciler.detect(resolve_curseforge(matches, index, self.logger))
        report.matched = len(detections)
        self.logger.info("Found %d matching files", len(detections))
        report.changed = await run_in_executor(self.coordinator.convert, detections)
        return report

    async def cf_url(self) -> PhaseReport:
        report = PhaseReport(CF_URL)
        pending = self.reconciler.select_url_cache(await self._enumerate_records())
        report.checked = len(pending)
        self.logger.info("Requesting %d download urls", len(pending))
        if not pending:
            return report
        async with self.curseforge() as client:
            if self.config.url_lookup == "per-file":
                urls = await self._per_file_urls(client, pending)
            else:
                urls = await self._batch_urls(client, pending)
        updated = self.reconciler.apply_download_urls(pending, urls)
        report.matched = len(updated)
        self.logger.info("Found %d download urls", len(updated))
        report.changed = await run_in_executor(self.coordinator.write_records, updated)
        return report

    async def _batch_urls(
        self, client: CurseForgeClient, pending: Sequence[MetadataRecord]
    ) -> Dict[int, Optional[str]]:
        file_ids = [record.metadata.update.curseforge.file_id for record in pending]
        urls: Dict[int, Optional[str]] = {}
        for raw in await client.get_files(file_ids):
            try:
                remote = DownloadableFile.model_validate(raw)
            except ValidationError as exc:
                self.logger.warning("Skipping malformed CurseForge file: %s", exc)
                continue
            urls[remote.id] = remote.download_url
        return urls

    async def _per_file_urls(
        self, client: CurseForgeClient, pending: Sequence[MetadataRecord]
    ) -> Dict[int, Optional[str]]:
        sources = [record.metadata.update.curseforge for record in pending]
        found = await asyncio.gather(
            *(client.get_download_url(source.project_id, source.file_id) for source in sources)
        )
        return {source.file_id: url for source, url in zip(sources, found)}

    async def mr_detect(self) -> PhaseReport:
        report = PhaseReport(MR_DETECT)
        index = await self.engine.build_index(await self._enumerate(), "sha1")
        report.checked = len(index)
        self.logger.info("Checking %d files", len(index))
        if not index:
            return report
        async with self.modrinth() as client:
            versions = await client.versions_from_hashes(index.digests(), "sha1")
            accepted = accept_versions(versions, index, self.logger)
            projects = await client.get_projects(accepted)
        detections = self.reconciler.detect(resolve_modrinth(projects, accepted, self.logger))
        report.matched = len(detections)
        self.logger.info("Found %d matching files", len(detections))
        report.changed = await run_in_executor(self.coordinator.convert, detections)
        return report

    async def mr_merge(self) -> PhaseReport:
        report = PhaseReport(MR_MERGE)
        pending = self.reconciler.select_merge(await self._enumerate_records())
        indexes: Dict[str, FingerprintIndex] = {}
        for record in pending:
            algorithm = record.metadata.download.hash_format
            if algorithm not in MODRINTH_ALGORITHMS:
                self.logger.debug("Modrinth cannot look up %s hashes (%s)", algorithm, record.metadata.name)
                continue
            indexes.setdefault(algorithm, FingerprintIndex(algorithm)).add(
                record.metadata.download.hash, record.path
            )
        report.checked = sum(len(index) for index in indexes.values())
        self.logger.info("Checking %d files", report.checked)
        if not report.checked:
            return report

        accepted: Dict[str, List[AcceptedVersion]] = defaultdict(list)
        async with self.modrinth() as client:
            for algorithm, index in indexes.items():
                versions = await client.versions_from_hashes(index.digests(), algorithm)
                for project_id, found in accept_versions(versions, index, self.logger).items():
                    accepted[project_id].extend(found)
            projects = await client.get_projects(accepted)
        results = resolve_modrinth(projects, accepted, self.logger)
        updated = self.reconciler.merge(records_by_path(pending), results)
        report.matched = len(updated)
        self.logger.info("Found %d matching files", len(updated))
        report.changed = await run_in_executor(self.coordinator.write_records, updated)
        return report

