"""Turn raw catalog candidates into unambiguous per-file matches.

Every candidate is checked against the digests that were actually sent.
A record is only accepted when its *primary* digest belongs to exactly one
local file; anything else (module-only hits, unsolicited records, several
records for the same file) is logged and dropped.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

from pydantic import ValidationError

from catalogs.models import (
    CURSEFORGE_SHA1,
    CurseForgeFile,
    ModrinthProject,
    ModrinthVersion,
    VersionFile,
)
from pack.schema import (
    CURSEFORGE_METADATA_MODE,
    CurseForgeSource,
    DownloadInfo,
    ModMetadata,
    ModrinthSource,
    UpdateSources,
)
from packutils.logging import get_logger

from .digest import Digest, FingerprintIndex

LOGGER = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class MatchResult:
    """A remote record tied to exactly one local file."""

    path: Path
    digest: Digest
    catalog: str
    project_id: str
    file_id: str
    metadata: ModMetadata
    client_side: Optional[str] = None
    server_side: Optional[str] = None


@dataclass(frozen=True, slots=True)
class AcceptedVersion:
    """A Modrinth version whose file hash was part of the request."""

    algorithm: str
    digest: str
    path: Path
    version: ModrinthVersion
    file: VersionFile


def _drop_ambiguous(results: Iterable[MatchResult], logger: logging.Logger) -> List[MatchResult]:
    by_path: Dict[Path, List[MatchResult]] = defaultdict(list)
    for result in results:
        by_path[result.path].append(result)
    accepted: List[MatchResult] = []
    for path, candidates in by_path.items():
        distinct = {(c.project_id, c.file_id) for c in candidates}
        if len(distinct) > 1:
            logger.warning(
                "Skipping %s: %d different remote files share its digest",
                path.name,
                len(distinct),
            )
            continue
        accepted.append(candidates[0])
    return accepted


def resolve_curseforge(
    matches: Iterable[Mapping[str, Any]],
    index: FingerprintIndex,
    logger: Optional[logging.Logger] = None,
) -> List[MatchResult]:
    """Resolve CurseForge ``exactMatches`` against a murmur2 index."""

    log = logger or LOGGER
    results: List[MatchResult] = []
    for raw in matches:
        try:
            remote = CurseForgeFile.model_validate(raw["file"])
        except (KeyError, TypeError, ValidationError) as exc:
            log.warning("Skipping malformed CurseForge match: %s", exc)
            continue

        path = index.get(remote.file_fingerprint)
        if path is None:
            module_path = next(
                (index.get(module.fingerprint) for module in remote.modules if module.fingerprint in index),
                None,
            )
            if module_path is not None:
                log.info(
                    "Skipping module match of %s in %s, this is probably a false positive",
                    module_path.name,
                    remote.file_name,
                )
            else:
                log.debug("CurseForge returned file %s that was not requested", remote.id)
            continue

        sha1 = remote.hash_for(CURSEFORGE_SHA1)
        if sha1 is None:
            log.warning("Skipping %s: CurseForge file %s has no sha1 hash", path.name, remote.id)
            continue

        metadata = ModMetadata(
            name=remote.display_name,
            filename=remote.file_name,
            download=DownloadInfo(hash_format="sha1", hash=sha1, mode=CURSEFORGE_METADATA_MODE),
            update=UpdateSources(
                curseforge=CurseForgeSource(file_id=remote.id, project_id=remote.mod_id)
            ),
        )
        results.append(
            MatchResult(
                path=path,
                digest=remote.file_fingerprint,
                catalog="curseforge",
                project_id=str(remote.mod_id),
                file_id=str(remote.id),
                metadata=metadata,
            )
        )
    return _drop_ambiguous(results, log)


def accept_versions(
    versions: Mapping[str, Mapping[str, Any]],
    index: FingerprintIndex,
    logger: Optional[logging.Logger] = None,
) -> Dict[str, List[AcceptedVersion]]:
    """Group requested Modrinth versions by project id."""

    log = logger or LOGGER
    accepted: Dict[str, List[AcceptedVersion]] = defaultdict(list)
    for key, raw in versions.items():
        digest = key.lower()
        path = index.get(digest)
        if path is None:
            log.debug("Modrinth returned hash %s that was not requested", key)
            continue
        try:
            version = ModrinthVersion.model_validate(raw)
        except ValidationError as exc:
            log.warning("Skipping malformed Modrinth version for %s: %s", path.name, exc)
            continue
        version_file = version.file_for(index.kind, digest)
        if version_file is None:
            log.warning("Skipping %s: version %s lists no file with that hash", path.name, version.id)
            continue
        accepted[version.project_id].append(AcceptedVersion(index.kind, digest, path, version, version_file))
    return dict(accepted)


def resolve_modrinth(
    projects: Iterable[Mapping[str, Any]],
    accepted: Mapping[str, List[AcceptedVersion]],
    logger: Optional[logging.Logger] = None,
) -> List[MatchResult]:
    """Join project details back to the local files through their content hash."""

    log = logger or LOGGER
    results: List[MatchResult] = []
    for raw in projects:
        try:
            project = ModrinthProject.model_validate(raw)
        except ValidationError as exc:
            log.warning("Skipping malformed Modrinth project: %s", exc)
            continue
        candidates = accepted.get(project.id)
        if not candidates:
            log.debug("Modrinth returned project %s that was not requested", project.id)
            continue
        for candidate in candidates:
            metadata = ModMetadata(
                name=project.title,
                filename=candidate.file.filename,
                download=DownloadInfo(
                    hash_format=candidate.algorithm,
                    hash=candidate.digest,
                    url=candidate.file.url,
                ),
                update=UpdateSources(
                    modrinth=ModrinthSource(mod_id=project.id, version=candidate.version.id)
                ),
            )
            results.append(
                MatchResult(
                    path=candidate.path,
                    digest=candidate.digest,
                    catalog="modrinth",
                    project_id=project.id,
                    file_id=candidate.version.id,
                    metadata=metadata,
                    client_side=project.client_side,
                    server_side=project.server_side,
                )
            )
    return _drop_ambiguous(results, log)
