"""Concurrent digesting of raw pack files into a per-phase fingerprint index."""
from __future__ import annotations

import asyncio
import hashlib
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence, Tuple, Union

from pack.store import TrackedFile
from packutils.errors import DigestError
from packutils.hashing import fingerprint
from packutils.logging import get_logger
from packutils.parallel import run_in_executor, worker_pool

LOGGER = get_logger(__name__)

Digest = Union[int, str]
DIGEST_KINDS = ("murmur2", "sha1", "sha512")
DEFAULT_MIN_SIZE = 4096


def compute_digest(path: str, kind: str, min_size: int) -> Optional[Digest]:
    """Read ``path`` and digest it, or return ``None`` when it is below ``min_size``.

    Runs inside worker processes, so it only takes picklable arguments.
    """

    data = Path(path).read_bytes()
    if len(data) < min_size:
        return None
    if kind == "murmur2":
        return fingerprint(data)
    return hashlib.new(kind, data).hexdigest()


@dataclass(slots=True)
class FingerprintIndex:
    """Digest to file mapping built for one phase and discarded afterwards.

    Two files sharing a digest are not reconciled: the one added last wins.
    """

    kind: str
    _paths: Dict[Digest, Path] = field(default_factory=dict)

    def add(self, digest: Digest, path: Path) -> None:
        previous = self._paths.get(digest)
        if previous is not None and previous != path:
            LOGGER.debug("Digest %s of %s collides with %s; keeping the latter", digest, previous, path)
        self._paths[digest] = path

    def get(self, digest: Digest) -> Optional[Path]:
        return self._paths.get(digest)

    def digests(self) -> List[Digest]:
        return list(self._paths)

    def items(self) -> Iterator[Tuple[Digest, Path]]:
        return iter(self._paths.items())

    def __contains__(self, digest: object) -> bool:
        return digest in self._paths

    def __len__(self) -> int:
        return len(self._paths)


class DigestEngine:
    """Digest every raw file of a pack with a bounded worker pool."""

    def __init__(
        self,
        min_size: int = DEFAULT_MIN_SIZE,
        workers: Optional[int] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        if min_size < 0:
            raise ValueError("min_size must be >= 0")
        self.min_size = min_size
        self.workers = workers
        self.logger = logger or LOGGER

    async def build_index(self, files: Sequence[TrackedFile], kind: str) -> FingerprintIndex:
        if kind not in DIGEST_KINDS:
            raise ValueError(f"Unsupported digest kind {kind!r}")
        raw_files = [tracked for tracked in files if not tracked.is_metafile]
        self.logger.info("Hashing %d files (%s), this may take a while", len(raw_files), kind)

        with worker_pool(self.workers) as executor:
            tasks = [
                run_in_executor(compute_digest, str(tracked.path), kind, self.min_size, executor=executor)
                for tracked in raw_files
            ]
            try:
                digests = await asyncio.gather(*tasks)
            except OSError as exc:
                raise DigestError(f"Unable to read {exc.filename}: {exc.strerror}") from exc

        index = FingerprintIndex(kind)
        skipped = 0
        for tracked, digest in zip(raw_files, digests):
            if digest is None:
                skipped += 1
                continue
            index.add(digest, tracked.path)
        if skipped:
            self.logger.debug("Ignored %d files smaller than %d bytes", skipped, self.min_size)
        return index
