"""Ordering of the operations with effects outside the process.

A raw file is removed only after its replacement metadata exists: either
the ``packwiz ... add`` command reported success or the record was written
by us. The first failing command aborts the rest of the batch; files that
were already converted stay converted.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from pack.store import METAFILE_SUFFIX, PackStore, slugify, write_metadata
from packutils.errors import ExternalToolError, PackMatchError
from packutils.logging import get_logger
from packutils.process import CommandRunner

from .reconciler import MetadataRecord
from .resolver import MatchResult

LOGGER = get_logger(__name__)

# answers packwiz's "add dependencies?" prompt
DECLINE_PROMPT = "n\n"


class SideEffectCoordinator:
    def __init__(
        self,
        store: PackStore,
        runner: Optional[CommandRunner] = None,
        command: Sequence[str] = ("packwiz",),
        materialize: str = "tool",
        dry_run: bool = False,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        if materialize not in ("tool", "metadata"):
            raise ValueError(f"Unknown materialize strategy {materialize!r}")
        self.store = store
        self.runner = runner or CommandRunner(cwd=store.root)
        self.command = tuple(command)
        self.materialize = materialize
        self.dry_run = dry_run
        self.logger = logger or LOGGER

    def _run(self, *args: str, input: Optional[str] = None) -> None:
        result = self.runner.run([*self.command, *args], input=input)
        if not result.ok:
            raise ExternalToolError(result.describe(), result.returncode)

    def refresh(self) -> None:
        """Ask packwiz to rebuild the index; failure ends the run."""

        if self.dry_run:
            self.logger.debug("Dry run: not refreshing the index")
            return
        self._run("refresh")

    def convert(self, detections: Iterable[MatchResult]) -> int:
        """Replace each detected raw file by a managed record, in order."""

        converted = 0
        for result in detections:
            if self.dry_run:
                self.logger.info(
                    "Dry run: would replace %s with %s", self.store.relative(result.path), result.metadata.name
                )
                continue
            if self.materialize == "tool":
                self._add_with_tool(result)
            else:
                self._write_record(result)
            self._delete(result.path)
            converted += 1
        if converted:
            self.refresh()
        return converted

    def write_records(self, records: Iterable[MetadataRecord]) -> int:
        written = 0
        for record in records:
            if self.dry_run:
                self.logger.info("Dry run: would rewrite %s", self.store.relative(record.path))
                continue
            write_metadata(record.path, record.metadata)
            written += 1
        if written:
            self.refresh()
        return written

    def _meta_folder(self, path: Path) -> str:
        folder = self.store.relative(path.parent)
        return folder if folder != "." else ""

    def _add_with_tool(self, result: MatchResult) -> None:
        folder = self._meta_folder(result.path)
        if result.catalog == "curseforge":
            args: List[str] = [
                "curseforge", "add",
                "--addon-id", result.project_id,
                "--file-id", result.file_id,
            ]
        else:
            url = result.metadata.download.url
            if not url:
                raise PackMatchError(f"No download URL to add {result.metadata.name} from")
            args = ["modrinth", "add", url]
        if folder:
            args += ["--meta-folder", folder]
        self.logger.info("Adding %s for %s", result.metadata.name, self.store.relative(result.path))
        self._run(*args, input=DECLINE_PROMPT)

    def _write_record(self, result: MatchResult) -> None:
        target = result.path.parent / f"{slugify(result.metadata.name)}{METAFILE_SUFFIX}"
        if target.exists():
            raise PackMatchError(f"Refusing to overwrite existing metadata {self.store.relative(target)}")
        self.logger.info("Writing %s", self.store.relative(target))
        write_metadata(target, result.metadata)

    def _delete(self, path: Path) -> None:
        try:
            path.unlink()
        except OSError as exc:
            raise PackMatchError(f"Unable to delete {self.store.relative(path)}: {exc}") from exc
