"""Thin wrapper around :mod:`subprocess` for invoking external tools."""
from __future__ import annotations

import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from .logging import get_logger

LOGGER = get_logger(__name__)

COMMAND_NOT_FOUND = 127


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Outcome of a finished external command."""

    args: tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def describe(self) -> str:
        detail = (self.stderr or self.stdout).strip().splitlines()
        tail = f": {detail[-1]}" if detail else ""
        return f"`{shlex.join(self.args)}` exited with {self.returncode}{tail}"


class CommandRunner:
    """Run commands to completion and report their status without raising."""

    def __init__(self, cwd: Optional[Path] = None) -> None:
        self.cwd = cwd

    def run(self, args: Sequence[str], *, input: Optional[str] = None) -> CommandResult:
        argv = tuple(str(arg) for arg in args)
        LOGGER.debug("Running %s", shlex.join(argv))
        try:
            completed = subprocess.run(
                argv,
                cwd=self.cwd,
                input=input,
                capture_output=True,
                text=True,
                check=False,
            )
        except FileNotFoundError as exc:
            return CommandResult(argv, COMMAND_NOT_FOUND, stderr=str(exc))
        result = CommandResult(argv, completed.returncode, completed.stdout, completed.stderr)
        if completed.stdout.strip():
            LOGGER.debug("%s", completed.stdout.strip())
        return result
