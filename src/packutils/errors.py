"""Exception hierarchy shared by every phase.

Fatal errors carry the process exit code the CLI should terminate with.
:class:`DataError` is the only recoverable kind: the affected item is
skipped and the run continues.
"""
from __future__ import annotations


class PackMatchError(Exception):
    """Base class for all packmatch errors."""

    exit_code: int = 1


class ConfigError(PackMatchError):
    """Missing credential or otherwise unusable configuration."""

    exit_code = 2


class PackFormatError(PackMatchError):
    """A pack, index or metadata file could not be loaded."""


class DigestError(PackMatchError):
    """A tracked file could not be read while digesting."""


class NetworkError(PackMatchError):
    """A remote catalog returned a non-success response or was unreachable."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ExternalToolError(PackMatchError):
    """The pack-management tool exited with a non-zero status."""

    def __init__(self, message: str, returncode: int) -> None:
        super().__init__(message)
        self.returncode = returncode
        self.exit_code = returncode if 0 < returncode < 256 else 1


class DataError(PackMatchError):
    """A single remote or local item is inconsistent and must be skipped."""


class SideConflictError(DataError):
    """A project declares itself unsupported on both client and server."""
