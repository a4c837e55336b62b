"""Utility helpers shared across the packmatch codebase."""

from .config import MatchConfig, load_config
from .hashing import file_digest, file_fingerprint, file_sha1, fingerprint, murmur2
from .logging import configure_logging, get_logger
from .parallel import run_in_executor, worker_pool
from .paths import normalise_path, resolve_within
from .process import CommandResult, CommandRunner

__all__ = [
    "MatchConfig",
    "load_config",
    "file_digest",
    "file_fingerprint",
    "file_sha1",
    "fingerprint",
    "murmur2",
    "configure_logging",
    "get_logger",
    "run_in_executor",
    "worker_pool",
    "normalise_path",
    "resolve_within",
    "CommandResult",
    "CommandRunner",
]
