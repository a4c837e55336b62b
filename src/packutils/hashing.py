"""Hashing helpers for pack files.

Two digest families are needed when matching files against the remote
catalogs: the CurseForge fingerprint (a whitespace-normalised 32-bit
MurmurHash2) and ordinary hexadecimal digests from :mod:`hashlib`.
"""
from __future__ import annotations

import hashlib
import struct
from pathlib import Path

MURMUR2_SEED = 1
_M = 0x5BD1E995
_MASK = 0xFFFFFFFF
# Bytes CurseForge strips before fingerprinting: tab, LF, CR and space.
_WHITESPACE = b"\t\n\r "


def file_sha1(path: Path, chunk_size: int = 2**20) -> str:
    """Compute a streaming SHA1 checksum for ``path``."""

    return file_digest(path, "sha1", chunk_size=chunk_size)


def file_digest(path: Path, algorithm: str, chunk_size: int = 2**20) -> str:
    """Compute a streaming lowercase hex digest of ``path`` with ``algorithm``."""

    digest = hashlib.new(algorithm)
    with path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(chunk_size), b""):
            digest.update(chunk)
    return digest.hexdigest()


def murmur2(data: bytes, seed: int = MURMUR2_SEED) -> int:
    """Return the 32-bit MurmurHash2 of ``data``."""

    length = len(data)
    h = (seed ^ length) & _MASK
    rounded = length & ~3
    for (k,) in struct.iter_unpack("<I", data[:rounded]):
        k = (k * _M) & _MASK
        k ^= k >> 24
        k = (k * _M) & _MASK
        h = (h * _M) & _MASK
        h ^= k

    tail = length & 3
    if tail == 3:
        h ^= data[rounded + 2] << 16
    if tail >= 2:
        h ^= data[rounded + 1] << 8
    if tail >= 1:
        h ^= data[rounded]
        h = (h * _M) & _MASK

    h ^= h >> 13
    h = (h * _M) & _MASK
    h ^= h >> 15
    return h


def normalise_whitespace(data: bytes) -> bytes:
    return data.translate(None, _WHITESPACE)


def fingerprint(data: bytes) -> int:
    """Return the CurseForge fingerprint of ``data``."""

    return murmur2(normalise_whitespace(data), MURMUR2_SEED)


def file_fingerprint(path: Path) -> int:
    """Return the CurseForge fingerprint of the file at ``path``."""

    return fingerprint(path.read_bytes())
