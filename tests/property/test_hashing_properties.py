from __future__ import annotations

import hashlib
from pathlib import Path

import pytest
from hypothesis import given, strategies as st
from murmurhash2 import murmurhash2

from packutils.hashing import file_digest, fingerprint, murmur2, normalise_whitespace

WHITESPACE = st.sampled_from([b" ", b"\t", b"\r", b"\n"])


@given(st.binary(min_size=0, max_size=128))
def test_sha1_matches_python_hashlib(payload: bytes) -> None:
    import tempfile

    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / "blob.bin"
        path.write_bytes(payload)
        assert file_digest(path, "sha1") == hashlib.sha1(payload).hexdigest()


@given(st.binary(max_size=256))
def test_murmur2_is_32_bit(payload: bytes) -> None:
    assert 0 <= murmur2(payload) <= 0xFFFFFFFF


@given(st.binary(max_size=128), st.lists(WHITESPACE, max_size=16))
def test_fingerprint_ignores_whitespace(payload: bytes, padding: list[bytes]) -> None:
    padded = b"".join(padding) + payload + b"".join(reversed(padding))
    assert fingerprint(padded) == fingerprint(payload)


@given(st.binary(max_size=128))
def test_normalised_bytes_have_no_whitespace(payload: bytes) -> None:
    stripped = normalise_whitespace(payload)
    assert not set(stripped) & {9, 10, 13, 32}


@given(st.binary(max_size=64))
def test_murmur2_matches_reference(payload: bytes) -> None:
    assert murmur2(payload) == murmurhash2(payload, 1)


@pytest.mark.parametrize("size", [0, 1, 2, 3, 4, 5, 6, 7, 8])
def test_murmur2_matches_reference_for_every_tail(size: int) -> None:
    payload = bytes(range(1, size + 1))
    assert murmur2(payload) == murmurhash2(payload, 1)


def test_known_vectors() -> None:
    assert murmur2(b"") == 1540447798
    assert murmur2(b"hello") == 2788266382
    assert murmur2(b"The quick brown fox jumps over the lazy dog") == 504383975
    assert fingerprint(b"hel lo\n") == 2788266382
    assert fingerprint(b" \t\r\n") == murmur2(b"")
    assert murmur2(b"abc") != murmur2(b"abd")
