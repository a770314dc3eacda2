"""Multi-algorithm hashing tests."""

from __future__ import annotations

import hashlib
from pathlib import Path

import pytest

from mirrorstore.errors import FilesystemError, UnsupportedAlgorithmError
from mirrorstore.hashing import buffer_size, hash_file, hash_sha256
from mirrorstore.hashing.hasher import DEFAULT_BUFFER_SIZE, DigestWriter


def test_hash_file_computes_each_algorithm_once(tmp_path: Path) -> None:
    """Ensure every requested digest matches hashlib and duplicates collapse."""
    path = tmp_path / "data.bin"
    payload = b"abc" * 50_000
    path.write_bytes(payload)

    results = hash_file(path, ["sha256", "md5", "sha256", "sha512"])

    assert [result.algorithm for result in results] == ["sha256", "md5", "sha512"]
    assert results[0].hexdigest == hashlib.sha256(payload).hexdigest()
    assert results[1].hexdigest == hashlib.md5(payload).hexdigest()
    assert results[2].hexdigest == hashlib.sha512(payload).hexdigest()
    assert all(result.size == len(payload) for result in results)
    assert results[0].path == str(path)


def test_hash_sha256_of_empty_file(tmp_path: Path) -> None:
    """Ensure empty files hash to the well-known empty digest."""
    path = tmp_path / "empty"
    path.write_bytes(b"")

    result = hash_sha256(path)

    assert result.size == 0
    assert result.hexdigest == hashlib.sha256(b"").hexdigest()


def test_unknown_algorithm_fails_before_opening(tmp_path: Path) -> None:
    """Ensure algorithm lookup happens before any file access."""
    with pytest.raises(UnsupportedAlgorithmError):
        hash_file(tmp_path / "does-not-exist", ["sha256", "whirlpool"])


def test_no_algorithm_is_rejected(tmp_path: Path) -> None:
    """Ensure at least one algorithm is required."""
    with pytest.raises(ValueError):
        hash_file(tmp_path / "x", [])


def test_missing_file_raises_filesystem_error(tmp_path: Path) -> None:
    """Ensure open failures carry the operation and path."""
    missing = tmp_path / "missing.txt"

    with pytest.raises(FilesystemError) as excinfo:
        hash_sha256(missing)

    assert excinfo.value.operation == "open"
    assert excinfo.value.path == str(missing)


def test_short_digest_write_reports_mismatch(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Ensure a digest consuming fewer bytes than read aborts hashing."""
    path = tmp_path / "data"
    path.write_bytes(b"0123456789")

    def _short_write(self: DigestWriter, data: memoryview) -> int:
        return len(data) - 1

    monkeypatch.setattr(DigestWriter, "write", _short_write)

    with pytest.raises(FilesystemError, match="read and write data mismatch 10 9"):
        hash_sha256(path)


def test_buffer_size_caps_at_remaining_bytes() -> None:
    """Ensure small sources get small buffers and empty sources still get one byte."""
    assert buffer_size(None) == DEFAULT_BUFFER_SIZE
    assert buffer_size(10 * DEFAULT_BUFFER_SIZE) == DEFAULT_BUFFER_SIZE
    assert buffer_size(100) == 100
    assert buffer_size(0) == 1
