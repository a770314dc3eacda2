"""Mirror engine scan tests."""

from __future__ import annotations

import hashlib
import os
from pathlib import Path

import pytest

from mirrorstore.errors import FilesystemError
from mirrorstore.store import MirrorEngine, OsLinker, read_journal


class _FailingLinker:
    """Linker that records calls and fails on every link."""

    def __init__(self) -> None:
        self.calls: list[tuple[Path, Path]] = []

    def link(self, source: Path, destination: Path) -> None:
        self.calls.append((source, destination))
        raise FilesystemError("link", destination, PermissionError("denied"))


class _RacingLinker:
    """Linker that behaves as if another scan created the entry first."""

    def link(self, source: Path, destination: Path) -> None:
        OsLinker().link(source, destination)
        raise FilesystemError("link", destination, FileExistsError("exists"))


def _cache(tmp_path: Path) -> Path:
    cache = tmp_path / "cache"
    cache.mkdir()
    return cache


def _cache_entries(cache: Path) -> list[str]:
    return sorted(path.name for path in cache.iterdir() if not path.name.startswith("mirror-"))


def test_scan_twice_keeps_single_entry(tmp_path: Path) -> None:
    """Ensure rescanning the same content leaves one cache entry."""
    cache = _cache(tmp_path)
    source = tmp_path / "abc.txt"
    source.write_bytes(b"abc")
    digest = hashlib.sha256(b"abc").hexdigest()
    engine = MirrorEngine()

    first = engine.scan(cache, [source])
    second = engine.scan(cache, [source])

    assert _cache_entries(cache) == [digest]
    assert first.created == [cache / digest]
    assert second.created == []
    assert second.skipped == [source]
    assert os.path.samefile(cache / digest, source)


def test_identical_files_share_one_entry_with_two_journal_records(tmp_path: Path) -> None:
    """Ensure duplicates are cached once but both sources are journaled."""
    cache = _cache(tmp_path)
    data = tmp_path / "data"
    data.mkdir()
    (data / "one").write_bytes(b"same")
    (data / "two").write_bytes(b"same")
    digest = hashlib.sha256(b"same").hexdigest()

    result = MirrorEngine().scan(cache, [data])

    assert _cache_entries(cache) == [digest]
    journal = read_journal(result.journal_path)
    assert [entry.hash for entry in journal] == [digest, digest]
    assert [Path(entry.source).name for entry in journal] == ["one", "two"]
    assert len(result.created) == 1
    assert len(result.skipped) == 1


def test_journal_is_written_before_linking(tmp_path: Path) -> None:
    """Ensure a failed link still leaves the journal describing the scan."""
    cache = _cache(tmp_path)
    source = tmp_path / "file"
    source.write_bytes(b"content")
    linker = _FailingLinker()

    with pytest.raises(FilesystemError):
        MirrorEngine(linker=linker, clock=lambda: 42).scan(cache, [source])

    journal = cache / "mirror-42.json"
    assert journal.exists()
    assert read_journal(journal)[0].hash == hashlib.sha256(b"content").hexdigest()
    assert len(linker.calls) == 1


def test_unwritable_journal_aborts_before_any_link(tmp_path: Path) -> None:
    """Ensure a journal that cannot be created stops the scan with nothing linked."""
    cache = _cache(tmp_path)
    source = tmp_path / "file"
    source.write_bytes(b"content")
    linker = _FailingLinker()
    # the stamp makes the journal name longer than any filesystem allows
    engine = MirrorEngine(linker=linker, clock=lambda: 10**300)

    with pytest.raises(FilesystemError, match="write journal"):
        engine.scan(cache, [source])

    assert linker.calls == []
    assert list(cache.iterdir()) == []


def test_concurrent_creation_counts_as_skipped(tmp_path: Path) -> None:
    """Ensure an entry created between the check and the link is not an error."""
    cache = _cache(tmp_path)
    source = tmp_path / "file"
    source.write_bytes(b"racy")

    result = MirrorEngine(linker=_RacingLinker()).scan(cache, [source])

    assert result.created == []
    assert result.skipped == [source]


def test_files_inside_cache_are_not_rescanned(tmp_path: Path) -> None:
    """Ensure scanning a tree that contains the cache ignores cache contents."""
    root = tmp_path / "root"
    cache = root / "cache"
    cache.mkdir(parents=True)
    (root / "a").write_bytes(b"a")
    engine = MirrorEngine(clock=lambda: 1)

    engine.scan(cache, [root])
    result = MirrorEngine(clock=lambda: 2).scan(cache, [root])

    assert [Path(entry.source).name for entry in result.entries] == ["a"]


def test_scan_with_worker_pool_matches_serial_scan(tmp_path: Path) -> None:
    """Ensure threaded hashing produces the same journal order."""
    data = tmp_path / "data"
    data.mkdir()
    for index in range(6):
        (data / f"f{index}").write_bytes(f"payload-{index}".encode("utf-8"))
    serial_cache = tmp_path / "serial"
    pooled_cache = tmp_path / "pooled"
    serial_cache.mkdir()
    pooled_cache.mkdir()

    serial = MirrorEngine().scan(serial_cache, [data])
    pooled = MirrorEngine(workers=4).scan(pooled_cache, [data])

    assert serial.entries == pooled.entries
    assert _cache_entries(serial_cache) == _cache_entries(pooled_cache)


def test_scan_requires_cache_and_inputs(tmp_path: Path) -> None:
    """Ensure missing cache directories and empty inputs are rejected."""
    with pytest.raises(FilesystemError):
        MirrorEngine().scan(tmp_path / "missing", [tmp_path])
    with pytest.raises(ValueError):
        MirrorEngine().scan(tmp_path, [])
    with pytest.raises(ValueError):
        MirrorEngine(workers=0)
