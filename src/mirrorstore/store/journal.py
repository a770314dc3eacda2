"""Rollback journals for scan and rename runs."""

from __future__ import annotations

import time
from pathlib import Path
from typing import Iterable

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from mirrorstore.errors import FilesystemError

JOURNAL_PREFIX = "mirror-"
JOURNAL_SUFFIX = ".json"
RENAME_JOURNAL_PREFIX = "rename-"


class JournalEntry(BaseModel):
    """Maps a scanned source file to the digest it was cached under.

    Serialized with the short field names `s` and `h`; empty fields are
    omitted.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    source: str = Field(default="", alias="s")
    hash: str = Field(default="", alias="h")


class RenameEntry(BaseModel):
    """Maps a file to the name a rename run gave it (`s` and `t` when serialized)."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    source: str = Field(default="", alias="s")
    target: str = Field(default="", alias="t")


_ENTRIES = TypeAdapter(list[JournalEntry])
_RENAMES = TypeAdapter(list[RenameEntry])


def journal_name(timestamp_ms: int, prefix: str = JOURNAL_PREFIX) -> str:
    """Return the journal file name for an epoch-millisecond timestamp."""
    return f"{prefix}{timestamp_ms}{JOURNAL_SUFFIX}"


def write_journal(
    cache_dir: Path,
    entries: Iterable[JournalEntry],
    *,
    timestamp_ms: int | None = None,
) -> Path:
    """Write a new journal into the cache directory.

    The file is created exclusively; if the timestamped name is already taken
    the timestamp is bumped until a free name is found.

    Args:
        cache_dir: Cache directory receiving the journal.
        entries: Source/digest pairs recorded by the scan.
        timestamp_ms: Epoch milliseconds used for naming; defaults to now.

    Returns:
        Path: Location of the written journal.

    Raises:
        FilesystemError: If the journal cannot be written.
    """
    payload = _ENTRIES.dump_json(list(entries), by_alias=True, exclude_defaults=True)
    return _write_exclusive(cache_dir, JOURNAL_PREFIX, payload, timestamp_ms)


def write_rename_journal(
    directory: Path,
    entries: Iterable[RenameEntry],
    *,
    timestamp_ms: int | None = None,
) -> Path:
    """Write a `rename-<ms>.json` journal mapping old names to new ones.

    Raises:
        FilesystemError: If the journal cannot be written.
    """
    payload = _RENAMES.dump_json(list(entries), by_alias=True, exclude_defaults=True)
    return _write_exclusive(directory, RENAME_JOURNAL_PREFIX, payload, timestamp_ms)


def _write_exclusive(
    directory: Path, prefix: str, payload: bytes, timestamp_ms: int | None
) -> Path:
    payload += b"\n"
    stamp = timestamp_ms if timestamp_ms is not None else time.time_ns() // 1_000_000
    while True:
        path = directory / journal_name(stamp, prefix)
        try:
            with path.open("xb") as handle:
                handle.write(payload)
        except FileExistsError:
            stamp += 1
            continue
        except OSError as exc:
            raise FilesystemError("write journal", path, exc) from exc
        return path


def read_journal(path: Path) -> list[JournalEntry]:
    """Load the entries recorded in a journal file.

    Raises:
        FilesystemError: If the file cannot be read or holds invalid data.
    """
    try:
        return _ENTRIES.validate_json(path.read_bytes())
    except (OSError, ValidationError) as exc:
        raise FilesystemError("read journal", path, exc) from exc


def read_rename_journal(path: Path) -> list[RenameEntry]:
    """Load the old and new names recorded by a rename run."""
    try:
        return _RENAMES.validate_json(path.read_bytes())
    except (OSError, ValidationError) as exc:
        raise FilesystemError("read journal", path, exc) from exc


__all__ = [
    "JOURNAL_PREFIX",
    "JOURNAL_SUFFIX",
    "RENAME_JOURNAL_PREFIX",
    "RenameEntry",
    "read_rename_journal",
    "write_rename_journal",
    "JournalEntry",
    "journal_name",
    "read_journal",
    "write_journal",
]
