"""Rename files after the digest of their content."""

from __future__ import annotations

import logging
import os
import time
from pathlib import Path
from typing import Callable, Sequence

from mirrorstore.errors import UnsupportedAlgorithmError
from mirrorstore.hashing import hash_file

from .filesystem import is_exist, list_entries
from .journal import RenameEntry, write_rename_journal
from .models import RenameResult

LOGGER = logging.getLogger(__name__)

# `<hex of the algorithm name>_`, e.g. "736861323536_" for sha256
RENAME_PREFIXES: dict[str, str] = {
    name: name.encode("ascii").hex() + "_" for name in ("md5", "sha1", "sha256", "sha512")
}


def target_name(path: Path, preset: str, hexdigest: str) -> Path:
    """Return the sibling of `path` named `<prefix><hexdigest><suffix>`."""
    return path.with_name(f"{RENAME_PREFIXES[preset]}{hexdigest}{path.suffix}")


def rename_by_hash(
    inputs: Sequence[Path | str],
    preset: str,
    *,
    journal_dir: Path | None = None,
    clock: Callable[[], int] | None = None,
    logger: logging.Logger | None = None,
) -> RenameResult:
    """Rename each input file to its digest under the chosen preset.

    Directories among the inputs are ignored; nothing is renamed recursively.
    Every planned rename is journaled before the first file moves. A target
    that already exists is never overwritten and a failed rename is logged
    while the remaining files are still processed.

    Args:
        inputs: Files to rename.
        preset: Digest algorithm naming the files; one of `RENAME_PREFIXES`.
        journal_dir: Directory receiving `rename-<ms>.json`; defaults to the
            working directory.
        clock: Source of epoch milliseconds used to name the journal.
        logger: Logger receiving progress records.

    Raises:
        UnsupportedAlgorithmError: If the preset is unknown.
        ValueError: If no input is given.
        FilesystemError: If an input cannot be read or the journal cannot be written.
    """
    log = logger or LOGGER
    if preset not in RENAME_PREFIXES:
        raise UnsupportedAlgorithmError(preset)
    if not inputs:
        raise ValueError("inputs is empty")
    log.info("Start renaming %d input(s) by %s", len(inputs), preset)

    result = RenameResult()
    plan: list[RenameEntry] = []
    for entry in list_entries(inputs, recursive=False):
        if entry.is_dir:
            log.debug("Skipped %s; directories are not renamed", entry.relative_path)
            continue
        digest = hash_file(entry.relative_path, [preset])[0]
        log.info("Hashed %s (%s, %d bytes)", entry.relative_path, preset, digest.size)
        target = target_name(entry.relative_path, preset, digest.hexdigest)
        if target == entry.relative_path:
            log.info("Skipped %s; already named after its digest", entry.relative_path)
            result.unchanged.append(entry.relative_path)
            continue
        plan.append(RenameEntry(source=str(entry.relative_path), target=str(target)))

    if not plan:
        return result

    stamp = clock() if clock else time.time_ns() // 1_000_000
    result.journal_path = write_rename_journal(
        journal_dir or Path.cwd(), plan, timestamp_ms=stamp
    )
    log.info("Written rollback file %s (%d entries)", result.journal_path, len(plan))

    for mapping in plan:
        source, target = Path(mapping.source), Path(mapping.target)
        if is_exist(target):
            log.warning("Skipped %s; %s already exists", source, target)
            result.skipped.append(source)
            continue
        try:
            os.rename(source, target)
        except OSError as exc:
            log.error("Failed to rename %s to %s: %s", source, target, exc)
            result.failed.append(source)
            continue
        log.info("Renamed %s to %s", source, target)
        result.renamed.append(mapping)
    return result


__all__ = ["RENAME_PREFIXES", "rename_by_hash", "target_name"]
