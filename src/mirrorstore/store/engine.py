"""Mirror engine: populate the hash-keyed cache and rebuild trees from it."""

from __future__ import annotations

import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Iterable, Sequence

from mirrorstore.errors import ConflictError, FilesystemError, MissingContentError
from mirrorstore.hashing import HashResult, hash_sha256
from mirrorstore.manifest import ChecksumItem, parse, validate_hashes

from .filesystem import (
    FsEntry,
    Linker,
    OsLinker,
    ensure_directory,
    is_absolute_path,
    is_directory_exist,
    is_exist,
    is_file_exist,
    list_entries,
)
from .journal import JournalEntry, write_journal
from .models import ExportResult, ExportStage, ScanResult

LOGGER = logging.getLogger(__name__)


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


class MirrorEngine:
    """Scan files into a content-addressed cache and export trees from it.

    Cache entries live at `<cache_dir>/<sha256 hex>` and are hardlinks of the
    files that produced them, so every path sharing a digest shares an inode.
    """

    def __init__(
        self,
        *,
        linker: Linker | None = None,
        workers: int = 1,
        skip_cache_dir: bool = True,
        logger: logging.Logger | None = None,
        clock: Callable[[], int] | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            linker: Hardlink capability; defaults to `os.link`.
            workers: Number of threads used to hash files during a scan.
            skip_cache_dir: Ignore files that live inside the cache directory.
            logger: Logger receiving progress records.
            clock: Source of epoch milliseconds used to name journals.
        """
        if workers < 1:
            raise ValueError("workers must be at least 1")
        self.linker: Linker = linker or OsLinker()
        self.workers = workers
        self.skip_cache_dir = skip_cache_dir
        self.logger = logger or LOGGER
        self._clock = clock or _now_ms
        self._stage = ExportStage.PENDING

    @property
    def stage(self) -> ExportStage:
        """Return the stage the most recent export reached."""
        return self._stage

    # Scan -------------------------------------------------------------

    def scan(self, cache_dir: Path, inputs: Sequence[Path | str]) -> ScanResult:
        """Hash inputs and hardlink every new digest into the cache.

        The rollback journal is written after hashing and before the first
        link. Existing cache entries are left untouched.

        Args:
            cache_dir: Existing cache directory.
            inputs: Files and directories to scan recursively.

        Returns:
            ScanResult: Journal location plus created and skipped entries.

        Raises:
            ValueError: If no inputs are given.
            FilesystemError: If listing, hashing, journaling, or linking fails.
        """
        cache_dir = Path(cache_dir)
        self._require_cache(cache_dir)
        if not inputs:
            raise ValueError("inputs is empty")
        self.logger.info("Start scanning %d input(s) into %s", len(inputs), cache_dir)

        files = self._scannable_files(cache_dir, list_entries(inputs, recursive=True))
        hashed = self._hash_all(files)

        entries = [
            JournalEntry(source=str(entry.absolute_path), hash=result.hexdigest)
            for entry, result in hashed
        ]
        journal_path = write_journal(cache_dir, entries, timestamp_ms=self._clock())
        self.logger.info("Written rollback file %s (%d entries)", journal_path, len(entries))

        result = ScanResult(cache_dir=cache_dir, journal_path=journal_path, entries=entries)
        for entry, hash_result in hashed:
            cache_path = cache_dir / hash_result.hexdigest
            if is_exist(cache_path):
                self.logger.info(
                    "Skipped %s; already cached at %s", entry.absolute_path, cache_path
                )
                result.skipped.append(entry.absolute_path)
                continue
            try:
                self.linker.link(entry.absolute_path, cache_path)
            except FilesystemError as exc:
                if isinstance(exc.cause, FileExistsError):
                    # another scan linked the same digest first
                    result.skipped.append(entry.absolute_path)
                    continue
                self.logger.error("Failed to link %s to %s", entry.absolute_path, cache_path)
                raise
            self.logger.info("Created cache file %s from %s", cache_path, entry.absolute_path)
            result.created.append(cache_path)

        return result

    def _scannable_files(self, cache_dir: Path, entries: Iterable[FsEntry]) -> list[FsEntry]:
        cache_root = cache_dir.resolve()
        files: list[FsEntry] = []
        for entry in entries:
            if entry.is_dir:
                continue
            if not entry.absolute_path.is_file():
                self.logger.debug("Skipped %s; not a regular file", entry.absolute_path)
                continue
            if self.skip_cache_dir and cache_root in entry.absolute_path.resolve().parents:
                self.logger.debug("Skipped %s; inside the cache directory", entry.absolute_path)
                continue
            files.append(entry)
        return files

    def _hash_all(self, files: list[FsEntry]) -> list[tuple[FsEntry, HashResult]]:
        paths = [entry.absolute_path for entry in files]
        if self.workers == 1 or len(paths) < 2:
            results = [hash_sha256(path) for path in paths]
        else:
            with ThreadPoolExecutor(max_workers=self.workers) as pool:
                results = list(pool.map(hash_sha256, paths))
        for result in results:
            self.logger.info("Hashed %s (sha256, %d bytes)", result.path, result.size)
        return list(zip(files, results))

    # Export -----------------------------------------------------------

    def export(
        self,
        cache_dir: Path,
        manifest_path: Path,
        target_root: Path | str | None = None,
    ) -> ExportResult:
        """Rebuild the tree described by a SHA-256 manifest from cached entries.

        Every stage finishes before the next starts: the manifest is parsed and
        validated, then every referenced digest is checked in the cache, and
        only then are links created. A link failure stops the export; links
        made before it stay in place.

        Args:
            cache_dir: Existing cache directory.
            manifest_path: Manifest listing `<sha256> [*]<path>` lines.
            target_root: Root for relative manifest paths; defaults to the
                manifest's directory.

        Returns:
            ExportResult: Resolved root plus linked and unchanged destinations.

        Raises:
            ManifestSyntaxError: If the manifest is malformed.
            HashValidationError: If a hash is not a SHA-256 digest.
            MissingContentError: If any referenced digest is not cached.
            ConflictError: If the target root or a destination is blocked.
            FilesystemError: If reading, directory creation, or linking fails.
        """
        cache_dir = Path(cache_dir)
        manifest_path = Path(manifest_path)
        self._stage = ExportStage.PENDING
        self._require_cache(cache_dir)
        if not is_file_exist(manifest_path):
            raise FilesystemError("locate checksum file", manifest_path)
        self.logger.info(
            "Start exporting %s from %s (root=%s)", manifest_path, cache_dir, target_root or "-"
        )

        self._stage = ExportStage.PARSING
        items = self._read_items(manifest_path)

        self._stage = ExportStage.VALIDATING
        validate_hashes(items, "sha256")

        self._stage = ExportStage.PRECHECKING_CACHE
        missing = self._missing_hashes(cache_dir, items)
        if missing:
            self.logger.warning("Items are not found in cache: %s", ", ".join(missing))
            raise MissingContentError(missing)
        root = self._resolve_target_root(manifest_path, target_root)

        self._stage = ExportStage.LINKING_ALL
        result = ExportResult(cache_dir=cache_dir, manifest_path=manifest_path, target_root=root)
        for item in items:
            source = self.cache_path(cache_dir, item.hash)
            destination = Path(item.path) if is_absolute_path(item.path) else root / item.path
            if is_exist(destination):
                if _same_file(source, destination):
                    self.logger.info("Unchanged %s; already linked to %s", destination, source)
                    result.unchanged.append(destination)
                    continue
                raise ConflictError(destination, "destination already exists")
            ensure_directory(destination.parent)
            try:
                self.linker.link(source, destination)
            except FilesystemError:
                self.logger.error("Failed to link %s to %s", source, destination)
                raise
            self.logger.info("Exported %s to %s", item.hash, destination)
            result.linked.append(destination)

        self._stage = ExportStage.DONE
        return result

    @staticmethod
    def cache_path(cache_dir: Path, digest: str) -> Path:
        """Return the cache entry path for a hex digest of any case."""
        return Path(cache_dir) / digest.lower()

    def _read_items(self, manifest_path: Path) -> list[ChecksumItem]:
        try:
            with manifest_path.open("r", encoding="utf-8", newline="") as handle:
                return parse(handle)
        except (OSError, UnicodeDecodeError) as exc:
            raise FilesystemError("read checksum file", manifest_path, exc) from exc

    def _missing_hashes(self, cache_dir: Path, items: Iterable[ChecksumItem]) -> list[str]:
        missing: list[str] = []
        for item in items:
            if item.hash in missing:
                continue
            if not is_file_exist(self.cache_path(cache_dir, item.hash)):
                missing.append(item.hash)
        return missing

    def _resolve_target_root(self, manifest_path: Path, target_root: Path | str | None) -> Path:
        if target_root is None or str(target_root) == "":
            self.logger.warning(
                "Target root is not specified; deriving it from the checksum file path."
            )
            return Path(os.path.abspath(manifest_path)).parent
        root = Path(os.path.abspath(target_root))
        if is_file_exist(root):
            raise ConflictError(root, "a file with the same name as the target root exists")
        return root

    def _require_cache(self, cache_dir: Path) -> None:
        if not is_directory_exist(cache_dir):
            raise FilesystemError("locate cache directory", cache_dir)


def _same_file(source: Path, destination: Path) -> bool:
    # A symlink at the destination is not the cache entry itself.
    try:
        target = os.lstat(destination)
        entry = os.stat(source)
    except OSError:
        return False
    return (target.st_ino, target.st_dev) == (entry.st_ino, entry.st_dev)


__all__ = ["MirrorEngine"]
