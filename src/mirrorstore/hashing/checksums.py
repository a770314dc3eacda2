"""Create checksum manifests for files and directories."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

from mirrorstore.errors import ManifestSyntaxError, UnsupportedAlgorithmError
from mirrorstore.manifest import ChecksumItem, check_path, write_manifest
from mirrorstore.store.filesystem import list_entries

from .hasher import ALGORITHMS, hash_file

LOGGER = logging.getLogger(__name__)

DEFAULT_OUTPUT = "checksum"


def output_path_for(output: Path | str | None, algorithm: str) -> Path:
    """Return the manifest path for an algorithm.

    The output's extension is replaced by the algorithm name, so `sums.txt`
    becomes `sums.sha256`; an empty output falls back to `checksum.<algo>`.
    """
    base = Path(output) if output else Path(DEFAULT_OUTPUT)
    return base.with_name(f"{base.stem}.{algorithm}")


def create_checksums(
    inputs: Sequence[Path | str],
    output: Path | str | None,
    algorithms: Sequence[str],
    *,
    binary_mode: bool = True,
    logger: logging.Logger | None = None,
) -> dict[str, Path]:
    """Hash every file under inputs and write one manifest per algorithm.

    Paths are written as they were reached from the inputs, in listing order.
    Files whose names a checksum line cannot carry (leading or trailing
    whitespace, `*`, CR, LF) are skipped with a warning.

    Args:
        inputs: Files and directories to hash recursively.
        output: Output path stem; its extension is replaced per algorithm.
        algorithms: Digest algorithms to compute in a single pass per file.
        binary_mode: Whether lines carry the `*` binary marker.
        logger: Logger receiving progress records.

    Returns:
        dict[str, Path]: Written manifest path keyed by algorithm.

    Raises:
        ValueError: If no algorithm or input is given.
        UnsupportedAlgorithmError: If an algorithm is unknown.
        FilesystemError: If listing, hashing, or writing fails.
    """
    log = logger or LOGGER
    names = list(dict.fromkeys(algorithms))
    if not names:
        raise ValueError("hash algorithm is not specified")
    if not inputs:
        raise ValueError("inputs is empty")
    for name in names:
        if name not in ALGORITHMS:
            raise UnsupportedAlgorithmError(name)

    log.info("Start computing %s hashes for %d input(s)", ",".join(names), len(inputs))
    items: dict[str, list[ChecksumItem]] = {name: [] for name in names}
    for entry in list_entries(inputs, recursive=True):
        if entry.is_dir or not entry.absolute_path.is_file():
            continue
        line_path = entry.relative_path.as_posix()
        try:
            check_path(line_path)
        except ManifestSyntaxError:
            log.warning("Skipped %r; the name cannot be written to a checksum line", line_path)
            continue
        results = hash_file(entry.relative_path, names)
        log.info("Hashed %s (%d bytes)", entry.relative_path, results[0].size)
        for result in results:
            items[result.algorithm].append(
                ChecksumItem(
                    hash=result.hexdigest,
                    binary_mode=binary_mode,
                    path=line_path,
                )
            )

    written: dict[str, Path] = {}
    for name in names:
        path = output_path_for(output, name)
        count = write_manifest(path, items[name])
        log.info("Written %d line(s) to %s", count, path)
        written[name] = path
    return written


__all__ = ["DEFAULT_OUTPUT", "create_checksums", "output_path_for"]
