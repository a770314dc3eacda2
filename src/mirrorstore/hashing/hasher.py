"""Single-pass, multi-algorithm file hashing."""

from __future__ import annotations

import hashlib
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Iterable

from mirrorstore.errors import FilesystemError, UnsupportedAlgorithmError

DEFAULT_BUFFER_SIZE = 32 * 1024

ALGORITHMS: dict[str, Callable[[], Any]] = {
    "md5": hashlib.md5,
    "sha1": hashlib.sha1,
    "sha224": hashlib.sha224,
    "sha256": hashlib.sha256,
    "sha384": hashlib.sha384,
    "sha512": hashlib.sha512,
}


@dataclass(slots=True)
class HashResult:
    """Digest of one file computed with one algorithm.

    Attributes:
        path: Path of the hashed file as it was opened.
        algorithm: Algorithm name, e.g. `sha256`.
        size: Number of bytes streamed through the digest.
        digest: Raw digest bytes.
    """

    path: str
    algorithm: str
    size: int
    digest: bytes

    @property
    def hexdigest(self) -> str:
        """Return the lowercase hex form of the digest."""
        return self.digest.hex()


class DigestWriter:
    """Adapter giving a hashlib object a `write` that reports bytes consumed."""

    def __init__(self, algorithm: str) -> None:
        try:
            factory = ALGORITHMS[algorithm]
        except KeyError as exc:
            raise UnsupportedAlgorithmError(algorithm) from exc
        self.algorithm = algorithm
        self._digest = factory()

    def write(self, data: memoryview) -> int:
        self._digest.update(data)
        return len(data)

    def digest(self) -> bytes:
        return self._digest.digest()


def buffer_size(remaining: int | None) -> int:
    """Return the read buffer size for a source with `remaining` bytes."""
    size = DEFAULT_BUFFER_SIZE
    if remaining is not None and remaining < size:
        size = max(1, remaining)
    return size


def hash_file(path: Path | str, algorithms: Iterable[str]) -> list[HashResult]:
    """Hash a file with every requested algorithm in a single read pass.

    Args:
        path: File to hash.
        algorithms: Algorithm names; duplicates are ignored, order is kept.

    Returns:
        list[HashResult]: One result per distinct algorithm, in request order.

    Raises:
        UnsupportedAlgorithmError: Before any I/O, if an algorithm is unknown.
        FilesystemError: If the file cannot be read or a digest consumes fewer
            bytes than it was given.
        ValueError: If no algorithm is requested.
    """
    names = list(dict.fromkeys(algorithms))
    if not names:
        raise ValueError("no hash algorithm specified")
    writers = [DigestWriter(name) for name in names]

    try:
        handle = open(path, "rb")
    except OSError as exc:
        raise FilesystemError("open", path, exc) from exc

    written = 0
    with handle:
        try:
            remaining: int | None = os.fstat(handle.fileno()).st_size
        except OSError:
            remaining = None
        buffer = bytearray(buffer_size(remaining))
        view = memoryview(buffer)
        while True:
            try:
                nread = handle.readinto(buffer)
            except OSError as exc:
                raise FilesystemError("read", path, exc) from exc
            if not nread:
                break
            chunk = view[:nread]
            for writer in writers:
                nwritten = writer.write(chunk)
                if nwritten != nread:
                    raise FilesystemError(
                        "hash",
                        path,
                        OSError(f"read and write data mismatch {nread} {nwritten}"),
                    )
            written += nread

    return [
        HashResult(path=str(path), algorithm=writer.algorithm, size=written, digest=writer.digest())
        for writer in writers
    ]


def hash_sha256(path: Path | str) -> HashResult:
    """Return the SHA-256 result for a single file."""
    return hash_file(path, ["sha256"])[0]


__all__ = [
    "ALGORITHMS",
    "DEFAULT_BUFFER_SIZE",
    "DigestWriter",
    "HashResult",
    "buffer_size",
    "hash_file",
    "hash_sha256",
]
