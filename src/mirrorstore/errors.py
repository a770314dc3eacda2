"""Error types raised by the manifest parser, hasher, and mirror engine."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable


class MirrorStoreError(Exception):
    """Base exception for mirror store operations."""


class ManifestSyntaxError(MirrorStoreError):
    """Raised when manifest text violates the checksum line grammar.

    Attributes:
        expected: Token class the parser was waiting for.
        actual: Literal text of the token that was read instead.
    """

    def __init__(self, expected: str, actual: str) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"invalid token. expected {expected} actual '{actual}'")


class HashValidationError(MirrorStoreError):
    """Raised when a parsed hash is not a valid digest for the algorithm."""

    def __init__(self, hash_value: str, algorithm: str) -> None:
        self.hash_value = hash_value
        self.algorithm = algorithm
        super().__init__(f"invalid {algorithm} hash '{hash_value}'")


class MissingContentError(MirrorStoreError):
    """Raised when a manifest references digests absent from the cache.

    Attributes:
        hashes: Every missing digest, in manifest order.
    """

    def __init__(self, hashes: Iterable[str]) -> None:
        self.hashes = list(hashes)
        super().__init__(
            f"{len(self.hashes)} item(s) missing in cache: {', '.join(self.hashes)}"
        )


class FilesystemError(MirrorStoreError):
    """Raised when opening, reading, linking, or creating paths fails."""

    def __init__(self, operation: str, path: Path | str, cause: Exception | None = None) -> None:
        self.operation = operation
        self.path = str(path)
        self.cause = cause
        message = f"{operation} failed for {self.path}"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)


class ConflictError(MirrorStoreError):
    """Raised when a target path collides with an existing plain file."""

    def __init__(self, path: Path | str, reason: str) -> None:
        self.path = str(path)
        self.reason = reason
        super().__init__(f"{reason}: {self.path}")


class UnsupportedAlgorithmError(MirrorStoreError, ValueError):
    """Raised when a digest algorithm name is not supported."""

    def __init__(self, algorithm: str) -> None:
        self.algorithm = algorithm
        super().__init__(f"unsupported hash algorithm: '{algorithm}'")


__all__ = [
    "MirrorStoreError",
    "ManifestSyntaxError",
    "HashValidationError",
    "MissingContentError",
    "FilesystemError",
    "ConflictError",
    "UnsupportedAlgorithmError",
]
