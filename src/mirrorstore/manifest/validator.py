"""Digest validation applied after a manifest parses successfully."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Iterable, TextIO

from mirrorstore.errors import FilesystemError, HashValidationError, UnsupportedAlgorithmError

from .models import ChecksumItem
from .parser import parse

# hex characters per digest
DIGEST_LENGTHS = {
    "md5": 32,
    "sha1": 40,
    "sha224": 56,
    "sha256": 64,
    "sha384": 96,
    "sha512": 128,
}

DISPLAY_NAMES = {
    "md5": "MD5",
    "sha1": "SHA-1",
    "sha224": "SHA-224",
    "sha256": "SHA-256",
    "sha384": "SHA-384",
    "sha512": "SHA-512",
}


def digest_pattern(algorithm: str) -> re.Pattern[str]:
    """Return the full-match pattern for hex digests of the given algorithm."""
    try:
        length = DIGEST_LENGTHS[algorithm]
    except KeyError as exc:
        raise UnsupportedAlgorithmError(algorithm) from exc
    return re.compile(rf"^[0-9A-Fa-f]{{{length}}}$")


def validate_hashes(items: Iterable[ChecksumItem], algorithm: str = "sha256") -> None:
    """Ensure every item carries a well-formed digest.

    Args:
        items: Parsed manifest items.
        algorithm: Digest algorithm the manifest was produced with.

    Raises:
        HashValidationError: On the first malformed hash.
        UnsupportedAlgorithmError: If the algorithm is unknown.
    """
    pattern = digest_pattern(algorithm)
    for item in items:
        if not pattern.fullmatch(item.hash):
            raise HashValidationError(item.hash, DISPLAY_NAMES[algorithm])


def parse_manifest(source: TextIO | str, algorithm: str = "sha256") -> list[ChecksumItem]:
    """Parse manifest text and validate its hashes as a single step."""
    items = parse(source)
    validate_hashes(items, algorithm)
    return items


def read_manifest(path: Path, algorithm: str = "sha256") -> list[ChecksumItem]:
    """Read, parse, and validate a manifest file.

    Raises:
        FilesystemError: If the file cannot be opened or read.
    """
    try:
        with path.open("r", encoding="utf-8", newline="") as handle:
            return parse_manifest(handle, algorithm)
    except (OSError, UnicodeDecodeError) as exc:
        raise FilesystemError("read manifest", path, exc) from exc


__all__ = [
    "DIGEST_LENGTHS",
    "DISPLAY_NAMES",
    "digest_pattern",
    "validate_hashes",
    "parse_manifest",
    "read_manifest",
]
