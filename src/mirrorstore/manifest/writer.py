"""Serialize checksum items back into manifest text."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

from mirrorstore.errors import FilesystemError, ManifestSyntaxError

from .models import EOF_LITERAL, ChecksumItem

_FORBIDDEN = frozenset("*\r\n" + EOF_LITERAL)
_EDGE_WHITESPACE = " \t"


def check_path(path: str) -> str:
    """Return `path` unchanged if a manifest line can carry it.

    Raises:
        ManifestSyntaxError: If the path is empty, holds a reserved character,
            or starts or ends with whitespace that parsing would drop or reject.
    """
    if not path:
        raise ManifestSyntaxError("path", "")
    for ch in path:
        if ch in _FORBIDDEN:
            raise ManifestSyntaxError("path", ch)
    for ch in (path[0], path[-1]):
        if ch in _EDGE_WHITESPACE:
            raise ManifestSyntaxError("path", ch)
    return path


def format_line(item: ChecksumItem) -> str:
    """Render one item as `<hash> [*]<path>` with a single separating space.

    Raises:
        ManifestSyntaxError: If the path cannot be written, see `check_path`.
    """
    check_path(item.path)
    marker = "*" if item.binary_mode else ""
    return f"{item.hash} {marker}{item.path}"


def serialize(items: Iterable[ChecksumItem], *, newline: str = "\n") -> str:
    """Render items as manifest text, terminating every line."""
    return "".join(format_line(item) + newline for item in items)


def write_manifest(path: Path, items: Iterable[ChecksumItem]) -> int:
    """Write items to a manifest file and return the number of lines written.

    Raises:
        FilesystemError: If the file cannot be written.
    """
    rendered = [format_line(item) for item in items]
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8", newline="") as handle:
            for line in rendered:
                handle.write(line + "\n")
    except OSError as exc:
        raise FilesystemError("write manifest", path, exc) from exc
    return len(rendered)


__all__ = ["check_path", "format_line", "serialize", "write_manifest"]
