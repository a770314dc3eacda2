"""Filesystem collaborators used by the mirror engine."""

from __future__ import annotations

import os
import re
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, Protocol

from mirrorstore.errors import ConflictError, FilesystemError

_WINDOWS_ABSOLUTE = re.compile(r"^[a-zA-Z]:[\\/]")


@dataclass(slots=True, frozen=True)
class FsEntry:
    """A file or directory discovered by `list_entries`.

    Attributes:
        absolute_path: Absolute path without symlink resolution.
        relative_path: Path as reached from the caller-supplied input.
        name: Final path component.
        is_dir: Whether the entry itself is a directory (symlinks are not).
    """

    absolute_path: Path
    relative_path: Path
    name: str
    is_dir: bool


def create_entry(path: Path | str) -> FsEntry:
    """Describe a single path without following symlinks.

    Raises:
        FilesystemError: If the path cannot be inspected.
    """
    path = Path(path)
    try:
        info = path.lstat()
    except OSError as exc:
        raise FilesystemError("stat", path, exc) from exc
    absolute = Path(os.path.abspath(path))
    return FsEntry(
        absolute_path=absolute,
        relative_path=path,
        name=absolute.name,
        is_dir=stat.S_ISDIR(info.st_mode),
    )


def list_entries(paths: Iterable[Path | str], recursive: bool = True) -> list[FsEntry]:
    """List inputs and, when recursive, everything beneath input directories.

    Entries come out depth-first in name order; directories are listed before
    their contents.
    """
    entries: list[FsEntry] = []
    for path in paths:
        entry = create_entry(path)
        entries.append(entry)
        if recursive and entry.is_dir:
            entries.extend(_walk(entry.relative_path))
    return entries


def _walk(directory: Path) -> Iterator[FsEntry]:
    try:
        children = sorted(directory.iterdir(), key=lambda child: child.name)
    except OSError as exc:
        raise FilesystemError("list directory", directory, exc) from exc
    for child in children:
        entry = create_entry(child)
        yield entry
        if entry.is_dir:
            yield from _walk(child)


def is_exist(path: Path | str) -> bool:
    """Return True when anything, including a dangling symlink, is at path."""
    return os.path.lexists(path)


def is_file_exist(path: Path | str) -> bool:
    """Return True when path exists and is not a directory."""
    return os.path.exists(path) and not os.path.isdir(path)


def is_directory_exist(path: Path | str) -> bool:
    """Return True when path exists and is a directory."""
    return os.path.isdir(path)


def is_absolute_path(text: str) -> bool:
    """Return True for POSIX-absolute or drive-qualified Windows paths."""
    return text.startswith("/") or bool(_WINDOWS_ABSOLUTE.match(text))


def ensure_directory(path: Path) -> None:
    """Create a directory and its missing parents.

    Raises:
        ConflictError: If the path or one of its parents is a plain file.
        FilesystemError: If the directory cannot be created otherwise.
    """
    try:
        path.mkdir(parents=True, exist_ok=True)
    except (FileExistsError, NotADirectoryError) as exc:
        raise ConflictError(path, "a file blocks the directory") from exc
    except OSError as exc:
        raise FilesystemError("create directory", path, exc) from exc


class Linker(Protocol):
    """Capability that creates hardlinks."""

    def link(self, source: Path, destination: Path) -> None:
        """Make `destination` another name for `source`.

        Raises:
            FilesystemError: If the link cannot be created.
        """
        ...


class OsLinker:
    """Hardlink capability backed by `os.link`."""

    def link(self, source: Path, destination: Path) -> None:
        try:
            os.link(source, destination)
        except OSError as exc:
            raise FilesystemError("link", destination, exc) from exc


__all__ = [
    "FsEntry",
    "Linker",
    "OsLinker",
    "create_entry",
    "ensure_directory",
    "is_absolute_path",
    "is_directory_exist",
    "is_exist",
    "is_file_exist",
    "list_entries",
]
