"""Content-addressed mirror store."""

from .engine import MirrorEngine
from .filesystem import FsEntry, Linker, OsLinker, list_entries
from .journal import (
    JournalEntry,
    RenameEntry,
    read_journal,
    read_rename_journal,
    write_journal,
    write_rename_journal,
)
from .models import ExportResult, ExportStage, RenameResult, ScanResult
from .rename import RENAME_PREFIXES, rename_by_hash

__all__ = [
    "MirrorEngine",
    "FsEntry",
    "Linker",
    "OsLinker",
    "list_entries",
    "JournalEntry",
    "RenameEntry",
    "read_journal",
    "read_rename_journal",
    "write_journal",
    "write_rename_journal",
    "ExportResult",
    "ExportStage",
    "RenameResult",
    "ScanResult",
    "RENAME_PREFIXES",
    "rename_by_hash",
]
