"""Result models returned by the mirror engine."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field

from .journal import JournalEntry, RenameEntry


class ExportStage(str, Enum):
    """Barrier-separated stages of an export run."""

    PENDING = "pending"
    PARSING = "parsing"
    VALIDATING = "validating"
    PRECHECKING_CACHE = "prechecking_cache"
    LINKING_ALL = "linking_all"
    DONE = "done"


class ScanResult(BaseModel):
    """Outcome of a scan run.

    Attributes:
        cache_dir: Cache directory that received the entries.
        journal_path: Rollback journal written before linking.
        entries: Source/digest pairs in scan order.
        created: Cache paths newly linked by this run.
        skipped: Sources whose digest was already cached.
    """

    cache_dir: Path
    journal_path: Path
    entries: List[JournalEntry] = Field(default_factory=list)
    created: List[Path] = Field(default_factory=list)
    skipped: List[Path] = Field(default_factory=list)


class ExportResult(BaseModel):
    """Outcome of an export run.

    Attributes:
        cache_dir: Cache directory the links point into.
        manifest_path: Manifest that described the tree.
        target_root: Root that relative manifest paths were resolved against.
        linked: Destinations created by this run.
        unchanged: Destinations that already linked to the right entry.
    """

    cache_dir: Path
    manifest_path: Path
    target_root: Path
    linked: List[Path] = Field(default_factory=list)
    unchanged: List[Path] = Field(default_factory=list)


class RenameResult(BaseModel):
    """Outcome of a rename run.

    Attributes:
        journal_path: Rollback journal, or None when nothing needed renaming.
        renamed: Old and new names of the files that moved.
        unchanged: Files already named after their digest.
        skipped: Files whose target name was taken.
        failed: Files the operating system refused to rename.
    """

    journal_path: Optional[Path] = None
    renamed: List[RenameEntry] = Field(default_factory=list)
    unchanged: List[Path] = Field(default_factory=list)
    skipped: List[Path] = Field(default_factory=list)
    failed: List[Path] = Field(default_factory=list)


__all__ = ["ExportStage", "ScanResult", "ExportResult", "RenameResult"]
