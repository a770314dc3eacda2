"""Rename-by-digest tests."""

from __future__ import annotations

import hashlib
import json
import os
from pathlib import Path

import pytest

from mirrorstore.errors import UnsupportedAlgorithmError
from mirrorstore.store import RENAME_PREFIXES, read_rename_journal, rename_by_hash


def test_prefixes_spell_the_algorithm_in_hex() -> None:
    assert RENAME_PREFIXES["md5"] == "6d6435_"
    assert RENAME_PREFIXES["sha1"] == "73686131_"
    assert RENAME_PREFIXES["sha256"] == "736861323536_"
    assert RENAME_PREFIXES["sha512"] == "736861353132_"


def test_files_are_renamed_beside_themselves_keeping_extension(tmp_path: Path) -> None:
    """Ensure each file moves to `<prefix><digest><ext>` in its own directory."""
    photo = tmp_path / "holiday.jpg"
    photo.write_bytes(b"pixels")
    note = tmp_path / "sub" / "note"
    note.parent.mkdir()
    note.write_bytes(b"text")
    journal_dir = tmp_path / "journals"
    journal_dir.mkdir()

    result = rename_by_hash(
        [photo, note], "sha256", journal_dir=journal_dir, clock=lambda: 1700000000000
    )

    renamed_photo = tmp_path / f"736861323536_{hashlib.sha256(b'pixels').hexdigest()}.jpg"
    renamed_note = tmp_path / "sub" / f"736861323536_{hashlib.sha256(b'text').hexdigest()}"
    assert renamed_photo.read_bytes() == b"pixels"
    assert renamed_note.read_bytes() == b"text"
    assert not photo.exists()
    assert [Path(entry.target) for entry in result.renamed] == [renamed_photo, renamed_note]

    assert result.journal_path == journal_dir / "rename-1700000000000.json"
    assert json.loads(result.journal_path.read_text(encoding="utf-8"))[0] == {
        "s": str(photo),
        "t": str(renamed_photo),
    }


def test_journal_precedes_renames_and_failures_do_not_stop_the_run(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Ensure every planned rename is journaled and a refused rename is skipped over."""
    first = tmp_path / "a.bin"
    first.write_bytes(b"a")
    second = tmp_path / "b.bin"
    second.write_bytes(b"b")
    seen_journal: list[bool] = []
    real_rename = os.rename

    def _rename(source: Path, target: Path) -> None:
        seen_journal.append(any(tmp_path.glob("rename-*.json")))
        if Path(source) == first:
            raise PermissionError("read-only")
        real_rename(source, target)

    monkeypatch.setattr(os, "rename", _rename)

    result = rename_by_hash([first, second], "md5", journal_dir=tmp_path)

    assert seen_journal == [True, True]
    assert result.journal_path is not None
    journal = read_rename_journal(result.journal_path)
    assert [entry.source for entry in journal] == [str(first), str(second)]
    assert result.failed == [first]
    assert [entry.source for entry in result.renamed] == [str(second)]
    assert first.exists()
    assert (tmp_path / f"6d6435_{hashlib.md5(b'b').hexdigest()}.bin").read_bytes() == b"b"


def test_existing_target_is_never_overwritten(tmp_path: Path) -> None:
    """Ensure a file already holding the target name is kept."""
    source = tmp_path / "copy.txt"
    source.write_bytes(b"dup")
    target = tmp_path / f"73686131_{hashlib.sha1(b'dup').hexdigest()}.txt"
    target.write_bytes(b"original")

    result = rename_by_hash([source], "sha1", journal_dir=tmp_path)

    assert result.skipped == [source]
    assert result.renamed == []
    assert target.read_bytes() == b"original"
    assert source.exists()


def test_already_named_files_and_directories_are_left_alone(tmp_path: Path) -> None:
    """Ensure a second run is a no-op and directories are ignored."""
    data = tmp_path / "data.bin"
    data.write_bytes(b"content")
    folder = tmp_path / "folder"
    folder.mkdir()
    (folder / "inner.txt").write_bytes(b"inner")
    first = rename_by_hash([data, folder], "sha512", journal_dir=tmp_path)
    renamed = Path(first.renamed[0].target)

    second = rename_by_hash([renamed, folder], "sha512", journal_dir=tmp_path)

    assert second.unchanged == [renamed]
    assert second.journal_path is None
    assert (folder / "inner.txt").exists()
    assert len(first.renamed) == 1


def test_unknown_preset_and_empty_inputs_are_rejected(tmp_path: Path) -> None:
    with pytest.raises(UnsupportedAlgorithmError):
        rename_by_hash([tmp_path], "md4")
    with pytest.raises(ValueError):
        rename_by_hash([], "sha256")
