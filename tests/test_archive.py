from __future__ import annotations

import json
import zipfile
from pathlib import Path

import pytest

from yomu.archive import (
    ArchiveCorruptError,
    ArchiveMissingError,
    is_term_bank_name,
    iter_term_banks,
)


def _write_zip(path: Path, members: dict[str, str]) -> Path:
    with zipfile.ZipFile(path, "w") as zf:
        for name, text in members.items():
            zf.writestr(name, text)
    return path


def test_only_term_banks_are_yielded(tmp_path: Path) -> None:
    archive = _write_zip(
        tmp_path / "dict.zip",
        {
            "index.json": json.dumps({"title": "Test"}),
            "tag_bank_1.json": "[]",
            "term_bank_1.json": "[]",
            "term_bank_2.json": '[["a","b","",0,0,[]]]',
            "term_bank_3.txt": "ignored",
            "images/term_bank_4.png": "ignored",
        },
    )
    names = sorted(name for name, _ in iter_term_banks(archive))
    assert names == ["term_bank_1.json", "term_bank_2.json"]


def test_shard_bytes_are_returned_verbatim(tmp_path: Path) -> None:
    body = '[["食べる","たべる","v1",0,1,["to eat"]]]'
    archive = _write_zip(tmp_path / "dict.zip", {"term_bank_1.json": body})
    shards = list(iter_term_banks(archive))
    assert shards == [("term_bank_1.json", body.encode("utf-8"))]


def test_nested_member_matches_on_file_name(tmp_path: Path) -> None:
    archive = _write_zip(tmp_path / "dict.zip", {"jitendex/term_bank_9.json": "[]"})
    assert [name for name, _ in iter_term_banks(archive)] == ["jitendex/term_bank_9.json"]


def test_missing_archive_raises_immediately(tmp_path: Path) -> None:
    with pytest.raises(ArchiveMissingError):
        iter_term_banks(tmp_path / "absent.zip")


def test_non_zip_archive_is_corrupt(tmp_path: Path) -> None:
    bogus = tmp_path / "dict.zip"
    bogus.write_bytes(b"definitely not a zip")
    with pytest.raises(ArchiveCorruptError):
        list(iter_term_banks(bogus))


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("term_bank_1.json", True),
        ("term_bank.json", True),
        ("dir/term_bank_12.json", True),
        ("term_meta_bank_1.json", False),
        ("kanji_bank_1.json", False),
        ("term_bank_1.json.bak", False),
    ],
)
def test_is_term_bank_name(name: str, expected: bool) -> None:
    assert is_term_bank_name(name) is expected
