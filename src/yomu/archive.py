from __future__ import annotations

import zipfile
import zlib
from pathlib import Path, PurePosixPath
from typing import Iterator

from .logging_utils import debug_log

__all__ = [
    "ArchiveCorruptError",
    "ArchiveMissingError",
    "TERM_BANK_PREFIX",
    "TERM_BANK_SUFFIX",
    "is_term_bank_name",
    "iter_term_banks",
]

TERM_BANK_PREFIX = "term_bank"
TERM_BANK_SUFFIX = ".json"


class ArchiveMissingError(FileNotFoundError):
    """Raised when the dictionary archive does not exist or cannot be opened."""


class ArchiveCorruptError(RuntimeError):
    """Raised when the dictionary archive is not a readable zip file."""


def is_term_bank_name(name: str) -> bool:
    base = PurePosixPath(name.replace("\\", "/")).name
    return base.startswith(TERM_BANK_PREFIX) and base.endswith(TERM_BANK_SUFFIX)


def iter_term_banks(archive_path: str | Path) -> Iterator[tuple[str, bytes]]:
    """
    Yield ``(name, raw_bytes)`` for every term bank shard inside a zip archive.

    Only members whose file name starts with ``term_bank`` and ends with
    ``.json`` are yielded; everything else (index.json, tag banks, images)
    is skipped. Shards come out in archive order, which callers must not
    rely on.

    The existence check happens immediately; zip-level problems surface on
    the first iteration.
    """
    path = Path(archive_path)
    if not path.is_file():
        raise ArchiveMissingError(f"Dictionary archive not found: {path}")
    return _iter_members(path)


def _iter_members(path: Path) -> Iterator[tuple[str, bytes]]:
    try:
        zf = zipfile.ZipFile(path, "r")
    except FileNotFoundError as exc:
        raise ArchiveMissingError(f"Dictionary archive not found: {path}") from exc
    except (zipfile.BadZipFile, OSError) as exc:
        raise ArchiveCorruptError(f"Cannot open dictionary archive {path}: {exc}") from exc
    with zf:
        for info in zf.infolist():
            if info.is_dir() or not is_term_bank_name(info.filename):
                continue
            try:
                with zf.open(info, "r") as handle:
                    data = handle.read()
            except (zipfile.BadZipFile, zlib.error, OSError, EOFError) as exc:
                raise ArchiveCorruptError(
                    f"Cannot read {info.filename} from {path}: {exc}"
                ) from exc
            debug_log(f"read shard {info.filename} ({len(data)} bytes)")
            yield info.filename, data
