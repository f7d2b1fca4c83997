from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Iterable

from .archive import ArchiveCorruptError
from .logging_utils import debug_log

__all__ = [
    "MIN_RECORD_FIELDS",
    "RawEntry",
    "TermBankResult",
    "decode_record",
    "decode_term_bank",
    "parse_score",
    "split_tags",
]

# [term, reading, tags, rules, score, definitions, sequence, term_tags]
MIN_RECORD_FIELDS = 6


@dataclass
class RawEntry:
    """
    One term bank record after positional decoding.

    ``definitions`` is the untouched JSON value from field 5; it is stored
    verbatim and parsed again on every lookup.
    """

    term: str
    reading: str
    tags: list[str]
    score: int
    definitions: Any


@dataclass
class TermBankResult:
    entries: list[RawEntry] = field(default_factory=list)
    dropped: int = 0


def parse_score(value: object) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            return 0
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return 0
    return 0


def split_tags(value: object) -> list[str]:
    """Split a tag string on ASCII spaces, keeping order and dropping empties."""
    if isinstance(value, str):
        return [part for part in value.split(" ") if part]
    if isinstance(value, list):
        tags: list[str] = []
        for item in value:
            if isinstance(item, str):
                tags.extend(part for part in item.split(" ") if part)
        return tags
    return []


def decode_record(value: object) -> RawEntry | None:
    if not isinstance(value, list) or len(value) < MIN_RECORD_FIELDS:
        return None
    term = value[0]
    if not isinstance(term, str) or not term:
        return None
    reading = value[1]
    if not isinstance(reading, str):
        reading = ""
    return RawEntry(
        term=term,
        reading=reading,
        tags=split_tags(value[2]),
        score=parse_score(value[4]),
        definitions=value[5],
    )


def _decode_records(records: Iterable[object]) -> TermBankResult:
    result = TermBankResult()
    for record in records:
        entry = decode_record(record)
        if entry is None:
            result.dropped += 1
            continue
        result.entries.append(entry)
    return result


def decode_term_bank(data: bytes | str, *, name: str = "term bank") -> TermBankResult:
    """
    Decode one shard into typed entries.

    Invalid JSON means the archive itself is damaged and raises
    :class:`ArchiveCorruptError`. A shard whose top level is not an array is
    skipped as a whole; individual malformed records are dropped and
    counted.
    """
    if isinstance(data, bytes):
        try:
            text = data.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise ArchiveCorruptError(f"{name} is not UTF-8: {exc}") from exc
    else:
        text = data
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ArchiveCorruptError(f"{name} is not valid JSON: {exc}") from exc
    if not isinstance(payload, list):
        debug_log(f"{name}: top level is {type(payload).__name__}, expected array; skipped")
        return TermBankResult()
    result = _decode_records(payload)
    if result.dropped:
        debug_log(f"{name}: dropped {result.dropped} malformed record(s)")
    return result
