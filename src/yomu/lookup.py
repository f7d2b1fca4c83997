from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Mapping

from .content import Sense, deserialize_senses, serialize_senses
from .document import Document, build_document, document_to_payload, placeholder_document
from .logging_utils import debug_log
from .store import StoredRow

__all__ = [
    "PRIORITY_SCORE",
    "DictionaryEntry",
    "entry_to_payload",
    "hydrate_row",
]

PRIORITY_SCORE = 1000


@dataclass
class DictionaryEntry:
    headword: str
    reading: str = ""
    score: int = 0
    tags: list[str] = field(default_factory=list)
    senses: list[Sense] = field(default_factory=list)
    document: Document = field(default_factory=placeholder_document)

    @property
    def is_priority(self) -> bool:
        return self.score >= PRIORITY_SCORE


def hydrate_row(row: StoredRow) -> DictionaryEntry:
    """
    Turn a stored row back into an entry.

    Senses come straight from the payload; the document is re-derived from
    the raw definitions. A payload that cannot be decoded leaves the entry
    with no senses and the placeholder document.
    """
    entry = DictionaryEntry(headword=row.term, reading=row.reading, score=row.score)
    try:
        payload = json.loads(row.json_data)
    except (TypeError, ValueError) as exc:
        debug_log(f"malformed payload for {row.term!r}: {exc}")
        return entry
    if not isinstance(payload, Mapping):
        debug_log(f"payload for {row.term!r} is {type(payload).__name__}, expected object")
        return entry
    raw_tags = payload.get("tags")
    tags = [tag for tag in raw_tags if isinstance(tag, str)] if isinstance(raw_tags, list) else []
    entry.tags = tags
    try:
        entry.senses = deserialize_senses(payload.get("senses"))
        entry.document = build_document(payload.get("defs"), tags)
    except RecursionError:
        debug_log(f"definitions for {row.term!r} nest too deeply")
        entry.senses = []
        entry.document = placeholder_document()
    return entry


def entry_to_payload(entry: DictionaryEntry) -> dict[str, object]:
    return {
        "headword": entry.headword,
        "reading": entry.reading,
        "score": entry.score,
        "is_priority": entry.is_priority,
        "tags": list(entry.tags),
        "senses": serialize_senses(entry.senses),
        "document": document_to_payload(entry.document),
    }
