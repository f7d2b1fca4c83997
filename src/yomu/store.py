from __future__ import annotations

import json
import sqlite3
from contextlib import closing, contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator

from .content import Sense, serialize_senses
from .logging_utils import debug_log

__all__ = [
    "STORE_MISSING",
    "STORE_READY",
    "STORE_STALE",
    "DictionaryStore",
    "StoreCorruptError",
    "StoreError",
    "StoreIOError",
    "StoreWriter",
    "StoredRow",
    "build_payload",
]

STORE_MISSING = "missing"
STORE_STALE = "stale"
STORE_READY = "ready"

_SCHEMA = """
CREATE TABLE IF NOT EXISTS entries (
    term TEXT,
    reading TEXT,
    score INTEGER,
    json_data TEXT
);
CREATE INDEX IF NOT EXISTS idx_term ON entries(term);
CREATE INDEX IF NOT EXISTS idx_reading ON entries(reading);
CREATE INDEX IF NOT EXISTS idx_score ON entries(score);
"""

_INSERT = "INSERT INTO entries (term, reading, score, json_data) VALUES (?, ?, ?, ?)"
_LOOKUP = (
    "SELECT term, reading, score, json_data FROM entries "
    "WHERE term = ? OR reading = ? ORDER BY score DESC, rowid ASC LIMIT ?"
)


class StoreError(RuntimeError):
    """Base class for dictionary store failures."""


class StoreIOError(StoreError):
    """Raised when the store cannot be written or read."""


class StoreCorruptError(StoreError):
    """Raised when an outdated store cannot be removed for rebuilding."""


@dataclass(slots=True)
class StoredRow:
    term: str
    reading: str
    score: int
    json_data: str


def build_payload(tags: Iterable[str], definitions: object, senses: Iterable[Sense]) -> str:
    """Serialize the ``json_data`` column: always a JSON object, never an array."""
    payload = {
        "tags": list(tags),
        "defs": definitions,
        "senses": serialize_senses(senses),
    }
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":"))


class StoreWriter:
    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection
        self.rows = 0

    def add(self, term: str, reading: str, score: int, json_data: str) -> None:
        self._connection.execute(_INSERT, (term, reading, score, json_data))
        self.rows += 1


class DictionaryStore:
    """
    SQLite file holding one row per dictionary entry.

    Every operation opens its own connection and closes it before
    returning, so concurrent lookups from different threads never share
    one.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.is_file()

    def _connect_read_only(self) -> sqlite3.Connection:
        uri = f"{self.path.resolve().as_uri()}?mode=ro"
        return sqlite3.connect(uri, uri=True, check_same_thread=False)

    def check_state(self) -> str:
        """
        Classify the file on disk as missing, stale or ready.

        A store is stale when its first payload is array-shaped (the old
        format), when it holds no rows (an interrupted build), or when it
        cannot be read at all.
        """
        if not self.exists():
            return STORE_MISSING
        try:
            with closing(self._connect_read_only()) as conn:
                row = conn.execute("SELECT json_data FROM entries LIMIT 1").fetchone()
        except sqlite3.Error as exc:
            debug_log(f"store {self.path} unreadable, treating as stale: {exc}")
            return STORE_STALE
        if row is None:
            return STORE_STALE
        value = row[0]
        if isinstance(value, bytes):
            value = value.decode("utf-8", errors="replace")
        if not isinstance(value, str) or value.lstrip().startswith("["):
            return STORE_STALE
        return STORE_READY

    def remove(self) -> None:
        for candidate in (self.path, self.path.with_name(self.path.name + "-journal")):
            try:
                candidate.unlink(missing_ok=True)
            except OSError as exc:
                raise StoreCorruptError(f"Cannot remove store {candidate}: {exc}") from exc

    @contextmanager
    def writer(self) -> Iterator[StoreWriter]:
        """
        Create the schema and yield a writer inside a single transaction.

        The transaction commits when the block exits normally. On any
        exception it rolls back and the file is deleted, so the next start
        sees a missing store and rebuilds.
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            connection = sqlite3.connect(str(self.path), isolation_level=None)
        except (OSError, sqlite3.Error) as exc:
            raise StoreIOError(f"Cannot open store {self.path}: {exc}") from exc
        committed = False
        try:
            try:
                connection.execute("BEGIN")
                for statement in _SCHEMA.split(";"):
                    if statement.strip():
                        connection.execute(statement)
            except sqlite3.Error as exc:
                raise StoreIOError(f"Cannot create schema in {self.path}: {exc}") from exc
            writer = StoreWriter(connection)
            try:
                yield writer
                connection.execute("COMMIT")
            except sqlite3.Error as exc:
                raise StoreIOError(f"Writing to store {self.path} failed: {exc}") from exc
            committed = True
        finally:
            if not committed:
                try:
                    connection.execute("ROLLBACK")
                except sqlite3.Error as exc:
                    debug_log(f"rollback of {self.path} failed: {exc}")
            connection.close()
            if not committed:
                try:
                    self.remove()
                except StoreCorruptError as exc:
                    # Keep the ingest error; the stale file is caught on the next start.
                    debug_log(f"cleanup after failed write: {exc}")

    def query(self, key: str, limit: int = 10) -> list[StoredRow]:
        try:
            with closing(self._connect_read_only()) as conn:
                cursor = conn.execute(_LOOKUP, (key, key, limit))
                raw_rows = cursor.fetchall()
        except sqlite3.Error as exc:
            raise StoreIOError(f"Lookup in {self.path} failed: {exc}") from exc
        rows: list[StoredRow] = []
        for term, reading, score, json_data in raw_rows:
            rows.append(
                StoredRow(
                    term=term if isinstance(term, str) else "",
                    reading=reading if isinstance(reading, str) else "",
                    score=score if isinstance(score, int) else 0,
                    json_data=json_data if isinstance(json_data, str) else "",
                )
            )
        return rows

    def count(self) -> int:
        try:
            with closing(self._connect_read_only()) as conn:
                (total,) = conn.execute("SELECT COUNT(*) FROM entries").fetchone()
        except sqlite3.Error as exc:
            raise StoreIOError(f"Cannot count rows in {self.path}: {exc}") from exc
        return int(total)

    def iter_payloads(self) -> Iterator[str]:
        try:
            with closing(self._connect_read_only()) as conn:
                for (json_data,) in conn.execute("SELECT json_data FROM entries ORDER BY rowid"):
                    yield json_data
        except sqlite3.Error as exc:
            raise StoreIOError(f"Cannot read payloads from {self.path}: {exc}") from exc
