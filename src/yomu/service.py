from __future__ import annotations

import asyncio
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path

from .archive import iter_term_banks
from .config import DEFAULT_DB_NAME, DEFAULT_LOOKUP_LIMIT, MAX_LOOKUP_LIMIT, DictionaryConfig
from .content import parse_senses
from .logging_utils import debug_log
from .lookup import DictionaryEntry, hydrate_row
from .nlp import Token
from .records import RawEntry, decode_term_bank
from .status import (
    STATUS_DB_FOUND,
    STATUS_ERROR,
    STATUS_IMPORTING,
    STATUS_READY,
    STATUS_UPDATING,
    StatusChannel,
    processing_bank_message,
)
from .store import STORE_READY, STORE_STALE, DictionaryStore, StoreError, StoreWriter, build_payload

__all__ = ["DictionaryService", "IngestReport"]


@dataclass(slots=True)
class IngestReport:
    rebuilt: bool
    banks: int = 0
    records: int = 0
    dropped: int = 0


class DictionaryService:
    """
    Owns the dictionary store: builds it from an archive and answers lookups.

    ``initialize`` reuses an up-to-date store or rebuilds it inside one
    transaction. Lookups return nothing until a build or reuse succeeded.
    """

    def __init__(
        self,
        db_path: str | Path = DEFAULT_DB_NAME,
        *,
        status: StatusChannel | None = None,
        lookup_limit: int = DEFAULT_LOOKUP_LIMIT,
    ) -> None:
        self.store = DictionaryStore(db_path)
        self.status = status if status is not None else StatusChannel()
        self.lookup_limit = max(1, min(int(lookup_limit), MAX_LOOKUP_LIMIT))
        self._loaded = threading.Event()
        self.last_error: str | None = None
        self._ingest_lock = threading.Lock()
        self._executor_lock = threading.Lock()
        self._executor: ThreadPoolExecutor | None = None

    @classmethod
    def from_config(
        cls,
        config: DictionaryConfig,
        *,
        status: StatusChannel | None = None,
    ) -> "DictionaryService":
        return cls(config.db_path, status=status, lookup_limit=config.lookup_limit)

    @property
    def is_loaded(self) -> bool:
        return self._loaded.is_set()

    # ---------- ingest ----------

    def initialize(self, archive_path: str | Path) -> IngestReport:
        with self._ingest_lock:
            try:
                report = self._initialize(Path(archive_path))
            except Exception as exc:
                self.last_error = str(exc) or type(exc).__name__
                self.status.publish(STATUS_ERROR)
                raise
            self.last_error = None
            self._loaded.set()
            self.status.publish(STATUS_READY)
            return report

    def _initialize(self, archive_path: Path) -> IngestReport:
        state = self.store.check_state()
        if state == STORE_READY:
            self.status.publish(STATUS_DB_FOUND)
            return IngestReport(rebuilt=False)
        if state == STORE_STALE:
            self.status.publish(STATUS_UPDATING)
            self.store.remove()

        self.status.publish(STATUS_IMPORTING)
        banks = iter_term_banks(archive_path)
        report = IngestReport(rebuilt=True)
        with self.store.writer() as writer:
            for index, (name, data) in enumerate(banks, start=1):
                result = decode_term_bank(data, name=name)
                report.dropped += result.dropped
                for entry in result.entries:
                    if self._write_entry(writer, entry):
                        report.records += 1
                    else:
                        report.dropped += 1
                report.banks = index
                self.status.publish(processing_bank_message(index))
        debug_log(
            f"imported {report.records} record(s) from {report.banks} bank(s), "
            f"dropped {report.dropped}"
        )
        return report

    @staticmethod
    def _write_entry(writer: StoreWriter, entry: RawEntry) -> bool:
        try:
            senses = parse_senses(entry.definitions, entry.tags)
            payload = build_payload(entry.tags, entry.definitions, senses)
        except (RecursionError, ValueError) as exc:
            debug_log(f"skipping {entry.term!r}: {exc}")
            return False
        writer.add(entry.term, entry.reading, entry.score, payload)
        return True

    def _get_executor(self) -> ThreadPoolExecutor:
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="yomu-ingest")
            return self._executor

    def start_background(self, archive_path: str | Path) -> "Future[IngestReport]":
        return self._get_executor().submit(self.initialize, archive_path)

    async def initialize_async(self, archive_path: str | Path) -> IngestReport:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._get_executor(), self.initialize, archive_path)

    def shutdown(self) -> None:
        with self._executor_lock:
            executor = self._executor
            self._executor = None
        if executor is not None:
            executor.shutdown(wait=True)

    # ---------- lookup ----------

    def lookup(self, key: str) -> list[DictionaryEntry]:
        if not self.is_loaded or not isinstance(key, str):
            return []
        key = key.strip()
        if not key:
            return []
        try:
            rows = self.store.query(key, self.lookup_limit)
        except StoreError as exc:
            debug_log(f"lookup {key!r} failed: {exc}")
            return []
        return [hydrate_row(row) for row in rows]

    def lookup_token(self, token: Token) -> list[DictionaryEntry]:
        """Look up the dictionary form first, then fall back to the surface form."""
        if not token.is_word:
            return []
        entries = self.lookup(token.original_form)
        if not entries and token.surface != token.original_form:
            entries = self.lookup(token.surface)
        return entries
