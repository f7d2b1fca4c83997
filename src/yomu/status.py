from __future__ import annotations

import threading
from typing import Callable

from .logging_utils import debug_log

__all__ = [
    "STATUS_DB_FOUND",
    "STATUS_ERROR",
    "STATUS_IMPORTING",
    "STATUS_READY",
    "STATUS_UPDATING",
    "StatusChannel",
    "processing_bank_message",
]

STATUS_UPDATING = "Updating database structure…"
STATUS_DB_FOUND = "Database found. Loading…"
STATUS_IMPORTING = "Importing Dictionary…"
STATUS_READY = "Ready"
STATUS_ERROR = "Dict Load Error"

StatusObserver = Callable[[str], None]


def processing_bank_message(index: int) -> str:
    return f"Processing bank {index}…"


class StatusChannel:
    """
    Latest-value progress channel: one publisher, any number of observers.

    Observers are called synchronously in publish order. Nothing is queued;
    a late subscriber only sees ``latest``. An observer that raises is
    skipped for that message.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._observers: list[StatusObserver] = []
        self._latest: str | None = None
        self._sequence = 0

    @property
    def latest(self) -> str | None:
        with self._lock:
            return self._latest

    @property
    def sequence(self) -> int:
        with self._lock:
            return self._sequence

    def subscribe(self, observer: StatusObserver) -> Callable[[], None]:
        with self._lock:
            self._observers.append(observer)

        def _unsubscribe() -> None:
            with self._lock:
                if observer in self._observers:
                    self._observers.remove(observer)

        return _unsubscribe

    def publish(self, message: str) -> None:
        with self._lock:
            self._latest = message
            self._sequence += 1
            observers = list(self._observers)
            for observer in observers:
                try:
                    observer(message)
                except Exception as exc:
                    debug_log(f"status observer {observer!r} failed: {exc}")
