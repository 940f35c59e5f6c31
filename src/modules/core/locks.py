"""In-process keyed mutexes for aggregate-level serialization.

``select_for_update`` only protects rows on databases that implement it
(SQLite silently ignores it) and only once the transaction has started.
``aggregate_locks`` closes that gap inside a single worker process: a
caller holds ``order:<id>`` / ``product:<id>`` keys for the whole
load-validate-write-commit cycle.

Keys are always acquired in sorted order, so two callers asking for
overlapping key sets cannot deadlock.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Dict, Iterator


class _Entry:
    __slots__ = ("lock", "holders")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.holders = 0


class KeyedLock:
    """A registry of mutexes created on demand and dropped when unused."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._entries: Dict[str, _Entry] = {}

    @contextmanager
    def hold(self, *keys: str) -> Iterator[None]:
        held: list[_Entry] = []
        checked_out: list[str] = []
        try:
            for key in sorted(set(keys)):
                entry = self._checkout(key)
                checked_out.append(key)
                entry.lock.acquire()
                held.append(entry)
            yield
        finally:
            for entry in reversed(held):
                entry.lock.release()
            for key in checked_out:
                self._checkin(key)

    def _checkout(self, key: str) -> _Entry:
        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                entry = self._entries[key] = _Entry()
            entry.holders += 1
            return entry

    def _checkin(self, key: str) -> None:
        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                return
            entry.holders -= 1
            if entry.holders <= 0:
                del self._entries[key]

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)


def order_key(order_id: object) -> str:
    return f"order:{order_id}"


def product_key(product_id: object) -> str:
    return f"product:{product_id}"


aggregate_locks = KeyedLock()
