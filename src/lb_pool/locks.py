"""Per-name mutual exclusion for callers driving the pool from many threads."""

from __future__ import annotations

from contextlib import contextmanager
from threading import Lock
from typing import Iterator
from weakref import WeakValueDictionary


class _NamedLock:
    # ``threading.Lock`` objects cannot be weakly referenced; wrap them.
    __slots__ = ("lock", "__weakref__")

    def __init__(self) -> None:
        self.lock = Lock()


class KeyedLock:
    """A cache of locks keyed by name.

    Entries disappear once no caller holds or waits on them, so the cache does
    not grow with the number of names ever seen.
    """

    def __init__(self) -> None:
        self._guard = Lock()
        self._locks: "WeakValueDictionary[str, _NamedLock]" = WeakValueDictionary()

    def _get(self, key: str) -> _NamedLock:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = _NamedLock()
                self._locks[key] = entry
            return entry

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        entry = self._get(key)
        with entry.lock:
            yield

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
