"""Thread-safe keyed store for the load balancers tracked by the pool."""

from __future__ import annotations

from threading import Lock
from typing import Dict, Generic, Optional, TypeVar

T = TypeVar("T")


class SnapshotStore(Generic[T]):
    """Map canonical names to tracked entities.

    Every operation holds an internal lock, so callers may use the store from
    several worker threads. :meth:`snapshot` returns a copy; iterating it is
    unaffected by later :meth:`add` or :meth:`delete` calls.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._entries: Dict[str, T] = {}

    def add(self, name: str, entity: T) -> None:
        with self._lock:
            self._entries[name] = entity

    def get(self, name: str) -> Optional[T]:
        with self._lock:
            return self._entries.get(name)

    def delete(self, name: str) -> None:
        with self._lock:
            self._entries.pop(name, None)

    def snapshot(self) -> Dict[str, T]:
        with self._lock:
            return dict(self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._entries
