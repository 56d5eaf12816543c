"""Dispatch controller events to the load balancer pool."""

from __future__ import annotations

import logging
from threading import Lock
from typing import Union

from lb_pool.locks import KeyedLock
from lb_pool.pool import LoadBalancerPool

from .events import GarbageCollect, LoadBalancerDelete, LoadBalancerUpsert

LOG = logging.getLogger(__name__)

PoolEvent = Union[LoadBalancerUpsert, LoadBalancerDelete, GarbageCollect]


class PoolDispatcher:
    """Route events to :class:`LoadBalancerPool` operations.

    Upserts and deletes for the same canonical name are serialized through a
    :class:`KeyedLock`; different names proceed in parallel.  GC passes are
    serialized with each other but not with per-name operations: a sync that
    races a GC pass is corrected by the next pass.

    Pool errors propagate to the caller unchanged.
    """

    def __init__(self, pool: LoadBalancerPool) -> None:
        self._pool = pool
        self._locks = KeyedLock()
        self._gc_lock = Lock()

    @property
    def pool(self) -> LoadBalancerPool:
        return self._pool

    def handle(self, event: PoolEvent) -> None:
        if isinstance(event, LoadBalancerUpsert):
            self._on_upsert(event)
        elif isinstance(event, LoadBalancerDelete):
            self._on_delete(event)
        elif isinstance(event, GarbageCollect):
            self._on_gc(event)
        else:
            raise TypeError(f"Unsupported event type: {type(event)!r}")

    def _key(self, name: str) -> str:
        return self._pool.namer.load_balancer(name)

    def _on_upsert(self, event: LoadBalancerUpsert) -> None:
        with self._locks.hold(self._key(event.runtime_info.name)):
            self._pool.sync(event.runtime_info)

    def _on_delete(self, event: LoadBalancerDelete) -> None:
        with self._locks.hold(self._key(event.name)):
            self._pool.delete(event.name)

    def _on_gc(self, event: GarbageCollect) -> None:
        with self._gc_lock:
            self._pool.gc(event.names)
