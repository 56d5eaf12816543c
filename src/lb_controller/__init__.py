"""Controller side integration for the load balancer pool.

A driving controller turns observed desired state into
:class:`LoadBalancerUpsert`, :class:`LoadBalancerDelete` and
:class:`GarbageCollect` events and hands them to a :class:`PoolDispatcher`,
which applies per-name locking before calling into the pool.
"""

from .dispatcher import PoolDispatcher  # noqa: F401
from .events import GarbageCollect, LoadBalancerDelete, LoadBalancerUpsert  # noqa: F401

__all__ = [
    "GarbageCollect",
    "LoadBalancerDelete",
    "LoadBalancerUpsert",
    "PoolDispatcher",
]
