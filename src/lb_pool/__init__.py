"""L7 load balancer pool reconciler.

This package tracks which logical load balancers exist, converges each of them
toward its desired :class:`~lb_pool.config.RuntimeInfo` and garbage collects
the ones that are no longer desired.  It focuses on:

* keeping exactly one in-memory :class:`~lb_pool.l7.L7` per canonical name in
  a thread-safe :class:`~lb_pool.store.SnapshotStore`;
* registering a load balancer *before* converging it, so resources created by
  a partially failed sync are never lost track of;
* set based garbage collection against the full authoritative list of names.

The cloud, the namer, the managed certificate lister and the event recorder
are collaborators injected into :class:`~lb_pool.pool.LoadBalancerPool`.
"""

from .config import PoolConfig, RuntimeInfo, TLSCertificate, UrlRule, Version  # noqa: F401
from .errors import (  # noqa: F401
    CleanupError,
    ConvergenceError,
    GarbageCollectionError,
    NotFoundError,
    PoolError,
)
from .pool import LoadBalancerPool, build_pool  # noqa: F401

__all__ = [
    "CleanupError",
    "ConvergenceError",
    "GarbageCollectionError",
    "LoadBalancerPool",
    "NotFoundError",
    "PoolConfig",
    "PoolError",
    "RuntimeInfo",
    "TLSCertificate",
    "UrlRule",
    "Version",
    "build_pool",
]
