"""Load balancer pool: lifecycle of every tracked load balancer.

The pool is a passive library driven by an external control loop.  The
controller calls :meth:`LoadBalancerPool.sync` for each observed desired
state and periodically :meth:`LoadBalancerPool.gc` with the full set of names
that should exist.  The pool is the only owner of its
:class:`~lb_pool.store.SnapshotStore` and of the :class:`~lb_pool.l7.L7`
entities inside it.

Operations on the same name are not serialized here; callers that may race
on one name wrap calls in :class:`~lb_pool.locks.KeyedLock`.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from .certs import CertificateLister, StaticCertificateLister
from .cloud import DirectoryCloud, LoadBalancers
from .config import PoolConfig, RuntimeInfo
from .errors import ConvergenceError, GarbageCollectionError, NotFoundError, PoolError
from .events import WARNING, LoggingRecorderProducer, RecorderProducer
from .l7 import L7
from .namer import Namer
from .store import SnapshotStore

LOG = logging.getLogger(__name__)


class LoadBalancerPool:
    """Create, update, delete and garbage collect load balancers.

    Parameters
    ----------
    cloud:
        Collaborator used by every entity to reach the cloud.
    namer:
        Canonicalizes user-facing names into store keys.
    mcrt:
        Optional managed certificate lister handed to every entity.
    recorder_producer:
        Source of per-namespace event recorders.
    continue_on_gc_error:
        When ``False`` (the default) a GC pass stops at the first failed
        delete.  When ``True`` it attempts every orphan and raises a
        :class:`GarbageCollectionError` listing all failures.
    """

    def __init__(
        self,
        cloud: LoadBalancers,
        namer: Namer,
        mcrt: Optional[CertificateLister] = None,
        recorder_producer: Optional[RecorderProducer] = None,
        *,
        continue_on_gc_error: bool = False,
    ) -> None:
        self._cloud = cloud
        self._namer = namer
        self._mcrt = mcrt
        self._recorder_producer = recorder_producer or LoggingRecorderProducer()
        self._continue_on_gc_error = continue_on_gc_error
        self._store: SnapshotStore[L7] = SnapshotStore()

    @property
    def namer(self) -> Namer:
        return self._namer

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def get(self, name: str) -> L7:
        """Return the load balancer tracked under ``name``."""

        name = self._namer.load_balancer(name)
        lb = self._store.get(name)
        if lb is None:
            raise NotFoundError(name)
        return lb

    def list_names(self) -> List[str]:
        return sorted(self._store.snapshot())

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def sync(self, ri: RuntimeInfo) -> None:
        """Converge the load balancer described by ``ri``.

        Convergence always runs, even when ``ri`` equals the stored state,
        because the cloud may have drifted since the last sync.
        """

        name = self._namer.load_balancer(ri.name)

        lb = self._store.get(name)
        created = lb is None
        if lb is None:
            LOG.debug("Creating l7 %s", name)
            lb = L7(
                name=name,
                runtime_info=ri,
                cloud=self._cloud,
                namer=self._namer,
                recorder=self._recorder_producer.recorder(ri.namespace),
                mcrt=self._mcrt,
            )
        elif lb.runtime_info != ri:
            LOG.debug(
                "LB %s runtime info changed, old %r new %r", name, lb.runtime_info, ri
            )
            lb.runtime_info = ri
            lb.record_event("Changed", f"desired state of {name} changed")

        # Step 1: register.  The entity must be tracked before any cloud
        # resource is created so a partial failure below (e.g. URL map
        # created, forwarding rule out of quota) is still cleaned up by a
        # later delete or GC.
        self._store.add(name, lb)
        if created:
            lb.record_event("Created", f"tracking loadbalancer {name}")

        # Step 2: converge.
        try:
            lb.converge()
        except ConvergenceError as exc:
            lb.record_event("SyncFailed", str(exc), type=WARNING)
            raise

    def delete(self, name: str) -> None:
        """Clean up and forget the load balancer tracked under ``name``.

        A failed cleanup leaves the entity tracked so the next GC retries it.
        """

        name = self._namer.load_balancer(name)
        lb = self.get(name)
        LOG.debug("Deleting lb %s", name)
        lb.cleanup()
        self._store.delete(name)
        lb.record_event("Deleted", f"deleted loadbalancer {name}")

    def gc(self, names: Iterable[str]) -> None:
        """Delete every tracked load balancer whose name is not in ``names``."""

        names = list(names)
        LOG.debug("GC(%s)", names)
        known = {self._namer.load_balancer(n) for n in names}
        pool = self._store.snapshot()

        errors: List[PoolError] = []
        for name in pool:
            if name in known:
                continue
            LOG.info("GCing loadbalancer %s", name)
            try:
                self.delete(name)
            except NotFoundError:
                # Deleted concurrently since the snapshot was taken.
                continue
            except PoolError as exc:
                if not self._continue_on_gc_error:
                    raise
                LOG.warning("Failed to GC loadbalancer %s: %s", name, exc)
                errors.append(exc)

        if errors:
            raise GarbageCollectionError(errors)

    def shutdown(self) -> None:
        """Delete every tracked load balancer."""

        self.gc([])
        LOG.info("Loadbalancer pool shutdown.")


def build_pool(
    config: PoolConfig,
    *,
    cloud: Optional[LoadBalancers] = None,
    recorder_producer: Optional[RecorderProducer] = None,
) -> LoadBalancerPool:
    """Assemble a :class:`LoadBalancerPool` from ``config``."""

    return LoadBalancerPool(
        cloud or DirectoryCloud(config.output_dir),
        Namer(config.cluster_uid),
        mcrt=StaticCertificateLister(config.managed_certificates),
        recorder_producer=recorder_producer,
        continue_on_gc_error=config.continue_on_gc_error,
    )
