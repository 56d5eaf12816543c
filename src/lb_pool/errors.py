"""Error kinds raised by the load balancer pool and its cloud collaborator."""

from __future__ import annotations

from typing import Sequence


class CloudError(Exception):
    """Base class for failures reported by a cloud collaborator."""


class CloudNotFoundError(CloudError):
    """The requested cloud resource does not exist."""


class CloudConflictError(CloudError):
    """A cloud resource with the same name already exists."""


class PoolError(Exception):
    """Base class for load balancer pool failures."""

    def __init__(self, name: str, message: str) -> None:
        super().__init__(message)
        self.name = name


class NotFoundError(PoolError):
    """Raised for lookups and deletes of a name the pool does not track."""

    def __init__(self, name: str) -> None:
        super().__init__(name, f"loadbalancer {name} not in pool")


class ConvergenceError(PoolError):
    """Applying the desired state to the cloud failed, fully or partially.

    The entity stays tracked so a later sync can retry.
    """


class CleanupError(PoolError):
    """Tearing down the cloud resources of a load balancer failed."""


class GarbageCollectionError(PoolError):
    """Aggregate of the delete failures of a GC pass that kept going."""

    def __init__(self, errors: Sequence[PoolError]) -> None:
        names = ", ".join(err.name for err in errors)
        super().__init__(names, f"failed to garbage collect loadbalancers: {names}")
        self.errors = list(errors)
