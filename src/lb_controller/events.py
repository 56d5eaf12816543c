"""Event primitives consumed by the pool dispatcher."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from lb_pool.config import RuntimeInfo


@dataclass(frozen=True)
class LoadBalancerUpsert:
    """Represents the desired state for one load balancer.

    The controller publishes the full :class:`RuntimeInfo` every time, never a
    delta, so the pool can compare it with what it last applied.
    """

    runtime_info: RuntimeInfo


@dataclass(frozen=True)
class LoadBalancerDelete:
    """Signals that a load balancer should be removed entirely."""

    name: str


@dataclass(frozen=True)
class GarbageCollect:
    """Carries the complete set of load balancer names that should exist."""

    names: Sequence[str]
