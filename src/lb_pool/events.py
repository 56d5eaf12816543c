"""Lifecycle event recording for load balancers.

Recorders give external visibility into what the pool did.  They are strictly
best effort: :func:`emit` logs and drops any failure so a broken recorder can
never abort reconciliation.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List

LOG = logging.getLogger(__name__)

NORMAL = "Normal"
WARNING = "Warning"


@dataclass(frozen=True)
class Event:
    """A single lifecycle notification about one load balancer."""

    namespace: str
    name: str
    reason: str
    message: str
    type: str = NORMAL


class EventRecorder(ABC):
    @abstractmethod
    def record(self, event: Event) -> None:
        """Publish ``event``."""


class RecorderProducer(ABC):
    """Hand out recorders scoped to a namespace."""

    @abstractmethod
    def recorder(self, namespace: str) -> EventRecorder:
        """Return the recorder for ``namespace``."""


class LoggingRecorder(EventRecorder):
    def __init__(self, namespace: str) -> None:
        self._namespace = namespace

    def record(self, event: Event) -> None:
        LOG.info(
            "[%s] %s %s: %s (%s)",
            self._namespace,
            event.type,
            event.reason,
            event.message,
            event.name,
        )


class LoggingRecorderProducer(RecorderProducer):
    def __init__(self) -> None:
        self._recorders: Dict[str, LoggingRecorder] = {}

    def recorder(self, namespace: str) -> EventRecorder:
        return self._recorders.setdefault(namespace, LoggingRecorder(namespace))


class MemoryRecorder(EventRecorder):
    """Keep events in memory for later inspection."""

    def __init__(self) -> None:
        self.events: List[Event] = []

    def record(self, event: Event) -> None:
        self.events.append(event)


class MemoryRecorderProducer(RecorderProducer):
    """Share one :class:`MemoryRecorder` between every namespace."""

    def __init__(self) -> None:
        self.shared = MemoryRecorder()

    def recorder(self, namespace: str) -> EventRecorder:
        return self.shared


def emit(recorder: EventRecorder, event: Event) -> None:
    """Record ``event``, logging instead of raising on failure."""

    try:
        recorder.record(event)
    except Exception:  # noqa: BLE001
        LOG.exception("failed to record event %s for %s", event.reason, event.name)
