"""File-based desired state watcher."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from threading import Event, Thread
from typing import Dict, List

from lb_controller import GarbageCollect, LoadBalancerUpsert, PoolDispatcher
from lb_pool.config import RuntimeInfo
from lb_pool.errors import PoolError

from .utils import runtime_info_from_dict

LOG = logging.getLogger(__name__)


def _extract_state(payload: dict) -> Dict[str, RuntimeInfo]:
    entries = payload.get("loadbalancers")
    if entries is None:
        raise ValueError("desired state file missing 'loadbalancers' key")
    if not isinstance(entries, list):
        raise ValueError("'loadbalancers' must be a list")

    state: Dict[str, RuntimeInfo] = {}
    for entry in entries:
        ri = runtime_info_from_dict(entry)
        state[ri.name] = ri
    return state


class FileDesiredStateWatcher(Thread):
    """Poll a JSON desired state file and drive the pool from it.

    Every poll dispatches an upsert for each load balancer in the file, even
    unchanged ones, so drift in the cloud is corrected, and finishes with a
    garbage collection pass over the full set of names.
    """

    def __init__(
        self,
        dispatcher: PoolDispatcher,
        path: Path,
        interval: float,
        stop_event: Event,
    ) -> None:
        super().__init__(daemon=True)
        self._dispatcher = dispatcher
        self._path = Path(path)
        self._interval = interval
        self._stop_event = stop_event

    def run(self) -> None:
        while not self._stop_event.is_set():
            try:
                self.poll()
            except Exception:  # pragma: no cover - logged below
                LOG.exception("file watcher encountered an error")
            self._stop_event.wait(self._interval)

    def poll(self) -> List[PoolError]:
        """Apply the desired state file once and return the pool errors hit."""

        if not self._path.exists():
            LOG.debug("desired state file %s does not exist yet", self._path)
            return []

        try:
            payload = json.loads(self._path.read_text())
        except json.JSONDecodeError as exc:
            LOG.warning("failed to parse desired state file %s: %s", self._path, exc)
            return []

        try:
            desired = _extract_state(payload)
        except (AttributeError, TypeError, ValueError) as exc:
            LOG.warning("invalid desired state file %s: %s", self._path, exc)
            return []

        errors: List[PoolError] = []
        for name, ri in desired.items():
            try:
                self._dispatcher.handle(LoadBalancerUpsert(ri))
            except PoolError as exc:
                LOG.warning("failed to sync loadbalancer %s: %s", name, exc)
                errors.append(exc)

        try:
            self._dispatcher.handle(GarbageCollect(sorted(desired)))
        except PoolError as exc:
            LOG.warning("garbage collection failed: %s", exc)
            errors.append(exc)

        return errors
