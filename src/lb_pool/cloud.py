"""Cloud collaborator contract and a directory backed implementation.

A logical load balancer does not exist in the cloud by itself; it is a
collection of resources (URL map, proxies, forwarding rules, certificates)
that :class:`~lb_pool.l7.L7` creates through the :class:`LoadBalancers`
interface.  Every resource is addressed by kind and name and carries the API
track it is managed through.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from threading import Lock
from typing import Any, Dict, List

from .config import Version
from .errors import CloudConflictError, CloudError, CloudNotFoundError

LOG = logging.getLogger(__name__)


class ResourceKind(Enum):
    URL_MAP = "urlMaps"
    TARGET_HTTP_PROXY = "targetHttpProxies"
    TARGET_HTTPS_PROXY = "targetHttpsProxies"
    FORWARDING_RULE = "forwardingRules"
    SSL_CERTIFICATE = "sslCertificates"


@dataclass(frozen=True)
class CloudResource:
    """Version agnostic representation of one cloud object.

    ``version`` is bookkeeping only: it selects the API track used for the
    call and is not part of the object stored remotely.
    """

    kind: ResourceKind
    name: str
    spec: Dict[str, Any] = field(default_factory=dict)
    version: Version = Version.GA


class LoadBalancers(ABC):
    """Create, update, get, delete and list cloud resources by name."""

    @abstractmethod
    def create(self, resource: CloudResource) -> None:
        """Insert ``resource``; raise :class:`CloudConflictError` if it exists."""

    @abstractmethod
    def update(self, resource: CloudResource) -> None:
        """Replace ``resource``; raise :class:`CloudNotFoundError` if missing."""

    @abstractmethod
    def get(self, kind: ResourceKind, name: str, version: Version = Version.GA) -> CloudResource:
        """Return the resource; raise :class:`CloudNotFoundError` if missing."""

    @abstractmethod
    def delete(self, kind: ResourceKind, name: str, version: Version = Version.GA) -> None:
        """Delete the resource; raise :class:`CloudNotFoundError` if missing."""

    @abstractmethod
    def list(self, kind: ResourceKind, version: Version = Version.GA) -> List[CloudResource]:
        """Return every resource of ``kind``."""


class DirectoryCloud(LoadBalancers):
    """Persist resources as JSON documents below ``root``.

    Each resource lives in ``<root>/<kind>/<name>.json``.  This is the backend
    used by the standalone agent and by tests; it behaves like the remote API
    with respect to conflicts and missing objects.
    """

    def __init__(self, root: Path) -> None:
        self._root = Path(root)
        self._lock = Lock()

    def _path(self, kind: ResourceKind, name: str) -> Path:
        if not name or "/" in name or name.startswith("."):
            raise CloudError(f"invalid resource name '{name}'")
        return self._root / kind.value / f"{name}.json"

    def create(self, resource: CloudResource) -> None:
        path = self._path(resource.kind, resource.name)
        with self._lock:
            if path.exists():
                raise CloudConflictError(
                    f"{resource.kind.value} '{resource.name}' already exists"
                )
            self._write(path, resource)
        LOG.debug("Created %s %s %s", resource.version.value, resource.kind.value, resource.name)

    def update(self, resource: CloudResource) -> None:
        path = self._path(resource.kind, resource.name)
        with self._lock:
            if not path.exists():
                raise CloudNotFoundError(
                    f"{resource.kind.value} '{resource.name}' not found"
                )
            self._write(path, resource)
        LOG.debug("Updated %s %s %s", resource.version.value, resource.kind.value, resource.name)

    def get(self, kind: ResourceKind, name: str, version: Version = Version.GA) -> CloudResource:
        path = self._path(kind, name)
        with self._lock:
            if not path.exists():
                raise CloudNotFoundError(f"{kind.value} '{name}' not found")
            return self._read(path, kind, version)

    def delete(self, kind: ResourceKind, name: str, version: Version = Version.GA) -> None:
        path = self._path(kind, name)
        with self._lock:
            if not path.exists():
                raise CloudNotFoundError(f"{kind.value} '{name}' not found")
            try:
                path.unlink()
            except OSError as exc:
                raise CloudError(f"failed to delete {path}: {exc}") from exc
        LOG.debug("Deleted %s %s %s", version.value, kind.value, name)

    def list(self, kind: ResourceKind, version: Version = Version.GA) -> List[CloudResource]:
        directory = self._root / kind.value
        with self._lock:
            if not directory.exists():
                return []
            return [
                self._read(path, kind, version)
                for path in sorted(directory.glob("*.json"))
            ]

    @staticmethod
    def _write(path: Path, resource: CloudResource) -> None:
        document = {"name": resource.name, "spec": resource.spec}
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(document, indent=2, sort_keys=True))
        except OSError as exc:
            raise CloudError(f"failed to write {path}: {exc}") from exc

    @staticmethod
    def _read(path: Path, kind: ResourceKind, version: Version) -> CloudResource:
        try:
            document = json.loads(path.read_text())
        except (OSError, json.JSONDecodeError) as exc:
            raise CloudError(f"failed to read {path}: {exc}") from exc
        return CloudResource(
            kind=kind,
            name=document["name"],
            spec=document.get("spec", {}),
            version=version,
        )
