from pathlib import Path
from typing import Set, Tuple

import pytest

from lb_pool.cloud import CloudResource, DirectoryCloud, ResourceKind
from lb_pool.config import Version
from lb_pool.errors import CloudError
from lb_pool.events import MemoryRecorderProducer
from lb_pool.namer import Namer


class FlakyCloud(DirectoryCloud):
    """Directory cloud that fails selected (operation, kind) pairs."""

    def __init__(self, root: Path) -> None:
        super().__init__(root)
        self.fail_on: Set[Tuple[str, ResourceKind]] = set()

    def _check(self, operation: str, kind: ResourceKind) -> None:
        if (operation, kind) in self.fail_on:
            raise CloudError(f"injected {operation} failure for {kind.value}")

    def create(self, resource: CloudResource) -> None:
        self._check("create", resource.kind)
        super().create(resource)

    def update(self, resource: CloudResource) -> None:
        self._check("update", resource.kind)
        super().update(resource)

    def delete(self, kind: ResourceKind, name: str, version: Version = Version.GA) -> None:
        self._check("delete", kind)
        super().delete(kind, name, version)


@pytest.fixture
def cloud(tmp_path: Path) -> FlakyCloud:
    return FlakyCloud(tmp_path / "cloud")


@pytest.fixture
def namer() -> Namer:
    return Namer("uid1")


@pytest.fixture
def recorders() -> MemoryRecorderProducer:
    return MemoryRecorderProducer()
