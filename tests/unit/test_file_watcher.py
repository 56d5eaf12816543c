import json
from pathlib import Path
from threading import Event

import pytest

from lb_agent.watchers.file import FileDesiredStateWatcher
from lb_agent.watchers.utils import runtime_info_from_dict
from lb_controller import GarbageCollect, LoadBalancerUpsert, PoolDispatcher
from lb_pool.cloud import ResourceKind
from lb_pool.config import Version
from lb_pool.errors import ConvergenceError
from lb_pool.pool import LoadBalancerPool


class RecordingDispatcher:
    def __init__(self, fail_for=()):
        self.events = []
        self._fail_for = set(fail_for)

    def handle(self, event):
        self.events.append(event)
        if isinstance(event, LoadBalancerUpsert) and event.runtime_info.name in self._fail_for:
            raise ConvergenceError(event.runtime_info.name, "injected")


def write_state(path: Path, loadbalancers) -> None:
    path.write_text(json.dumps({"loadbalancers": loadbalancers}))


def build_watcher(dispatcher, path: Path) -> FileDesiredStateWatcher:
    return FileDesiredStateWatcher(
        dispatcher=dispatcher,
        path=path,
        interval=0.1,
        stop_event=Event(),
    )


def test_runtime_info_from_dict():
    entry = {
        "name": "web",
        "namespace": "shop",
        "default_backend": "svc",
        "rules": [{"host": "shop.example.com", "backend": "svc-shop"}],
        "tls": [{"name": "shop-tls", "certificate": "C", "private_key": "K"}],
        "api_version": "beta",
    }

    ri = runtime_info_from_dict(entry)

    assert ri.name == "shop/web"
    assert ri.namespace == "shop"
    assert ri.url_rules[0].path == "/*"
    assert ri.tls_certs[0].name == "shop-tls"
    assert ri.api_version is Version.BETA

    qualified = dict(entry, name="shop/web", api_version="BETA")
    del qualified["namespace"]
    assert runtime_info_from_dict(qualified) == ri


def test_runtime_info_from_dict_rejects_incomplete_entries():
    with pytest.raises(ValueError):
        runtime_info_from_dict({"default_backend": "svc"})
    with pytest.raises(ValueError):
        runtime_info_from_dict({"name": "web", "rules": [{"host": "x"}]})
    with pytest.raises(ValueError):
        runtime_info_from_dict({"name": "web", "api_version": "v2"})


def test_file_watcher_publishes_upserts_and_gc(tmp_path: Path):
    state_file = tmp_path / "loadbalancers.json"
    write_state(state_file, [{"name": "default/a"}, {"name": "default/b"}])
    dispatcher = RecordingDispatcher()
    watcher = build_watcher(dispatcher, state_file)

    assert watcher.poll() == []

    upserts = [e.runtime_info.name for e in dispatcher.events if isinstance(e, LoadBalancerUpsert)]
    assert upserts == ["default/a", "default/b"]
    assert dispatcher.events[-1] == GarbageCollect(["default/a", "default/b"])

    dispatcher.events.clear()
    write_state(state_file, [{"name": "default/a"}])
    watcher.poll()

    assert len(dispatcher.events) == 2
    assert dispatcher.events[-1] == GarbageCollect(["default/a"])


def test_file_watcher_continues_after_sync_failure(tmp_path: Path):
    state_file = tmp_path / "loadbalancers.json"
    write_state(state_file, [{"name": "default/a"}, {"name": "default/b"}])
    dispatcher = RecordingDispatcher(fail_for={"default/a"})
    watcher = build_watcher(dispatcher, state_file)

    errors = watcher.poll()

    assert [err.name for err in errors] == ["default/a"]
    assert isinstance(dispatcher.events[-1], GarbageCollect)
    assert len(dispatcher.events) == 3


def test_file_watcher_ignores_missing_and_invalid_files(tmp_path: Path):
    state_file = tmp_path / "loadbalancers.json"
    dispatcher = RecordingDispatcher()
    watcher = build_watcher(dispatcher, state_file)

    assert watcher.poll() == []

    state_file.write_text("{not json")
    assert watcher.poll() == []

    state_file.write_text(json.dumps({"services": []}))
    assert watcher.poll() == []

    state_file.write_text(json.dumps({"loadbalancers": [{"rules": []}]}))
    assert watcher.poll() == []

    assert dispatcher.events == []


def test_file_watcher_drives_pool(tmp_path: Path, cloud, namer):
    state_file = tmp_path / "loadbalancers.json"
    write_state(state_file, [{"name": "default/a", "default_backend": "svc"}])
    pool = LoadBalancerPool(cloud, namer)
    watcher = build_watcher(PoolDispatcher(pool), state_file)

    watcher.poll()
    assert pool.list_names() == ["default-a--uid1"]

    write_state(state_file, [])
    watcher.poll()

    assert pool.list_names() == []
    assert cloud.list(ResourceKind.URL_MAP) == []


def test_file_watcher_resyncs_unchanged_entries(tmp_path: Path):
    state_file = tmp_path / "loadbalancers.json"
    write_state(state_file, [{"name": "default/a"}])
    dispatcher = RecordingDispatcher()
    watcher = build_watcher(dispatcher, state_file)

    watcher.poll()
    watcher.poll()

    upserts = [e for e in dispatcher.events if isinstance(e, LoadBalancerUpsert)]
    assert len(upserts) == 2
    assert upserts[0] == upserts[1]
