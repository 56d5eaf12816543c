"""YAML configuration loader for the load balancer agent."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

import yaml

from lb_pool.config import PoolConfig


@dataclass
class WatcherConfig:
    type: str
    path: Path
    interval: float = 5.0
    options: dict = field(default_factory=dict)


@dataclass
class AgentConfig:
    pool: PoolConfig
    watchers: Sequence[WatcherConfig] = field(default_factory=list)


def _parse_certificates(entries: object) -> Dict[str, str]:
    if entries is None:
        return {}
    if not isinstance(entries, dict):
        raise ValueError("'managed_certificates' must be a mapping")
    certificates: Dict[str, str] = {}
    for key, value in entries.items():
        if "/" not in str(key):
            raise ValueError(
                f"managed certificate '{key}' must be written as <namespace>/<name>"
            )
        certificates[str(key)] = str(value)
    return certificates


def _parse_pool(section: dict) -> PoolConfig:
    if "cluster_uid" not in section:
        raise ValueError("'pool' section missing 'cluster_uid'")

    return PoolConfig(
        cluster_uid=str(section["cluster_uid"]),
        output_dir=Path(section.get("output_dir", "/var/lib/lb-agent/cloud")),
        continue_on_gc_error=bool(section.get("continue_on_gc_error", False)),
        shutdown_on_exit=bool(section.get("shutdown_on_exit", False)),
        managed_certificates=_parse_certificates(section.get("managed_certificates")),
    )


def _parse_watchers(entries: Iterable[dict]) -> List[WatcherConfig]:
    watchers: List[WatcherConfig] = []
    for entry in entries:
        options = entry.get("options", {})
        if not isinstance(options, dict):
            raise ValueError("watcher 'options' must be a mapping if provided")
        watchers.append(
            WatcherConfig(
                type=str(entry["type"]),
                path=Path(entry.get("path", ".")),
                interval=float(entry.get("interval", entry.get("poll_interval", 5.0))),
                options=options,
            )
        )
    return watchers


def load_config(path: Path, pool: Optional[PoolConfig] = None) -> AgentConfig:
    """Load the agent YAML file at ``path``.

    When ``pool`` is given it replaces the YAML 'pool' section, which then
    becomes optional.
    """
    data = yaml.safe_load(path.read_text())
    if not isinstance(data, dict):
        raise ValueError("Agent configuration must be a mapping")

    pool_section = data.get("pool")
    if pool is None:
        if pool_section is None:
            raise ValueError("Configuration missing 'pool' section")
        if not isinstance(pool_section, dict):
            raise ValueError("'pool' section must be a mapping")
        pool = _parse_pool(pool_section)

    watchers_section = data.get("watchers", [])
    if not isinstance(watchers_section, list):
        raise ValueError("'watchers' section must be a list")
    watchers = _parse_watchers(watchers_section)

    return AgentConfig(pool=pool, watchers=watchers)
