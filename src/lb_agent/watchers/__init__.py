"""Watcher implementations used by the load balancer agent."""

from .file import FileDesiredStateWatcher  # noqa: F401

__all__ = ["FileDesiredStateWatcher"]
