"""Entry point for the standalone load balancer agent."""

from __future__ import annotations

import argparse
import logging
import signal
import sys
from pathlib import Path
from threading import Event

from oslo_config import cfg

from lb_controller import PoolDispatcher
from lb_controller.opts import pool_config_from_conf, register_pool_opts
from lb_pool import build_pool
from lb_pool.config import PoolConfig
from lb_pool.errors import PoolError

from .config import load_config
from .watchers import FileDesiredStateWatcher

LOG = logging.getLogger(__name__)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )


def _load_pool_conf(path: Path) -> PoolConfig:
    conf = cfg.ConfigOpts()
    register_pool_opts(conf)
    conf(args=[], project="lb-agent", default_config_files=[str(path)])
    return pool_config_from_conf(conf)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Run the load balancer agent")
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("/etc/lb-agent/agent.yaml"),
        help="Path to the agent configuration file",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--pool-config-file",
        type=Path,
        help="oslo.config file whose [lb_pool] section replaces the YAML pool section",
    )

    args = parser.parse_args(argv)
    _setup_logging(args.verbose)

    pool_config = None
    if args.pool_config_file is not None:
        pool_config = _load_pool_conf(args.pool_config_file)
    config = load_config(args.config, pool=pool_config)

    pool = build_pool(config.pool)
    dispatcher = PoolDispatcher(pool)

    stop_event = Event()

    watchers = []
    for watcher_cfg in config.watchers:
        if watcher_cfg.type == "file":
            watcher = FileDesiredStateWatcher(
                dispatcher=dispatcher,
                path=watcher_cfg.path,
                interval=watcher_cfg.interval,
                stop_event=stop_event,
            )
        else:
            raise ValueError(f"unsupported watcher type '{watcher_cfg.type}'")
        # Perform an initial poll so we react immediately
        try:
            watcher.poll()
        except Exception:  # pragma: no cover - logged inside watcher
            LOG.exception("initial poll failed for watcher %s", watcher_cfg.path)
        watcher.start()
        watchers.append(watcher)

    if not watchers:
        LOG.warning("no watchers configured; agent will idle")

    def _shutdown(signum, frame):  # pragma: no cover - signal handler
        LOG.info("received signal %s, shutting down", signum)
        stop_event.set()

    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)

    try:
        while not stop_event.is_set():
            stop_event.wait(1.0)
    except KeyboardInterrupt:  # pragma: no cover - fallback if signal not set
        stop_event.set()

    for watcher in watchers:
        watcher.join()

    exit_code = 0
    if config.pool.shutdown_on_exit:
        try:
            pool.shutdown()
        except PoolError as exc:
            LOG.error("failed to shut down loadbalancer pool: %s", exc)
            exit_code = 1

    LOG.info("load balancer agent stopped")
    return exit_code


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
