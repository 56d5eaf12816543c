"""oslo.config options for hosting the pool inside an oslo-configured service.

The standalone agent reads YAML (see :mod:`lb_agent.config`); services built
on oslo.config register these options instead and turn them into the same
:class:`~lb_pool.config.PoolConfig`.
"""

from pathlib import Path

from oslo_config import cfg

from lb_pool.config import PoolConfig

GROUP = 'lb_pool'

pool_opts = [
    cfg.StrOpt('cluster_uid',
               help='Cluster identifier appended to every load balancer name.'),
    cfg.StrOpt('output_dir',
               default='/var/lib/lb-agent/cloud',
               help='Directory where cloud resource documents are stored.'),
    cfg.BoolOpt('continue_on_gc_error',
                default=False,
                help='Keep garbage collecting after a failed delete and '
                     'report every failure at the end of the pass.'),
    cfg.BoolOpt('shutdown_on_exit',
                default=False,
                help='Delete every tracked load balancer when the service '
                     'stops.'),
    cfg.DictOpt('managed_certificates',
                default={},
                help='Managed certificates as <namespace>/<name>:<certificate> '
                     'pairs. Example: default/web-cert:web-cert-ssl'),
]


def register_pool_opts(conf=cfg.CONF):
    """Register the pool options with ``conf`` under the ``lb_pool`` group."""
    conf.register_opts(pool_opts, group=GROUP)


def pool_config_from_conf(conf=cfg.CONF):
    """Build a :class:`PoolConfig` from registered options.

    Raises:
        ValueError: if ``cluster_uid`` is not set.
    """
    group = getattr(conf, GROUP)
    if not group.cluster_uid:
        raise ValueError("[%s] cluster_uid must be set" % GROUP)
    return PoolConfig(
        cluster_uid=group.cluster_uid,
        output_dir=Path(group.output_dir),
        continue_on_gc_error=group.continue_on_gc_error,
        shutdown_on_exit=group.shutdown_on_exit,
        managed_certificates=dict(group.managed_certificates),
    )
