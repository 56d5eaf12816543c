"""Deterministic naming for load balancers and their cloud resources."""

from __future__ import annotations

import hashlib

# Cloud resource names are limited to 63 characters.
MAX_NAME_LENGTH = 63
_HASH_LENGTH = 8
_CLUSTER_DELIMITER = "--"


class Namer:
    """Derive canonical load balancer names and component resource names.

    A load balancer name is the user-facing key with ``/`` replaced by ``-``
    and the cluster UID appended, e.g. ``default/web`` becomes
    ``default-web--uid1``.  :meth:`load_balancer` is idempotent so canonical
    names can be fed back through it safely.

    Component names prefix the load balancer name with a short per-kind tag
    and are truncated to :data:`MAX_NAME_LENGTH` characters with a stable hash
    suffix when needed.

    Parameters
    ----------
    cluster_uid:
        Identifier of the cluster owning the load balancers.
    prefix:
        Leading tag shared by every component name.
    """

    def __init__(self, cluster_uid: str, prefix: str = "k8s") -> None:
        if not cluster_uid:
            raise ValueError("cluster_uid must not be empty")
        self._uid = cluster_uid
        self._prefix = prefix

    @property
    def uid(self) -> str:
        return self._uid

    def load_balancer(self, key: str) -> str:
        if not key:
            raise ValueError("loadbalancer key must not be empty")
        key = key.replace("/", "-")
        suffix = f"{_CLUSTER_DELIMITER}{self._uid}"
        if key.endswith(suffix):
            return key
        return f"{key}{suffix}"

    def url_map(self, lb_name: str) -> str:
        return self._component("um", lb_name)

    def target_http_proxy(self, lb_name: str) -> str:
        return self._component("tp", lb_name)

    def target_https_proxy(self, lb_name: str) -> str:
        return self._component("tps", lb_name)

    def forwarding_rule(self, lb_name: str) -> str:
        return self._component("fw", lb_name)

    def https_forwarding_rule(self, lb_name: str) -> str:
        return self._component("fws", lb_name)

    def ssl_certificate(self, lb_name: str, certificate: str) -> str:
        digest = _digest(certificate)
        return self._truncate(f"{self._ssl_prefix(lb_name)}{digest}")

    def is_ssl_certificate_for(self, lb_name: str, resource_name: str) -> bool:
        return resource_name.startswith(self._ssl_prefix(lb_name))

    def _ssl_prefix(self, lb_name: str) -> str:
        # Truncate the owner part up front so every certificate of one load
        # balancer shares the same prefix.
        owner = self._truncate(lb_name, MAX_NAME_LENGTH - _HASH_LENGTH - len(self._prefix) - 6)
        return f"{self._prefix}-ssl-{owner}-"

    def _component(self, kind: str, lb_name: str) -> str:
        return self._truncate(f"{self._prefix}-{kind}-{lb_name}")

    @staticmethod
    def _truncate(name: str, limit: int = MAX_NAME_LENGTH) -> str:
        if len(name) <= limit:
            return name
        digest = _digest(name)
        return f"{name[: limit - _HASH_LENGTH - 1]}-{digest}"


def _digest(value: str) -> str:
    return hashlib.sha256(value.encode("utf-8")).hexdigest()[:_HASH_LENGTH]
