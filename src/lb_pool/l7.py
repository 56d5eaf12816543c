"""In-memory handle for one logical L7 load balancer.

The load balancer is a fictitious resource: it does not exist in the cloud by
itself.  To make it exist we create a collection of cloud resources (URL map,
target proxies, forwarding rules, SSL certificates), the "edge hop" performed
by :meth:`L7.converge`.  :meth:`L7.cleanup` tears the same collection down.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from .certs import CertificateLister
from .cloud import CloudResource, LoadBalancers, ResourceKind
from .config import RuntimeInfo, Version
from .errors import CleanupError, CloudError, CloudNotFoundError, ConvergenceError
from .events import NORMAL, Event, EventRecorder, emit
from .namer import Namer

LOG = logging.getLogger(__name__)

HTTP_PORT_RANGE = "80-80"
HTTPS_PORT_RANGE = "443-443"


class L7:
    """Converge and clean up the cloud resources of one load balancer.

    Collaborators are injected once and never change.  ``runtime_info`` is
    swapped by :class:`~lb_pool.pool.LoadBalancerPool` when the desired state
    changes; nothing here rolls it back when convergence fails.
    """

    def __init__(
        self,
        name: str,
        runtime_info: RuntimeInfo,
        cloud: LoadBalancers,
        namer: Namer,
        recorder: EventRecorder,
        mcrt: Optional[CertificateLister] = None,
    ) -> None:
        self.name = name
        self.runtime_info = runtime_info
        self._cloud = cloud
        self._namer = namer
        self._recorder = recorder
        self._mcrt = mcrt

    def __repr__(self) -> str:
        return f"L7(name={self.name!r}, runtime_info={self.runtime_info!r})"

    # ------------------------------------------------------------------
    # Convergence
    # ------------------------------------------------------------------
    def converge(self) -> None:
        """Create or update every cloud resource ``runtime_info`` asks for."""

        ri = self.runtime_info
        try:
            url_map = self._ensure(self._url_map(ri))
            if ri.allow_http:
                self._ensure_http(ri, url_map)
            else:
                self._delete_http(ri.api_version)
            if ri.has_tls():
                self._ensure_https(ri, url_map)
            else:
                self._delete_https(ri.api_version)
        except CloudError as exc:
            raise ConvergenceError(
                self.name, f"failed to converge loadbalancer {self.name}: {exc}"
            ) from exc

    def _url_map(self, ri: RuntimeInfo) -> CloudResource:
        return CloudResource(
            kind=ResourceKind.URL_MAP,
            name=self._namer.url_map(self.name),
            spec={
                "defaultService": ri.default_backend,
                "rules": [rule.as_dict() for rule in ri.url_rules],
            },
            version=ri.api_version,
        )

    def _forwarding_rule(
        self, ri: RuntimeInfo, name: str, target: str, port_range: str
    ) -> CloudResource:
        spec = {"target": target, "portRange": port_range}
        if ri.static_ip:
            spec["IPAddress"] = ri.static_ip
        return CloudResource(
            kind=ResourceKind.FORWARDING_RULE,
            name=name,
            spec=spec,
            version=ri.api_version,
        )

    def _ensure_http(self, ri: RuntimeInfo, url_map: CloudResource) -> None:
        proxy = self._ensure(
            CloudResource(
                kind=ResourceKind.TARGET_HTTP_PROXY,
                name=self._namer.target_http_proxy(self.name),
                spec={"urlMap": url_map.name},
                version=ri.api_version,
            )
        )
        self._ensure(
            self._forwarding_rule(
                ri, self._namer.forwarding_rule(self.name), proxy.name, HTTP_PORT_RANGE
            )
        )

    def _ensure_https(self, ri: RuntimeInfo, url_map: CloudResource) -> None:
        managed = self._resolve_managed_certificates(ri)
        owned = self._ensure_ssl_certificates(ri)
        certificates = owned + list(ri.pre_shared_certs) + managed

        proxy = self._ensure(
            CloudResource(
                kind=ResourceKind.TARGET_HTTPS_PROXY,
                name=self._namer.target_https_proxy(self.name),
                spec={"urlMap": url_map.name, "sslCertificates": certificates},
                version=ri.api_version,
            )
        )
        self._ensure(
            self._forwarding_rule(
                ri,
                self._namer.https_forwarding_rule(self.name),
                proxy.name,
                HTTPS_PORT_RANGE,
            )
        )
        # Only drop stale certificates once the proxy no longer references them.
        self._delete_owned_certificates(ri.api_version, keep=set(owned))

    def _ensure_ssl_certificates(self, ri: RuntimeInfo) -> List[str]:
        names = []
        for cert in ri.tls_certs:
            resource = self._ensure(
                CloudResource(
                    kind=ResourceKind.SSL_CERTIFICATE,
                    name=self._namer.ssl_certificate(self.name, cert.certificate),
                    spec={
                        "certificate": cert.certificate,
                        "privateKey": cert.private_key,
                        "description": cert.name,
                    },
                    version=ri.api_version,
                )
            )
            names.append(resource.name)
        return names

    def _resolve_managed_certificates(self, ri: RuntimeInfo) -> List[str]:
        if not ri.managed_certs:
            return []
        if self._mcrt is None:
            raise ConvergenceError(
                self.name,
                f"loadbalancer {self.name} references managed certificates "
                "but no certificate lister is configured",
            )
        resolved = []
        for name in ri.managed_certs:
            certificate = self._mcrt.get(ri.namespace, name)
            if not certificate:
                raise ConvergenceError(
                    self.name,
                    f"managed certificate {ri.namespace}/{name} is not provisioned",
                )
            resolved.append(certificate)
        return resolved

    def _ensure(self, desired: CloudResource) -> CloudResource:
        try:
            existing = self._cloud.get(desired.kind, desired.name, desired.version)
        except CloudNotFoundError:
            LOG.debug("Creating %s %s for %s", desired.kind.value, desired.name, self.name)
            self._cloud.create(desired)
            return desired

        if existing.spec != desired.spec:
            LOG.debug(
                "Updating %s %s for %s, old %s new %s",
                desired.kind.value,
                desired.name,
                self.name,
                existing.spec,
                desired.spec,
            )
            self._cloud.update(desired)
        return desired

    def _delete_http(self, version: Version) -> None:
        self._delete(ResourceKind.FORWARDING_RULE, self._namer.forwarding_rule(self.name), version)
        self._delete(ResourceKind.TARGET_HTTP_PROXY, self._namer.target_http_proxy(self.name), version)

    def _delete_https(self, version: Version) -> None:
        self._delete(
            ResourceKind.FORWARDING_RULE, self._namer.https_forwarding_rule(self.name), version
        )
        self._delete(
            ResourceKind.TARGET_HTTPS_PROXY, self._namer.target_https_proxy(self.name), version
        )
        self._delete_owned_certificates(version, keep=set())

    def _delete_owned_certificates(self, version: Version, keep: set) -> None:
        for resource in self._cloud.list(ResourceKind.SSL_CERTIFICATE, version):
            if resource.name in keep:
                continue
            if self._namer.is_ssl_certificate_for(self.name, resource.name):
                self._delete(ResourceKind.SSL_CERTIFICATE, resource.name, version)

    def _delete(self, kind: ResourceKind, name: str, version: Version) -> None:
        try:
            self._cloud.delete(kind, name, version)
        except CloudNotFoundError:
            return
        LOG.debug("Deleted %s %s for %s", kind.value, name, self.name)

    # ------------------------------------------------------------------
    # Cleanup
    # ------------------------------------------------------------------
    def cleanup(self) -> None:
        """Delete every cloud resource owned by this load balancer.

        Resources that are already gone are skipped, so cleanup works on a
        load balancer whose convergence only got partway.
        """

        version = self.runtime_info.api_version
        try:
            self._delete_https(version)
            self._delete_http(version)
            self._delete(ResourceKind.URL_MAP, self._namer.url_map(self.name), version)
        except CloudError as exc:
            raise CleanupError(
                self.name, f"failed to clean up loadbalancer {self.name}: {exc}"
            ) from exc

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------
    def record_event(self, reason: str, message: str, type: str = NORMAL) -> None:
        emit(
            self._recorder,
            Event(
                namespace=self.runtime_info.namespace,
                name=self.name,
                reason=reason,
                message=message,
                type=type,
            ),
        )
