"""Configuration data structures for the load balancer pool.

These dataclasses describe what a load balancer should look like
(:class:`RuntimeInfo`) and how the pool itself is wired
(:class:`PoolConfig`).  They carry no behaviour beyond small helpers so both
the YAML loader and the oslo.config integration can build them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Optional, Tuple


class Version(Enum):
    """API track a cloud resource is managed through."""

    GA = "ga"
    BETA = "beta"
    ALPHA = "alpha"

    @classmethod
    def parse(cls, value: str) -> "Version":
        try:
            return cls(value.lower())
        except ValueError:
            raise ValueError(f"Unsupported API version '{value}'") from None


@dataclass(frozen=True)
class UrlRule:
    """Route requests for ``host`` and ``path`` to ``backend``."""

    host: str
    path: str
    backend: str

    def as_dict(self) -> Dict[str, str]:
        return {"host": self.host, "path": self.path, "backend": self.backend}


@dataclass(frozen=True)
class TLSCertificate:
    """Certificate material uploaded as an SSL certificate resource.

    ``name`` is the user-facing reference (typically the secret name); the
    cloud resource name is derived from the certificate contents.
    """

    name: str
    certificate: str
    private_key: str


@dataclass(frozen=True)
class RuntimeInfo:
    """Desired state of one logical load balancer.

    Attributes
    ----------
    name:
        User-facing identifier, usually ``"<namespace>/<name>"``.  The pool
        canonicalizes it through the namer before using it as a key.
    namespace:
        Namespace events about this load balancer are recorded in.
    default_backend:
        Backend service receiving traffic no rule matches.
    url_rules:
        Host/path routing rules.
    allow_http:
        Whether plain HTTP on port 80 is served.
    tls_certs:
        Certificates uploaded and owned by this load balancer.
    pre_shared_certs:
        Names of SSL certificates that already exist in the cloud.
    managed_certs:
        Names of managed certificates resolved through the certificate
        lister.
    static_ip:
        Optional address for the forwarding rules.
    api_version:
        API track used for every resource of this load balancer.

    Equality is field by field; every collection is a tuple so two
    descriptors built from the same input compare equal.
    """

    name: str
    namespace: str = "default"
    default_backend: str = ""
    url_rules: Tuple[UrlRule, ...] = ()
    allow_http: bool = True
    tls_certs: Tuple[TLSCertificate, ...] = ()
    pre_shared_certs: Tuple[str, ...] = ()
    managed_certs: Tuple[str, ...] = ()
    static_ip: Optional[str] = None
    api_version: Version = Version.GA

    def has_tls(self) -> bool:
        return bool(self.tls_certs or self.pre_shared_certs or self.managed_certs)


@dataclass
class PoolConfig:
    """Pool level configuration knobs shared by every configuration source."""

    cluster_uid: str
    output_dir: Path
    continue_on_gc_error: bool = False
    shutdown_on_exit: bool = False
    managed_certificates: Dict[str, str] = field(default_factory=dict)
