"""Managed certificate lookup used while converging HTTPS load balancers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Mapping, Optional


class CertificateLister(ABC):
    """Resolve a managed certificate to the SSL certificate backing it."""

    @abstractmethod
    def get(self, namespace: str, name: str) -> Optional[str]:
        """Return the SSL certificate name, or ``None`` if not provisioned."""


class StaticCertificateLister(CertificateLister):
    """Lister backed by a fixed ``"<namespace>/<name>" -> certificate`` map."""

    def __init__(self, certificates: Optional[Mapping[str, str]] = None) -> None:
        self._certificates = dict(certificates or {})

    def get(self, namespace: str, name: str) -> Optional[str]:
        return self._certificates.get(f"{namespace}/{name}")
