from __future__ import annotations

from typing import Any, Iterable, Mapping, Tuple

from lb_pool.config import RuntimeInfo, TLSCertificate, UrlRule, Version


def _strings(values: Iterable[Any]) -> Tuple[str, ...]:
    return tuple(str(v) for v in values)


def _url_rule(entry: Mapping[str, Any]) -> UrlRule:
    return UrlRule(
        host=str(entry.get("host", "*")),
        path=str(entry.get("path", "/*")),
        backend=str(entry["backend"]),
    )


def _tls_certificate(entry: Mapping[str, Any]) -> TLSCertificate:
    return TLSCertificate(
        name=str(entry["name"]),
        certificate=str(entry["certificate"]),
        private_key=str(entry["private_key"]),
    )


def runtime_info_from_dict(entry: Mapping[str, Any]) -> RuntimeInfo:
    """Parse one load balancer entry of a desired state document.

    ``name`` may be ``"<namespace>/<name>"``; a bare name is placed in the
    ``namespace`` given by the entry (``default`` when absent).
    """

    name = entry.get("name")
    if not name:
        raise ValueError("loadbalancer entry missing 'name'")
    name = str(name)

    if "/" in name:
        namespace = name.split("/", 1)[0]
    else:
        namespace = str(entry.get("namespace", "default"))
        name = f"{namespace}/{name}"

    try:
        url_rules = tuple(_url_rule(rule) for rule in entry.get("rules", []))
        tls_certs = tuple(_tls_certificate(cert) for cert in entry.get("tls", []))
    except KeyError as exc:
        raise ValueError(f"loadbalancer '{name}' entry missing {exc}") from None

    static_ip = entry.get("static_ip")
    return RuntimeInfo(
        name=name,
        namespace=namespace,
        default_backend=str(entry.get("default_backend", "")),
        url_rules=url_rules,
        allow_http=bool(entry.get("allow_http", True)),
        tls_certs=tls_certs,
        pre_shared_certs=_strings(entry.get("pre_shared_certs", [])),
        managed_certs=_strings(entry.get("managed_certs", [])),
        static_ip=str(static_ip) if static_ip else None,
        api_version=Version.parse(str(entry.get("api_version", "ga"))),
    )
