import pytest

from lb_pool.certs import StaticCertificateLister
from lb_pool.cloud import ResourceKind
from lb_pool.config import RuntimeInfo, TLSCertificate, UrlRule, Version
from lb_pool.errors import CleanupError, CloudNotFoundError, ConvergenceError
from lb_pool.events import MemoryRecorder
from lb_pool.l7 import L7


def build_l7(cloud, namer, ri: RuntimeInfo, mcrt=None) -> L7:
    return L7(
        name=namer.load_balancer(ri.name),
        runtime_info=ri,
        cloud=cloud,
        namer=namer,
        recorder=MemoryRecorder(),
        mcrt=mcrt,
    )


def names(cloud, kind):
    return [resource.name for resource in cloud.list(kind)]


def test_converge_creates_http_resources(cloud, namer):
    ri = RuntimeInfo(
        name="default/web",
        default_backend="svc-default",
        url_rules=(UrlRule("example.com", "/api/*", "svc-api"),),
        static_ip="203.0.113.10",
    )
    lb = build_l7(cloud, namer, ri)

    lb.converge()

    url_map = cloud.get(ResourceKind.URL_MAP, "k8s-um-default-web--uid1")
    assert url_map.spec["defaultService"] == "svc-default"
    assert url_map.spec["rules"] == [
        {"host": "example.com", "path": "/api/*", "backend": "svc-api"}
    ]
    proxy = cloud.get(ResourceKind.TARGET_HTTP_PROXY, "k8s-tp-default-web--uid1")
    assert proxy.spec == {"urlMap": "k8s-um-default-web--uid1"}
    rule = cloud.get(ResourceKind.FORWARDING_RULE, "k8s-fw-default-web--uid1")
    assert rule.spec == {
        "target": "k8s-tp-default-web--uid1",
        "portRange": "80-80",
        "IPAddress": "203.0.113.10",
    }
    assert names(cloud, ResourceKind.TARGET_HTTPS_PROXY) == []


def test_converge_updates_changed_url_map(cloud, namer):
    lb = build_l7(cloud, namer, RuntimeInfo(name="default/web", default_backend="a"))
    lb.converge()

    lb.runtime_info = RuntimeInfo(name="default/web", default_backend="b")
    lb.converge()

    url_map = cloud.get(ResourceKind.URL_MAP, "k8s-um-default-web--uid1")
    assert url_map.spec["defaultService"] == "b"


def test_converge_https_and_disable_http(cloud, namer):
    ri = RuntimeInfo(
        name="default/web",
        default_backend="svc",
        allow_http=False,
        tls_certs=(TLSCertificate("web-tls", "CERT-1", "KEY-1"),),
        pre_shared_certs=("shared-cert",),
        managed_certs=("web-managed",),
    )
    mcrt = StaticCertificateLister({"default/web-managed": "mcrt-ssl-1"})
    lb = build_l7(cloud, namer, ri, mcrt=mcrt)

    lb.converge()

    owned = namer.ssl_certificate(lb.name, "CERT-1")
    proxy = cloud.get(ResourceKind.TARGET_HTTPS_PROXY, "k8s-tps-default-web--uid1")
    assert proxy.spec["sslCertificates"] == [owned, "shared-cert", "mcrt-ssl-1"]
    rule = cloud.get(ResourceKind.FORWARDING_RULE, "k8s-fws-default-web--uid1")
    assert rule.spec["portRange"] == "443-443"
    assert names(cloud, ResourceKind.TARGET_HTTP_PROXY) == []
    assert names(cloud, ResourceKind.SSL_CERTIFICATE) == [owned]


def test_converge_rotates_owned_certificates(cloud, namer):
    ri = RuntimeInfo(
        name="default/web",
        tls_certs=(TLSCertificate("web-tls", "CERT-1", "KEY-1"),),
    )
    lb = build_l7(cloud, namer, ri)
    lb.converge()

    lb.runtime_info = RuntimeInfo(
        name="default/web",
        tls_certs=(TLSCertificate("web-tls", "CERT-2", "KEY-2"),),
    )
    lb.converge()

    assert names(cloud, ResourceKind.SSL_CERTIFICATE) == [
        namer.ssl_certificate(lb.name, "CERT-2")
    ]


def test_converge_unresolved_managed_certificate(cloud, namer):
    ri = RuntimeInfo(name="default/web", managed_certs=("missing",))
    lb = build_l7(cloud, namer, ri, mcrt=StaticCertificateLister())

    with pytest.raises(ConvergenceError):
        lb.converge()

    # HTTP resources converged before the TLS step stay in place for cleanup.
    assert names(cloud, ResourceKind.URL_MAP) == ["k8s-um-default-web--uid1"]


def test_converge_partial_failure_keeps_runtime_info(cloud, namer):
    ri = RuntimeInfo(name="default/web", default_backend="svc")
    lb = build_l7(cloud, namer, ri)
    cloud.fail_on.add(("create", ResourceKind.FORWARDING_RULE))

    with pytest.raises(ConvergenceError):
        lb.converge()

    assert lb.runtime_info is ri
    assert names(cloud, ResourceKind.URL_MAP) == ["k8s-um-default-web--uid1"]
    assert names(cloud, ResourceKind.FORWARDING_RULE) == []


def test_cleanup_removes_everything(cloud, namer):
    ri = RuntimeInfo(
        name="default/web",
        tls_certs=(TLSCertificate("web-tls", "CERT-1", "KEY-1"),),
        api_version=Version.BETA,
    )
    lb = build_l7(cloud, namer, ri)
    lb.converge()

    lb.cleanup()

    for kind in ResourceKind:
        assert names(cloud, kind) == []


def test_cleanup_tolerates_partial_convergence(cloud, namer):
    lb = build_l7(cloud, namer, RuntimeInfo(name="default/web"))
    cloud.fail_on.add(("create", ResourceKind.TARGET_HTTP_PROXY))
    with pytest.raises(ConvergenceError):
        lb.converge()

    lb.cleanup()
    lb.cleanup()

    with pytest.raises(CloudNotFoundError):
        cloud.get(ResourceKind.URL_MAP, "k8s-um-default-web--uid1")


def test_cleanup_failure(cloud, namer):
    lb = build_l7(cloud, namer, RuntimeInfo(name="default/web"))
    lb.converge()
    cloud.fail_on.add(("delete", ResourceKind.URL_MAP))

    with pytest.raises(CleanupError):
        lb.cleanup()


def test_record_event_survives_broken_recorder(cloud, namer):
    class BrokenRecorder(MemoryRecorder):
        def record(self, event):
            raise RuntimeError("sink unavailable")

    lb = L7(
        name="default-web--uid1",
        runtime_info=RuntimeInfo(name="default/web"),
        cloud=cloud,
        namer=namer,
        recorder=BrokenRecorder(),
    )

    lb.record_event("Created", "tracking loadbalancer")
