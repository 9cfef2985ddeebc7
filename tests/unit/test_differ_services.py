"""Tests for ClusterIP and LoadBalancer Service change detection.

Cluster-assigned fields (cluster IP, node ports, health-check node port)
must survive every update.
"""

from __future__ import annotations

import copy
from dataclasses import replace

import pytest

from kubeequality.equality.differ import (
    SnapshotRequiredError,
    cluster_ip_service_changed,
    load_balancer_service_changed,
)
from kubeequality.models.resources import (
    ExternalTrafficPolicy,
    ObjectMeta,
    Service,
    ServicePort,
    ServiceSpec,
    ServiceType,
)

# ---------------------------------------------------------------------------
# Helper factories
# ---------------------------------------------------------------------------


def _make_port(
    name: str = "http",
    port: int = 80,
    target_port: int | str | None = 8080,
    node_port: int | None = None,
    protocol: str = "TCP",
) -> ServicePort:
    return ServicePort(name=name, protocol=protocol, port=port, target_port=target_port, node_port=node_port)


def _make_service(
    ports: list[ServicePort] | None = None,
    selector: dict | None = None,
    service_type: ServiceType = ServiceType.CLUSTER_IP,
    cluster_ip: str | None = None,
    session_affinity: str = "None",
    external_traffic_policy: ExternalTrafficPolicy | None = None,
    health_check_node_port: int | None = None,
    labels: dict | None = None,
) -> Service:
    return Service(
        metadata=ObjectMeta(name="envoy", namespace="projectcontour", labels=labels),
        spec=ServiceSpec(
            type=service_type,
            ports=[_make_port()] if ports is None else ports,
            selector={"app": "envoy"} if selector is None else selector,
            cluster_ip=cluster_ip,
            session_affinity=session_affinity,
            external_traffic_policy=external_traffic_policy,
            health_check_node_port=health_check_node_port,
        ),
    )


def _make_lb_service(
    ports: list[ServicePort] | None = None,
    node_ports: bool = False,
    **kwargs,
) -> Service:
    if ports is None:
        ports = [
            _make_port("http", 80, 8080, 30080 if node_ports else None),
            _make_port("https", 443, 8443, 30443 if node_ports else None),
        ]
    kwargs.setdefault("external_traffic_policy", ExternalTrafficPolicy.LOCAL)
    if node_ports:
        kwargs.setdefault("cluster_ip", "10.96.12.7")
        kwargs.setdefault("health_check_node_port", 31999)
    return _make_service(ports=ports, service_type=ServiceType.LOAD_BALANCER, **kwargs)


# =====================================================================
# ClusterIP Service
# =====================================================================


class TestClusterIPServiceUnchanged:
    def test_identical_services_unchanged(self) -> None:
        result = cluster_ip_service_changed(_make_service(), _make_service())
        assert result.changed is False
        assert result.updated is None

    def test_cluster_ip_is_not_compared(self) -> None:
        current = _make_service(cluster_ip="10.96.0.15")
        expected = _make_service(cluster_ip=None)
        assert cluster_ip_service_changed(current, expected).changed is False

    def test_labels_are_not_compared(self) -> None:
        current = _make_service(labels={"a": "1"})
        expected = _make_service(labels={"a": "2"})
        assert cluster_ip_service_changed(current, expected).changed is False

    def test_nil_and_empty_selector_are_equal(self) -> None:
        current = replace(_make_service(), spec=replace(_make_service().spec, selector=None))
        assert cluster_ip_service_changed(current, _make_service(selector={})).changed is False


class TestClusterIPServiceChanged:
    def test_port_count_mismatch_replaces_ports(self) -> None:
        current = _make_service(ports=[_make_port("a", 80), _make_port("b", 81)], cluster_ip="10.96.0.15")
        expected = _make_service(ports=[_make_port("a", 80), _make_port("b", 81), _make_port("c", 82)])

        updated, changed = cluster_ip_service_changed(current, expected)

        assert changed is True
        assert updated.spec.ports == expected.spec.ports
        assert updated.spec.cluster_ip == "10.96.0.15"
        assert cluster_ip_service_changed(current, expected).field_paths == ["spec.ports"]

    def test_port_content_change_replaces_ports(self) -> None:
        current = _make_service(ports=[_make_port(target_port=8080)])
        expected = _make_service(ports=[_make_port(target_port="http")])

        result = cluster_ip_service_changed(current, expected)

        assert result.changed is True
        assert result.updated.spec.ports == expected.spec.ports
        assert result.field_paths == ["spec.ports[0].targetPort"]

    def test_selector_change_replaces_selector_only(self) -> None:
        current = _make_service(cluster_ip="10.96.0.15")
        expected = _make_service(selector={"app": "envoy", "tier": "edge"})

        updated, changed = cluster_ip_service_changed(current, expected)

        assert changed is True
        assert updated.spec.selector == {"app": "envoy", "tier": "edge"}
        assert updated.spec.ports == current.spec.ports
        assert updated.spec.cluster_ip == "10.96.0.15"

    def test_session_affinity_change(self) -> None:
        updated, changed = cluster_ip_service_changed(_make_service(), _make_service(session_affinity="ClientIP"))
        assert changed is True
        assert updated.spec.session_affinity == "ClientIP"

    def test_type_change(self) -> None:
        result = cluster_ip_service_changed(_make_service(), _make_service(service_type=ServiceType.NODE_PORT))
        assert result.changed is True
        assert result.updated.spec.type is ServiceType.NODE_PORT
        assert result.changes[0].old_value == "ClusterIP"
        assert result.changes[0].new_value == "NodePort"

    def test_metadata_preserved(self) -> None:
        current = _make_service(labels={"owner": "contour"})
        updated, _ = cluster_ip_service_changed(current, _make_service(session_affinity="ClientIP"))
        assert updated.metadata == current.metadata

    def test_inputs_are_not_mutated(self) -> None:
        current = _make_service(cluster_ip="10.96.0.15")
        expected = _make_service(selector={"app": "other"})
        current_before = copy.deepcopy(current)
        expected_before = copy.deepcopy(expected)

        updated, _ = cluster_ip_service_changed(current, expected)
        updated.spec.selector["mutated"] = "yes"

        assert current == current_before
        assert expected == expected_before

    def test_none_raises(self) -> None:
        with pytest.raises(SnapshotRequiredError):
            cluster_ip_service_changed(_make_service(), None)  # type: ignore[arg-type]


# =====================================================================
# LoadBalancer Service
# =====================================================================


class TestLoadBalancerServiceUnchanged:
    def test_identical_services_unchanged(self) -> None:
        assert load_balancer_service_changed(_make_lb_service(), _make_lb_service()).changed is False

    def test_node_ports_are_not_compared(self) -> None:
        current = _make_lb_service(node_ports=True)
        expected = _make_lb_service(node_ports=False)
        assert load_balancer_service_changed(current, expected).changed is False

    def test_health_check_node_port_is_not_compared(self) -> None:
        current = _make_lb_service(health_check_node_port=31999)
        expected = _make_lb_service(health_check_node_port=None)
        assert load_balancer_service_changed(current, expected).changed is False

    def test_cluster_ip_is_not_compared(self) -> None:
        current = _make_lb_service(cluster_ip="10.96.12.7")
        assert load_balancer_service_changed(current, _make_lb_service()).changed is False


class TestLoadBalancerServicePortPatching:
    def test_target_port_patched_in_place(self) -> None:
        current = _make_lb_service(node_ports=True)
        expected = _make_lb_service(
            ports=[_make_port("http", 80, 8080), _make_port("https", 443, 9443)],
        )

        result = load_balancer_service_changed(current, expected)

        assert result.changed is True
        assert result.field_paths == ["spec.ports[1].targetPort"]
        ports = result.updated.spec.ports
        assert ports[0] == current.spec.ports[0]
        assert ports[1].target_port == 9443
        assert [p.node_port for p in ports] == [30080, 30443]

    @pytest.mark.parametrize(
        ("port_kwargs", "field"),
        [
            ({"name": "web"}, "name"),
            ({"protocol": "UDP"}, "protocol"),
            ({"port": 8000}, "port"),
            ({"target_port": "http"}, "targetPort"),
        ],
    )
    def test_each_port_field_patched(self, port_kwargs: dict, field: str) -> None:
        current = _make_lb_service(ports=[_make_port(node_port=30080)])
        expected = _make_lb_service(ports=[replace(_make_port(), **port_kwargs)])

        result = load_balancer_service_changed(current, expected)

        assert result.field_paths == [f"spec.ports[0].{field}"]
        patched = result.updated.spec.ports[0]
        assert patched == replace(_make_port(node_port=30080), **port_kwargs)

    def test_port_count_mismatch_replaces_ports(self) -> None:
        current = _make_lb_service(node_ports=True)
        expected = _make_lb_service(ports=[_make_port("http", 80, 8080)])

        updated, changed = load_balancer_service_changed(current, expected)

        assert changed is True
        assert updated.spec.ports == expected.spec.ports
        assert updated.spec.health_check_node_port == 31999
        assert updated.spec.cluster_ip == "10.96.12.7"


class TestLoadBalancerServiceFields:
    def test_external_traffic_policy_change(self) -> None:
        current = _make_lb_service(node_ports=True)
        expected = _make_lb_service(external_traffic_policy=ExternalTrafficPolicy.CLUSTER)

        updated, changed = load_balancer_service_changed(current, expected)

        assert changed is True
        assert updated.spec.external_traffic_policy is ExternalTrafficPolicy.CLUSTER
        assert updated.spec.ports == current.spec.ports
        assert updated.spec.health_check_node_port == 31999

    def test_selector_change(self) -> None:
        updated, changed = load_balancer_service_changed(
            _make_lb_service(), _make_lb_service(selector={"app": "envoy-canary"})
        )
        assert changed is True
        assert updated.spec.selector == {"app": "envoy-canary"}

    def test_session_affinity_and_type_change(self) -> None:
        current = _make_lb_service()
        expected = replace(
            current,
            spec=replace(current.spec, session_affinity="ClientIP", type=ServiceType.NODE_PORT),
        )

        result = load_balancer_service_changed(current, expected)

        assert result.field_paths == ["spec.sessionAffinity", "spec.type"]
        assert result.updated.spec.session_affinity == "ClientIP"
        assert result.updated.spec.type is ServiceType.NODE_PORT

    def test_none_raises(self) -> None:
        with pytest.raises(SnapshotRequiredError, match="Service"):
            load_balancer_service_changed(None, _make_lb_service())  # type: ignore[arg-type]


class TestUnmodelledFieldsPreserved:
    def _with_extras(self, service: Service) -> Service:
        ports = [replace(p, extra={"appProtocol": "http"}) for p in service.spec.ports]
        return replace(
            service,
            metadata=replace(service.metadata, extra={"ownerReferences": [{"kind": "Contour", "name": "contour"}]}),
            spec=replace(
                service.spec,
                ports=ports,
                extra={"loadBalancerSourceRanges": ["10.0.0.0/8"], "clusterIPs": ["10.96.12.7"]},
            ),
        )

    def test_load_balancer_patch_keeps_extras(self) -> None:
        current = self._with_extras(_make_lb_service(node_ports=True))
        expected = _make_lb_service(ports=[_make_port("http", 80, 8080), _make_port("https", 443, 9443)])

        updated, changed = load_balancer_service_changed(current, expected)

        assert changed is True
        assert updated.metadata.extra == current.metadata.extra
        assert updated.spec.extra == {"loadBalancerSourceRanges": ["10.0.0.0/8"], "clusterIPs": ["10.96.12.7"]}
        assert [p.extra for p in updated.spec.ports] == [{"appProtocol": "http"}] * 2
        assert updated.to_manifest()["spec"]["loadBalancerSourceRanges"] == ["10.0.0.0/8"]

    def test_cluster_ip_patch_keeps_extras(self) -> None:
        current = self._with_extras(_make_service(cluster_ip="10.96.12.7"))
        expected = _make_service(session_affinity="ClientIP")

        updated, _ = cluster_ip_service_changed(current, expected)

        assert updated.metadata.extra == current.metadata.extra
        assert updated.spec.extra == current.spec.extra
        assert updated.spec.ports[0].extra == {"appProtocol": "http"}

    def test_extras_alone_are_not_drift(self) -> None:
        current = self._with_extras(_make_lb_service(node_ports=True))
        assert load_balancer_service_changed(current, _make_lb_service()).changed is False
        assert cluster_ip_service_changed(self._with_extras(_make_service()), _make_service()).changed is False
