"""Change detection for controller-managed workloads and Services.

Each function compares a *current* snapshot (observed in the cluster) with
an *expected* one (built from desired state) and returns a
:class:`~kubeequality.models.changes.ConfigChange`.  When a managed field
has drifted, ``ConfigChange.updated`` is the object to write back;
otherwise it is None.

Inputs are never mutated.  Fields the cluster assigns (cluster IP, node
ports, health-check node port) are carried over from *current* so an update
never clears them, as are metadata and Service fields outside the compared
set (``extra`` on the snapshots).
"""

from __future__ import annotations

import copy
from dataclasses import replace
from typing import Any, TypeVar

from kubeequality.equality.semantic import diff_fields, semantic_equal
from kubeequality.models.changes import ConfigChange, FieldChange
from kubeequality.models.config import DEFAULT_OWNING_LABEL
from kubeequality.models.resources import DaemonSet, Deployment, Job, Service, ServicePort
from kubeequality.observability.logging import get_logger

_logger = get_logger("equality.differ")

_R = TypeVar("_R", DaemonSet, Deployment, Job, Service)

# Service spec fields compared as a whole: (attribute, manifest name).
_CLUSTER_IP_FIELDS = (
    ("selector", "selector"),
    ("session_affinity", "sessionAffinity"),
    ("type", "type"),
)
_LOAD_BALANCER_FIELDS = (
    ("selector", "selector"),
    ("external_traffic_policy", "externalTrafficPolicy"),
    ("session_affinity", "sessionAffinity"),
    ("type", "type"),
)

# Per-port fields patched individually; nodePort is cluster-assigned.
_PORT_FIELDS = (
    ("name", "name"),
    ("protocol", "protocol"),
    ("port", "port"),
    ("target_port", "targetPort"),
)


class SnapshotRequiredError(ValueError):
    """Raised when a comparison is called without both snapshots."""


def _require(kind: str, current: object, expected: object) -> None:
    if current is None or expected is None:
        missing = "current" if current is None else "expected"
        raise SnapshotRequiredError(f"{kind} comparison requires a {missing} snapshot, got None")


def _result(current: _R, updated: _R, changes: list[FieldChange]) -> ConfigChange[_R]:
    _logger.debug(
        "config_changed",
        kind=current.kind,
        namespace=current.metadata.namespace,
        name=current.metadata.name,
        fields=[c.field_path for c in changes],
    )
    return ConfigChange(updated=updated, changes=tuple(changes))


def _workload_changed(current: _R, expected: _R) -> ConfigChange[_R]:
    changed = False
    changes: list[FieldChange] = []
    updated = copy.deepcopy(current)

    if not semantic_equal(current.metadata.labels, expected.metadata.labels):
        changed = True
        changes.extend(diff_fields("metadata.labels", current.metadata.labels, expected.metadata.labels))
        updated = replace(updated, metadata=replace(updated.metadata, labels=copy.deepcopy(expected.metadata.labels)))

    if not semantic_equal(current.spec, expected.spec):
        changed = True
        changes.extend(diff_fields("spec", current.spec, expected.spec))
        updated = replace(updated, spec=copy.deepcopy(expected.spec))

    if not changed:
        return ConfigChange()
    return _result(current, updated, changes)


def daemonset_config_changed(current: DaemonSet, expected: DaemonSet) -> ConfigChange[DaemonSet]:
    """Compare labels and the full spec of two DaemonSets.

    On drift, the labels and/or spec of a copy of *current* are replaced
    from *expected*.
    """
    _require("DaemonSet", current, expected)
    return _workload_changed(current, expected)


def deployment_config_changed(current: Deployment, expected: Deployment) -> ConfigChange[Deployment]:
    """Compare labels and the full spec of two Deployments.

    On drift, the labels and/or spec of a copy of *current* are replaced
    from *expected*.
    """
    _require("Deployment", current, expected)
    return _workload_changed(current, expected)


def job_config_changed(
    current: Job,
    expected: Job,
    *,
    owning_label: str = DEFAULT_OWNING_LABEL,
) -> ConfigChange[Job]:
    """Compare two Jobs; on any drift the whole of *expected* is returned.

    Compared: labels, parallelism, backoffLimit and the pod template spec.
    ``completions`` is immutable and never compared.  Template labels are
    mostly job-generated, so only the presence of *owning_label* is checked,
    and only when *current* has a template label map at all.
    """
    _require("Job", current, expected)
    changed = False
    changes: list[FieldChange] = []

    scalar_checks: list[tuple[str, Any, Any]] = [
        ("metadata.labels", current.metadata.labels, expected.metadata.labels),
        ("spec.parallelism", current.spec.parallelism, expected.spec.parallelism),
        ("spec.backoffLimit", current.spec.backoff_limit, expected.spec.backoff_limit),
    ]
    for path, have, want in scalar_checks:
        if not semantic_equal(have, want):
            changed = True
            changes.extend(diff_fields(path, have, want))

    template_labels = current.spec.template.labels
    if template_labels is not None and owning_label not in template_labels:
        changed = True
        wanted = (expected.spec.template.labels or {}).get(owning_label)
        changes.append(FieldChange(f'spec.template.metadata.labels["{owning_label}"]', None, wanted))

    if not semantic_equal(current.spec.template.spec, expected.spec.template.spec):
        changed = True
        changes.extend(diff_fields("spec.template.spec", current.spec.template.spec, expected.spec.template.spec))

    if not changed:
        return ConfigChange()
    return _result(current, copy.deepcopy(expected), changes)


def _patch_fields(
    current: Service,
    expected: Service,
    names: tuple[tuple[str, str], ...],
    patch: dict[str, Any],
    changes: list[FieldChange],
) -> None:
    for attr, json_name in names:
        have = getattr(current.spec, attr)
        want = getattr(expected.spec, attr)
        if not semantic_equal(have, want):
            patch[attr] = copy.deepcopy(want)
            changes.extend(diff_fields(f"spec.{json_name}", have, want))


def _patched(current: Service, patch: dict[str, Any]) -> Service:
    updated = copy.deepcopy(current)
    return replace(updated, spec=replace(updated.spec, **patch))


def cluster_ip_service_changed(current: Service, expected: Service) -> ConfigChange[Service]:
    """Compare ports, selector, session affinity and type of two Services.

    The cluster IP is assigned by the cluster and never compared.  Only the
    sub-fields that differ are copied from *expected* into a copy of
    *current*.
    """
    _require("Service", current, expected)
    patch: dict[str, Any] = {}
    changes: list[FieldChange] = []

    if not semantic_equal(current.spec.ports, expected.spec.ports):
        patch["ports"] = copy.deepcopy(expected.spec.ports)
        changes.extend(diff_fields("spec.ports", current.spec.ports, expected.spec.ports))

    _patch_fields(current, expected, _CLUSTER_IP_FIELDS, patch, changes)

    if not patch:
        return ConfigChange()
    return _result(current, _patched(current, patch), changes)


def _patch_ports(
    current: list[ServicePort],
    expected: list[ServicePort],
    changes: list[FieldChange],
) -> list[ServicePort] | None:
    ports: list[ServicePort] = []
    changed = False
    for i, (have, want) in enumerate(zip(current, expected)):
        port_patch: dict[str, Any] = {}
        for attr, json_name in _PORT_FIELDS:
            old, new = getattr(have, attr), getattr(want, attr)
            if not semantic_equal(old, new):
                port_patch[attr] = new
                changes.append(FieldChange(f"spec.ports[{i}].{json_name}", old, new))
        if port_patch:
            changed = True
        ports.append(replace(copy.deepcopy(have), **port_patch))
    return ports if changed else None


def load_balancer_service_changed(current: Service, expected: Service) -> ConfigChange[Service]:
    """Compare two LoadBalancer Services, preserving cluster-assigned ports.

    When both Services have the same number of ports, each port's name,
    protocol, port and targetPort are patched individually so every
    nodePort stays as allocated.  A different port count replaces the port
    list wholesale.  ``healthCheckNodePort`` is never compared.
    """
    _require("Service", current, expected)
    patch: dict[str, Any] = {}
    changes: list[FieldChange] = []

    if len(current.spec.ports) != len(expected.spec.ports):
        patch["ports"] = copy.deepcopy(expected.spec.ports)
        changes.extend(diff_fields("spec.ports", current.spec.ports, expected.spec.ports))
    else:
        ports = _patch_ports(current.spec.ports, expected.spec.ports, changes)
        if ports is not None:
            patch["ports"] = ports

    _patch_fields(current, expected, _LOAD_BALANCER_FIELDS, patch, changes)

    if not patch:
        return ConfigChange()
    return _result(current, _patched(current, patch), changes)
