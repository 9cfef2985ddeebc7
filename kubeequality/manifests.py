"""Loading manifests and routing them to the matching comparison.

A reconciliation loop usually holds plain manifest dicts: what the API
server returned, and what it rendered from desired state.  This module turns
those into snapshots and picks the comparison for their kind.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

import yaml

from kubeequality.equality.differ import (
    cluster_ip_service_changed,
    daemonset_config_changed,
    deployment_config_changed,
    job_config_changed,
    load_balancer_service_changed,
)
from kubeequality.models.changes import ConfigChange
from kubeequality.models.config import DEFAULT_OWNING_LABEL
from kubeequality.models.resources import (
    DaemonSet,
    Deployment,
    Job,
    ManifestError,
    Resource,
    Service,
    ServiceType,
)
from kubeequality.observability.logging import get_logger

_logger = get_logger("manifests")

_SNAPSHOT_TYPES: dict[str, Callable[[Mapping[str, Any]], Resource]] = {
    "DaemonSet": DaemonSet.from_manifest,
    "Deployment": Deployment.from_manifest,
    "Job": Job.from_manifest,
    "Service": Service.from_manifest,
}

# Service types that expose node ports get the node-port-preserving comparison.
_NODE_EXPOSED = frozenset({ServiceType.LOAD_BALANCER, ServiceType.NODE_PORT})

__all__ = [
    "ManifestError",
    "compare_manifests",
    "compare_snapshots",
    "load_manifest",
    "snapshot_from_manifest",
]


def load_manifest(path: str | Path) -> dict[str, Any]:
    """Read a single-document YAML (or JSON) manifest from *path*."""
    try:
        with open(path, encoding="utf-8") as fh:
            manifest = yaml.safe_load(fh)
    except OSError as exc:
        raise ManifestError(f"cannot read {path}: {exc.strerror}") from exc
    except yaml.YAMLError as exc:
        raise ManifestError(f"{path} is not valid YAML: {exc}") from exc

    if not isinstance(manifest, dict) or "kind" not in manifest:
        raise ManifestError(f"{path} does not contain a Kubernetes object")
    return manifest


def snapshot_from_manifest(manifest: Mapping[str, Any]) -> Resource:
    """Build the typed snapshot for a DaemonSet, Deployment, Job or Service manifest."""
    kind = manifest.get("kind")
    factory = _SNAPSHOT_TYPES.get(kind)  # type: ignore[arg-type]
    if factory is None:
        supported = ", ".join(sorted(_SNAPSHOT_TYPES))
        raise ManifestError(f"unsupported kind {kind!r}; supported kinds: {supported}")
    return factory(manifest)


def compare_snapshots(
    current: Resource,
    expected: Resource,
    owning_label: str = DEFAULT_OWNING_LABEL,
) -> ConfigChange[Any]:
    """Run the comparison matching the kind of two snapshots.

    Services are routed by the *expected* type: LoadBalancer and NodePort
    Services keep their allocated node ports, other types use the
    cluster-IP comparison.
    """
    if type(current) is not type(expected):
        raise ManifestError(f"cannot compare {current.kind} with {expected.kind}")

    if isinstance(current, DaemonSet):
        return daemonset_config_changed(current, expected)  # type: ignore[arg-type]
    if isinstance(current, Deployment):
        return deployment_config_changed(current, expected)  # type: ignore[arg-type]
    if isinstance(current, Job):
        return job_config_changed(current, expected, owning_label=owning_label)  # type: ignore[arg-type]
    if expected.spec.type in _NODE_EXPOSED:  # type: ignore[union-attr]
        return load_balancer_service_changed(current, expected)  # type: ignore[arg-type]
    return cluster_ip_service_changed(current, expected)  # type: ignore[arg-type]


def compare_manifests(
    current: Mapping[str, Any],
    expected: Mapping[str, Any],
    owning_label: str = DEFAULT_OWNING_LABEL,
) -> ConfigChange[Any]:
    """Compare two manifest dicts of the same kind."""
    if current.get("kind") != expected.get("kind"):
        raise ManifestError(f"kind mismatch: current is {current.get('kind')!r}, expected is {expected.get('kind')!r}")

    result = compare_snapshots(
        snapshot_from_manifest(current),
        snapshot_from_manifest(expected),
        owning_label=owning_label,
    )
    _logger.debug(
        "manifests_compared",
        kind=current.get("kind"),
        name=(current.get("metadata") or {}).get("name", ""),
        changed=result.changed,
        fields=result.field_paths,
    )
    return result
