"""Typed snapshots of the Kubernetes resources a controller reconciles.

Each snapshot models the subset of a kind that change detection reads.
Snapshots are frozen dataclasses; nested mappings (labels, selectors, pod
specs) are plain dicts and must be treated as read-only.

``from_manifest()`` accepts a manifest dict as returned by the API server or
by ``yaml.safe_load`` (camelCase keys).  ``to_manifest()`` produces the same
shape, omitting unset fields.

Keys of ``metadata``, ``spec``, the pod template and each Service port that
are not modelled are kept in ``extra`` and written back unchanged, so an
update never strips fields such as ``ownerReferences`` or
``loadBalancerSourceRanges``.  Workload specs compare their ``extra`` keys
like any other spec field; metadata, Service specs and ports do not, since
those carry cluster-filled values (``clusterIPs``, ``ipFamilies``,
``generation``).
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class ManifestError(ValueError):
    """Raised when a manifest cannot be turned into a snapshot."""


class ServiceType(StrEnum):
    """Kubernetes Service types."""

    CLUSTER_IP = "ClusterIP"
    NODE_PORT = "NodePort"
    LOAD_BALANCER = "LoadBalancer"
    EXTERNAL_NAME = "ExternalName"


class ExternalTrafficPolicy(StrEnum):
    """Routing policy for external traffic to node-exposed Services."""

    CLUSTER = "Cluster"
    LOCAL = "Local"


IntOrString = int | str


def _mapping(manifest: Mapping[str, Any], key: str, where: str) -> dict[str, Any]:
    value = manifest.get(key)
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ManifestError(f"{where}.{key} must be a mapping, got {type(value).__name__}")
    return dict(value)


def _opt_mapping(manifest: Mapping[str, Any], key: str, where: str) -> dict[str, Any] | None:
    # A missing key and an explicit null both map to None; {} stays {}.
    if manifest.get(key) is None:
        return None
    return _mapping(manifest, key, where)


def _opt_int(manifest: Mapping[str, Any], key: str, where: str) -> int | None:
    value = manifest.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ManifestError(f"{where}.{key} must be an integer, got {value!r}")
    return value


def _bool(manifest: Mapping[str, Any], key: str, where: str) -> bool:
    value = manifest.get(key)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise ManifestError(f"{where}.{key} must be a boolean, got {value!r}")
    return value


def _enum(enum_cls: type[StrEnum], value: Any, where: str) -> Any:
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ManifestError(f"{where} must be one of {allowed}, got {value!r}") from None


def _extra(manifest: Mapping[str, Any], known: frozenset[str]) -> dict[str, Any]:
    return {k: v for k, v in manifest.items() if k not in known}


def _compact(extra: dict[str, Any], values: dict[str, Any]) -> dict[str, Any]:
    return {**extra, **{k: v for k, v in values.items() if v is not None}}


@dataclass(frozen=True)
class ObjectMeta:
    """Object metadata.  ``labels`` is None when the object carries no label map."""

    name: str = ""
    namespace: str = ""
    labels: dict[str, str] | None = None
    annotations: dict[str, str] | None = None
    uid: str | None = None
    resource_version: str | None = None
    extra: dict[str, Any] = field(default_factory=dict, compare=False)

    _known = frozenset({"name", "namespace", "labels", "annotations", "uid", "resourceVersion"})

    @classmethod
    def from_manifest(cls, manifest: Mapping[str, Any]) -> ObjectMeta:
        return cls(
            name=manifest.get("name", ""),
            namespace=manifest.get("namespace", ""),
            labels=_opt_mapping(manifest, "labels", "metadata"),
            annotations=_opt_mapping(manifest, "annotations", "metadata"),
            uid=manifest.get("uid"),
            resource_version=manifest.get("resourceVersion"),
            extra=_extra(manifest, cls._known),
        )

    def to_manifest(self) -> dict[str, Any]:
        return _compact(
            self.extra,
            {
                "name": self.name or None,
                "namespace": self.namespace or None,
                "labels": self.labels,
                "annotations": self.annotations,
                "uid": self.uid,
                "resourceVersion": self.resource_version,
            },
        )


@dataclass(frozen=True)
class PodTemplateSpec:
    """Pod template of a workload.  The pod spec itself stays a manifest mapping."""

    labels: dict[str, str] | None = None
    annotations: dict[str, str] | None = None
    spec: dict[str, Any] = field(default_factory=dict)
    extra: dict[str, Any] = field(default_factory=dict)

    _known = frozenset({"labels", "annotations"})

    @classmethod
    def from_manifest(cls, manifest: Mapping[str, Any]) -> PodTemplateSpec:
        metadata = _mapping(manifest, "metadata", "spec.template")
        return cls(
            labels=_opt_mapping(metadata, "labels", "spec.template.metadata"),
            annotations=_opt_mapping(metadata, "annotations", "spec.template.metadata"),
            spec=_mapping(manifest, "spec", "spec.template"),
            extra=_extra(metadata, cls._known),
        )

    def to_manifest(self) -> dict[str, Any]:
        metadata = _compact(self.extra, {"labels": self.labels, "annotations": self.annotations})
        return {"metadata": metadata, "spec": self.spec}


@dataclass(frozen=True)
class DaemonSetSpec:
    selector: dict[str, Any] | None = None
    template: PodTemplateSpec = field(default_factory=PodTemplateSpec)
    update_strategy: dict[str, Any] | None = None
    min_ready_seconds: int | None = None
    revision_history_limit: int | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    _known = frozenset({"selector", "template", "updateStrategy", "minReadySeconds", "revisionHistoryLimit"})

    @classmethod
    def from_manifest(cls, manifest: Mapping[str, Any]) -> DaemonSetSpec:
        return cls(
            selector=_opt_mapping(manifest, "selector", "spec"),
            template=PodTemplateSpec.from_manifest(_mapping(manifest, "template", "spec")),
            update_strategy=_opt_mapping(manifest, "updateStrategy", "spec"),
            min_ready_seconds=_opt_int(manifest, "minReadySeconds", "spec"),
            revision_history_limit=_opt_int(manifest, "revisionHistoryLimit", "spec"),
            extra=_extra(manifest, cls._known),
        )

    def to_manifest(self) -> dict[str, Any]:
        return _compact(
            self.extra,
            {
                "selector": self.selector,
                "template": self.template.to_manifest(),
                "updateStrategy": self.update_strategy,
                "minReadySeconds": self.min_ready_seconds,
                "revisionHistoryLimit": self.revision_history_limit,
            },
        )


@dataclass(frozen=True)
class DeploymentSpec:
    replicas: int | None = None
    selector: dict[str, Any] | None = None
    template: PodTemplateSpec = field(default_factory=PodTemplateSpec)
    strategy: dict[str, Any] | None = None
    min_ready_seconds: int | None = None
    revision_history_limit: int | None = None
    progress_deadline_seconds: int | None = None
    paused: bool = False
    extra: dict[str, Any] = field(default_factory=dict)

    _known = frozenset(
        {
            "replicas",
            "selector",
            "template",
            "strategy",
            "minReadySeconds",
            "revisionHistoryLimit",
            "progressDeadlineSeconds",
            "paused",
        }
    )

    @classmethod
    def from_manifest(cls, manifest: Mapping[str, Any]) -> DeploymentSpec:
        return cls(
            replicas=_opt_int(manifest, "replicas", "spec"),
            selector=_opt_mapping(manifest, "selector", "spec"),
            template=PodTemplateSpec.from_manifest(_mapping(manifest, "template", "spec")),
            strategy=_opt_mapping(manifest, "strategy", "spec"),
            min_ready_seconds=_opt_int(manifest, "minReadySeconds", "spec"),
            revision_history_limit=_opt_int(manifest, "revisionHistoryLimit", "spec"),
            progress_deadline_seconds=_opt_int(manifest, "progressDeadlineSeconds", "spec"),
            paused=_bool(manifest, "paused", "spec"),
            extra=_extra(manifest, cls._known),
        )

    def to_manifest(self) -> dict[str, Any]:
        return _compact(
            self.extra,
            {
                "replicas": self.replicas,
                "selector": self.selector,
                "template": self.template.to_manifest(),
                "strategy": self.strategy,
                "minReadySeconds": self.min_ready_seconds,
                "revisionHistoryLimit": self.revision_history_limit,
                "progressDeadlineSeconds": self.progress_deadline_seconds,
                "paused": self.paused or None,
            },
        )


@dataclass(frozen=True)
class JobSpec:
    """Job spec.  ``completions`` is immutable once the Job exists."""

    parallelism: int | None = None
    completions: int | None = None
    backoff_limit: int | None = None
    template: PodTemplateSpec = field(default_factory=PodTemplateSpec)
    active_deadline_seconds: int | None = None
    ttl_seconds_after_finished: int | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    _known = frozenset(
        {
            "parallelism",
            "completions",
            "backoffLimit",
            "template",
            "activeDeadlineSeconds",
            "ttlSecondsAfterFinished",
        }
    )

    @classmethod
    def from_manifest(cls, manifest: Mapping[str, Any]) -> JobSpec:
        return cls(
            parallelism=_opt_int(manifest, "parallelism", "spec"),
            completions=_opt_int(manifest, "completions", "spec"),
            backoff_limit=_opt_int(manifest, "backoffLimit", "spec"),
            template=PodTemplateSpec.from_manifest(_mapping(manifest, "template", "spec")),
            active_deadline_seconds=_opt_int(manifest, "activeDeadlineSeconds", "spec"),
            ttl_seconds_after_finished=_opt_int(manifest, "ttlSecondsAfterFinished", "spec"),
            extra=_extra(manifest, cls._known),
        )

    def to_manifest(self) -> dict[str, Any]:
        return _compact(
            self.extra,
            {
                "parallelism": self.parallelism,
                "completions": self.completions,
                "backoffLimit": self.backoff_limit,
                "template": self.template.to_manifest(),
                "activeDeadlineSeconds": self.active_deadline_seconds,
                "ttlSecondsAfterFinished": self.ttl_seconds_after_finished,
            },
        )


@dataclass(frozen=True)
class ServicePort:
    """One Service port.  ``node_port`` is allocated by the cluster."""

    name: str = ""
    protocol: str = "TCP"
    port: int = 0
    target_port: IntOrString | None = None
    node_port: int | None = None
    extra: dict[str, Any] = field(default_factory=dict, compare=False)

    _known = frozenset({"name", "protocol", "port", "targetPort", "nodePort"})

    @classmethod
    def from_manifest(cls, manifest: Mapping[str, Any]) -> ServicePort:
        port = _opt_int(manifest, "port", "spec.ports[]")
        if port is None:
            raise ManifestError("spec.ports[].port is required")
        return cls(
            name=manifest.get("name", ""),
            protocol=manifest.get("protocol", "TCP"),
            port=port,
            target_port=manifest.get("targetPort"),
            node_port=_opt_int(manifest, "nodePort", "spec.ports[]"),
            extra=_extra(manifest, cls._known),
        )

    def to_manifest(self) -> dict[str, Any]:
        return _compact(
            self.extra,
            {
                "name": self.name or None,
                "protocol": self.protocol,
                "port": self.port,
                "targetPort": self.target_port,
                "nodePort": self.node_port,
            },
        )


@dataclass(frozen=True)
class ServiceSpec:
    """Service spec.  ``cluster_ip`` and ``health_check_node_port`` are cluster-assigned."""

    type: ServiceType = ServiceType.CLUSTER_IP
    ports: list[ServicePort] = field(default_factory=list)
    selector: dict[str, str] | None = None
    cluster_ip: str | None = None
    session_affinity: str = "None"
    external_traffic_policy: ExternalTrafficPolicy | None = None
    health_check_node_port: int | None = None
    extra: dict[str, Any] = field(default_factory=dict, compare=False)

    _known = frozenset(
        {
            "type",
            "ports",
            "selector",
            "clusterIP",
            "sessionAffinity",
            "externalTrafficPolicy",
            "healthCheckNodePort",
        }
    )

    @classmethod
    def from_manifest(cls, manifest: Mapping[str, Any]) -> ServiceSpec:
        ports = manifest.get("ports") or []
        if not isinstance(ports, list):
            raise ManifestError("spec.ports must be a list")
        policy = manifest.get("externalTrafficPolicy")
        return cls(
            type=_enum(ServiceType, manifest.get("type") or "ClusterIP", "spec.type"),
            ports=[ServicePort.from_manifest(p) for p in ports],
            selector=_opt_mapping(manifest, "selector", "spec"),
            cluster_ip=manifest.get("clusterIP"),
            session_affinity=manifest.get("sessionAffinity") or "None",
            external_traffic_policy=(
                _enum(ExternalTrafficPolicy, policy, "spec.externalTrafficPolicy") if policy is not None else None
            ),
            health_check_node_port=_opt_int(manifest, "healthCheckNodePort", "spec"),
            extra=_extra(manifest, cls._known),
        )

    def to_manifest(self) -> dict[str, Any]:
        policy = self.external_traffic_policy
        return _compact(
            self.extra,
            {
                "type": str(self.type),
                "ports": [p.to_manifest() for p in self.ports],
                "selector": self.selector,
                "clusterIP": self.cluster_ip,
                "sessionAffinity": self.session_affinity,
                "externalTrafficPolicy": str(policy) if policy is not None else None,
                "healthCheckNodePort": self.health_check_node_port,
            },
        )


def _split(manifest: Mapping[str, Any], kind: str) -> tuple[ObjectMeta, dict[str, Any]]:
    if manifest.get("kind") != kind:
        raise ManifestError(f"expected kind {kind}, got {manifest.get('kind')!r}")
    return ObjectMeta.from_manifest(_mapping(manifest, "metadata", "manifest")), _mapping(manifest, "spec", "manifest")


@dataclass(frozen=True)
class DaemonSet:
    metadata: ObjectMeta
    spec: DaemonSetSpec

    kind = "DaemonSet"
    api_version = "apps/v1"

    @classmethod
    def from_manifest(cls, manifest: Mapping[str, Any]) -> DaemonSet:
        metadata, spec = _split(manifest, cls.kind)
        return cls(metadata=metadata, spec=DaemonSetSpec.from_manifest(spec))

    def to_manifest(self) -> dict[str, Any]:
        return {
            "apiVersion": self.api_version,
            "kind": self.kind,
            "metadata": self.metadata.to_manifest(),
            "spec": self.spec.to_manifest(),
        }


@dataclass(frozen=True)
class Deployment:
    metadata: ObjectMeta
    spec: DeploymentSpec

    kind = "Deployment"
    api_version = "apps/v1"

    @classmethod
    def from_manifest(cls, manifest: Mapping[str, Any]) -> Deployment:
        metadata, spec = _split(manifest, cls.kind)
        return cls(metadata=metadata, spec=DeploymentSpec.from_manifest(spec))

    def to_manifest(self) -> dict[str, Any]:
        return {
            "apiVersion": self.api_version,
            "kind": self.kind,
            "metadata": self.metadata.to_manifest(),
            "spec": self.spec.to_manifest(),
        }


@dataclass(frozen=True)
class Job:
    metadata: ObjectMeta
    spec: JobSpec

    kind = "Job"
    api_version = "batch/v1"

    @classmethod
    def from_manifest(cls, manifest: Mapping[str, Any]) -> Job:
        metadata, spec = _split(manifest, cls.kind)
        return cls(metadata=metadata, spec=JobSpec.from_manifest(spec))

    def to_manifest(self) -> dict[str, Any]:
        return {
            "apiVersion": self.api_version,
            "kind": self.kind,
            "metadata": self.metadata.to_manifest(),
            "spec": self.spec.to_manifest(),
        }


@dataclass(frozen=True)
class Service:
    metadata: ObjectMeta
    spec: ServiceSpec

    kind = "Service"
    api_version = "v1"

    @classmethod
    def from_manifest(cls, manifest: Mapping[str, Any]) -> Service:
        metadata, spec = _split(manifest, cls.kind)
        return cls(metadata=metadata, spec=ServiceSpec.from_manifest(spec))

    def to_manifest(self) -> dict[str, Any]:
        return {
            "apiVersion": self.api_version,
            "kind": self.kind,
            "metadata": self.metadata.to_manifest(),
            "spec": self.spec.to_manifest(),
        }


Resource = DaemonSet | Deployment | Job | Service
