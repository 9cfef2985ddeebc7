"""Core data structures for kube-equality."""

from kubeequality.models.changes import ConfigChange, FieldChange
from kubeequality.models.config import KubeEqualityConfig
from kubeequality.models.resources import (
    DaemonSet,
    DaemonSetSpec,
    Deployment,
    DeploymentSpec,
    ExternalTrafficPolicy,
    Job,
    JobSpec,
    ManifestError,
    ObjectMeta,
    PodTemplateSpec,
    Resource,
    Service,
    ServicePort,
    ServiceSpec,
    ServiceType,
)

__all__ = [
    "ConfigChange",
    "DaemonSet",
    "DaemonSetSpec",
    "Deployment",
    "DeploymentSpec",
    "ExternalTrafficPolicy",
    "FieldChange",
    "Job",
    "JobSpec",
    "KubeEqualityConfig",
    "ManifestError",
    "ObjectMeta",
    "PodTemplateSpec",
    "Resource",
    "Service",
    "ServicePort",
    "ServiceSpec",
    "ServiceType",
]
