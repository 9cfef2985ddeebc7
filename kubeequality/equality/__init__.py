"""Change detection between observed and desired Kubernetes resources.

Exports:
    daemonset_config_changed       -- DaemonSet labels and spec.
    job_config_changed             -- Job labels, parallelism, backoff, template.
    deployment_config_changed      -- Deployment labels and spec.
    cluster_ip_service_changed     -- ClusterIP Service, cluster IP preserved.
    load_balancer_service_changed  -- LoadBalancer Service, node ports preserved.
    semantic_equal                 -- API-semantic structural equality.
    parse_quantity                 -- Resource quantity parsing.
"""

from kubeequality.equality.differ import (
    SnapshotRequiredError,
    cluster_ip_service_changed,
    daemonset_config_changed,
    deployment_config_changed,
    job_config_changed,
    load_balancer_service_changed,
)
from kubeequality.equality.quantity import QuantityError, parse_quantity, quantities_equal
from kubeequality.equality.semantic import diff_fields, semantic_equal

__all__ = [
    "QuantityError",
    "SnapshotRequiredError",
    "cluster_ip_service_changed",
    "daemonset_config_changed",
    "deployment_config_changed",
    "diff_fields",
    "job_config_changed",
    "load_balancer_service_changed",
    "parse_quantity",
    "quantities_equal",
    "semantic_equal",
]
