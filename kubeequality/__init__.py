"""kube-equality: change detection for controller-managed Kubernetes resources."""

__version__ = "0.1.0"
