"""Configuration data structures."""

from __future__ import annotations

from dataclasses import dataclass, field

DEFAULT_OWNING_LABEL = "contour.operator.projectcontour.io/owning-contour"


@dataclass
class EqualityConfig:
    """Comparison settings."""

    owning_label: str = DEFAULT_OWNING_LABEL


@dataclass
class LogConfig:
    """Logging configuration."""

    level: str = "info"
    format: str = "json"


@dataclass
class KubeEqualityConfig:
    """Top-level kube-equality configuration."""

    equality: EqualityConfig = field(default_factory=EqualityConfig)
    log: LogConfig = field(default_factory=LogConfig)
