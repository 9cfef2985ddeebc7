"""Configuration loading from environment variables."""

from __future__ import annotations

import os
import re

from kubeequality.models.config import (
    DEFAULT_OWNING_LABEL,
    EqualityConfig,
    KubeEqualityConfig,
    LogConfig,
)

# Optional DNS-subdomain prefix, then a name segment of at most 63 chars.
_LABEL_PREFIX = r"[a-z0-9]([-a-z0-9]*[a-z0-9])?(\.[a-z0-9]([-a-z0-9]*[a-z0-9])?)*"
_LABEL_NAME = r"[A-Za-z0-9]([-A-Za-z0-9_.]{0,61}[A-Za-z0-9])?"
_RE_LABEL_KEY = re.compile(rf"^({_LABEL_PREFIX}/)?{_LABEL_NAME}$")


def _env(key: str, default: str = "") -> str:
    return os.environ.get(f"KUBEEQUALITY_{key}", default)


def _validate_log_level(value: str) -> str:
    valid = {"debug", "info", "warning", "error"}
    if value.lower() not in valid:
        raise ValueError(f"Invalid log level: {value}. Must be one of {valid}")
    return value.lower()


def _validate_log_format(value: str) -> str:
    valid = {"json", "console"}
    if value.lower() not in valid:
        raise ValueError(f"Invalid log format: {value}. Must be one of {valid}")
    return value.lower()


def validate_label_key(value: str) -> str:
    """Return *value* if it is a well-formed Kubernetes label key."""
    prefix, _, _name = value.rpartition("/")
    if not _RE_LABEL_KEY.match(value) or len(prefix) > 253:
        raise ValueError(f"Invalid label key: {value!r}")
    return value


def load_config() -> KubeEqualityConfig:
    """Load configuration from KUBEEQUALITY_* environment variables."""
    return KubeEqualityConfig(
        equality=EqualityConfig(
            owning_label=validate_label_key(_env("OWNING_LABEL", DEFAULT_OWNING_LABEL)),
        ),
        log=LogConfig(
            level=_validate_log_level(_env("LOG_LEVEL", "info")),
            format=_validate_log_format(_env("LOG_FORMAT", "json")),
        ),
    )
