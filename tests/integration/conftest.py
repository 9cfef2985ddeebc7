"""Shared fixtures for kube-equality integration tests.

Manifests under ``manifests/`` mirror what a reconciliation loop holds: the
object observed in the cluster (with cluster-assigned fields filled in) and
the object rendered from desired state.
"""

from __future__ import annotations

import copy
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
import yaml

MANIFEST_DIR = Path(__file__).parent / "manifests"


def manifest_path(name: str) -> Path:
    """Absolute path of a fixture manifest."""
    return MANIFEST_DIR / name


@pytest.fixture
def load_fixture() -> Callable[[str], dict[str, Any]]:
    """Return a loader that gives each test its own copy of a fixture manifest."""
    cache: dict[str, dict[str, Any]] = {}

    def _load(name: str) -> dict[str, Any]:
        if name not in cache:
            cache[name] = yaml.safe_load(manifest_path(name).read_text(encoding="utf-8"))
        return copy.deepcopy(cache[name])

    return _load


@pytest.fixture
def write_manifest(tmp_path: Path) -> Callable[[str, Any], Path]:
    """Return a writer that dumps a manifest into the test's tmp dir."""

    def _write(name: str, manifest: Any) -> Path:
        path = tmp_path / name
        path.write_text(yaml.safe_dump(manifest, sort_keys=False), encoding="utf-8")
        return path

    return _write
