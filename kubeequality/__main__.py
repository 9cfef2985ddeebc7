"""Entry point for `python -m kubeequality`.

Usage:
    python -m kubeequality diff current.yaml expected.yaml
"""

from __future__ import annotations

from kubeequality.cli import cli

cli()
