"""Command line for comparing an observed manifest with a desired one.

``kubeequality diff CURRENT EXPECTED`` prints the drifted fields and the
object to write back.  The click group lives in :mod:`kubeequality.cli.main`.
"""

from kubeequality.cli.main import cli

__all__ = ["cli"]
