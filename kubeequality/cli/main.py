"""Click commands for comparing manifests from the shell.

Usage::

    kubeequality diff observed.yaml desired.yaml
    kubeequality --log-level debug diff observed.yaml desired.yaml --output yaml --exit-code
"""

from __future__ import annotations

import json
from typing import Any

import click
import yaml

from kubeequality import __version__
from kubeequality.config import load_config, validate_label_key
from kubeequality.manifests import ManifestError, compare_manifests, load_manifest
from kubeequality.models.changes import ConfigChange
from kubeequality.observability.logging import get_logger, setup_logging

# Exit status when --exit-code is set and the objects differ (as `git diff`).
_EXIT_CHANGED = 1


class _ManifestFailure(click.ClickException):
    exit_code = 2


def _report(current: dict[str, Any], result: ConfigChange[Any]) -> dict[str, Any]:
    metadata = current.get("metadata") or {}
    return {
        "kind": current["kind"],
        "namespace": metadata.get("namespace", ""),
        "name": metadata.get("name", ""),
        "changed": result.changed,
        "changes": [
            {"path": c.field_path, "current": c.old_value, "expected": c.new_value} for c in result.changes
        ],
        "updated": result.updated.to_manifest() if result.updated is not None else None,
    }


@click.group()
@click.version_option(version=__version__, prog_name="kubeequality")
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default=None,
    help="Override KUBEEQUALITY_LOG_LEVEL.",
)
@click.pass_context
def cli(ctx: click.Context, log_level: str | None) -> None:
    """Detect drift between observed and desired Kubernetes objects."""
    try:
        config = load_config()
    except ValueError as exc:
        raise click.ClickException(f"invalid configuration: {exc}") from exc

    if log_level:
        config.log.level = log_level.lower()
    setup_logging(config.log.level, config.log.format)
    ctx.obj = config


@cli.command()
@click.argument("current", type=click.Path(dir_okay=False))
@click.argument("expected", type=click.Path(dir_okay=False))
@click.option("--owning-label", default=None, help="Ownership marker label key checked on Job templates.")
@click.option("--output", "-o", type=click.Choice(["json", "yaml"]), default="json", show_default=True)
@click.option("--exit-code", is_flag=True, help=f"Exit with status {_EXIT_CHANGED} when the objects differ.")
@click.pass_context
def diff(
    ctx: click.Context,
    current: str,
    expected: str,
    owning_label: str | None,
    output: str,
    exit_code: bool,
) -> None:
    """Compare CURRENT (observed) with EXPECTED (desired) and print the update to apply."""
    config = ctx.obj
    if owning_label is not None:
        try:
            config.equality.owning_label = validate_label_key(owning_label)
        except ValueError as exc:
            raise click.BadParameter(str(exc), param_hint="--owning-label") from exc

    try:
        current_manifest = load_manifest(current)
        expected_manifest = load_manifest(expected)
        result = compare_manifests(
            current_manifest,
            expected_manifest,
            owning_label=config.equality.owning_label,
        )
    except ManifestError as exc:
        get_logger("cli").error("diff_failed", current=current, expected=expected, error=str(exc))
        raise _ManifestFailure(str(exc)) from exc

    report = _report(current_manifest, result)
    if output == "yaml":
        click.echo(yaml.safe_dump(report, sort_keys=False), nl=False)
    else:
        click.echo(json.dumps(report, indent=2))

    if exit_code and result.changed:
        ctx.exit(_EXIT_CHANGED)
