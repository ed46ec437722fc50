"""Utility functions to print formatted CLI messages and run summaries."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

if TYPE_CHECKING:  # pragma: no cover
    from subjectomatic.models import CollectionResult
    from subjectomatic.pipelines.types import BindingResult

__all__ = [
    "echo_banner",
    "echo_success",
    "echo_section",
    "echo_collection_summary",
    "echo_binding_summary",
]


def echo_banner(text: str) -> None:
    """Print a colourful banner announcing a processing step."""
    click.secho(f"\n=== {text} ===", fg="cyan")


def echo_success(text: str) -> None:
    """Echo a green success message prefixed with a tick."""
    click.secho(f"✓ {text}", fg="green")


def echo_section(text: str) -> None:
    """Echo a purple section header."""
    click.secho(f"\n  — {text} —", fg="magenta")


def echo_collection_summary(result: "CollectionResult") -> None:
    """Print assembled subjects and, separately, excluded subjects with reasons.

    Args:
        result: Outcome of a discovery pass.
    """
    echo_section(f"Subjects ({len(result.records)})")
    for rec in result.records:
        roles = ", ".join(f"{k}×{len(v)}" for k, v in rec.roles().items())
        click.echo(f"  • {rec.subject_id}  [{roles}]")

    if result.excluded:
        echo_section(f"Excluded ({len(result.excluded)})")
        for ex in result.excluded:
            click.secho(f"  ✗ {ex.subject_id}  ({ex.directory})", fg="yellow")
            for reason in ex.reasons:
                click.echo(f"      - {reason}")


def echo_binding_summary(result: "BindingResult") -> None:
    """Print one line per invocation followed by every skipped binding."""
    echo_section(f"Invocations ({len(result.invocations)})")
    for inv in result.invocations:
        bound = ", ".join(
            f"{name}={'[]' if not files else ','.join(p.name for p in files)}"
            for name, files in inv.inputs.items()
        )
        click.echo(f"  • {inv.unit} {inv.subject_id}: {bound} → {inv.output_dir}")

    if result.skipped:
        echo_section(f"Skipped ({len(result.skipped)})")
        for sk in result.skipped:
            click.secho(f"  ✗ {sk.unit} {sk.subject_id}: {sk.error}", fg="yellow")
