"""CLI wrapper that binds collected subjects to pipeline units."""

from __future__ import annotations

import json
from pathlib import Path

import click
import structlog

from ..pipelines import SubjectCollector, bind_records
from ..utils.display import echo_banner, echo_binding_summary, echo_success
from ..utils.errors import ConfigurationError
from ..utils.filters import filter_records, parse_assignments, split_commas

log = structlog.get_logger()


@click.command(
    name="bind",
    context_settings=dict(help_option_names=["-h", "--help"], max_content_width=120),
    help="Resolve unit parameters and input slots for every collected subject.",
)
@click.option(
    "--unit",
    "units",
    multiple=True,
    callback=split_commas,
    help="Unit(s) to bind. Default: every unit declared in pipeline.yaml.",
)
@click.option(
    "--param",
    "params",
    multiple=True,
    metavar="KEY=VALUE",
    help="Override a declared parameter for every unit (repeatable).",
)
@click.option(
    "--sub",
    "subs",
    multiple=True,
    callback=split_commas,
    help="Subject filter(s); shell-style globs, repeatable or comma-separated.",
)
@click.option(
    "--json",
    "json_out",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write the invocation list to this file.",
)
@click.pass_obj
def cli(
    ctx_obj,
    units: tuple[str, ...],
    params: tuple[str, ...],
    subs: tuple[str, ...],
    json_out: Path | None,
) -> None:
    """Collect subjects, then bind them to the requested units.

    Args:
        ctx_obj: Click context populated in ``subjectomatic.cli.main``.
        units: Unit names; empty means all.
        params: ``key=value`` overrides applied on top of the YAML values.
        subs: Subject filters applied before binding.
        json_out: Optional destination for the invocation list.

    Raises:
        click.ClickException: On configuration problems.
    """
    root: Path = ctx_obj["root"]
    cfg = ctx_obj["cfg"]
    extra = parse_assignments(params)

    echo_banner("Bind units")
    try:
        result = SubjectCollector(cfg.roles).collect(root)
        records = filter_records(result.records, subs)
        bound = bind_records(
            records,
            cfg.pipeline,
            units=units or None,
            extra_params=extra,
            base_dir=root,
        )
    except ConfigurationError as exc:
        raise click.ClickException(str(exc)) from exc

    for ex in result.excluded:
        log.warning("Subject %s excluded from binding", ex.subject_id)

    echo_binding_summary(bound)

    if json_out is not None:
        payload = {
            "invocations": [inv.model_dump(mode="json") for inv in bound.invocations],
            "skipped": [
                {"unit": sk.unit, "subject_id": sk.subject_id, "reason": str(sk.error)}
                for sk in bound.skipped
            ],
        }
        json_out.parent.mkdir(parents=True, exist_ok=True)
        json_out.write_text(json.dumps(payload, indent=2) + "\n")
        log.info("Invocations written to %s", json_out)

    echo_success(f"{len(bound.invocations)} invocation(s) bound.")


__all__ = ["cli"]
