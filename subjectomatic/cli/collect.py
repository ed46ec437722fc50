"""CLI wrapper that discovers subjects under the data root."""

from __future__ import annotations

import json
from pathlib import Path

import click
import structlog

from ..models import CollectionResult
from ..pipelines import SubjectCollector
from ..utils.display import echo_banner, echo_collection_summary, echo_success
from ..utils.errors import ConfigurationError
from ..utils.filters import filter_records, split_commas

log = structlog.get_logger()


@click.command(
    name="collect",
    context_settings=dict(help_option_names=["-h", "--help"], max_content_width=120),
    help="Group files under the data root by subject and report problems.",
)
@click.option(
    "--sub",
    "subs",
    multiple=True,
    callback=split_commas,
    help="Subject filter(s); shell-style globs, repeatable or comma-separated.",
)
@click.option(
    "--workers",
    type=click.IntRange(min=1),
    default=1,
    help="Threads scanning subject directories.",
)
@click.option(
    "--json",
    "json_out",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write the collection manifest to this file.",
)
@click.option(
    "--strict",
    is_flag=True,
    help="Exit with status 1 when any subject was excluded.",
)
@click.pass_obj
def cli(
    ctx_obj,
    subs: tuple[str, ...],
    workers: int,
    json_out: Path | None,
    strict: bool,
) -> None:
    """Discover subjects and print the assembled / excluded lists.

    Args:
        ctx_obj: Click context populated in ``subjectomatic.cli.main``.
        subs: Subject filters applied after discovery.
        workers: Thread count forwarded to the collector.
        json_out: Optional manifest destination.
        strict: Turn exclusions into a non-zero exit status.

    Raises:
        click.ClickException: On configuration problems, or with ``--strict``
            when subjects were excluded.
    """
    root: Path = ctx_obj["root"]
    cfg = ctx_obj["cfg"]

    echo_banner(f"Collect subjects under {root}")
    try:
        result = SubjectCollector(cfg.roles).collect(root, workers=workers)
    except ConfigurationError as exc:
        raise click.ClickException(str(exc)) from exc

    if subs:
        result = CollectionResult(
            root=result.root,
            records=tuple(filter_records(result.records, subs)),
            excluded=tuple(filter_records(result.excluded, subs)),
        )
        log.info("Subject filter kept %d subject(s)", len(result.records))

    echo_collection_summary(result)

    if json_out is not None:
        json_out.parent.mkdir(parents=True, exist_ok=True)
        json_out.write_text(json.dumps(result.to_manifest(), indent=2) + "\n")
        log.info("Manifest written to %s", json_out)

    if strict and not result.ok:
        raise click.ClickException(
            f"{len(result.excluded)} subject(s) excluded: "
            + ", ".join(ex.subject_id for ex in result.excluded)
        )
    echo_success(f"{len(result.records)} subject(s) collected.")


__all__ = ["cli"]
