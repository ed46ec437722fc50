"""
Bind :class:`~subjectomatic.models.SubjectRecord` values to downstream units.

For every (record, unit) pair the binder

1. resolves the unit's parameters – declared defaults, then the unit's row in
   the override table, then command-line extras;
2. maps roles onto the unit's named input slots in declaration order, using
   the empty tuple as placeholder for an absent optional role;
3. renders the output placement template (``publish_dir``).

Nothing is executed; an :class:`~subjectomatic.pipelines.types.Invocation`
only describes what a workflow engine would run.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple

from subjectomatic.config.schema import PipelineSection
from subjectomatic.models import SubjectRecord
from subjectomatic.utils.errors import (
    ConfigurationError,
    IncompleteGroupError,
    SubjectDataError,
)

from .types import BindingResult, Invocation, SkippedBinding

log = logging.getLogger(__name__)


def _check_units(pipeline: PipelineSection, units: Iterable[str]) -> List[str]:
    """Return *units* as a list, rejecting names the pipeline does not declare."""
    wanted = list(units)
    unknown = [u for u in wanted if u not in pipeline.units]
    if unknown:
        raise ConfigurationError(
            "Unknown unit(s): "
            + ", ".join(unknown)
            + f" (declared: {', '.join(pipeline.units) or 'none'})"
        )
    return wanted


def bind_record(
    record: SubjectRecord,
    unit: str,
    pipeline: PipelineSection,
    *,
    extra_params: Mapping[str, Any] | None = None,
    base_dir: Optional[Path] = None,
) -> Invocation:
    """Return the invocation of *unit* for *record*.

    Args:
        record: Subject inputs produced by the collector.
        unit: Unit name declared under ``pipeline.units``.
        pipeline: Validated pipeline configuration.
        extra_params: Values overriding every other parameter source.
        base_dir: Directory that relative output placements are anchored to.

    Returns:
        A frozen :class:`Invocation`.

    Raises:
        ConfigurationError: Unknown unit or undeclared extra parameter.
        IncompleteGroupError: A required slot's role is absent from *record*.
    """
    _check_units(pipeline, [unit])
    spec = pipeline.units[unit]

    inputs: dict[str, Tuple[Path, ...]] = {}
    for slot in spec.inputs:
        files = record.get(slot.role)
        if files is None:
            if not slot.optional:
                raise IncompleteGroupError(
                    subject_id=record.subject_id,
                    role=slot.role,
                    missing=[f"{unit}.{slot.name}"],
                )
            inputs[slot.name] = ()
            continue
        inputs[slot.name] = files if slot.member is None else (files[slot.member],)

    params = pipeline.resolve_params(unit, extra_params)
    out_dir = pipeline.render_publish_dir(
        unit=unit, subject_id=record.subject_id, params=params
    )
    if base_dir is not None and not out_dir.is_absolute():
        out_dir = base_dir / out_dir

    return Invocation(
        unit=unit,
        subject_id=record.subject_id,
        inputs=inputs,
        params=params,
        output_dir=out_dir,
    )


def bind_records(
    records: Iterable[SubjectRecord],
    pipeline: PipelineSection,
    *,
    units: Sequence[str] | None = None,
    extra_params: Mapping[str, Any] | None = None,
    base_dir: Optional[Path] = None,
) -> BindingResult:
    """Bind every record to every requested unit.

    Per-subject failures are collected into :attr:`BindingResult.skipped`;
    configuration problems abort immediately.

    Args:
        records: Subject records (any iterable, consumed once).
        pipeline: Validated pipeline configuration.
        units: Units to bind; defaults to every declared unit.
        extra_params: Values overriding every other parameter source.
        base_dir: Directory that relative output placements are anchored to.
    """
    wanted = _check_units(pipeline, units if units else list(pipeline.units))
    for unit in wanted:
        pipeline.resolve_params(unit, extra_params)

    invocations: List[Invocation] = []
    skipped: List[SkippedBinding] = []
    for record in records:
        for unit in wanted:
            try:
                invocations.append(
                    bind_record(
                        record,
                        unit,
                        pipeline,
                        extra_params=extra_params,
                        base_dir=base_dir,
                    )
                )
            except SubjectDataError as exc:
                log.info("Skipping %s for %s: %s", unit, record.subject_id, exc)
                skipped.append(
                    SkippedBinding(unit=unit, subject_id=record.subject_id, error=exc)
                )

    log.info(
        "Bound %d invocation(s) across %d unit(s); %d skipped",
        len(invocations),
        len(wanted),
        len(skipped),
    )
    return BindingResult(invocations=tuple(invocations), skipped=tuple(skipped))


__all__ = ["bind_record", "bind_records"]
