"""
Typed, immutable value objects that circulate between pipeline stages.

Every pydantic class is declared with ``frozen=True`` to prevent accidental
mutation once the objects have been created.  Each one carries
``subject_id`` explicitly so that results produced independently can be
joined by key instead of by position.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Tuple

from pydantic import BaseModel, field_serializer, field_validator

from subjectomatic.utils.errors import SubjectDataError
from subjectomatic.utils.frozen import freeze, thaw


class Invocation(BaseModel, frozen=True):
    """One downstream unit bound to one subject.

    Attributes
    ----------
    unit
        Unit name (key of ``pipeline.units``).
    subject_id
        Subject the inputs belong to.
    inputs
        Slot name → files, in the order the unit declares its slots.  An
        absent optional role is bound to the empty tuple.
    params
        Resolved parameter values (defaults + unit overrides + extras).
    output_dir
        Rendered output placement for this unit and subject.
    """

    unit: str
    subject_id: str
    inputs: Mapping[str, Tuple[Path, ...]]
    params: Mapping[str, Any]
    output_dir: Path

    @field_validator("inputs", "params", mode="after")
    @classmethod
    def _read_only(cls, v: Mapping[str, Any]):
        return freeze(v)

    @field_serializer("inputs", "params")
    def _as_dict(self, v: Mapping[str, Any]) -> Dict[str, Any]:
        return thaw(v)

    def positional(self) -> Tuple[Any, ...]:
        """Return ``(subject_id, *inputs)`` in declaration order.

        Single-file slots are unwrapped to the path itself; multi-file and
        empty slots stay tuples.
        """
        values = [v[0] if len(v) == 1 else v for v in self.inputs.values()]
        return (self.subject_id, *values)


class UnitResult(BaseModel, frozen=True):
    """Files produced by one invocation, gathered after it ran.

    Attributes
    ----------
    subject_id
        Subject the outputs belong to.
    unit
        Unit that produced them.
    outputs
        Output name → matching files (sorted).
    """

    subject_id: str
    unit: str
    outputs: Mapping[str, Tuple[Path, ...]]

    @field_validator("outputs", mode="after")
    @classmethod
    def _read_only(cls, v: Mapping[str, Tuple[Path, ...]]):
        return freeze(v)

    @field_serializer("outputs")
    def _as_dict(self, v: Mapping[str, Tuple[Path, ...]]) -> Dict[str, Any]:
        return thaw(v)


@dataclass(frozen=True)
class SkippedBinding:
    """A unit that could not be bound to a subject."""

    unit: str
    subject_id: str
    error: SubjectDataError


@dataclass(frozen=True)
class BindingResult:
    """Outcome of binding a set of records to a set of units."""

    invocations: Tuple[Invocation, ...] = ()
    skipped: Tuple[SkippedBinding, ...] = ()

    def for_unit(self, unit: str) -> Tuple[Invocation, ...]:
        """Invocations of *unit*, in record order."""
        return tuple(i for i in self.invocations if i.unit == unit)


__all__ = ["Invocation", "UnitResult", "SkippedBinding", "BindingResult"]
