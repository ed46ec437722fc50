"""
Domain-level data models shared across the collector, binder and CLI layers.

The module provides:

* **`SubjectRecord`** – immutable description of one subject's discovered
  inputs.  ``subject_id`` is a required field so that every downstream join
  is an explicit key-based merge.
* **`ExcludedSubject`** – a subject that failed arity validation together
  with every reason.
* **`CollectionResult`** – the outcome of one discovery pass.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, Field, field_serializer, field_validator, model_validator

from subjectomatic.utils.errors import DiscoveryError, SubjectDataError
from subjectomatic.utils.frozen import FrozenMap


class SubjectRecord(BaseModel, frozen=True):
    """One subject's inputs, validated against the role configuration.

    Attributes
    ----------
    subject_id
        Name of the directory immediately containing the files.
    directory
        That directory.
    primary_role
        Name of the role stored in :attr:`primary_series`.
    primary_series
        Files of the primary role in canonical order.
    auxiliary_series
        Read-only auxiliary role name → file.  Absent optional roles have
        no key.
    """

    subject_id: str
    directory: Path
    primary_role: str
    primary_series: Tuple[Path, ...]
    auxiliary_series: Mapping[str, Path] = Field(default_factory=FrozenMap)

    @field_validator("subject_id")
    @classmethod
    def _non_empty_id(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("subject_id must be non-empty")
        return v

    @field_validator("auxiliary_series", mode="after")
    @classmethod
    def _read_only(cls, v: Mapping[str, Path]) -> FrozenMap:
        return FrozenMap(v)

    @field_serializer("auxiliary_series")
    def _as_dict(self, v: Mapping[str, Path]) -> Dict[str, Path]:
        return dict(v)

    @model_validator(mode="after")
    def _primary_present(self):
        if not self.primary_series:
            raise ValueError("primary_series must contain at least one file")
        if self.primary_role in self.auxiliary_series:
            raise ValueError(f"'{self.primary_role}' cannot also be auxiliary")
        return self

    def roles(self) -> Dict[str, Tuple[Path, ...]]:
        """Return role → files, primary first, then auxiliaries in config order."""
        out: Dict[str, Tuple[Path, ...]] = {self.primary_role: self.primary_series}
        for name, path in self.auxiliary_series.items():
            out[name] = (path,)
        return out

    def get(self, role: str) -> Optional[Tuple[Path, ...]]:
        """Return the files bound to *role* or ``None`` when it is absent."""
        return self.roles().get(role)


@dataclass(frozen=True)
class ExcludedSubject:
    """A subject left out of the result because its files are inconsistent."""

    subject_id: str
    directory: Path
    errors: Tuple[SubjectDataError, ...]

    @property
    def reasons(self) -> List[str]:
        """Human-readable reason per error."""
        return [str(e) for e in self.errors]


@dataclass(frozen=True)
class CollectionResult:
    """Outcome of one discovery pass.

    Attributes:
        root: Directory that was scanned.
        records: Successfully assembled subjects, in traversal order.
        excluded: Subjects rejected because of per-subject data problems.
    """

    root: Path
    records: Tuple[SubjectRecord, ...] = ()
    excluded: Tuple[ExcludedSubject, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        """``True`` when no subject was excluded."""
        return not self.excluded

    def subject_ids(self) -> List[str]:
        """Identifiers of the assembled subjects, in traversal order."""
        return [r.subject_id for r in self.records]

    def errors(self) -> List[SubjectDataError]:
        """Every per-subject error, flattened."""
        return [e for ex in self.excluded for e in ex.errors]

    def raise_for_errors(self) -> None:
        """Raise :class:`DiscoveryError` when at least one subject was excluded."""
        if self.excluded:
            raise DiscoveryError(self.errors())

    def to_manifest(self) -> Dict[str, Any]:
        """Return a JSON-serialisable summary of the pass."""
        return {
            "root": str(self.root),
            "subjects": [r.model_dump(mode="json") for r in self.records],
            "excluded": [
                {
                    "subject_id": ex.subject_id,
                    "directory": str(ex.directory),
                    "reasons": ex.reasons,
                }
                for ex in self.excluded
            ],
        }


__all__ = ["SubjectRecord", "ExcludedSubject", "CollectionResult"]
