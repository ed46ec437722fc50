"""
Discover per-subject input files under a data root.

Key points
----------
* One subject per directory: the subject identifier is the name of the
  directory immediately containing the matched files.
* Roles are declarative (:class:`~subjectomatic.config.schema.RolesSection`);
  this module contains no role-specific code.
* :class:`~subjectomatic.utils.errors.ConfigurationError` aborts the pass at
  once.  Arity problems are collected per subject and reported together so a
  whole cohort can be fixed in one go.
* Multi-file roles are re-ordered by their ordering rule because the order
  returned by the filesystem is meaningless.
"""

from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence, Tuple, Union

from subjectomatic.config.schema import ConfigSchema, RoleDefinition, RolesSection
from subjectomatic.models import CollectionResult, ExcludedSubject, SubjectRecord
from subjectomatic.utils.errors import (
    AmbiguousMatchError,
    ConfigurationError,
    IncompleteGroupError,
    SubjectDataError,
)
from subjectomatic.utils.patterns import assign_slots

log = logging.getLogger(__name__)

_Outcome = Union[SubjectRecord, ExcludedSubject]


# --------------------------------------------------------------------------- #
# Tiny helpers                                                                #
# --------------------------------------------------------------------------- #
def _walk(root: Path) -> Iterator[Tuple[Path, List[str]]]:
    """Yield ``(directory, file names)`` below *root* in sorted order.

    Hidden directories are skipped.

    Raises:
        ConfigurationError: When a directory cannot be listed.
    """

    def _unreadable(err: OSError) -> None:
        raise ConfigurationError(
            f"Cannot read directory: {err.strerror}", path=err.filename
        ) from err

    for dirpath, dirnames, filenames in os.walk(root, onerror=_unreadable):
        dirnames[:] = sorted(d for d in dirnames if not d.startswith("."))
        yield Path(dirpath), sorted(filenames)


def _check_root(root: Path | str, must_exist: bool) -> Optional[Path]:
    """Return the resolved *root* or ``None`` when it may be skipped."""
    path = Path(root).expanduser()
    if not path.exists():
        if must_exist:
            raise ConfigurationError("Root directory does not exist", path=path)
        log.warning("Root directory %s does not exist – nothing to collect", path)
        return None
    if not path.is_dir():
        raise ConfigurationError("Root is not a directory", path=path)
    if not os.access(path, os.R_OK | os.X_OK):
        raise ConfigurationError("Root directory is not readable", path=path)
    return path.resolve()


# --------------------------------------------------------------------------- #
# Collector                                                                   #
# --------------------------------------------------------------------------- #
class SubjectCollector:
    """Turn a directory tree into :class:`SubjectRecord` values.

    Args:
        roles: Validated role configuration.
    """

    def __init__(self, roles: RolesSection) -> None:
        self.roles = roles

    # ------------------------------------------------------------------ #
    # Per-directory work                                                 #
    # ------------------------------------------------------------------ #
    def _match(self, directory: Path, filenames: Sequence[str]) -> Dict[str, List[Path]]:
        """Group the files of *directory* by role."""
        groups: Dict[str, List[Path]] = {}
        for name in filenames:
            hits = [r for r, spec in self.roles.roles.items() if spec.matches(name)]
            if len(hits) > 1:
                raise ConfigurationError(
                    f"File matches several roles ({', '.join(hits)})",
                    path=directory / name,
                )
            if hits:
                groups.setdefault(hits[0], []).append(directory / name)
        return groups

    @staticmethod
    def _resolve_role(
        subject_id: str, name: str, role: RoleDefinition, files: List[Path]
    ) -> Tuple[Path, ...]:
        """Validate arity of one role and return its files in canonical order.

        Raises:
            IncompleteGroupError: Fewer files than ``arity`` or an empty slot.
            AmbiguousMatchError: More files than ``arity`` or a slot with
                several candidates.
            ConfigurationError: A file matched the role but none of its
                ordering slots.
        """
        if role.order is None:
            if len(files) < role.arity:
                raise IncompleteGroupError(
                    subject_id=subject_id,
                    role=name,
                    missing=[name],
                    found=files,
                    expected=role.arity,
                )
            if len(files) > role.arity:
                raise AmbiguousMatchError(subject_id=subject_id, role=name, paths=sorted(files))
            return tuple(sorted(files))

        slots, unplaced = assign_slots(files, role.order)
        if unplaced:
            raise ConfigurationError(
                f"Ordering rule of role '{name}' does not cover {unplaced[0].name}",
                path=unplaced[0],
                pattern=role.pattern,
            )

        crowded = next(((s, p) for s, p in slots.items() if len(p) > 1), None)
        if crowded is not None:
            slot, paths = crowded
            raise AmbiguousMatchError(
                subject_id=subject_id, role=name, paths=paths, slot=slot
            )
        empty = [s for s, p in slots.items() if not p]
        if empty:
            raise IncompleteGroupError(
                subject_id=subject_id,
                role=name,
                missing=empty,
                found=files,
                expected=role.arity,
            )
        return tuple(slots[s][0] for s in role.order)

    def _process(
        self, directory: Path, filenames: Sequence[str], root: Path
    ) -> Optional[_Outcome]:
        """Build the record (or exclusion) for one directory, ``None`` if unrelated."""
        groups = self._match(directory, filenames)
        if not groups:
            return None
        if directory == root:
            raise ConfigurationError(
                "Files matched directly inside the root; expected one directory per subject",
                path=directory,
            )

        subject_id = directory.name
        resolved: Dict[str, Tuple[Path, ...]] = {}
        errors: List[SubjectDataError] = []
        for name, role in self.roles.roles.items():
            files = groups.get(name, [])
            if not files:
                if not role.optional:
                    errors.append(
                        IncompleteGroupError(
                            subject_id=subject_id,
                            role=name,
                            missing=role.order or [name],
                            expected=role.arity,
                        )
                    )
                continue
            try:
                resolved[name] = self._resolve_role(subject_id, name, role, files)
            except SubjectDataError as exc:
                errors.append(exc)

        if errors:
            for exc in errors:
                log.warning("%s", exc)
            return ExcludedSubject(
                subject_id=subject_id, directory=directory, errors=tuple(errors)
            )

        primary = self.roles.primary
        record = SubjectRecord(
            subject_id=subject_id,
            directory=directory,
            primary_role=primary,
            primary_series=resolved[primary],
            auxiliary_series={
                name: files[0]
                for name, files in resolved.items()
                if name != primary
            },
        )
        log.debug(
            "%s: %s", subject_id, ", ".join(f"{k}={len(v)}" for k, v in resolved.items())
        )
        return record

    @staticmethod
    def _claim(seen: Dict[str, Path], outcome: _Outcome) -> None:
        """Register *outcome*'s subject id, rejecting duplicates across directories."""
        previous = seen.setdefault(outcome.subject_id, outcome.directory)
        if previous != outcome.directory:
            raise ConfigurationError(
                f"Subject id '{outcome.subject_id}' is derived from two directories "
                f"({previous} and {outcome.directory})",
                path=outcome.directory,
            )

    def _iter(self, root: Path, excluded: Optional[List[ExcludedSubject]]) -> Iterator[SubjectRecord]:
        seen: Dict[str, Path] = {}
        for directory, filenames in _walk(root):
            outcome = self._process(directory, filenames, root)
            if outcome is None:
                continue
            self._claim(seen, outcome)
            if isinstance(outcome, ExcludedSubject):
                if excluded is not None:
                    excluded.append(outcome)
                continue
            yield outcome

    # ------------------------------------------------------------------ #
    # Public API                                                         #
    # ------------------------------------------------------------------ #
    def iter_records(
        self,
        root: Path | str,
        *,
        excluded: Optional[List[ExcludedSubject]] = None,
        must_exist: bool = True,
    ) -> Iterator[SubjectRecord]:
        """Lazily yield one :class:`SubjectRecord` per complete subject.

        Args:
            root: Directory to scan.
            excluded: Optional list receiving every rejected subject.
            must_exist: Raise when *root* is missing instead of yielding
                nothing.

        Raises:
            ConfigurationError: On the first configuration-level problem.
        """
        root_p = _check_root(root, must_exist)
        if root_p is None:
            return
        yield from self._iter(root_p, excluded)

    def collect(
        self,
        root: Path | str,
        *,
        workers: int = 1,
        must_exist: bool = True,
    ) -> CollectionResult:
        """Run one full discovery pass.

        Args:
            root: Directory to scan.
            workers: Number of threads scanning subject directories. Values
                above one partition the work per directory and merge once at
                the end.
            must_exist: Raise when *root* is missing instead of returning an
                empty result.

        Returns:
            :class:`CollectionResult` with records and excluded subjects.

        Raises:
            ConfigurationError: On the first configuration-level problem.
        """
        root_p = _check_root(root, must_exist)
        if root_p is None:
            return CollectionResult(root=Path(root))

        excluded: List[ExcludedSubject] = []
        if workers <= 1:
            records = list(self._iter(root_p, excluded))
        else:
            listing = list(_walk(root_p))
            with ThreadPoolExecutor(max_workers=workers) as pool:
                outcomes = list(
                    pool.map(lambda item: self._process(item[0], item[1], root_p), listing)
                )
            records = []
            seen: Dict[str, Path] = {}
            for outcome in outcomes:
                if outcome is None:
                    continue
                self._claim(seen, outcome)
                if isinstance(outcome, ExcludedSubject):
                    excluded.append(outcome)
                else:
                    records.append(outcome)

        log.info(
            "Collected %d subject(s) under %s; %d excluded",
            len(records),
            root_p,
            len(excluded),
        )
        return CollectionResult(
            root=root_p, records=tuple(records), excluded=tuple(excluded)
        )


def collect_subjects(
    root: Path | str,
    config: Union[RolesSection, ConfigSchema],
    **kwargs,
) -> CollectionResult:
    """Convenience wrapper around :meth:`SubjectCollector.collect`.

    Args:
        root: Directory to scan.
        config: Either the role section or the complete configuration.
        **kwargs: Forwarded to :meth:`SubjectCollector.collect`.
    """
    roles = config.roles if isinstance(config, ConfigSchema) else config
    return SubjectCollector(roles).collect(root, **kwargs)


__all__ = ["SubjectCollector", "collect_subjects"]
