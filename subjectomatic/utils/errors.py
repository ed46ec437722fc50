"""Exception hierarchy shared by the collector, the binder and the CLI.

Two families exist:

* :class:`ConfigurationError` – the input itself is unusable (missing root,
  malformed YAML, overlapping patterns, inconsistent directory layout).
  Raised immediately; no partial result is worth keeping.
* :class:`SubjectDataError` and its subclasses – one subject's files do not
  satisfy a role.  These are *collected* during a discovery pass so a whole
  cohort can be fixed in a single edit-and-rerun cycle.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Sequence


class SubjectomaticError(RuntimeError):
    """Base class for every error raised by *subjectomatic*."""

    pass


class ConfigurationError(SubjectomaticError):
    """Raised when the configuration or the directory layout is unusable.

    Attributes:
        path: Offending filesystem path, when one is known.
        pattern: Offending glob pattern, when one is known.
    """

    def __init__(
        self,
        message: str,
        *,
        path: Path | str | None = None,
        pattern: str | None = None,
    ) -> None:
        self.path = Path(path) if path is not None else None
        self.pattern = pattern
        details = []
        if self.path is not None:
            details.append(f"path={self.path}")
        if pattern is not None:
            details.append(f"pattern={pattern!r}")
        full = f"{message} ({', '.join(details)})" if details else message
        super().__init__(full)


class SubjectDataError(SubjectomaticError):
    """A single subject does not satisfy a role.

    Attributes:
        subject_id: Identifier of the affected subject.
        role: Name of the role that could not be resolved.
    """

    def __init__(self, message: str, *, subject_id: str, role: str) -> None:
        self.subject_id = subject_id
        self.role = role
        super().__init__(f"[{subject_id}] {message}")


class IncompleteGroupError(SubjectDataError):
    """Fewer files than required were found for a role.

    Attributes:
        missing: Names of the missing slots (or the role itself when no
            ordering rule exists).
        found: Paths that did match the role.
    """

    def __init__(
        self,
        *,
        subject_id: str,
        role: str,
        missing: Sequence[str],
        found: Iterable[Path] = (),
        expected: int | None = None,
    ) -> None:
        self.missing = tuple(missing)
        self.found = tuple(found)
        self.expected = expected
        if expected is not None:
            msg = (
                f"role '{role}' incomplete: expected {expected} file(s), "
                f"found {len(self.found)}"
            )
        else:
            msg = f"role '{role}' incomplete"
        if self.missing:
            msg += f"; missing {', '.join(self.missing)}"
        super().__init__(msg, subject_id=subject_id, role=role)


class AmbiguousMatchError(SubjectDataError):
    """More candidates than allowed were found for a role (or one of its slots).

    Attributes:
        paths: Every candidate so the user can disambiguate.
        slot: Ordering slot that received several files, if any.
    """

    def __init__(
        self,
        *,
        subject_id: str,
        role: str,
        paths: Iterable[Path],
        slot: str | None = None,
    ) -> None:
        self.paths = tuple(paths)
        self.slot = slot
        where = f"slot '{slot}' of role '{role}'" if slot else f"role '{role}'"
        names = ", ".join(str(p) for p in self.paths)
        super().__init__(
            f"{where} is ambiguous: {len(self.paths)} candidates ({names})",
            subject_id=subject_id,
            role=role,
        )


class DiscoveryError(SubjectomaticError):
    """Aggregate of every per-subject error found during one pass.

    Attributes:
        errors: All collected :class:`SubjectDataError` instances.
    """

    def __init__(self, errors: Sequence[SubjectDataError]) -> None:
        self.errors = tuple(errors)
        subjects = sorted({e.subject_id for e in self.errors})
        lines = [f"{len(subjects)} subject(s) excluded: {', '.join(subjects)}"]
        lines.extend(f"  {e}" for e in self.errors)
        super().__init__("\n".join(lines))


__all__ = [
    "SubjectomaticError",
    "ConfigurationError",
    "SubjectDataError",
    "IncompleteGroupError",
    "AmbiguousMatchError",
    "DiscoveryError",
]
