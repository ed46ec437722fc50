"""
Glob helpers used to match file names against role patterns.

Key behaviours
--------------
1. **Brace alternatives** – ``*dwi.{nii.gz,bval,bvec}`` expands to three
   plain globs before matching, the syntax pipeline authors already use in
   workflow configuration files.
2. **Name-only matching** – patterns are compared with the file *name*
   (``fnmatch.fnmatchcase``), never with the full path, so the subject
   directory never leaks into the match.
3. **Canonical ordering** – multi-file roles are re-ordered by slot
   pattern because the order returned by the filesystem carries no meaning.

Nothing in this file performs I/O.
"""

from __future__ import annotations

import fnmatch
import re
from pathlib import Path
from typing import Dict, List, Sequence, Tuple

# Innermost ``{a,b}`` group; nested groups expand from the inside out.
_BRACE_RE = re.compile(r"\{([^{}]*)\}")


def expand_braces(pattern: str) -> List[str]:
    """Return every plain glob encoded by *pattern*.

    Args:
        pattern: Glob that may contain ``{a,b,…}`` alternatives.

    Returns:
        De-duplicated list of alternatives in declaration order.

    Raises:
        ValueError: When braces are unbalanced.
    """
    m = _BRACE_RE.search(pattern)
    if m is None:
        if "{" in pattern or "}" in pattern:
            raise ValueError(f"unbalanced braces in pattern {pattern!r}")
        return [pattern]

    head, tail = pattern[: m.start()], pattern[m.end():]
    out: list[str] = []
    for alt in m.group(1).split(","):
        for expanded in expand_braces(head + alt + tail):
            if expanded not in out:
                out.append(expanded)
    return out


def validate_pattern(pattern: str) -> str:
    """Return *pattern* unchanged when it is usable, otherwise raise ``ValueError``."""
    if not pattern or not pattern.strip():
        raise ValueError("pattern must not be empty")
    if "/" in pattern or "\\" in pattern:
        raise ValueError(
            f"pattern {pattern!r} contains a directory separator; "
            "patterns are matched against file names only"
        )
    expand_braces(pattern)
    return pattern


def matches(name: str, pattern: str) -> bool:
    """Return ``True`` when file *name* matches any alternative of *pattern*."""
    return any(fnmatch.fnmatchcase(name, alt) for alt in expand_braces(pattern))


def assign_slots(
    paths: Sequence[Path], order: Sequence[str]
) -> Tuple[Dict[str, List[Path]], List[Path]]:
    """Distribute *paths* over the ordering *order*.

    Each path goes to the **first** slot whose pattern matches its name.

    Args:
        paths: Files matched by one role for one subject.
        order: Slot patterns in canonical order.

    Returns:
        Tuple ``(slots, unplaced)`` where *slots* maps each slot pattern to
        the files it received (possibly empty) and *unplaced* lists files
        that matched no slot.
    """
    slots: Dict[str, List[Path]] = {s: [] for s in order}
    unplaced: List[Path] = []
    for p in sorted(paths):
        slot = next((s for s in order if matches(p.name, s)), None)
        if slot is None:
            unplaced.append(p)
        else:
            slots[slot].append(p)
    return slots, unplaced


__all__ = ["expand_braces", "validate_pattern", "matches", "assign_slots"]
