"""
Explicit subject-keyed joins between independently produced results.

Downstream units run independently, so their outputs arrive in no particular
order.  Associating them is always a merge on ``subject_id``, never an
implicit zip of two sequences.
"""

from __future__ import annotations

import logging
from operator import attrgetter
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from .types import Invocation, UnitResult

log = logging.getLogger(__name__)

_subject_key = attrgetter("subject_id")


def _index(items: Iterable[Any], key: Callable[[Any], str], side: str) -> Dict[str, Any]:
    """Return ``{key(item): item}`` rejecting duplicate keys."""
    out: Dict[str, Any] = {}
    for item in items:
        k = key(item)
        if k in out:
            raise ValueError(f"duplicate subject_id '{k}' on the {side} side of a join")
        out[k] = item
    return out


def join_on_subject(
    left: Iterable[Any],
    right: Iterable[Any],
    *,
    how: str = "inner",
    key: Callable[[Any], str] = _subject_key,
) -> List[Tuple[str, Any, Optional[Any]]]:
    """Merge two result streams on their subject identifier.

    Args:
        left: Items exposing a subject key (records, invocations, results …).
        right: Items to attach to *left*.
        how: ``"inner"`` keeps subjects present on both sides; ``"left"``
            keeps every left item and pairs missing right items with ``None``.
        key: Callable extracting the join key; defaults to ``.subject_id``.

    Returns:
        ``(subject_id, left_item, right_item)`` triples in *left* order.

    Raises:
        ValueError: Unknown *how* or a duplicate key on either side.
    """
    if how not in {"inner", "left"}:
        raise ValueError(f"unsupported join type {how!r}")

    left_idx = _index(left, key, "left")
    right_idx = _index(right, key, "right")

    joined: List[Tuple[str, Any, Optional[Any]]] = []
    for k, item in left_idx.items():
        other = right_idx.get(k)
        if other is None and how == "inner":
            continue
        joined.append((k, item, other))

    dropped = set(right_idx) - set(left_idx)
    if dropped:
        log.debug("join dropped right-only subject(s): %s", ", ".join(sorted(dropped)))
    return joined


def gather_outputs(
    invocations: Iterable[Invocation],
    patterns: Mapping[str, str],
) -> List[UnitResult]:
    """Collect the files each invocation wrote into its output directory.

    Args:
        invocations: Bound invocations whose ``output_dir`` may now hold files.
        patterns: Output name → glob evaluated inside ``output_dir``.

    Returns:
        One :class:`UnitResult` per invocation.  Missing directories yield
        empty tuples.
    """
    results: List[UnitResult] = []
    for inv in invocations:
        out_dir = Path(inv.output_dir)
        if not out_dir.is_dir():
            log.warning("%s/%s: output directory %s missing", inv.unit, inv.subject_id, out_dir)
        outputs = {
            name: tuple(sorted(out_dir.glob(glob))) if out_dir.is_dir() else ()
            for name, glob in patterns.items()
        }
        results.append(UnitResult(subject_id=inv.subject_id, unit=inv.unit, outputs=outputs))
    return results


__all__ = ["join_on_subject", "gather_outputs"]
