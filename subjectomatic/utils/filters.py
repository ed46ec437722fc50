"""
Subject selection utilities.

Public surface
--------------
* ``split_commas`` – Click callback to flatten repeated or comma-separated
  options.
* ``filter_records`` – keep only objects whose ``subject_id`` matches the
  requested filters.
* ``parse_assignments`` – turn ``key=value`` strings into a typed mapping.

All helpers operate purely on strings and simple objects, so they stay
side-effect-free and easy to unit-test.
"""

from __future__ import annotations

import fnmatch
from typing import Any, Dict, Iterable, List, Sequence, TypeVar

import click
import yaml

T = TypeVar("T")


# --------------------------------------------------------------------------- #
# 0.  Tiny helper – flatten repeat/CSV Click options                          #
# --------------------------------------------------------------------------- #
def split_commas(_ctx, _param, values: tuple[str, ...]) -> tuple[str, ...]:
    """Return a flat tuple from a *repeatable* / comma-separated Click option.

    Args:
        _ctx: Click context (ignored, required by Click callback signature).
        _param: Click parameter (ignored).
        values: Tuple emitted by Click for the option.

    Returns:
        Tuple with every comma-separated token stripped.
    """
    flat: list[str] = []
    for v in values:
        flat.extend(filter(None, (x.strip() for x in v.split(","))))
    return tuple(flat)


# --------------------------------------------------------------------------- #
# 1.  Subject filter                                                          #
# --------------------------------------------------------------------------- #
def filter_records(items: Iterable[T], subs: Sequence[str] | None = None) -> List[T]:
    """Return the *items* whose ``subject_id`` matches one of *subs*.

    Filters are shell-style globs compared case-sensitively, so ``S1`` keeps
    exactly ``S1`` while ``S*`` keeps every subject starting with ``S``.

    Args:
        items: Objects exposing ``.subject_id``.
        subs: Subject filters. Empty or ``None`` keeps everything.

    Returns:
        Matching items in their original order.
    """
    if not subs:
        return list(items)
    return [
        it for it in items
        if any(fnmatch.fnmatchcase(it.subject_id, pat) for pat in subs)
    ]


# --------------------------------------------------------------------------- #
# 2.  key=value parsing                                                       #
# --------------------------------------------------------------------------- #
def parse_assignments(values: Iterable[str]) -> Dict[str, Any]:
    """Parse ``key=value`` strings, typing each value as a YAML scalar.

    ``extent=5`` yields ``{"extent": 5}``; ``shells=[0,1000]`` yields a list.

    Raises:
        click.BadParameter: When an entry has no ``=`` or an empty key.
    """
    out: Dict[str, Any] = {}
    for raw in values:
        key, sep, value = raw.partition("=")
        key = key.strip()
        if not sep or not key:
            raise click.BadParameter(f"expected key=value, got {raw!r}")
        try:
            out[key] = yaml.safe_load(value) if value.strip() else ""
        except yaml.YAMLError:
            out[key] = value
    return out
