"""
Read-only mapping used by the frozen record models.

``frozen=True`` on a pydantic model only blocks attribute assignment; a
``dict`` field can still be edited in place and makes the model unhashable.
:class:`FrozenMap` closes both gaps: it refuses item assignment and hashes
by content, so records can live in sets or serve as dictionary keys.

Public surface
--------------
* ``FrozenMap`` – immutable, hashable ``Mapping``.
* ``freeze`` – recursively turn dicts/lists into ``FrozenMap``/tuples.
* ``thaw`` – inverse used by serialisers (``FrozenMap`` → ``dict``).
"""

from __future__ import annotations

from typing import Any, Dict, Iterator, Mapping


class FrozenMap(Mapping):
    """Immutable mapping that preserves insertion order and hashes by content."""

    __slots__ = ("_data", "_hash")

    def __init__(self, data: Mapping | None = None) -> None:
        self._data: Dict[Any, Any] = dict(data or {})
        self._hash: int | None = None

    def __getitem__(self, key):
        return self._data[key]

    def __iter__(self) -> Iterator:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __hash__(self) -> int:
        if self._hash is None:
            self._hash = hash(tuple(self._data.items()))
        return self._hash

    def __eq__(self, other) -> bool:
        if isinstance(other, Mapping):
            return self._data == dict(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"FrozenMap({self._data!r})"


def freeze(value: Any) -> Any:
    """Return *value* with every dict/list replaced by its immutable twin."""
    if isinstance(value, Mapping):
        return FrozenMap({k: freeze(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze(v) for v in value)
    if isinstance(value, set):
        return frozenset(freeze(v) for v in value)
    return value


def thaw(value: Any) -> Any:
    """Turn :class:`FrozenMap` values back into plain dicts (recursively)."""
    if isinstance(value, Mapping):
        return {k: thaw(v) for k, v in value.items()}
    if isinstance(value, tuple):
        return tuple(thaw(v) for v in value)
    return value


__all__ = ["FrozenMap", "freeze", "thaw"]
