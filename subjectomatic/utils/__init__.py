"""
Public façade for the *utils* package.

Anything imported here becomes part of the *stable* public API.
Internal helpers live in their own modules and are **not** re-exported.
"""

from __future__ import annotations

# ─── errors ──────────────────────────────────────────────────────────────
from .errors import (
    AmbiguousMatchError,
    ConfigurationError,
    DiscoveryError,
    IncompleteGroupError,
    SubjectDataError,
    SubjectomaticError,
)

# ─── generic filters ─────────────────────────────────────────────────────
from .filters import filter_records, parse_assignments, split_commas

# ─── glob helpers ────────────────────────────────────────────────────────
from .patterns import expand_braces, matches

from .display import (
    echo_banner,
    echo_binding_summary,
    echo_collection_summary,
    echo_section,
    echo_success,
)

# ------------------------------------------------------------------------
__all__: list[str] = [
    # errors
    "AmbiguousMatchError",
    "ConfigurationError",
    "DiscoveryError",
    "IncompleteGroupError",
    "SubjectDataError",
    "SubjectomaticError",
    # filters
    "filter_records",
    "parse_assignments",
    "split_commas",
    # patterns
    "expand_braces",
    "matches",
    # display
    "echo_banner",
    "echo_binding_summary",
    "echo_collection_summary",
    "echo_section",
    "echo_success",
]
