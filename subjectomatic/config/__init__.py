"""
Configuration package façade.

Exports the small, stable surface that external callers rely on:

* :func:`load_config` – Parse, merge, and validate *roles.yaml* and
  *pipeline.yaml* into a single :class:`ConfigSchema` instance.
* :class:`ConfigSchema` and the section models it is built from.

Anything not imported here is considered private implementation detail and may
change without prior notice.
"""

from .loader import load_config  # noqa: F401  (import re-exposed on purpose)
from .schema import (  # noqa: F401
    ConfigSchema,
    InputSlot,
    PipelineSection,
    RoleDefinition,
    RolesSection,
    UnitSpec,
)

__all__: list[str] = [
    "load_config",
    "ConfigSchema",
    "InputSlot",
    "PipelineSection",
    "RoleDefinition",
    "RolesSection",
    "UnitSpec",
]
