"""
Pydantic models that mirror the YAML configuration consumed by *subjectomatic*.

Two documents are merged into one :class:`ConfigSchema`:

* ``roles.yaml`` – which files make up a subject (role → pattern, arity,
  ordering rule, optional flag) and which role is the primary series.
* ``pipeline.yaml`` – named parameters with defaults, the per-unit override
  table, the output placement template and the input slots every downstream
  unit declares.

Notes:
* Patterns are matched against file *names*; ``{a,b}`` alternatives are
  allowed.
* Every cross-reference (primary role, unit slot roles, override keys,
  template placeholders) is checked here so that the collector and the
  binder can treat configuration as already validated.
"""

from __future__ import annotations

import string
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Set

from pydantic import BaseModel, Field, field_validator, model_validator

from subjectomatic.utils.patterns import matches, validate_pattern
from subjectomatic.utils.errors import ConfigurationError

_FORMATTER = string.Formatter()
_BUILTIN_TOKENS = {"subject_id", "unit"}


def _placeholders(template: str) -> Set[str]:
    """Return the field names used by *template*.

    Only plain keyword fields such as ``{output_dir}`` or ``{subject_id:>4}``
    are accepted; nested fields inside a format spec are included.

    Raises:
        ValueError: Unbalanced braces, or an empty, positional, attribute or
            index field (``{}``, ``{0}``, ``{a.b}``, ``{a[0]}``).
    """
    names: Set[str] = set()
    for _literal, field, spec, _conversion in _FORMATTER.parse(template):
        if field is None:
            continue
        if not field.isidentifier():
            raise ValueError(
                f"publish_dir field '{{{field}}}' must be a plain parameter name"
            )
        names.add(field)
        if spec:
            names |= _placeholders(spec)
    return names

# --------------------------------------------------------------------------- #
# 1.  Roles                                                                   #
# --------------------------------------------------------------------------- #


class RoleDefinition(BaseModel):
    """One named category of input file(s).

    Attributes:
        pattern: Glob matched against file names (brace alternatives allowed).
        arity: Exact number of files that make up the role for one subject.
        order: Slot patterns defining the canonical order of a multi-file
            role. Must contain exactly ``arity`` entries when given.
        optional: When ``True`` the role may be absent without error.
    """

    pattern: str
    arity: int = Field(1, ge=1)
    order: Optional[List[str]] = None
    optional: bool = False

    @field_validator("pattern")
    @classmethod
    def _pattern_is_usable(cls, v: str) -> str:
        return validate_pattern(v)

    @field_validator("order")
    @classmethod
    def _order_is_usable(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        if v is None:
            return v
        for p in v:
            validate_pattern(p)
        if len(set(v)) != len(v):
            raise ValueError("ordering slots must be unique")
        return v

    @model_validator(mode="after")
    def _order_matches_arity(self):
        """An ordering rule needs one slot per file."""
        if self.order is not None and len(self.order) != self.arity:
            raise ValueError(
                f"order has {len(self.order)} slot(s) but arity is {self.arity}"
            )
        return self

    def matches(self, name: str) -> bool:
        """Return ``True`` when file *name* belongs to this role."""
        return matches(name, self.pattern)


class RolesSection(BaseModel):
    """Top-level *roles.yaml* structure.

    Attributes:
        primary: Name of the role emitted as ``primary_series``.
        roles: Role definitions in declaration order.
    """

    primary: str
    roles: Dict[str, RoleDefinition]

    @model_validator(mode="after")
    def _primary_is_sound(self):
        """The primary role must exist and be required; auxiliaries are single files."""
        if not self.roles:
            raise ValueError("at least one role must be declared")
        if self.primary not in self.roles:
            raise ValueError(f"primary role '{self.primary}' is not declared")
        if self.roles[self.primary].optional:
            raise ValueError(f"primary role '{self.primary}' cannot be optional")
        for name, role in self.auxiliary.items():
            if role.arity != 1:
                raise ValueError(
                    f"auxiliary role '{name}' must have arity 1 (got {role.arity})"
                )
        return self

    @property
    def auxiliary(self) -> Dict[str, RoleDefinition]:
        """Every role except the primary one, in declaration order."""
        return {k: v for k, v in self.roles.items() if k != self.primary}


# --------------------------------------------------------------------------- #
# 2.  Downstream units and parameters                                         #
# --------------------------------------------------------------------------- #


class InputSlot(BaseModel):
    """Named input a unit expects.

    Attributes:
        name: Slot name as the unit knows it (``"image"``, ``"mask"`` …).
        role: Role supplying the file(s).
        member: Index into a multi-file role in canonical order. ``None``
            binds every file of the role.
        optional: Bind the empty placeholder when the role is absent.
    """

    name: str
    role: str
    member: Optional[int] = Field(None, ge=0)
    optional: bool = False


class UnitSpec(BaseModel):
    """Input contract of one downstream unit."""

    inputs: List[InputSlot] = Field(default_factory=list)

    @field_validator("inputs")
    @classmethod
    def _unique_slot_names(cls, v: List[InputSlot]) -> List[InputSlot]:
        names = [s.name for s in v]
        dupes = sorted({n for n in names if names.count(n) > 1})
        if dupes:
            raise ValueError("duplicate input slot(s): " + ", ".join(dupes))
        return v


class PipelineSection(BaseModel):
    """Top-level *pipeline.yaml* structure.

    Attributes:
        params: Named parameters with their default values.
        overrides: Unit name → parameter values replacing the defaults for
            that unit only.
        publish_dir: Output placement template. Placeholders may reference
            any parameter plus ``{subject_id}`` and ``{unit}``.
        units: Unit name → input contract.
    """

    params: Dict[str, Any] = Field(default_factory=lambda: {"output_dir": "results"})
    overrides: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    publish_dir: str = "{output_dir}/{subject_id}/{unit}"
    units: Dict[str, UnitSpec] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _references_are_known(self):
        """Reject overrides of undeclared units or parameters and unknown placeholders."""
        if self.units:
            stray = set(self.overrides) - set(self.units)
            if stray:
                raise ValueError(
                    "overrides name undeclared unit(s): "
                    + ", ".join(sorted(stray))
                    + f" (declared: {', '.join(self.units)})"
                )
        for unit, values in self.overrides.items():
            unknown = set(values) - set(self.params)
            if unknown:
                raise ValueError(
                    f"override for '{unit}' sets undeclared parameter(s): "
                    + ", ".join(sorted(unknown))
                )
        tokens = _placeholders(self.publish_dir)
        unknown = tokens - set(self.params) - _BUILTIN_TOKENS
        if unknown:
            raise ValueError(
                "Unknown placeholder(s) in publish_dir: " + ", ".join(sorted(unknown))
            )
        return self

    # --------------------------- convenience ----------------------------- #
    def resolve_params(
        self, unit: str, extra: Mapping[str, Any] | None = None
    ) -> Dict[str, Any]:
        """Return the parameter values seen by *unit*.

        Precedence (last wins): declared defaults, the unit's override
        table, then *extra* (command-line values).

        Raises:
            ConfigurationError: When *extra* names an undeclared parameter.
        """
        extra = dict(extra or {})
        unknown = set(extra) - set(self.params)
        if unknown:
            raise ConfigurationError(
                "Unknown parameter(s): " + ", ".join(sorted(unknown))
            )
        resolved = dict(self.params)
        resolved.update(self.overrides.get(unit, {}))
        resolved.update(extra)
        return resolved

    def render_publish_dir(
        self, *, unit: str, subject_id: str, params: Mapping[str, Any]
    ) -> Path:
        """Render :attr:`publish_dir` for one invocation.

        Raises:
            ConfigurationError: When a value does not fit its format spec
                (e.g. ``{output_dir:d}`` with a string).
        """
        values = {**params, "unit": unit, "subject_id": subject_id}
        try:
            return Path(self.publish_dir.format(**values))
        except (KeyError, IndexError, AttributeError, ValueError, TypeError) as exc:
            raise ConfigurationError(
                f"Cannot render publish_dir for unit '{unit}': {exc}",
                pattern=self.publish_dir,
            ) from exc


# --------------------------------------------------------------------------- #
# 3.  Top-level model – complete validated config                             #
# --------------------------------------------------------------------------- #


class ConfigSchema(BaseModel):
    """Root configuration object consumed by the rest of *subjectomatic*.

    Attributes:
        version: Version string of the configuration schema.
        roles: Role definitions from *roles.yaml*.
        pipeline: Parameters and unit contracts from *pipeline.yaml*.
    """

    version: str
    roles: RolesSection
    pipeline: PipelineSection = Field(default_factory=PipelineSection)

    @model_validator(mode="after")
    def _slots_reference_roles(self):
        """Every unit slot must point at a declared role and a valid member."""
        for unit, spec in self.pipeline.units.items():
            for slot in spec.inputs:
                role = self.roles.roles.get(slot.role)
                if role is None:
                    raise ValueError(
                        f"unit '{unit}' slot '{slot.name}' uses undeclared role '{slot.role}'"
                    )
                if slot.member is not None and slot.member >= role.arity:
                    raise ValueError(
                        f"unit '{unit}' slot '{slot.name}' selects member {slot.member} "
                        f"but role '{slot.role}' has arity {role.arity}"
                    )
        return self
