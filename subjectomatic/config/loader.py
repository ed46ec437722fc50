"""
YAML configuration loader.

This helper locates, reads, merges, and validates *roles.yaml* and
*pipeline.yaml* before returning a
:class:`subjectomatic.config.schema.ConfigSchema` instance.

Search precedence for **each** YAML (first match wins)
1. An explicit path argument (``--roles-yaml`` / ``--pipeline-yaml`` on the CLI).
2. ``<root>/code/config/<name>.yaml`` – project-local override.
3. The packaged default shipped inside the wheel.

All resolution logic is concentrated here so the rest of *subjectomatic*
treats configuration as an already-validated object.
"""

from __future__ import annotations

import warnings
from importlib.resources import as_file, files
from pathlib import Path
from typing import Optional

import structlog
import yaml
from pydantic import ValidationError

from subjectomatic.utils.errors import ConfigurationError

from .schema import ConfigSchema

log = structlog.get_logger()

# --------------------------------------------------------------------------- #
# Wheel-internal fallbacks (work even from a zipped wheel)                    #
# --------------------------------------------------------------------------- #
_DEFAULT_ROLES = files("subjectomatic.resources") / "default_roles.yaml"
_DEFAULT_PIPELINE = files("subjectomatic.resources") / "default_pipeline.yaml"

_PIPELINE_KEYS = {"params", "overrides", "publish_dir", "units"}

# --------------------------------------------------------------------------- #
# Helper functions                                                            #
# --------------------------------------------------------------------------- #


def _dataset_local(root: Optional[Path], name: str) -> Optional[Path]:
    """Return ``<root>/code/config/<name>`` or *None* if *root* is ``None``."""
    if root is None:
        return None
    return root / "code" / "config" / name


def _first_existing(*candidates: Optional[Path]) -> Optional[Path]:
    """Return the first path in *candidates* that exists on disk."""
    for p in candidates:
        if p is not None and p.exists():
            return p
    return None


def _load_yaml(path: Path) -> dict:
    """Read a YAML mapping from *path*.

    Returns:
        Dictionary parsed from the file, or an empty dict if the file is empty.

    Raises:
        ConfigurationError: When the file cannot be read or parsed, or when
            the top-level node is not a mapping.
    """
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Cannot read YAML: {exc}", path=path) from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError("Top-level YAML node must be a mapping", path=path)
    return data


def _resolve_yaml(
    explicit: Optional[Path],
    root: Optional[Path],
    fname: str,
    fallback,
) -> Path:
    """Resolve a YAML path for *fname* according to the documented precedence.

    Raises:
        ConfigurationError: When an explicit path was given but does not exist.
    """
    if explicit is not None and not explicit.exists():
        raise ConfigurationError(f"{fname} override not found", path=explicit)
    resolved = _first_existing(explicit, _dataset_local(root, fname))
    if resolved is None:
        with as_file(fallback) as p:
            resolved = p
    return resolved


# --------------------------------------------------------------------------- #
# Public API                                                                  #
# --------------------------------------------------------------------------- #
def load_config(
    *,
    roles_path: Optional[str | Path] = None,
    pipeline_path: Optional[str | Path] = None,
    dataset_root: Optional[str | Path] = None,
) -> ConfigSchema:
    """Return a fully validated :class:`ConfigSchema`.

    The function merges *roles.yaml* (required) and *pipeline.yaml*
    (optional content) before passing the combined document through
    Pydantic validation.

    Args:
        roles_path: Explicit path to *roles.yaml*. ``None`` triggers the
            search sequence described in the module doc-string.
        pipeline_path: Explicit path to *pipeline.yaml*. ``None`` triggers
            the same search sequence as above.
        dataset_root: Data root. Required when project-local overrides are
            expected.

    Returns:
        A :class:`ConfigSchema` object ready for downstream use.

    Raises:
        ConfigurationError: When a file is unreadable or the merged document
            fails validation.
    """
    dataset_root = Path(dataset_root).expanduser().resolve() if dataset_root else None
    roles_path = Path(roles_path).expanduser().resolve() if roles_path else None
    pipeline_path = Path(pipeline_path).expanduser().resolve() if pipeline_path else None

    roles_yaml = _resolve_yaml(roles_path, dataset_root, "roles.yaml", _DEFAULT_ROLES)
    pipeline_yaml = _resolve_yaml(
        pipeline_path, dataset_root, "pipeline.yaml", _DEFAULT_PIPELINE
    )
    log.debug("config_files", roles=str(roles_yaml), pipeline=str(pipeline_yaml))

    # ----------------------------- merge dicts ----------------------------- #
    roles_doc = _load_yaml(roles_yaml)
    version = roles_doc.pop("version", None)

    pipeline_doc = _load_yaml(pipeline_yaml)

    # Accept both a ``pipeline:``-wrapped document and the bare style.
    if "pipeline" in pipeline_doc and not _PIPELINE_KEYS & pipeline_doc.keys():
        pipeline_doc = pipeline_doc["pipeline"] or {}

    unknown = set(pipeline_doc) - _PIPELINE_KEYS
    if unknown:
        warnings.warn(
            f"{pipeline_yaml} contains unknown section(s) "
            f"{', '.join(sorted(unknown))}; they were ignored.",
            UserWarning,
        )
        pipeline_doc = {k: v for k, v in pipeline_doc.items() if k in _PIPELINE_KEYS}

    merged = {"version": version, "roles": roles_doc, "pipeline": pipeline_doc}

    # ----------------------------- validate ------------------------------- #
    try:
        return ConfigSchema(**merged)
    except ValidationError as exc:
        raise ConfigurationError(
            f"Invalid configuration – {exc}", path=roles_yaml
        ) from exc
