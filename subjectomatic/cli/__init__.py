"""Expose the project-wide Click group for the ``subjectomatic-cli`` script.

The module:

* declares a single Click *group* called :pyfunc:`main`;
* wires common global flags (data root, YAML overrides, verbosity, etc.);
* sets up logging via :pyfunc:`subjectomatic.utils.logging.setup_logging`;
* loads the merged *roles.yaml / pipeline.yaml* configuration;
* registers every sub-command located in sibling modules.
"""

from __future__ import annotations

import importlib
import os
from pathlib import Path
from typing import Any, Dict

import click

from subjectomatic import __version__
from subjectomatic.config import load_config
from subjectomatic.utils.errors import SubjectomaticError
from subjectomatic.utils.logging import setup_logging


class LazyGroup(click.Group):
    """Click group that imports sub-commands lazily."""

    def __init__(self, *args, **kwargs):
        self._lazy: dict[str, str] = {}
        super().__init__(*args, **kwargs)

    def set_lazy_command(self, name: str, target: str) -> None:
        """Register *name* to be imported from ``target`` on first use."""
        self._lazy[name] = target

    def list_commands(self, ctx):  # noqa: D401 - Click signature
        return sorted(set(super().list_commands(ctx)) | set(self._lazy))

    def get_command(self, ctx, cmd_name):  # noqa: D401 - Click signature
        """Resolve *cmd_name* from the eager map or import table."""
        cmd = super().get_command(ctx, cmd_name)
        if cmd is not None:
            return cmd
        target = self._lazy.get(cmd_name)
        if not target:
            return None
        module_name, attr = target.split(":", 1)
        module = importlib.import_module(module_name)
        cmd = getattr(module, attr)
        self.add_command(cmd, name=cmd_name)
        return cmd


# ─────────────────────────────────────────────────────────────────────────────
# Context settings shared by the entire Click hierarchy
# ─────────────────────────────────────────────────────────────────────────────
_CTX: Dict[str, Any] = dict(
    help_option_names=["-h", "--help"],
    show_default=True,
    max_content_width=120,
)


@click.group(
    cls=LazyGroup,
    context_settings=_CTX,
    help="""\b
subjectomatic-cli – per-subject file discovery and parameter binding.

""",
)
@click.version_option(__version__)
@click.option(
    "-r",
    "--root",
    type=click.Path(file_okay=False, path_type=Path),
    help="Data root holding one directory per subject.",
)
@click.option("--roles-yaml", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--pipeline-yaml", type=click.Path(dir_okay=False, path_type=Path))
@click.option("-v", "--verbose", is_flag=True, help="INFO-level console output.")
@click.option("--debug", is_flag=True, help="DEBUG console output.")
@click.option(
    "--save-logfile",
    type=click.Path(dir_okay=False, writable=True, path_type=Path),
    help="Mirror console output into this plain-text file.",
)
@click.pass_context
def main(  # noqa: D401 – Click requires the callback to be named “main”.
    ctx: click.Context,
    root: Path | None,
    roles_yaml: Path | None,
    pipeline_yaml: Path | None,
    verbose: bool,
    debug: bool,
    save_logfile: Path | None,
) -> None:
    """Root command executed by *subjectomatic-cli*.

    Args:
        ctx: Click runtime context that carries objects across sub-commands.
        root: Data root supplied via ``--root``. Falls back to
            ``$SUBJECTOMATIC_ROOT`` or the current directory.
        roles_yaml: Explicit path to a *roles.yaml* override.
        pipeline_yaml: Explicit path to a *pipeline.yaml* override.
        verbose: Emit INFO-level messages.
        debug: Emit DEBUG-level messages.
        save_logfile: Optional plain-text log mirroring console output.

    Raises:
        click.ClickException: When the configuration cannot be loaded.
    """
    root = (root or Path(os.environ.get("SUBJECTOMATIC_ROOT", "."))).expanduser().resolve()

    # Logging must be configured before any output is produced ----------------
    setup_logging(
        dataset_root=root,
        verbose=verbose,
        debug=debug,
        extra_text_log=save_logfile,
    )

    try:
        cfg = load_config(
            roles_path=roles_yaml,
            pipeline_path=pipeline_yaml,
            dataset_root=root if root.is_dir() else None,
        )
    except SubjectomaticError as exc:
        raise click.ClickException(str(exc)) from exc

    ctx.obj = {
        "root": root,
        "cfg": cfg,
        "verbose": verbose,
        "debug": debug,
    }


main.set_lazy_command("collect", "subjectomatic.cli.collect:cli")
main.set_lazy_command("bind", "subjectomatic.cli.bind:cli")

# The public symbol exported by this module.  Required for ``python -m`` entry-points.
cli = main
__all__: list[str] = ["main"]
