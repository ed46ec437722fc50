"""
Logging set-up for the ``subjectomatic-cli`` process.

Three sinks are wired by :func:`setup_logging`:

``console``
    A :class:`rich.logging.RichHandler`.  WARNING by default, INFO with
    ``--verbose`` and DEBUG with ``--debug``.
``subjectomatic.log``
    Size-rotated file that always records INFO and above.  It lives in
    ``$SUBJECTOMATIC_LOG_DIR`` when set, else ``<root>/code/logs`` for an
    existing data root, else a ``logs`` folder beside the package.
``--save-logfile``
    Optional plain-text copy of what the console shows.

Pipeline modules log through the standard library; the CLI and config layers
use structlog, which is routed into the same handlers.
"""

from __future__ import annotations

import atexit
import logging
import logging.handlers
import os
from pathlib import Path
from typing import List, Optional

import structlog
from rich.logging import RichHandler
from structlog.dev import ConsoleRenderer
from structlog.stdlib import LoggerFactory

__all__ = ["setup_logging"]

_LOG_NAME = "subjectomatic.log"
_ROTATE_BYTES = 5_000_000
_ROTATE_KEEP = 3


def _log_dir(dataset_root: Path | None) -> Path:
    """Pick the directory that receives ``subjectomatic.log``."""
    env_dir = os.environ.get("SUBJECTOMATIC_LOG_DIR")
    if env_dir:
        return Path(env_dir).expanduser()
    if dataset_root is not None:
        return dataset_root / "code" / "logs"
    return Path(__file__).resolve().parents[1] / "logs"


def _levels(verbose: bool, debug: bool) -> tuple[int, int]:
    """Return ``(console level, file level)`` for the CLI flags."""
    if debug:
        return logging.DEBUG, logging.DEBUG
    return (logging.INFO if verbose else logging.WARNING), logging.INFO


def _handlers(
    dataset_root: Path | None,
    console_lvl: int,
    file_lvl: int,
    mirror: Optional[Path],
    debug: bool,
) -> List[logging.Handler]:
    console = RichHandler(
        level=console_lvl,
        rich_tracebacks=True,
        tracebacks_show_locals=False,
        markup=False,
        show_path=debug,
    )

    logdir = _log_dir(dataset_root)
    logdir.mkdir(parents=True, exist_ok=True)
    rotating = logging.handlers.RotatingFileHandler(
        filename=logdir / _LOG_NAME,
        maxBytes=_ROTATE_BYTES,
        backupCount=_ROTATE_KEEP,
        encoding="utf-8",
    )
    rotating.setLevel(file_lvl)

    out: List[logging.Handler] = [console, rotating]
    if mirror is not None:
        mirror = mirror.expanduser().resolve()
        mirror.parent.mkdir(parents=True, exist_ok=True)
        text = logging.FileHandler(mirror, encoding="utf-8", mode="a")
        text.setLevel(console_lvl)
        text.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
        atexit.register(text.close)
        out.append(text)
    return out


def setup_logging(
    *,
    dataset_root: Path | None = None,
    verbose: bool = False,
    debug: bool = False,
    extra_text_log: Optional[Path] = None,
) -> None:
    """Install the console, rotating-file and optional mirror handlers.

    Safe to call more than once per process: previous root handlers are
    replaced rather than stacked.

    Args:
        dataset_root: Data root; only used when it is an existing directory.
        verbose: Show INFO on the console.
        debug: Show DEBUG on the console and source paths in records.
        extra_text_log: File receiving a plain-text copy of console output.
    """
    console_lvl, file_lvl = _levels(verbose, debug)
    if dataset_root is not None and not dataset_root.is_dir():
        dataset_root = None

    logging.basicConfig(
        level=logging.DEBUG,
        handlers=_handlers(dataset_root, console_lvl, file_lvl, extra_text_log, debug),
        format="%(message)s",
        force=True,
    )

    # Human-readable events when the user asked for detail, JSON otherwise.
    renderer = (
        ConsoleRenderer(colors=False)
        if verbose or debug
        else structlog.processors.JSONRenderer()
    )
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(console_lvl),
        logger_factory=LoggerFactory(),
        cache_logger_on_first_use=False,
    )
