"""Pytest configuration for subjectomatic tests."""

# No manual modification of ``sys.path`` is required.  The tests rely solely on
# the standard Python import mechanism and the package installation performed by
# the test environment.

from pathlib import Path
from typing import Iterable

import pytest

from subjectomatic import load_config

DWI_TRIPLET = ("dwi.nii.gz", "dwi.bval", "dwi.bvec")


@pytest.fixture(autouse=True)
def _isolated_log_dir(tmp_path_factory, monkeypatch):
    """Keep the rotating JSON log out of the source tree."""
    monkeypatch.setenv("SUBJECTOMATIC_LOG_DIR", str(tmp_path_factory.mktemp("logs")))


@pytest.fixture
def make_subject():
    """Return a factory writing one subject directory below a root.

    The factory accepts the root, the subject id and the file suffixes to
    create (``<id>_<suffix>``).  The default is the full DWI triplet.
    """

    def _make(root: Path, sub: str, suffixes: Iterable[str] = DWI_TRIPLET) -> Path:
        d = root / sub
        d.mkdir(parents=True, exist_ok=True)
        for s in suffixes:
            (d / f"{sub}_{s}").write_text("x")
        return d

    return _make


@pytest.fixture
def default_cfg():
    """Configuration built from the packaged YAML files."""
    return load_config()
