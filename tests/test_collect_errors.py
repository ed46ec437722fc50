# ---------------------------------------------------------------------------
# tests/test_collect_errors.py
# ---------------------------------------------------------------------------
"""Configuration-level failures abort the discovery pass immediately."""
import os
from pathlib import Path

import pytest

from subjectomatic import collect_subjects
from subjectomatic.config.schema import RolesSection
from subjectomatic.pipelines import SubjectCollector
from subjectomatic.utils.errors import ConfigurationError, DiscoveryError

from conftest import DWI_TRIPLET


def _roles(**roles) -> RolesSection:
    return RolesSection(primary="dwi", roles=roles)


def test_missing_root_is_fatal(tmp_path: Path, default_cfg):
    """A missing root aborts the pass and names the path."""
    missing = tmp_path / "nope"
    with pytest.raises(ConfigurationError) as exc:
        collect_subjects(missing, default_cfg)
    assert exc.value.path == missing
    assert str(missing) in str(exc.value)


def test_missing_root_tolerated_when_not_required(tmp_path: Path, default_cfg):
    """Verify missing root tolerated when not required behavior."""
    result = collect_subjects(tmp_path / "nope", default_cfg, must_exist=False)
    assert result.records == () and result.excluded == ()


def test_root_that_is_a_file(tmp_path: Path, default_cfg):
    """Verify root that is a file behavior."""
    f = tmp_path / "file.txt"
    f.write_text("x")
    with pytest.raises(ConfigurationError, match="not a directory"):
        collect_subjects(f, default_cfg)


def test_files_directly_in_root(tmp_path: Path, default_cfg):
    """Verify files directly in root behavior."""
    (tmp_path / "S1_dwi.nii.gz").write_text("x")
    with pytest.raises(ConfigurationError, match="directly inside the root"):
        collect_subjects(tmp_path, default_cfg)


def test_duplicate_subject_directories(tmp_path: Path, make_subject, default_cfg):
    """Two directories named S1 under different parents make the layout ambiguous."""
    make_subject(tmp_path / "a", "S1")
    make_subject(tmp_path / "b", "S1")
    with pytest.raises(ConfigurationError, match="two directories"):
        collect_subjects(tmp_path, default_cfg)


def test_duplicate_subject_directories_threaded(
    tmp_path: Path, make_subject, default_cfg
):
    """Verify duplicate subject directories threaded behavior."""
    make_subject(tmp_path / "a", "S1")
    make_subject(tmp_path / "b", "S1", ("dwi.bval",))
    with pytest.raises(ConfigurationError, match="two directories"):
        collect_subjects(tmp_path, default_cfg, workers=2)


def test_file_matching_two_roles(tmp_path: Path, make_subject):
    """Verify file matching two roles behavior."""
    roles = _roles(
        dwi={"pattern": "*.nii.gz"},
        t1={"pattern": "*t1*", "optional": True},
    )
    make_subject(tmp_path, "S1", ("t1.nii.gz",))
    with pytest.raises(ConfigurationError, match="several roles") as exc:
        collect_subjects(tmp_path, roles)
    assert exc.value.path.name == "S1_t1.nii.gz"


def test_ordering_rule_must_cover_matches(tmp_path: Path, make_subject):
    """Verify ordering rule must cover matches behavior."""
    roles = _roles(
        dwi={
            "pattern": "*dwi.*",
            "arity": 2,
            "order": ["*.bval", "*.nii.gz"],
        }
    )
    make_subject(tmp_path, "S1", ("dwi.bval", "dwi.nii.gz", "dwi.json"))
    with pytest.raises(ConfigurationError, match="does not cover") as exc:
        collect_subjects(tmp_path, roles)
    assert exc.value.pattern == "*dwi.*"


def test_missing_primary_is_collected(tmp_path: Path, make_subject, default_cfg):
    """Verify missing primary is collected behavior."""
    make_subject(tmp_path, "S1", ("t1.nii.gz",))
    make_subject(tmp_path, "S2")

    result = collect_subjects(tmp_path, default_cfg)

    assert result.subject_ids() == ["S2"]
    (err,) = result.errors()
    assert err.role == "dwi"
    assert err.missing == ("*.bval", "*.bvec", "*.nii.gz")


def test_raise_for_errors_aggregates(tmp_path: Path, make_subject, default_cfg):
    """Verify raise for errors aggregates behavior."""
    make_subject(tmp_path, "S1", ("dwi.bval",))
    make_subject(tmp_path, "S2", DWI_TRIPLET + ("run2_dwi.bvec",))
    make_subject(tmp_path, "S3")

    result = collect_subjects(tmp_path, default_cfg)
    with pytest.raises(DiscoveryError) as exc:
        result.raise_for_errors()

    assert len(exc.value.errors) == 2
    assert "2 subject(s) excluded: S1, S2" in str(exc.value)


def test_raise_for_errors_noop_when_clean(tmp_path: Path, make_subject, default_cfg):
    """Verify raise for errors noop when clean behavior."""
    make_subject(tmp_path, "S1")
    collect_subjects(tmp_path, default_cfg).raise_for_errors()


def test_unreadable_root_is_fatal(tmp_path: Path, make_subject, default_cfg, monkeypatch):
    """A root without read/search permission aborts before any subject is read."""
    make_subject(tmp_path, "S1")
    monkeypatch.setattr(os, "access", lambda *_a, **_kw: False)

    with pytest.raises(ConfigurationError, match="not readable") as exc:
        collect_subjects(tmp_path, default_cfg)
    assert exc.value.path == tmp_path


@pytest.mark.parametrize("workers", [1, 2])
def test_unreadable_subdirectory_aborts_the_pass(
    tmp_path: Path, make_subject, default_cfg, monkeypatch, workers
):
    """A directory that cannot be listed mid-walk fails the whole pass, no partial result."""
    make_subject(tmp_path, "S1")
    make_subject(tmp_path, "S2")
    real_walk = os.walk
    locked = tmp_path.resolve() / "S2"

    def _walk(top, onerror=None, **kwargs):
        for dirpath, dirnames, filenames in real_walk(top, onerror=onerror, **kwargs):
            if Path(dirpath) == locked:
                onerror(PermissionError(13, "Permission denied", str(locked)))
                continue
            yield dirpath, dirnames, filenames

    monkeypatch.setattr(os, "walk", _walk)

    collected = []
    with pytest.raises(ConfigurationError, match="Permission denied") as exc:
        collected.append(collect_subjects(tmp_path, default_cfg, workers=workers))
    assert exc.value.path == locked
    assert collected == []


def test_unreadable_subdirectory_stops_lazy_iteration(
    tmp_path: Path, make_subject, default_cfg, monkeypatch
):
    """Verify unreadable subdirectory stops lazy iteration behavior."""
    make_subject(tmp_path, "S1")
    make_subject(tmp_path, "S2")
    real_walk = os.walk
    locked = tmp_path.resolve() / "S2"

    def _walk(top, onerror=None, **kwargs):
        for dirpath, dirnames, filenames in real_walk(top, onerror=onerror, **kwargs):
            if Path(dirpath) == locked:
                onerror(PermissionError(13, "Permission denied", str(locked)))
            yield dirpath, dirnames, filenames

    monkeypatch.setattr(os, "walk", _walk)

    it = SubjectCollector(default_cfg.roles).iter_records(tmp_path)
    assert next(it).subject_id == "S1"
    with pytest.raises(ConfigurationError):
        next(it)
