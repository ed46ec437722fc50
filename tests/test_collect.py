# ---------------------------------------------------------------------------
# tests/test_collect.py
# ---------------------------------------------------------------------------
"""Behaviour of the subject collector on well-formed and faulty trees."""
from pathlib import Path

import pytest

from subjectomatic import collect_subjects
from subjectomatic.models import ExcludedSubject
from subjectomatic.pipelines import SubjectCollector
from subjectomatic.utils.errors import AmbiguousMatchError, IncompleteGroupError

from conftest import DWI_TRIPLET


def test_every_record_is_complete(tmp_path: Path, make_subject, default_cfg):
    """Each emitted record has a subject id and the full primary triplet."""
    for sub in ("S1", "S2", "S3"):
        make_subject(tmp_path, sub, DWI_TRIPLET + ("rev_b0.nii.gz",))

    result = collect_subjects(tmp_path, default_cfg)

    assert result.ok
    assert result.subject_ids() == ["S1", "S2", "S3"]
    for rec in result.records:
        assert rec.subject_id
        assert len(rec.primary_series) == 3
        assert rec.primary_role == "dwi"


def test_collect_is_idempotent(tmp_path: Path, make_subject, default_cfg):
    """Two passes over an unchanged tree produce the same records."""
    make_subject(tmp_path, "S1", DWI_TRIPLET + ("t1.nii.gz",))
    make_subject(tmp_path, "S2")

    first = collect_subjects(tmp_path, default_cfg)
    second = collect_subjects(tmp_path, default_cfg)

    key = lambda r: r.subject_id  # noqa: E731
    assert sorted(first.records, key=key) == sorted(second.records, key=key)


def test_missing_optional_role_is_absent(tmp_path: Path, make_subject, default_cfg):
    """Verify missing optional role is absent behavior."""
    make_subject(tmp_path, "S1")

    result = collect_subjects(tmp_path, default_cfg)

    assert result.ok
    (rec,) = result.records
    assert "rev_b0" not in rec.auxiliary_series
    assert rec.get("rev_b0") is None


def test_two_primary_images_are_ambiguous(tmp_path: Path, make_subject, default_cfg):
    """A second image in S1 excludes S1 with both paths named; S2 is still collected."""
    make_subject(tmp_path, "S1", DWI_TRIPLET + ("run2_dwi.nii.gz",))
    make_subject(tmp_path, "S2")

    result = collect_subjects(tmp_path, default_cfg)

    assert result.subject_ids() == ["S2"]
    (excluded,) = result.excluded
    assert excluded.subject_id == "S1"
    (err,) = excluded.errors
    assert isinstance(err, AmbiguousMatchError)
    assert err.subject_id == "S1"
    names = sorted(p.name for p in err.paths)
    assert names == ["S1_dwi.nii.gz", "S1_run2_dwi.nii.gz"]
    assert "S1_dwi.nii.gz" in str(err) and "S1_run2_dwi.nii.gz" in str(err)


def test_structural_present_for_one_subject_only(
    tmp_path: Path, make_subject, default_cfg
):
    """Verify structural present for one subject only behavior."""
    make_subject(tmp_path, "S1", DWI_TRIPLET + ("rev_b0.nii.gz", "t1.nii.gz"))
    make_subject(tmp_path, "S2", DWI_TRIPLET + ("rev_b0.nii.gz",))

    result = collect_subjects(tmp_path, default_cfg)
    by_id = {r.subject_id: r for r in result.records}

    assert set(by_id) == {"S1", "S2"}
    assert set(by_id["S1"].auxiliary_series) == {"rev_b0", "t1"}
    assert set(by_id["S2"].auxiliary_series) == {"rev_b0"}
    assert by_id["S1"].auxiliary_series["t1"].name == "S1_t1.nii.gz"


@pytest.mark.parametrize(
    "creation_order",
    [
        ("dwi.nii.gz", "dwi.bval", "dwi.bvec"),
        ("dwi.bvec", "dwi.nii.gz", "dwi.bval"),
        ("dwi.bval", "dwi.bvec", "dwi.nii.gz"),
    ],
)
def test_primary_series_canonical_order(
    tmp_path: Path, make_subject, default_cfg, creation_order
):
    """The triplet is always emitted as bval, bvec, image whatever order the files were written in."""
    make_subject(tmp_path, "S1", creation_order)

    (rec,) = collect_subjects(tmp_path, default_cfg).records

    assert [p.name for p in rec.primary_series] == [
        "S1_dwi.bval",
        "S1_dwi.bvec",
        "S1_dwi.nii.gz",
    ]


def test_incomplete_triplet_reports_missing_slot(
    tmp_path: Path, make_subject, default_cfg
):
    """Verify incomplete triplet reports missing slot behavior."""
    make_subject(tmp_path, "S1", ("dwi.nii.gz", "dwi.bval"))

    result = collect_subjects(tmp_path, default_cfg)

    assert result.records == ()
    (err,) = result.errors()
    assert isinstance(err, IncompleteGroupError)
    assert err.role == "dwi"
    assert err.missing == ("*.bvec",)
    assert len(err.found) == 2


def test_errors_are_collected_across_subjects(
    tmp_path: Path, make_subject, default_cfg
):
    """Verify errors are collected across subjects behavior."""
    make_subject(tmp_path, "S1", ("dwi.nii.gz",))
    make_subject(tmp_path, "S2", DWI_TRIPLET + ("t1.nii.gz", "T1.nii.gz", "x_t1.nii.gz"))
    make_subject(tmp_path, "S3")

    result = collect_subjects(tmp_path, default_cfg)

    assert result.subject_ids() == ["S3"]
    assert [ex.subject_id for ex in result.excluded] == ["S1", "S2"]
    kinds = {type(e) for e in result.errors()}
    assert kinds == {IncompleteGroupError, AmbiguousMatchError}


def test_nested_layout_uses_parent_directory(
    tmp_path: Path, make_subject, default_cfg
):
    """Verify nested layout uses parent directory behavior."""
    make_subject(tmp_path / "site-a", "S1")
    make_subject(tmp_path / "site-b", "S2")

    result = collect_subjects(tmp_path, default_cfg)

    assert result.subject_ids() == ["S1", "S2"]
    assert result.records[0].directory == (tmp_path / "site-a" / "S1").resolve()


def test_hidden_directories_are_skipped(tmp_path: Path, make_subject, default_cfg):
    """Verify hidden directories are skipped behavior."""
    make_subject(tmp_path, "S1")
    make_subject(tmp_path / ".cache", "S9")

    assert collect_subjects(tmp_path, default_cfg).subject_ids() == ["S1"]


def test_unrelated_files_are_ignored(tmp_path: Path, make_subject, default_cfg):
    """Verify unrelated files are ignored behavior."""
    make_subject(tmp_path, "S1", DWI_TRIPLET + ("notes.txt",))
    (tmp_path / "README").write_text("x")
    (tmp_path / "empty").mkdir()

    result = collect_subjects(tmp_path, default_cfg)

    assert result.subject_ids() == ["S1"]
    assert result.ok


def test_workers_give_same_result(tmp_path: Path, make_subject, default_cfg):
    """A threaded scan returns the same records, in the same order, as a serial one."""
    for i in range(6):
        make_subject(tmp_path, f"S{i}", DWI_TRIPLET + ("rev_b0.nii.gz",))
    make_subject(tmp_path, "bad", ("dwi.nii.gz",))

    serial = collect_subjects(tmp_path, default_cfg)
    threaded = collect_subjects(tmp_path, default_cfg, workers=3)

    assert threaded.records == serial.records
    assert [ex.subject_id for ex in threaded.excluded] == ["bad"]


def test_iter_records_is_lazy(tmp_path: Path, make_subject, default_cfg):
    """Verify iter records is lazy behavior."""
    make_subject(tmp_path, "S1")
    make_subject(tmp_path, "S2", ("dwi.bval",))
    make_subject(tmp_path, "S3")

    excluded: list[ExcludedSubject] = []
    it = SubjectCollector(default_cfg.roles).iter_records(tmp_path, excluded=excluded)

    first = next(it)
    assert first.subject_id == "S1"
    assert excluded == []

    rest = list(it)
    assert [r.subject_id for r in rest] == ["S3"]
    assert [ex.subject_id for ex in excluded] == ["S2"]
