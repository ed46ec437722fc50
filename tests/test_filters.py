# ---------------------------------------------------------------------------
# tests/test_filters.py
# ---------------------------------------------------------------------------
from pathlib import Path

import click
import pytest

from subjectomatic.models import SubjectRecord
from subjectomatic.utils.filters import filter_records, parse_assignments, split_commas


def _rec(sub: str) -> SubjectRecord:
    return SubjectRecord(
        subject_id=sub,
        directory=Path("/data") / sub,
        primary_role="dwi",
        primary_series=(Path("/data") / sub / "img.nii.gz",),
    )


def test_split_commas():
    """Verify split commas behavior."""
    assert split_commas(None, None, ("S1,S2", " S3 ", "")) == ("S1", "S2", "S3")


def test_filter_records():
    """Verify filter records behavior."""
    recs = [_rec("S1"), _rec("S2"), _rec("P10")]
    assert [r.subject_id for r in filter_records(recs, ("S*",))] == ["S1", "S2"]
    assert [r.subject_id for r in filter_records(recs, ("P10", "S2"))] == ["S2", "P10"]
    assert filter_records(recs, ()) == recs
    assert filter_records(recs, ("s1",)) == []


def test_parse_assignments_types_values():
    """Verify parse assignments types values behavior."""
    parsed = parse_assignments(["extent=5", "shells=[0, 1000]", "name=abc", "flag=true", "empty="])
    assert parsed == {
        "extent": 5,
        "shells": [0, 1000],
        "name": "abc",
        "flag": True,
        "empty": "",
    }


@pytest.mark.parametrize("bad", ["noequals", "=5"])
def test_parse_assignments_rejects(bad):
    """Verify parse assignments rejects behavior."""
    with pytest.raises(click.BadParameter):
        parse_assignments([bad])
