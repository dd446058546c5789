import pandas as pd
import pytest

from caremetrics.core.contracts import CoercionSummary
from caremetrics.core.integrity import (
    coercion_failure_summary,
    find_orphans,
    find_temporal_violations,
    orphan_mask,
)


@pytest.fixture
def children():
    return pd.DataFrame({
        "encounter_id": ["E1", "E2", "E3", "E4"],
        "department_id": ["1", "2", "3", None],
    })


@pytest.fixture
def parents():
    # duplicate key on purpose
    return pd.DataFrame({"department_id": [1, 1, 2]})


def test_orphans_are_returned_once(children, parents):
    orphans = find_orphans(children, parents, "department_id")

    assert orphans["encounter_id"].tolist() == ["E3", "E4"]


def test_null_fk_orphan_policy(children, parents):
    orphans = find_orphans(children, parents, "department_id", null_is_orphan=False)

    assert orphans["encounter_id"].tolist() == ["E3"]


def test_matching_children_are_never_returned(children, parents):
    orphans = find_orphans(children, parents, "department_id")

    assert not orphans["encounter_id"].isin(["E1", "E2"]).any()


def test_orphan_mask_with_distinct_key_names(children):
    parents = pd.DataFrame({"id": ["1", "2", "3"]})

    mask = orphan_mask(children, parents, "department_id", pk="id", null_is_orphan=False)

    assert mask.tolist() == [False, False, False, False]


def test_orphan_unknown_columns(children, parents):
    with pytest.raises(KeyError):
        find_orphans(children, parents, "ward_id")
    with pytest.raises(KeyError):
        find_orphans(children, parents, "department_id", pk="ward_id")


@pytest.fixture
def stays():
    return pd.DataFrame({
        "encounter_id": ["E1", "E2", "E3", "E4"],
        "admit": ["2024-01-10", "bad-date", "2024-01-01", "2024-01-05 10:00:00"],
        "discharge": ["2024-01-05", "2024-01-05", "2024-01-02", None],
    })


def test_discharge_before_admit_is_flagged(stays):
    flagged = find_temporal_violations(stays, "admit", "discharge")

    assert flagged["encounter_id"].tolist() == ["E1"]
    assert flagged.loc[0, "admit_dt"] == pd.Timestamp("2024-01-10")
    assert flagged.loc[0, "discharge_dt"] == pd.Timestamp("2024-01-05")


def test_unconvertible_rows_are_not_flagged(stays):
    flagged = find_temporal_violations(stays, "admit", "discharge")

    assert "E2" not in flagged["encounter_id"].tolist()
    assert "E4" not in flagged["encounter_id"].tolist()


def test_same_instant_is_not_a_violation():
    same = pd.DataFrame({"admit": ["2024-01-01"], "discharge": ["2024-01-01"]})

    assert find_temporal_violations(same, "admit", "discharge").empty


def test_coercion_failure_summary():
    records = pd.DataFrame({"los": ["1", "x", None, "2.5"]})

    summary = coercion_failure_summary(records, "los", "numeric")

    assert summary == CoercionSummary("los", "numeric", 4, 2)
    assert summary.converted_records == 2
    assert summary.yield_ratio == 0.5


def test_coercion_failure_summary_on_empty_table():
    summary = coercion_failure_summary(pd.DataFrame({"los": []}), "los", "numeric")

    assert summary.total_records == 0
    assert summary.yield_ratio is None


def test_boolean_coercion_never_fails():
    records = pd.DataFrame({"flag": ["maybe", None]})

    assert coercion_failure_summary(records, "flag", "boolean").failed_records == 0


def test_coercion_failure_summary_unknown_kind():
    with pytest.raises(ValueError):
        coercion_failure_summary(pd.DataFrame({"los": ["1"]}), "los", "colour")
