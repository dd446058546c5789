import pandas as pd
import pytest
from pandas.testing import assert_frame_equal

from caremetrics.core.aggregation import (
    average_by,
    combine,
    count_by,
    filter_min_sample,
    metric_means,
    overall_rate,
    rank_relative_to_average,
    rate_by,
    sum_by,
    top_n,
)
from caremetrics.core.kpi_utils import round_half_up, round_ratio, safe_divide, safe_rate


@pytest.fixture
def flags_df():
    return pd.DataFrame({
        "ward": ["a", "a", "a", "b", "b", "c"],
        "flag": ["Yes", "No", "yes", "1", "TRUE", None],
        "los": ["1", "bad", "3", "x", None, "7.5"],
    })


def test_count_by(flags_df):
    counts = count_by(flags_df, "ward")

    assert counts.to_dict(orient="records") == [
        {"ward": "a", "count": 3},
        {"ward": "b", "count": 2},
        {"ward": "c", "count": 1},
    ]


def test_count_by_callable_key(flags_df):
    counts = count_by(flags_df, lambda df: df["ward"].str.upper().rename("ward_code"))

    assert list(counts.columns) == ["ward_code", "count"]
    assert counts["ward_code"].tolist() == ["A", "B", "C"]


def test_rate_by_counts_only_closed_truthy_set(flags_df):
    rates = rate_by(flags_df, "ward", "flag").set_index("ward")

    assert rates.loc["a", "numerator"] == 1
    assert rates.loc["a", "denominator"] == 3
    assert rates.loc["a", "rate"] == pytest.approx(1 / 3)
    assert rates.loc["b", "rate"] == 1.0
    assert rates.loc["c", "rate"] == 0.0


def test_rates_stay_within_unit_interval(flags_df):
    rates = rate_by(flags_df, "ward", "flag")

    assert ((rates["rate"] >= 0) & (rates["rate"] <= 1)).all()


def test_rate_by_callable_predicate(flags_df):
    rates = rate_by(flags_df, "ward", lambda df: df["los"] == "1", rate="los_one_rate")

    assert rates.set_index("ward").loc["a", "numerator"] == 1
    assert "los_one_rate" in rates.columns


def test_rate_by_on_empty_frame_does_not_raise():
    empty = pd.DataFrame({"ward": [], "flag": []})
    rates = rate_by(empty, "ward", "flag")

    assert rates.empty
    assert list(rates.columns) == ["ward", "denominator", "numerator", "rate"]


def test_zero_denominator_gives_null_not_zero():
    result = safe_divide(pd.Series([0, 1]), pd.Series([0, 2]))

    assert pd.isna(result[0])
    assert result[1] == 0.5
    assert safe_rate(3, 0) is None
    assert safe_rate(1, 4) == 0.25


def test_rates_round_ties_away_from_zero():
    result = round_ratio(pd.Series([1, 1, 2, 1]), pd.Series([32, 160, 3, 0]), 4)

    assert str(result.dtype) == "Float64"
    assert result.tolist()[:3] == [0.0313, 0.0063, 0.6667]
    assert pd.isna(result[3])
    assert round_half_up(0.03125, 4) == 0.0313
    assert round_half_up(None, 4) is None


def test_round_ratio_without_precision_is_plain_division():
    result = round_ratio(pd.Series([1]), pd.Series([32]), None)

    assert result[0] == 0.03125


def test_overall_rate():
    df = pd.DataFrame({"flag": ["Y", "N", "N", "N"]})

    assert overall_rate(df, "flag") == 0.25
    assert overall_rate(df.iloc[0:0], "flag") is None


def test_average_skips_unconvertible_values(flags_df):
    averages = average_by(flags_df, "ward", "los", name="avg_los", valid="valid").set_index("ward")

    assert averages.loc["a", "avg_los"] == 2.0
    assert averages.loc["a", "count"] == 3
    assert averages.loc["a", "valid"] == 2
    assert pd.isna(averages.loc["b", "avg_los"])
    assert averages.loc["c", "avg_los"] == 7.5


def test_sum_by_is_null_without_numbers(flags_df):
    totals = sum_by(flags_df, "ward", "los").set_index("ward")

    assert totals.loc["a", "total"] == 4.0
    assert pd.isna(totals.loc["b", "total"])


def test_combine_joins_metrics_on_keys(flags_df):
    merged = combine(
        [count_by(flags_df, "ward"), average_by(flags_df, "ward", "los")],
        on="ward",
    )

    assert list(merged.columns) == ["ward", "count", "average"]


def test_unknown_group_key_raises(flags_df):
    with pytest.raises(KeyError):
        count_by(flags_df, "floor")


def test_filter_min_sample_boundary():
    grouped = pd.DataFrame({"g": ["small", "exact"], "count": [29, 30]})

    kept = filter_min_sample(grouped, 30)

    assert kept["g"].tolist() == ["exact"]


@pytest.mark.parametrize("threshold", [-1, 2.5, "30", True])
def test_filter_min_sample_rejects_bad_threshold(threshold):
    with pytest.raises(ValueError):
        filter_min_sample(pd.DataFrame({"count": [1]}), threshold)


@pytest.fixture
def ranked():
    return pd.DataFrame({
        "g": ["d", "b", "a", "c", "e"],
        "count": [10, 50, 10, 10, 5],
        "rate": [0.5, 0.5, 0.5, 0.9, None],
    }).astype({"rate": "Float64"})


def test_top_n_ties_break_on_count_then_key(ranked):
    ordered = top_n(ranked, sort_key="rate", direction="desc")

    assert ordered["g"].tolist() == ["c", "b", "a", "d", "e"]


def test_top_n_nulls_sort_last_ascending_too(ranked):
    ordered = top_n(ranked, sort_key="rate", direction="asc")

    assert ordered["g"].tolist()[-1] == "e"
    assert ordered["g"].tolist()[0] == "b"


def test_top_n_is_deterministic(ranked):
    first = top_n(ranked, n=3, sort_key="rate")
    shuffled = top_n(ranked.sample(frac=1, random_state=7), n=3, sort_key="rate")

    assert_frame_equal(first, top_n(ranked, n=3, sort_key="rate"))
    assert_frame_equal(first, shuffled)
    assert len(first) == 3


def test_top_n_validates_arguments(ranked):
    with pytest.raises(ValueError):
        top_n(ranked, n=-1)
    with pytest.raises(ValueError):
        top_n(ranked, sort_key="rate", direction="sideways")
    with pytest.raises(KeyError):
        top_n(ranked, sort_key="cost")


def test_rank_relative_to_average_is_conjunctive():
    grouped = pd.DataFrame({
        "g": ["A", "B", "C"],
        "los": [10.0, 2.0, 8.0],
        "rate": [0.5, 0.8, 0.1],
    })

    means = metric_means(grouped, ["los", "rate"])
    hotspots = rank_relative_to_average(grouped, ["los", "rate"])

    assert means["los"] == pytest.approx(20 / 3)
    assert means["rate"] == pytest.approx(1.4 / 3)
    assert hotspots["g"].tolist() == ["A"]


def test_rank_relative_to_average_skips_null_metrics():
    grouped = pd.DataFrame({
        "g": ["A", "B"],
        "los": [10.0, None],
    })

    assert rank_relative_to_average(grouped, ["los"]).empty


def test_rank_relative_to_average_validation():
    grouped = pd.DataFrame({"g": ["A"], "los": [1.0]})

    with pytest.raises(ValueError):
        rank_relative_to_average(grouped, [])
    with pytest.raises(KeyError):
        rank_relative_to_average(grouped, ["cost"])
