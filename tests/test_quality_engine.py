"""Tests for egg_quality.quality_engine."""

import math
from datetime import date, datetime

import numpy as np
import pandas as pd
import pytest

from egg_quality.quality_engine import (
    ALL,
    FilterCriteria,
    build_histogram,
    calculate_monthly_averages,
    calculate_stats,
    count_values,
    default_date_range,
    filter_options,
    filter_records,
    global_averages,
    is_wildcard,
    summarize_by,
)


def _records(rows):
    df = pd.DataFrame(rows)
    df["date"] = pd.to_datetime(df["date"])
    return df


def _sample():
    return _records([
        {"date": "2024-01-05", "farm": "A", "shed": "1", "breed": "Hy-Line", "weight": 60.0},
        {"date": "2024-01-20", "farm": "A", "shed": "2", "breed": "Lohmann", "weight": 62.0},
        {"date": "2024-02-10", "farm": "B", "shed": "1", "breed": "Hy-Line", "weight": 58.0},
    ])


def _criteria(start="2024-01-01", end="2024-12-31", **categories):
    return FilterCriteria(
        start_date=date.fromisoformat(start),
        end_date=date.fromisoformat(end),
        categories=categories,
    )


# ---------------------------------------------------------------------------
# filter_records
# ---------------------------------------------------------------------------


def test_filter_all_wildcards_returns_everything_in_order():
    records = _sample()
    result = filter_records(records, _criteria(farm=ALL, shed="Todos", breed=None))
    pd.testing.assert_frame_equal(result, records)


def test_filter_returns_new_frame():
    records = _sample()
    result = filter_records(records, _criteria())
    result.loc[0, "weight"] = 0.0
    assert records.loc[0, "weight"] == 60.0


def test_filter_end_date_is_inclusive_to_end_of_day():
    records = _records([
        {"date": "2024-01-31 18:30", "farm": "A", "weight": 1.0},
        {"date": "2024-02-01 00:00", "farm": "A", "weight": 2.0},
    ])
    result = filter_records(records, _criteria("2024-01-01", "2024-01-31"))
    assert result["weight"].tolist() == [1.0]


def test_filter_start_date_is_inclusive():
    result = filter_records(_sample(), _criteria("2024-01-20", "2024-02-10"))
    assert result["weight"].tolist() == [62.0, 58.0]


def test_filter_start_with_time_of_day_covers_whole_day():
    records = _records([{"date": "2024-01-05", "farm": "A", "weight": 60.0}])
    moment = datetime(2024, 1, 5, 9, 30)
    criteria = FilterCriteria(start_date=moment, end_date=moment)
    assert filter_records(records, criteria)["weight"].tolist() == [60.0]


def test_filter_start_after_end_is_empty_without_error():
    result = filter_records(_sample(), _criteria("2024-03-01", "2024-01-01"))
    assert result.empty
    assert list(result.columns) == list(_sample().columns)


def test_filter_start_after_end_ignores_other_criteria():
    result = filter_records(_sample(), _criteria("2024-02-11", "2024-02-10", farm=ALL))
    assert result.empty


def test_filter_categorical_exact_match():
    result = filter_records(_sample(), _criteria(farm="A", shed="2"))
    assert result["weight"].tolist() == [62.0]


def test_filter_categorical_is_case_sensitive():
    result = filter_records(_sample(), _criteria(breed="hy-line"))
    assert result.empty


def test_filter_unknown_attribute_matches_nothing():
    result = filter_records(_sample(), _criteria(client="Acme"))
    assert result.empty


def test_filter_empty_records():
    empty = _sample().iloc[0:0]
    assert filter_records(empty, _criteria()).empty


def test_is_wildcard():
    assert is_wildcard("All")
    assert is_wildcard("Todos")
    assert is_wildcard(None)
    assert is_wildcard("")
    assert not is_wildcard("A")


def test_filter_options_first_seen_order():
    assert filter_options(_sample(), "farm") == [ALL, "A", "B"]
    assert filter_options(_sample(), "shed") == [ALL, "1", "2"]


def test_filter_options_missing_column():
    assert filter_options(_sample(), "client") == [ALL]


def test_default_date_range_covers_thirty_days():
    start, end = default_date_range(date(2024, 3, 30))
    assert end == date(2024, 3, 30)
    assert start == date(2024, 3, 1)


# ---------------------------------------------------------------------------
# calculate_stats
# ---------------------------------------------------------------------------


def test_stats_concrete_scenario():
    stats = calculate_stats(_sample(), "weight")
    assert stats["mean"] == pytest.approx(60.0)
    assert stats["min"] == 58.0
    assert stats["max"] == 62.0


def test_stats_population_std():
    df = pd.DataFrame({"weight": [2.0, 4.0, 4.0, 4.0, 5.0, 5.0, 7.0, 9.0]})
    assert calculate_stats(df, "weight")["std"] == pytest.approx(2.0)


def test_stats_empty_is_zero_filled():
    empty = pd.DataFrame(columns=["date", "weight"])
    assert calculate_stats(empty, "weight") == {"mean": 0.0, "std": 0.0, "min": 0.0, "max": 0.0}


def test_stats_missing_column_is_zero_filled():
    assert calculate_stats(_sample(), "haughUnits") == {"mean": 0.0, "std": 0.0, "min": 0.0, "max": 0.0}


def test_stats_single_value_has_zero_std():
    df = pd.DataFrame({"weight": [61.5]})
    stats = calculate_stats(df, "weight")
    assert stats["std"] == 0.0
    assert stats["mean"] == stats["min"] == stats["max"] == 61.5


def test_stats_excludes_missing_and_non_numeric():
    df = pd.DataFrame({"weight": [60.0, None, "abc", np.nan, "64", np.inf]})
    stats = calculate_stats(df, "weight")
    assert stats["mean"] == pytest.approx(62.0)
    assert stats["min"] == 60.0
    assert stats["max"] == 64.0


def test_stats_zero_is_a_valid_measurement():
    df = pd.DataFrame({"yolkColor": [0.0, 10.0, None]})
    stats = calculate_stats(df, "yolkColor")
    assert stats["mean"] == pytest.approx(5.0)
    assert stats["min"] == 0.0


def test_stats_mean_between_extrema_for_identical_values():
    df = pd.DataFrame({"shellThickness": [0.1] * 7})
    stats = calculate_stats(df, "shellThickness")
    assert stats["min"] <= stats["mean"] <= stats["max"]


def test_count_values():
    df = pd.DataFrame({"weight": [60.0, None, "x", 0.0, np.inf]})
    assert count_values(df, "weight") == 2
    assert count_values(df, "haughUnits") == 0


def test_global_averages():
    averages = global_averages(_sample(), ["weight", "haughUnits"])
    assert averages == pytest.approx({"weight": 60.0, "haughUnits": 0.0})


def test_summarize_by_groups_in_first_seen_order():
    summary = summarize_by(_sample(), "shed", ["weight"])
    assert summary["shed"].tolist() == ["1", "2"]
    assert summary["mean"].tolist() == pytest.approx([59.0, 62.0])
    assert summary.loc[0, "std"] == pytest.approx(1.0)


def test_summarize_by_empty():
    summary = summarize_by(_sample().iloc[0:0], "shed", ["weight"])
    assert summary.empty
    assert list(summary.columns) == ["shed", "metric", "mean", "std", "min", "max"]


# ---------------------------------------------------------------------------
# build_histogram
# ---------------------------------------------------------------------------


def test_histogram_concrete_scenario():
    df = pd.DataFrame({"weight": [float(v) for v in range(1, 11)]})
    hist = build_histogram(df, "weight", bins=5)
    assert hist["count"].tolist() == [2, 2, 2, 2, 2]
    assert hist["range_label"].tolist() == [
        "1.00 - 2.80",
        "2.80 - 4.60",
        "4.60 - 6.40",
        "6.40 - 8.20",
        "8.20 - 10.00",
    ]
    assert hist["range_start"].tolist() == pytest.approx([1.0, 2.8, 4.6, 6.4, 8.2])


def test_histogram_default_bin_count():
    df = pd.DataFrame({"weight": [50.0, 55.0, 70.0]})
    assert len(build_histogram(df, "weight")) == 12


def test_histogram_counts_sum_to_valid_values():
    rng = np.random.default_rng(7)
    values = list(rng.normal(60, 4, size=200)) + [None, "bad"]
    hist = build_histogram(pd.DataFrame({"weight": values}), "weight", bins=9)
    assert len(hist) == 9
    assert hist["count"].sum() == 200


def test_histogram_maximum_lands_in_last_bin():
    df = pd.DataFrame({"weight": [0.0, 1.0, 3.0, 3.0]})
    hist = build_histogram(df, "weight", bins=3)
    assert hist["count"].tolist() == [1, 1, 2]


def test_histogram_extreme_range_keeps_maximum_in_last_bin():
    df = pd.DataFrame({"weight": [-1e308, 0.0, 1e308]})
    hist = build_histogram(df, "weight", bins=2)
    assert hist["count"].tolist() == [1, 2]
    assert np.isfinite(hist["range_start"]).all()
    assert not any("nan" in label or "inf" in label for label in hist["range_label"])


def test_histogram_identical_values_single_bucket():
    df = pd.DataFrame({"weight": [61.0, 61.0, 61.0, None]})
    hist = build_histogram(df, "weight", bins=12)
    assert len(hist) == 1
    assert hist.loc[0, "range_label"] == "61.00"
    assert hist.loc[0, "count"] == 3


def test_histogram_no_values_is_empty():
    df = pd.DataFrame({"weight": [None, "n/a"]})
    hist = build_histogram(df, "weight")
    assert hist.empty
    assert list(hist.columns) == ["range_start", "range_label", "count"]


def test_histogram_rejects_zero_bins():
    with pytest.raises(ValueError):
        build_histogram(_sample(), "weight", bins=0)


# ---------------------------------------------------------------------------
# calculate_monthly_averages
# ---------------------------------------------------------------------------


def test_monthly_concrete_scenario():
    monthly = calculate_monthly_averages(_sample(), ["weight"])
    assert monthly["month"].tolist() == ["2024-01", "2024-02"]
    assert monthly["label"].tolist() == ["2024/01", "2024/02"]
    assert monthly["weight"].tolist() == [61.0, 58.0]


def test_monthly_sorted_chronologically():
    records = _records([
        {"date": "2024-11-03", "weight": 1.0},
        {"date": "2023-12-30", "weight": 2.0},
        {"date": "2024-02-01", "weight": 3.0},
    ])
    monthly = calculate_monthly_averages(records, ["weight"])
    assert monthly["month"].tolist() == ["2023-12", "2024-02", "2024-11"]


def test_monthly_uses_per_field_counts():
    records = _records([
        {"date": "2024-03-01", "weight": 60.0, "haughUnits": 80.0},
        {"date": "2024-03-02", "weight": 64.0, "haughUnits": None},
    ])
    monthly = calculate_monthly_averages(records, ["weight", "haughUnits"])
    assert monthly.loc[0, "weight"] == 62.0
    assert monthly.loc[0, "haughUnits"] == 80.0


def test_monthly_shared_count_matches_legacy_divisor():
    records = _records([
        {"date": "2024-03-01", "weight": 60.0, "haughUnits": 80.0},
        {"date": "2024-03-02", "weight": 64.0, "haughUnits": None},
    ])
    monthly = calculate_monthly_averages(records, ["weight", "haughUnits"], shared_count=True)
    assert monthly.loc[0, "weight"] == 62.0
    assert monthly.loc[0, "haughUnits"] == 40.0


def test_monthly_field_without_values_is_nan():
    records = _records([{"date": "2024-03-01", "weight": 60.0}])
    monthly = calculate_monthly_averages(records, ["weight", "yolkColor"])
    assert math.isnan(monthly.loc[0, "yolkColor"])


def test_monthly_rounds_to_two_decimals():
    records = _records([
        {"date": "2024-05-01", "shellThickness": 0.331},
        {"date": "2024-05-02", "shellThickness": 0.334},
        {"date": "2024-05-03", "shellThickness": 0.336},
    ])
    monthly = calculate_monthly_averages(records, ["shellThickness"])
    assert monthly.loc[0, "shellThickness"] == 0.33


def test_monthly_empty():
    monthly = calculate_monthly_averages(_sample().iloc[0:0], ["weight"])
    assert monthly.empty
    assert list(monthly.columns) == ["month", "label", "weight"]
