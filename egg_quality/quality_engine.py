"""
Quality Engine: aggregation core for the egg quality dashboard.
Filters, statistics, histograms and monthly averages are computed on-the-fly
from the records DataFrame. Nothing here mutates its input, logs, or raises
for sparse data: missing values are excluded and empty inputs degrade to
zeros or empty frames so charts never crash.
"""
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

import numpy as np
import pandas as pd

ALL = "All"
WILDCARDS = {"All", "Todos"}

CATEGORY_COLUMNS = ["farm", "shed", "age", "breed", "client", "metaqualixId"]
HISTOGRAM_COLUMNS = ["range_start", "range_label", "count"]
STAT_KEYS = ["mean", "std", "min", "max"]


@dataclass
class FilterCriteria:
    """Inclusive date range plus categorical equality constraints."""

    start_date: date
    end_date: date
    # attribute name -> required value; wildcard values match everything
    categories: dict = field(default_factory=dict)

    def active_categories(self):
        return {k: v for k, v in self.categories.items() if not is_wildcard(v)}


def is_wildcard(value):
    return value is None or value == "" or value in WILDCARDS


def default_date_range(today=None, days=30):
    """Return (start, end) covering the last `days` calendar days including today."""
    today = today or datetime.now().date()
    return today - timedelta(days=days - 1), today


def _valid_values(records, field_name):
    """Finite numeric values of `field_name`; missing and non-numeric entries are dropped."""
    if records is None or field_name not in records.columns:
        return pd.Series(dtype=float)
    values = pd.to_numeric(records[field_name], errors="coerce").astype(float)
    values = values.replace([np.inf, -np.inf], np.nan)
    return values.dropna()


# --- RecordFilter ---
def filter_records(records, criteria):
    """
    Return the records inside the criteria's date range that match every
    non-wildcard categorical constraint exactly.

    The end date is inclusive to the end of that day. A start date after the
    end date yields an empty frame. Output keeps the input order and index.
    """
    if records.empty:
        return records.copy()

    start = pd.Timestamp(criteria.start_date).normalize()
    last_day = pd.Timestamp(criteria.end_date).normalize()
    if start > last_day:
        return records.iloc[0:0].copy()
    end = last_day + pd.Timedelta(days=1)

    dates = pd.to_datetime(records["date"], errors="coerce")
    mask = (dates >= start) & (dates < end)

    for column, value in criteria.active_categories().items():
        if column not in records.columns:
            return records.iloc[0:0].copy()
        mask &= records[column] == value

    return records.loc[mask].copy()


def filter_options(records, column):
    """Selector options for a categorical column: wildcard first, then values in first-seen order."""
    if records.empty or column not in records.columns:
        return [ALL]
    values = [v for v in pd.unique(records[column].dropna()) if str(v).strip()]
    return [ALL] + [str(v) for v in values]


# --- StatsEngine ---
def calculate_stats(records, field_name):
    """
    Mean, population standard deviation, min and max of a metric field.

    Returns all zeros when the field has no valid values.
    """
    values = _valid_values(records, field_name)
    if values.empty:
        return {"mean": 0.0, "std": 0.0, "min": 0.0, "max": 0.0}

    low = float(values.min())
    high = float(values.max())
    # summation drift can push the mean of identical values past the extrema
    mean = min(max(float(values.mean()), low), high)
    return {
        "mean": mean,
        "std": float(values.std(ddof=0)),
        "min": low,
        "max": high,
    }


def count_values(records, field_name):
    """Number of valid (finite numeric) values of a metric field."""
    return len(_valid_values(records, field_name))


def global_averages(records, fields):
    """Mean of each metric field over the whole collection."""
    return {f: calculate_stats(records, f)["mean"] for f in fields}


def summarize_by(records, column, fields):
    """
    Per-group statistics in long format.

    Returns: DataFrame with columns [column, "metric", "mean", "std", "min", "max"],
    groups in first-seen order and metrics in the order given.
    """
    columns = [column, "metric"] + STAT_KEYS
    if records.empty or column not in records.columns:
        return pd.DataFrame(columns=columns)

    rows = []
    groups = [g for g in pd.unique(records[column].dropna()) if str(g).strip()]
    for group in groups:
        group_records = records[records[column] == group]
        for f in fields:
            rows.append({column: group, "metric": f, **calculate_stats(group_records, f)})
    return pd.DataFrame(rows, columns=columns)


# --- HistogramBuilder ---
def build_histogram(records, field_name, bins=12):
    """
    Bucket a metric field into `bins` equal-width bins over its observed range.

    Returns: DataFrame with columns range_start, range_label and count, lowest
    bin first. Empty when there are no valid values; a single bucket when all
    values are equal.
    """
    if bins < 1:
        raise ValueError(f"bins must be at least 1, got {bins}")

    values = _valid_values(records, field_name)
    if values.empty:
        return pd.DataFrame(columns=HISTOGRAM_COLUMNS)

    low = float(values.min())
    high = float(values.max())
    if low == high:
        return pd.DataFrame(
            [{"range_start": low, "range_label": f"{low:.2f}", "count": len(values)}],
            columns=HISTOGRAM_COLUMNS,
        )

    # halved operands keep the span finite for values near the float limits
    position = (values.to_numpy() / 2 - low / 2) / (high / 2 - low / 2)
    index = np.floor(position * bins).astype(int)
    # the maximum lands on index == bins
    index = np.clip(index, 0, bins - 1)
    counts = np.bincount(index, minlength=bins)

    def edge(i):
        t = i / bins
        return low * (1 - t) + high * t

    rows = []
    for i in range(bins):
        lower = edge(i)
        upper = edge(i + 1)
        rows.append({
            "range_start": lower,
            "range_label": f"{lower:.2f} - {upper:.2f}",
            "count": int(counts[i]),
        })
    return pd.DataFrame(rows, columns=HISTOGRAM_COLUMNS)


# --- MonthlyAggregator ---
def calculate_monthly_averages(records, fields, shared_count=False):
    """
    Average each metric field per calendar month.

    Args:
        records: records DataFrame
        fields: metric fields to average
        shared_count: divide every field's sum by the month's record count
            instead of by that field's own count of valid values

    Returns:
        DataFrame with columns month ("YYYY-MM"), label ("YYYY/MM") and one
        column per field, oldest month first, rounded to 2 decimals. A month
        with no valid values for a field has NaN for it (0 with shared_count).
    """
    fields = list(fields)
    columns = ["month", "label"] + fields
    if records.empty or "date" not in records.columns:
        return pd.DataFrame(columns=columns)

    dates = pd.to_datetime(records["date"], errors="coerce")
    frame = pd.DataFrame({"month": dates.dt.strftime("%Y-%m")}, index=records.index)
    for f in fields:
        if f in records.columns:
            frame[f] = pd.to_numeric(records[f], errors="coerce").astype(float)
        else:
            frame[f] = np.nan
    frame[fields] = frame[fields].replace([np.inf, -np.inf], np.nan)
    frame = frame.dropna(subset=["month"])

    grouped = frame.groupby("month", sort=True)
    if shared_count:
        averages = grouped[fields].sum().div(grouped.size(), axis=0)
    else:
        averages = grouped[fields].mean()

    averages = averages.round(2).reset_index()
    averages.insert(1, "label", averages["month"].str.replace("-", "/", n=1))
    return averages[columns]
