"""
Aggregation engine.

Grouped counts, rates, averages and orderings over a DataFrame of records.
Every function returns a new frame and leaves its input untouched.

Conventions:
- `by` is a column name, a list of column names, or a callable taking the
  frame and returning a key Series
- rates use NULLIF semantics: a zero denominator gives <NA>, never 0 or NaN
- averages skip values that do not coerce to a number; a group with none
  left averages to <NA>
"""

import logging
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

import pandas as pd

from caremetrics.core.coercion import DEFAULT_TRUTHY, boolean_series, numeric_series
from caremetrics.core.kpi_utils import safe_divide, safe_rate

logger = logging.getLogger(__name__)

GroupKey = Union[str, Sequence[str], Callable[[pd.DataFrame], pd.Series]]
Predicate = Union[str, Callable[[pd.DataFrame], pd.Series]]
ValueSpec = Union[str, Callable[[pd.DataFrame], pd.Series]]

_HIT = "__hit__"
_VALUE = "__value__"


# -------------------------------------------------
# INTERNAL HELPERS
# -------------------------------------------------
def _with_keys(df: pd.DataFrame, by: GroupKey) -> Tuple[pd.DataFrame, List[str]]:
    work = df.copy()

    if callable(by):
        key = by(work)
        name = key.name if isinstance(key, pd.Series) and key.name else "group"
        work[name] = list(key) if not isinstance(key, pd.Series) else key.values
        return work, [name]

    keys = [by] if isinstance(by, str) else list(by)
    if not keys:
        raise ValueError("At least one group key is required")

    unknown = [k for k in keys if k not in work.columns]
    if unknown:
        raise KeyError(f"Unknown group key columns: {unknown}")

    return work, keys


def _hits(df: pd.DataFrame, predicate: Predicate, truthy: Iterable[str]) -> pd.Series:
    if callable(predicate):
        result = predicate(df)
        if not isinstance(result, pd.Series):
            result = pd.Series(list(result), index=df.index)
        return result.astype("boolean").fillna(False).astype(bool)

    if predicate not in df.columns:
        raise KeyError(f"Unknown predicate column: {predicate}")
    return boolean_series(df[predicate], truthy)


def _values(df: pd.DataFrame, value: ValueSpec) -> pd.Series:
    if callable(value):
        raw = value(df)
        if not isinstance(raw, pd.Series):
            raw = pd.Series(list(raw), index=df.index)
    else:
        if value not in df.columns:
            raise KeyError(f"Unknown value column: {value}")
        raw = df[value]
    return numeric_series(raw)


def _groupby(work: pd.DataFrame, keys: List[str], dropna: bool):
    return work.groupby(keys, dropna=dropna, sort=True)


# -------------------------------------------------
# COUNTS
# -------------------------------------------------
def count_by(
    df: pd.DataFrame,
    by: GroupKey,
    name: str = "count",
    dropna: bool = False,
) -> pd.DataFrame:
    work, keys = _with_keys(df, by)
    counts = _groupby(work, keys, dropna).size()
    return counts.reset_index(name=name)


# -------------------------------------------------
# RATES
# -------------------------------------------------
def rate_by(
    df: pd.DataFrame,
    by: GroupKey,
    predicate: Predicate,
    numerator: str = "numerator",
    denominator: str = "denominator",
    rate: str = "rate",
    truthy: Iterable[str] = DEFAULT_TRUTHY,
    dropna: bool = False,
) -> pd.DataFrame:
    """
    Per group: denominator = records, numerator = records matching
    `predicate`, rate = numerator / denominator (<NA> when denominator is 0).

    A string predicate names a boolean-like column; it is coerced against
    the closed `truthy` set.
    """
    work, keys = _with_keys(df, by)
    work[_HIT] = _hits(work, predicate, frozenset(truthy)).astype(int).values

    grouped = (
        _groupby(work, keys, dropna)
        .agg(**{denominator: (_HIT, "size"), numerator: (_HIT, "sum")})
        .reset_index()
    )
    grouped[denominator] = grouped[denominator].astype(int)
    grouped[numerator] = grouped[numerator].astype(int)
    grouped[rate] = safe_divide(grouped[numerator], grouped[denominator])

    return grouped[keys + [denominator, numerator, rate]]


def overall_rate(
    df: pd.DataFrame,
    predicate: Predicate,
    truthy: Iterable[str] = DEFAULT_TRUTHY,
) -> Optional[float]:
    """
    Ungrouped rate over the whole frame; None for an empty frame.
    """
    hits = _hits(df, predicate, frozenset(truthy))
    return safe_rate(int(hits.sum()), len(df))


# -------------------------------------------------
# AVERAGES / SUMS
# -------------------------------------------------
def average_by(
    df: pd.DataFrame,
    by: GroupKey,
    value: ValueSpec,
    name: str = "average",
    count: str = "count",
    valid: Optional[str] = None,
    dropna: bool = False,
) -> pd.DataFrame:
    """
    Mean of the convertible values of `value` per group.

    `count` is the number of records in the group; pass `valid` to also get
    the number of values that took part in the mean.
    """
    work, keys = _with_keys(df, by)
    work[_VALUE] = _values(work, value).values

    named = {
        count: (_VALUE, "size"),
        name: (_VALUE, "mean"),
    }
    if valid:
        named[valid] = (_VALUE, "count")

    grouped = _groupby(work, keys, dropna).agg(**named).reset_index()
    grouped[count] = grouped[count].astype(int)
    grouped[name] = grouped[name].astype("Float64")

    columns = keys + [count] + ([valid] if valid else []) + [name]
    return grouped[columns]


def sum_by(
    df: pd.DataFrame,
    by: GroupKey,
    value: ValueSpec,
    name: str = "total",
    dropna: bool = False,
) -> pd.DataFrame:
    """
    Sum of the convertible values per group; <NA> when a group has none.
    """
    work, keys = _with_keys(df, by)
    work[_VALUE] = _values(work, value).values

    totals = _groupby(work, keys, dropna)[_VALUE].sum(min_count=1)
    grouped = totals.reset_index(name=name)
    grouped[name] = grouped[name].astype("Float64")
    return grouped


def combine(frames: Sequence[pd.DataFrame], on: Union[str, List[str]]) -> pd.DataFrame:
    """
    Join per-group frames computed from the same records on their keys.
    Columns already present are not duplicated.
    """
    if not frames:
        raise ValueError("combine() needs at least one frame")

    keys = [on] if isinstance(on, str) else list(on)
    result = frames[0]
    for frame in frames[1:]:
        extra = [c for c in frame.columns if c not in result.columns]
        result = result.merge(frame[keys + extra], on=keys, how="left")
    return result


# -------------------------------------------------
# SAMPLE-SIZE POLICY
# -------------------------------------------------
def filter_min_sample(
    grouped: pd.DataFrame,
    min_count: int,
    count: str = "count",
) -> pd.DataFrame:
    """
    Drop groups whose record count is below `min_count`.

    Small groups give unreliable rates; they are omitted, not reported as errors.
    """
    if isinstance(min_count, bool) or not isinstance(min_count, int) or min_count < 0:
        raise ValueError(f"min_count must be a non-negative integer, got {min_count!r}")
    if count not in grouped.columns:
        raise KeyError(f"Unknown count column: {count}")

    kept = grouped[grouped[count] >= min_count].reset_index(drop=True)

    dropped = len(grouped) - len(kept)
    if dropped:
        logger.debug(
            "Dropped %d of %d groups below minimum sample %d",
            dropped, len(grouped), min_count,
        )
    return kept


# -------------------------------------------------
# ORDERING
# -------------------------------------------------
def _as_list(value) -> List:
    if value is None:
        return []
    if isinstance(value, (str, bool)):
        return [value]
    return list(value)


def _ascending(direction: str) -> bool:
    direction = str(direction).lower()
    if direction not in {"asc", "desc"}:
        raise ValueError(f"direction must be 'asc' or 'desc', got {direction!r}")
    return direction == "asc"


def top_n(
    grouped: pd.DataFrame,
    n: Optional[int] = None,
    sort_key: Union[str, Sequence[str]] = "rate",
    direction: Union[str, Sequence[str]] = "desc",
    tiebreak: Optional[str] = "count",
    tiebreak_direction: str = "desc",
) -> pd.DataFrame:
    """
    Deterministic ordering, optionally truncated to the first `n` rows.

    Order of precedence:
    1. `sort_key` columns in `direction` (one direction or one per key)
    2. `tiebreak` column (default: descending sample count), if present
    3. every remaining column, ascending

    Missing metrics always sort last. The sort is stable, so identical input
    always yields identical output.
    """
    if n is not None and (isinstance(n, bool) or not isinstance(n, int) or n < 0):
        raise ValueError(f"n must be a non-negative integer or None, got {n!r}")

    keys = _as_list(sort_key)
    directions = _as_list(direction)
    if len(directions) == 1 and len(keys) > 1:
        directions = directions * len(keys)
    if len(directions) != len(keys):
        raise ValueError("direction must be a single value or one per sort key")

    unknown = [k for k in keys if k not in grouped.columns]
    if unknown:
        raise KeyError(f"Unknown sort columns: {unknown}")

    order = list(keys)
    ascending = [_ascending(d) for d in directions]

    if tiebreak and tiebreak in grouped.columns and tiebreak not in order:
        order.append(tiebreak)
        ascending.append(_ascending(tiebreak_direction))

    for column in grouped.columns:
        if column not in order:
            order.append(column)
            ascending.append(True)

    ordered = grouped.sort_values(
        by=order,
        ascending=ascending,
        na_position="last",
        kind="mergesort",
    ).reset_index(drop=True)

    return ordered if n is None else ordered.head(n)


# -------------------------------------------------
# RELATIVE-TO-AVERAGE (HOTSPOTS)
# -------------------------------------------------
def metric_means(grouped: pd.DataFrame, metric_fields: Sequence[str]) -> Dict[str, Optional[float]]:
    """
    Unweighted mean of each metric across groups, nulls skipped.
    """
    means: Dict[str, Optional[float]] = {}
    for field in metric_fields:
        if field not in grouped.columns:
            raise KeyError(f"Unknown metric column: {field}")
        column = grouped[field].astype("Float64")
        means[field] = float(column.mean()) if column.notna().any() else None
    return means


def rank_relative_to_average(
    grouped: pd.DataFrame,
    metric_fields: Sequence[str],
) -> pd.DataFrame:
    """
    Groups that are strictly above the cross-group mean on EVERY metric.

    Pass 1 is the materialised per-group frame passed in. Pass 2 takes the
    unweighted mean of each metric over that frame, then keeps the groups
    beating all of them. A group with a missing metric never qualifies.
    """
    metric_fields = _as_list(metric_fields)
    if not metric_fields:
        raise ValueError("At least one metric field is required")

    means = metric_means(grouped, metric_fields)

    qualifies = pd.Series(True, index=grouped.index)
    for field, mean in means.items():
        if mean is None:
            qualifies &= False
            continue
        above = grouped[field].astype("Float64") > mean
        qualifies &= above.fillna(False).astype(bool)

    return grouped[qualifies].reset_index(drop=True)


__all__ = [
    "count_by",
    "rate_by",
    "overall_rate",
    "average_by",
    "sum_by",
    "combine",
    "filter_min_sample",
    "top_n",
    "metric_means",
    "rank_relative_to_average",
]
