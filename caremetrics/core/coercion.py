"""
Coercion layer: raw text fields -> typed values.

Every function here is pure and never raises for bad data. A value that
cannot be converted comes back as UNCONVERTIBLE (scalar API) or as a
missing value, NaT / <NA>, in the vectorised API. Only an unknown target
kind is treated as a programmer error.
"""

import logging
import math
import numbers
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Iterable, Optional, Union

import numpy as np
import pandas as pd
from dateutil import parser as date_parser

from caremetrics.config.defaults import DEFAULT_CONFIG
from caremetrics.config.engine_config import CoercionConfig

logger = logging.getLogger(__name__)

DEFAULT_TRUTHY = frozenset(DEFAULT_CONFIG["coercion"]["truthy_values"])
DEFAULT_DATETIME_FORMATS = tuple(DEFAULT_CONFIG["coercion"]["datetime_formats"])

# datetime64[ns] bounds
_EARLIEST = datetime(1677, 9, 22)
_LATEST = datetime(2262, 4, 11)


class CoercionKind(str, Enum):
    BOOLEAN = "boolean"
    DATETIME = "datetime"
    NUMERIC = "numeric"


class Unconvertible:
    """Marker for a field that could not be coerced to its target kind."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self):
        return False

    def __repr__(self):
        return "UNCONVERTIBLE"

    def __reduce__(self):
        return (Unconvertible, ())


UNCONVERTIBLE = Unconvertible()


def resolve_kind(kind: Union[str, CoercionKind]) -> CoercionKind:
    try:
        return CoercionKind(kind)
    except ValueError:
        raise ValueError(
            f"Unknown coercion kind: {kind!r}. "
            f"Expected one of {[k.value for k in CoercionKind]}"
        ) from None


def _is_missing(value) -> bool:
    if value is None:
        return True
    if pd.api.types.is_scalar(value):
        try:
            return bool(pd.isna(value))
        except (TypeError, ValueError):
            return False
    return False


# -------------------------------------------------
# BOOLEAN-LIKE
# -------------------------------------------------
def _as_literal(value) -> Optional[str]:
    if isinstance(value, str):
        return value
    if isinstance(value, numbers.Integral):
        return str(int(value))
    if isinstance(value, numbers.Real) and float(value).is_integer():
        return str(int(value))
    return str(value)


def is_truthy(value, truthy: Iterable[str] = DEFAULT_TRUTHY) -> bool:
    """
    Closed-set membership test. Matching is exact and case-sensitive:
    "Yes" is true, "yes" is not.
    """
    if _is_missing(value):
        return False
    if isinstance(value, (bool, np.bool_)):
        return bool(value)
    return _as_literal(value) in truthy


def coerce_boolean(value, truthy: Iterable[str] = DEFAULT_TRUTHY) -> bool:
    # absence of a match is indistinguishable from an explicit false
    return is_truthy(value, truthy)


# -------------------------------------------------
# DATETIME-LIKE
# -------------------------------------------------
def _naive(ts: datetime) -> datetime:
    if ts.tzinfo is not None:
        ts = ts.astimezone(timezone.utc).replace(tzinfo=None)
    return ts


def _bounded(ts: datetime):
    ts = _naive(ts)
    if not _EARLIEST <= ts <= _LATEST:
        return UNCONVERTIBLE
    return ts


def coerce_datetime(
    value,
    formats: Iterable[str] = DEFAULT_DATETIME_FORMATS,
    fallback: bool = False,
):
    """
    Parse with the first matching format. Values outside the datetime64[ns]
    range are UNCONVERTIBLE, same as text no format matches.
    """
    if _is_missing(value):
        return UNCONVERTIBLE
    if isinstance(value, pd.Timestamp):
        return _bounded(value.to_pydatetime())
    if isinstance(value, datetime):
        return _bounded(value)
    if not isinstance(value, str):
        return UNCONVERTIBLE

    text = value.strip()
    if not text:
        return UNCONVERTIBLE

    for fmt in formats:
        try:
            return _bounded(datetime.strptime(text, fmt))
        except ValueError:
            continue

    if fallback:
        try:
            return _bounded(date_parser.parse(text))
        except (ValueError, OverflowError):
            return UNCONVERTIBLE

    return UNCONVERTIBLE


# -------------------------------------------------
# NUMERIC-LIKE
# -------------------------------------------------
def coerce_numeric(value):
    if _is_missing(value):
        return UNCONVERTIBLE
    if isinstance(value, (numbers.Real, Decimal)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text or "_" in text:
            return UNCONVERTIBLE
        try:
            number = float(text)
        except ValueError:
            return UNCONVERTIBLE
    else:
        return UNCONVERTIBLE

    if not math.isfinite(number):
        return UNCONVERTIBLE
    return number


# -------------------------------------------------
# DISPATCH
# -------------------------------------------------
def coerce(value, kind: Union[str, CoercionKind], config: Optional[CoercionConfig] = None):
    """
    Coerce one raw field value to `kind`.

    Returns the typed value, or UNCONVERTIBLE. Booleans never come back
    UNCONVERTIBLE: a non-member of the truthy set is False.
    """
    kind = resolve_kind(kind)
    config = config or CoercionConfig()

    if kind is CoercionKind.BOOLEAN:
        return coerce_boolean(value, config.truthy_set())
    if kind is CoercionKind.DATETIME:
        return coerce_datetime(
            value, config.datetime_formats, config.datetime_fallback_parser
        )
    return coerce_numeric(value)


# =====================================================
# VECTORISED (pandas) API
# =====================================================

def boolean_series(series: pd.Series, truthy: Iterable[str] = DEFAULT_TRUTHY) -> pd.Series:
    truthy = frozenset(truthy)
    result = series.map(lambda v: is_truthy(v, truthy))
    return result.astype(bool)


def case_variant_count(series: pd.Series, truthy: Iterable[str] = DEFAULT_TRUTHY) -> int:
    """
    Count values that miss the truthy set only because of letter case
    ("yes", "true"). These stay False; the count lets callers flag them.
    """
    truthy = frozenset(truthy)
    folded = {t.casefold() for t in truthy}

    def _variant(v) -> bool:
        return isinstance(v, str) and v not in truthy and v.casefold() in folded

    count = int(series.map(_variant).sum()) if len(series) else 0
    if count:
        logger.debug("%d case-variant truthy literals left as False", count)
    return count


def datetime_series(
    series: pd.Series,
    formats: Iterable[str] = DEFAULT_DATETIME_FORMATS,
    fallback: bool = False,
) -> pd.Series:
    formats = tuple(formats)
    parsed = series.map(lambda v: coerce_datetime(v, formats, fallback))
    parsed = parsed.map(lambda v: pd.NaT if v is UNCONVERTIBLE else v)
    return pd.to_datetime(parsed)


def numeric_series(series: pd.Series) -> pd.Series:
    values = [None if v is UNCONVERTIBLE else v for v in series.map(coerce_numeric)]
    return pd.Series(values, index=series.index, dtype="Float64", name=series.name)


def coerce_series(
    series: pd.Series,
    kind: Union[str, CoercionKind],
    config: Optional[CoercionConfig] = None,
) -> pd.Series:
    kind = resolve_kind(kind)
    config = config or CoercionConfig()

    if kind is CoercionKind.BOOLEAN:
        return boolean_series(series, config.truthy_set())
    if kind is CoercionKind.DATETIME:
        return datetime_series(
            series, config.datetime_formats, config.datetime_fallback_parser
        )
    return numeric_series(series)


def failure_mask(
    series: pd.Series,
    kind: Union[str, CoercionKind],
    config: Optional[CoercionConfig] = None,
) -> pd.Series:
    """
    True where coercion to `kind` failed. Boolean coercion never fails.
    """
    kind = resolve_kind(kind)
    if kind is CoercionKind.BOOLEAN:
        return pd.Series(False, index=series.index)
    coerced = coerce_series(series, kind, config)
    return coerced.isna().astype(bool)


__all__ = [
    "CoercionKind",
    "UNCONVERTIBLE",
    "Unconvertible",
    "DEFAULT_TRUTHY",
    "DEFAULT_DATETIME_FORMATS",
    "coerce",
    "coerce_boolean",
    "coerce_datetime",
    "coerce_numeric",
    "is_truthy",
    "boolean_series",
    "case_variant_count",
    "datetime_series",
    "numeric_series",
    "coerce_series",
    "failure_mask",
    "resolve_kind",
]
