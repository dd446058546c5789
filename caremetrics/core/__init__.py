"""Core Engine Module - coercion, aggregation and integrity checks."""

from .coercion import (
    CoercionKind,
    UNCONVERTIBLE,
    coerce,
    coerce_series,
    is_truthy,
)
from .aggregation import (
    average_by,
    count_by,
    filter_min_sample,
    rank_relative_to_average,
    rate_by,
    top_n,
)
from .integrity import (
    coercion_failure_summary,
    find_orphans,
    find_temporal_violations,
)
from .contracts import (
    CoercionSummary,
    DataQualityFinding,
    FindingKind,
    ResultTable,
)
from .data_source import DataSource

__all__ = [
    "CoercionKind",
    "UNCONVERTIBLE",
    "coerce",
    "coerce_series",
    "is_truthy",
    "count_by",
    "rate_by",
    "average_by",
    "filter_min_sample",
    "top_n",
    "rank_relative_to_average",
    "find_orphans",
    "find_temporal_violations",
    "coercion_failure_summary",
    "CoercionSummary",
    "DataQualityFinding",
    "FindingKind",
    "ResultTable",
    "DataSource",
]
