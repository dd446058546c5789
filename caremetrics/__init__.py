"""
caremetrics

Hospital encounter analytics: raw-field coercion, grouped rates and
averages, referential/temporal integrity checks, and named report tables.
"""

from .__version__ import __version__

# Keep package init lightweight: the reporting layer is imported on demand

from .config import EngineConfig, load_config, load_engine_config
from .core import (
    CoercionKind,
    DataSource,
    ResultTable,
    average_by,
    coerce,
    coercion_failure_summary,
    count_by,
    filter_min_sample,
    find_orphans,
    find_temporal_violations,
    rank_relative_to_average,
    rate_by,
    top_n,
)

__all__ = [
    "__version__",
    "EngineConfig",
    "load_config",
    "load_engine_config",
    "CoercionKind",
    "DataSource",
    "ResultTable",
    "coerce",
    "count_by",
    "rate_by",
    "average_by",
    "filter_min_sample",
    "top_n",
    "rank_relative_to_average",
    "find_orphans",
    "find_temporal_violations",
    "coercion_failure_summary",
]
