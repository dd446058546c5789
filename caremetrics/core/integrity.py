"""
Integrity checks: orphan references, temporal ordering, coercion yield.

Nothing here raises for bad data; findings come back as frames or summaries.
"""

import logging
from typing import Iterable, Optional, Union

import pandas as pd

from caremetrics.config.engine_config import CoercionConfig
from caremetrics.core.coercion import (
    CoercionKind,
    DEFAULT_DATETIME_FORMATS,
    datetime_series,
    failure_mask,
    resolve_kind,
)
from caremetrics.core.contracts import CoercionSummary

logger = logging.getLogger(__name__)


def key_text(series: pd.Series) -> pd.Series:
    """
    Comparable key representation: "7", 7 and 7.0 all become "7".
    Missing keys stay missing.
    """
    def _one(value):
        if value is None or (pd.api.types.is_scalar(value) and pd.isna(value)):
            return None
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        return str(value).strip()

    return series.map(_one)


# -------------------------------------------------
# ORPHANS
# -------------------------------------------------
def orphan_mask(
    children: pd.DataFrame,
    parents: pd.DataFrame,
    fk: str,
    pk: Optional[str] = None,
    null_is_orphan: bool = True,
) -> pd.Series:
    pk = pk or fk
    if fk not in children.columns:
        raise KeyError(f"Unknown foreign key column: {fk}")
    if pk not in parents.columns:
        raise KeyError(f"Unknown primary key column: {pk}")

    child_keys = key_text(children[fk])
    parent_keys = set(key_text(parents[pk]).dropna())

    missing = child_keys.isna()
    unmatched = ~child_keys.isin(parent_keys) & ~missing

    mask = unmatched | missing if null_is_orphan else unmatched
    return mask.astype(bool)


def find_orphans(
    children: pd.DataFrame,
    parents: pd.DataFrame,
    fk: str,
    pk: Optional[str] = None,
    null_is_orphan: bool = True,
) -> pd.DataFrame:
    """
    Child rows whose foreign key matches no parent primary key.

    Each orphan is returned once, in input order, however many parents
    share a key. A null foreign key counts as an orphan unless
    `null_is_orphan` is False.
    """
    mask = orphan_mask(children, parents, fk, pk, null_is_orphan)
    orphans = children[mask.values]

    if len(orphans):
        logger.info(
            "Found %d orphan records on %s (of %d)", len(orphans), fk, len(children)
        )
    return orphans.reset_index(drop=True)


# -------------------------------------------------
# TEMPORAL ORDERING
# -------------------------------------------------
def find_temporal_violations(
    records: pd.DataFrame,
    start: str,
    end: str,
    formats: Iterable[str] = DEFAULT_DATETIME_FORMATS,
    fallback: bool = False,
) -> pd.DataFrame:
    """
    Records whose `end` is strictly before `start`.

    Only records where BOTH fields parse are evaluated. A record with an
    unparseable field cannot be judged and is not flagged.

    The parsed values are attached as `<start>_dt` and `<end>_dt`.
    """
    for column in (start, end):
        if column not in records.columns:
            raise KeyError(f"Unknown column: {column}")

    start_dt = datetime_series(records[start], formats, fallback)
    end_dt = datetime_series(records[end], formats, fallback)

    evaluable = start_dt.notna() & end_dt.notna()
    violates = evaluable & (end_dt < start_dt)

    flagged = records[violates.values].copy()
    flagged[f"{start}_dt"] = start_dt[violates].values
    flagged[f"{end}_dt"] = end_dt[violates].values

    logger.debug(
        "Temporal check %s < %s: %d evaluable, %d violations",
        end, start, int(evaluable.sum()), len(flagged),
    )
    return flagged.reset_index(drop=True)


# -------------------------------------------------
# COERCION YIELD
# -------------------------------------------------
def coercion_failure_summary(
    records: pd.DataFrame,
    field: str,
    kind: Union[str, CoercionKind],
    config: Optional[CoercionConfig] = None,
) -> CoercionSummary:
    """
    Total records vs. records whose `field` does not coerce to `kind`.
    Null values count as failures.
    """
    kind = resolve_kind(kind)
    if field not in records.columns:
        raise KeyError(f"Unknown column: {field}")

    failed = int(failure_mask(records[field], kind, config).sum())
    summary = CoercionSummary(
        field=field,
        kind=kind.value,
        total_records=len(records),
        failed_records=failed,
    )

    if failed:
        logger.info(
            "%d of %d values in %s are not %s-like",
            failed, summary.total_records, field, kind.value,
        )
    return summary


__all__ = [
    "key_text",
    "orphan_mask",
    "find_orphans",
    "find_temporal_violations",
    "coercion_failure_summary",
]
