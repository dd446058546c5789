"""
Shared building blocks for the analytical reports.

A report is a plain function `(ReportContext) -> ResultTable`. The context
carries the data source and config; the helpers here do the joins, flag
coercion and result finalisation every report needs.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import pandas as pd

from caremetrics.config.engine_config import EngineConfig
from caremetrics.core import aggregation
from caremetrics.core.coercion import (
    boolean_series,
    case_variant_count,
    datetime_series,
    numeric_series,
)
from caremetrics.core.contracts import DataQualityFinding, FindingKind, ResultTable
from caremetrics.core.data_source import DataSource
from caremetrics.core.integrity import key_text
from caremetrics.core.kpi_utils import round_ratio

logger = logging.getLogger(__name__)

_JOIN_KEY = "__join_key__"


@dataclass
class ReportContext:
    source: DataSource
    config: EngineConfig = field(default_factory=EngineConfig)

    # -----------------------------
    # COERCION SHORTCUTS
    # -----------------------------
    def flag(self, series: pd.Series) -> pd.Series:
        return boolean_series(series, self.config.coercion.truthy_set())

    def number(self, series: pd.Series) -> pd.Series:
        return numeric_series(series)

    def timestamp(self, series: pd.Series) -> pd.Series:
        return datetime_series(
            series,
            self.config.coercion.datetime_formats,
            self.config.coercion.datetime_fallback_parser,
        )

    def min_sample(self, report: str) -> int:
        return self.config.reports.min_sample_for(report)

    def top_n(self, report: str) -> Optional[int]:
        return self.config.reports.top_n_for(report)


class FindingsCollector:
    """Accumulates data-quality findings while a report is built."""

    def __init__(self, report: str):
        self.report = report
        self.items: List[DataQualityFinding] = []

    def add(self, kind: FindingKind, count: int, table=None, field=None, detail=""):
        if count <= 0:
            return
        self.items.append(
            DataQualityFinding(
                kind=kind, count=int(count), table=table, field=field, detail=detail
            )
        )
        logger.debug("[%s] %s x%d %s", self.report, kind.value, count, detail)

    def check_case_variants(self, ctx: ReportContext, df: pd.DataFrame, table: str, column: str):
        # flagged, never normalised
        count = case_variant_count(df[column], ctx.config.coercion.truthy_set())
        self.add(
            FindingKind.UNCONVERTIBLE_VALUE,
            count,
            table=table,
            field=column,
            detail="case-variant truthy literal counted as false",
        )

    def check_unconvertible(self, values: pd.Series, table: str, column: str, detail: str):
        self.add(
            FindingKind.UNCONVERTIBLE_VALUE,
            int(values.isna().sum()),
            table=table,
            field=column,
            detail=detail,
        )


# -------------------------------------------------
# JOINS
# -------------------------------------------------
def inner_join(
    left: pd.DataFrame,
    right: pd.DataFrame,
    left_on: str,
    right_on: Optional[str] = None,
    columns: Optional[Sequence[str]] = None,
) -> pd.DataFrame:
    """
    SQL-style inner join on reference keys compared as text.

    Rows without a match (orphans) drop out. Right-hand key columns are
    not carried over; `columns` limits which right-hand columns are.
    """
    right_on = right_on or left_on
    carried = list(columns) if columns is not None else [
        c for c in right.columns if c != right_on and c not in left.columns
    ]

    lhs = left.copy()
    lhs[_JOIN_KEY] = key_text(lhs[left_on])
    rhs = right[[right_on] + carried].copy()
    rhs[_JOIN_KEY] = key_text(rhs[right_on])
    rhs = rhs.drop(columns=[right_on]).dropna(subset=[_JOIN_KEY])

    joined = lhs.dropna(subset=[_JOIN_KEY]).merge(rhs, on=_JOIN_KEY, how="inner")
    return joined.drop(columns=[_JOIN_KEY]).reset_index(drop=True)


def encounters_with_departments(ctx: ReportContext, findings: FindingsCollector) -> pd.DataFrame:
    encounters = ctx.source.table("encounters")
    joined = inner_join(
        encounters,
        ctx.source.table("departments"),
        "department_id",
        columns=["department_name", "hospital_id"],
    )
    findings.add(
        FindingKind.ORPHAN_REFERENCE,
        len(encounters) - len(joined),
        table="encounters",
        field="department_id",
        detail="encounters without a department excluded",
    )
    return joined


def encounters_with_hospitals(ctx: ReportContext, findings: FindingsCollector) -> pd.DataFrame:
    with_departments = encounters_with_departments(ctx, findings)
    joined = inner_join(
        with_departments,
        ctx.source.table("hospitals"),
        "hospital_id",
        columns=["hospital_name"],
    )
    findings.add(
        FindingKind.ORPHAN_REFERENCE,
        len(with_departments) - len(joined),
        table="departments",
        field="hospital_id",
        detail="departments without a hospital excluded",
    )
    return joined


# -------------------------------------------------
# RATE / SAMPLE POLICY
# -------------------------------------------------
def apply_min_sample(
    ctx: ReportContext,
    report: str,
    grouped: pd.DataFrame,
    count: str,
    findings: FindingsCollector,
) -> pd.DataFrame:
    threshold = ctx.min_sample(report)
    if threshold <= 0:
        return grouped
    kept = aggregation.filter_min_sample(grouped, threshold, count=count)
    findings.add(
        FindingKind.INSUFFICIENT_SAMPLE,
        len(grouped) - len(kept),
        detail=f"groups with fewer than {threshold} records omitted",
    )
    return kept


def finalize(
    name: str,
    title: str,
    frame: pd.DataFrame,
    columns: Sequence[str],
    findings: FindingsCollector,
    rate_columns: Sequence[str] = (),
) -> ResultTable:
    rows = frame[list(columns)].reset_index(drop=True).copy()

    for column in rate_columns:
        findings.add(
            FindingKind.EMPTY_DENOMINATOR,
            int(rows[column].isna().sum()),
            field=column,
            detail="rate undefined for empty denominator",
        )

    logger.info("Report %s: %d rows", name, len(rows))
    return ResultTable(
        name=name,
        title=title,
        columns=list(columns),
        rows=rows,
        findings=list(findings.items),
    )


def rates(
    ctx: ReportContext,
    df: pd.DataFrame,
    by,
    predicate,
    numerator: str,
    denominator: str,
    rate: str,
) -> pd.DataFrame:
    """
    aggregation.rate_by with the configured truthy set, rates rounded to
    the report precision before any ordering or averaging happens.
    """
    grouped = aggregation.rate_by(
        df,
        by,
        predicate,
        numerator=numerator,
        denominator=denominator,
        rate=rate,
        truthy=ctx.config.coercion.truthy_set(),
    )
    grouped[rate] = round_ratio(
        grouped[numerator], grouped[denominator], ctx.config.reports.rate_precision
    )
    return grouped
