"""
Quality & compliance: compliance rates by hospital, practice and measure.
Worst performers come first.
"""

from caremetrics.core.aggregation import top_n
from caremetrics.core.contracts import FindingKind, ResultTable
from caremetrics.reporting.base import (
    FindingsCollector,
    ReportContext,
    apply_min_sample,
    finalize,
    inner_join,
    rates,
)

COMPLIANCE_COLUMNS = ["total_records", "compliant_records", "compliance_rate"]


def _compliance(ctx: ReportContext, records, by):
    return rates(
        ctx,
        records,
        by,
        "is_compliant",
        numerator="compliant_records",
        denominator="total_records",
        rate="compliance_rate",
    )


def _worst_first(grouped, n=None):
    return top_n(
        grouped,
        n=n,
        sort_key="compliance_rate",
        direction="asc",
        tiebreak="total_records",
    )


def _joined_measures(ctx: ReportContext, findings: FindingsCollector, parent: str, key: str, label: str):
    measures = ctx.source.table("quality_measures")
    joined = inner_join(measures, ctx.source.table(parent), key, columns=[label])
    findings.add(
        FindingKind.ORPHAN_REFERENCE,
        len(measures) - len(joined),
        table="quality_measures",
        field=key,
        detail=f"records without a matching {parent[:-1]} excluded",
    )
    findings.check_case_variants(ctx, joined, "quality_measures", "is_compliant")
    return joined


def compliance_by_hospital_measure(ctx: ReportContext) -> ResultTable:
    name = "compliance_by_hospital_measure"
    findings = FindingsCollector(name)

    records = _joined_measures(ctx, findings, "hospitals", "hospital_id", "hospital_name")
    grouped = _compliance(ctx, records, ["hospital_name", "measure_name"])

    return finalize(
        name,
        "Compliance Rate by Hospital and Measure",
        _worst_first(grouped),
        ["hospital_name", "measure_name"] + COMPLIANCE_COLUMNS,
        findings,
        rate_columns=["compliance_rate"],
    )


def compliance_by_practice_measure(ctx: ReportContext) -> ResultTable:
    name = "compliance_by_practice_measure"
    findings = FindingsCollector(name)

    records = _joined_measures(ctx, findings, "practices", "practice_id", "practice_name")
    grouped = _compliance(ctx, records, ["practice_name", "measure_name"])

    return finalize(
        name,
        "Compliance Rate by Practice and Measure",
        _worst_first(grouped),
        ["practice_name", "measure_name"] + COMPLIANCE_COLUMNS,
        findings,
        rate_columns=["compliance_rate"],
    )


def lowest_compliance_measures(ctx: ReportContext) -> ResultTable:
    name = "lowest_compliance_measures"
    findings = FindingsCollector(name)

    records = ctx.source.table("quality_measures")
    findings.check_case_variants(ctx, records, "quality_measures", "is_compliant")

    grouped = _compliance(ctx, records, "measure_name")
    grouped = apply_min_sample(ctx, name, grouped, "total_records", findings)

    return finalize(
        name,
        "Lowest-Performing Quality Measures",
        _worst_first(grouped, n=ctx.top_n(name)),
        ["measure_name"] + COMPLIANCE_COLUMNS,
        findings,
        rate_columns=["compliance_rate"],
    )
