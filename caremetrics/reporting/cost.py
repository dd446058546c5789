"""
Cost & value: surgical cost, length of stay, profitability and resource cost.
"""

from caremetrics.core.aggregation import average_by, combine, sum_by, top_n
from caremetrics.core.contracts import ResultTable
from caremetrics.reporting.base import (
    FindingsCollector,
    ReportContext,
    apply_min_sample,
    finalize,
)


def surgical_cost_by_specialty(ctx: ReportContext) -> ResultTable:
    name = "surgical_cost_by_specialty"
    findings = FindingsCollector(name)

    surgeries = ctx.source.table("surgical_encounters")
    los = ctx.number(surgeries["surgical_los"])
    findings.check_unconvertible(
        los, "surgical_encounters", "surgical_los", "non-numeric surgical LOS excluded"
    )
    surgeries = surgeries[los.notna().values]

    grouped = combine(
        [
            average_by(surgeries, "specialty", "surgical_los",
                       name="avg_surgical_los", count="surgery_cases"),
            average_by(surgeries, "specialty", "total_cost",
                       name="avg_surgical_cost", count="surgery_cases"),
        ],
        on="specialty",
    )
    grouped = apply_min_sample(ctx, name, grouped, "surgery_cases", findings)
    ordered = top_n(
        grouped,
        sort_key=["avg_surgical_cost", "avg_surgical_los"],
        direction="desc",
        tiebreak="surgery_cases",
    )

    return finalize(
        name,
        "Average Surgical LOS and Cost by Specialty",
        ordered,
        ["specialty", "surgery_cases", "avg_surgical_los", "avg_surgical_cost"],
        findings,
    )


def profitability_by_specialty(ctx: ReportContext) -> ResultTable:
    name = "profitability_by_specialty"
    findings = FindingsCollector(name)

    surgeries = ctx.source.table("surgical_encounters")
    findings.check_unconvertible(
        ctx.number(surgeries["total_profit"]),
        "surgical_encounters",
        "total_profit",
        "non-numeric profit excluded from sums and averages",
    )

    grouped = combine(
        [
            average_by(surgeries, "specialty", "total_profit",
                       name="avg_profit_per_case", count="surgery_cases"),
            sum_by(surgeries, "specialty", "total_profit", name="total_profit"),
            average_by(surgeries, "specialty", "total_cost",
                       name="avg_cost_per_case", count="surgery_cases"),
        ],
        on="specialty",
    )
    grouped = apply_min_sample(ctx, name, grouped, "surgery_cases", findings)
    ordered = top_n(grouped, sort_key="total_profit", direction="desc", tiebreak="surgery_cases")

    return finalize(
        name,
        "Profitability by Surgical Specialty",
        ordered,
        ["specialty", "surgery_cases", "total_profit", "avg_profit_per_case", "avg_cost_per_case"],
        findings,
    )


def highest_cost_resources(ctx: ReportContext) -> ResultTable:
    name = "highest_cost_resources"
    findings = FindingsCollector(name)

    usage = ctx.source.table("surgical_costs")
    keys = ["resource_type", "resource_name"]

    grouped = combine(
        [
            average_by(usage, keys, "resource_cost",
                       name="avg_resource_cost", count="usage_count"),
            sum_by(usage, keys, "resource_cost", name="total_resource_cost"),
        ],
        on=keys,
    )
    grouped = apply_min_sample(ctx, name, grouped, "usage_count", findings)
    ordered = top_n(grouped, sort_key="avg_resource_cost", direction="desc", tiebreak="usage_count")

    return finalize(
        name,
        "Highest-Cost Surgical Resources",
        ordered,
        ["resource_type", "resource_name", "usage_count", "avg_resource_cost", "total_resource_cost"],
        findings,
    )
