"""
Data quality & governance: date validity, logical ordering, orphan records
and numeric conversion yield.
"""

import pandas as pd

from caremetrics.core.coercion import CoercionKind
from caremetrics.core.contracts import FindingKind, ResultTable
from caremetrics.core.integrity import (
    coercion_failure_summary,
    find_orphans,
    find_temporal_violations,
    orphan_mask,
)
from caremetrics.reporting.base import FindingsCollector, ReportContext, finalize


def invalid_encounter_dates(ctx: ReportContext) -> ResultTable:
    name = "invalid_encounter_dates"
    findings = FindingsCollector(name)

    enc = ctx.source.table("encounters")
    admit = coercion_failure_summary(
        enc, "admission_datetime", CoercionKind.DATETIME, ctx.config.coercion
    )
    discharge = coercion_failure_summary(
        enc, "discharge_datetime", CoercionKind.DATETIME, ctx.config.coercion
    )
    for summary in (admit, discharge):
        findings.add(
            FindingKind.UNCONVERTIBLE_VALUE,
            summary.failed_records,
            table="encounters",
            field=summary.field,
            detail="value does not parse as a datetime",
        )

    row = pd.DataFrame(
        [{
            "total_records": admit.total_records,
            "invalid_admission_dates": admit.failed_records,
            "invalid_discharge_dates": discharge.failed_records,
        }]
    )
    return finalize(
        name,
        "Invalid Admission and Discharge Dates",
        row,
        ["total_records", "invalid_admission_dates", "invalid_discharge_dates"],
        findings,
    )


def discharge_before_admission(ctx: ReportContext) -> ResultTable:
    name = "discharge_before_admission"
    findings = FindingsCollector(name)

    violations = find_temporal_violations(
        ctx.source.table("encounters"),
        "admission_datetime",
        "discharge_datetime",
        formats=ctx.config.coercion.datetime_formats,
        fallback=ctx.config.coercion.datetime_fallback_parser,
    )
    findings.add(
        FindingKind.TEMPORAL_VIOLATION,
        len(violations),
        table="encounters",
        field="discharge_datetime",
        detail="discharge recorded before admission",
    )

    rows = violations.rename(
        columns={
            "admission_datetime_dt": "admit_dt",
            "discharge_datetime_dt": "discharge_dt",
        }
    )
    return finalize(
        name,
        "Discharge Before Admission",
        rows,
        ["encounter_id", "admit_dt", "discharge_dt"],
        findings,
    )


def orphan_encounters(ctx: ReportContext) -> ResultTable:
    name = "orphan_encounters"
    findings = FindingsCollector(name)

    orphans = find_orphans(
        ctx.source.table("encounters"),
        ctx.source.table("departments"),
        "department_id",
        null_is_orphan=ctx.config.null_fk_is_orphan,
    )
    findings.add(
        FindingKind.ORPHAN_REFERENCE,
        len(orphans),
        table="encounters",
        field="department_id",
        detail="encounter does not map to a department",
    )

    return finalize(
        name,
        "Orphan Encounters Without Department",
        orphans,
        ["encounter_id", "department_id"],
        findings,
    )


def orphan_quality_records(ctx: ReportContext) -> ResultTable:
    name = "orphan_quality_records"
    findings = FindingsCollector(name)

    measures = ctx.source.table("quality_measures")
    null_is_orphan = ctx.config.null_fk_is_orphan

    no_hospital = orphan_mask(
        measures, ctx.source.table("hospitals"), "hospital_id", null_is_orphan=null_is_orphan
    )
    no_practice = orphan_mask(
        measures, ctx.source.table("practices"), "practice_id", null_is_orphan=null_is_orphan
    )
    for mask, field in ((no_hospital, "hospital_id"), (no_practice, "practice_id")):
        findings.add(
            FindingKind.ORPHAN_REFERENCE,
            int(mask.sum()),
            table="quality_measures",
            field=field,
            detail="reference does not resolve",
        )

    orphans = measures[(no_hospital | no_practice).values]
    return finalize(
        name,
        "Orphan Quality Measure Records",
        orphans,
        ["measure_name", "hospital_id", "practice_id"],
        findings,
    )


def los_conversion_check(ctx: ReportContext) -> ResultTable:
    name = "los_conversion_check"
    findings = FindingsCollector(name)

    summary = coercion_failure_summary(
        ctx.source.table("encounters"), "los", CoercionKind.NUMERIC, ctx.config.coercion
    )
    findings.add(
        FindingKind.UNCONVERTIBLE_VALUE,
        summary.failed_records,
        table="encounters",
        field="los",
        detail="LOS is not numeric",
    )

    row = pd.DataFrame(
        [{
            "total_records": summary.total_records,
            "non_numeric_los_values": summary.failed_records,
            "yield_ratio": summary.yield_ratio,
        }]
    )
    return finalize(
        name,
        "LOS Conversion Check",
        row,
        ["total_records", "non_numeric_los_values", "yield_ratio"],
        findings,
    )
