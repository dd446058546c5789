"""
Risk indicators: readmissions, acuity and combined LOS/readmission hotspots.
"""

from caremetrics.core.aggregation import (
    average_by,
    combine,
    rank_relative_to_average,
    top_n,
)
from caremetrics.core.contracts import FindingKind, ResultTable
from caremetrics.reporting.base import (
    FindingsCollector,
    ReportContext,
    apply_min_sample,
    encounters_with_departments,
    encounters_with_hospitals,
    finalize,
    inner_join,
    rates,
)

READMISSION_COLUMNS = ["total_encounters", "readmissions", "readmission_rate"]


def readmission_rate_by_hospital(ctx: ReportContext) -> ResultTable:
    name = "readmission_rate_by_hospital"
    findings = FindingsCollector(name)

    enc = encounters_with_hospitals(ctx, findings)
    findings.check_case_variants(ctx, enc, "encounters", "readmission_flag")

    grouped = rates(
        ctx,
        enc,
        "hospital_name",
        "readmission_flag",
        numerator="readmissions",
        denominator="total_encounters",
        rate="readmission_rate",
    )
    ordered = top_n(
        grouped, sort_key="readmission_rate", direction="desc", tiebreak="total_encounters"
    )

    return finalize(
        name,
        "Readmission Rate by Hospital",
        ordered,
        ["hospital_name"] + READMISSION_COLUMNS,
        findings,
        rate_columns=["readmission_rate"],
    )


def inpatient_readmission_by_department(ctx: ReportContext) -> ResultTable:
    name = "inpatient_readmission_by_department"
    findings = FindingsCollector(name)

    enc = encounters_with_departments(ctx, findings)
    findings.check_case_variants(ctx, enc, "encounters", "inpatient_readmission_flag")

    grouped = rates(
        ctx,
        enc,
        "department_name",
        "inpatient_readmission_flag",
        numerator="inpatient_readmissions",
        denominator="total_encounters",
        rate="inpatient_readmission_rate",
    )
    ordered = top_n(
        grouped,
        sort_key="inpatient_readmission_rate",
        direction="desc",
        tiebreak="total_encounters",
    )

    return finalize(
        name,
        "Inpatient Readmission Rate by Department",
        ordered,
        [
            "department_name",
            "total_encounters",
            "inpatient_readmissions",
            "inpatient_readmission_rate",
        ],
        findings,
        rate_columns=["inpatient_readmission_rate"],
    )


def risk_hotspots(ctx: ReportContext) -> ResultTable:
    """
    Departments above the cross-department average on BOTH length of stay
    and readmission rate. Only encounters with a numeric LOS take part.
    """
    name = "risk_hotspots"
    findings = FindingsCollector(name)

    enc = encounters_with_departments(ctx, findings)
    los = ctx.number(enc["los"])
    findings.check_unconvertible(los, "encounters", "los", "non-numeric LOS excluded")
    enc = enc[los.notna().values]
    findings.check_case_variants(ctx, enc, "encounters", "readmission_flag")

    per_department = combine(
        [
            average_by(
                enc,
                "department_name",
                "los",
                name="avg_los_days",
                count="total_encounters",
            ),
            rates(
                ctx,
                enc,
                "department_name",
                "readmission_flag",
                numerator="readmissions",
                denominator="total_encounters",
                rate="readmission_rate",
            ),
        ],
        on="department_name",
    )

    hotspots = rank_relative_to_average(per_department, ["avg_los_days", "readmission_rate"])
    ordered = top_n(
        hotspots,
        sort_key=["avg_los_days", "readmission_rate"],
        direction="desc",
        tiebreak="total_encounters",
    )

    return finalize(
        name,
        "High LOS and High Readmission Hotspots",
        ordered,
        ["department_name", "total_encounters", "avg_los_days", "readmissions", "readmission_rate"],
        findings,
        rate_columns=["readmission_rate"],
    )


def readmission_by_diagnosis(ctx: ReportContext) -> ResultTable:
    name = "readmission_by_diagnosis"
    findings = FindingsCollector(name)

    encounters = ctx.source.table("encounters")
    enc = inner_join(encounters, ctx.source.table("accounts"), "account_id", columns=["primary_dx"])
    findings.add(
        FindingKind.ORPHAN_REFERENCE,
        len(encounters) - len(enc),
        table="encounters",
        field="account_id",
        detail="encounters without an account excluded",
    )
    enc = enc[enc["primary_dx"].notna()]
    findings.check_case_variants(ctx, enc, "encounters", "readmission_flag")

    grouped = rates(
        ctx,
        enc,
        "primary_dx",
        "readmission_flag",
        numerator="readmissions",
        denominator="total_encounters",
        rate="readmission_rate",
    )
    grouped = apply_min_sample(ctx, name, grouped, "total_encounters", findings)
    ordered = top_n(
        grouped,
        n=ctx.top_n(name),
        sort_key="readmission_rate",
        direction="desc",
        tiebreak="total_encounters",
    )

    return finalize(
        name,
        "Readmission Rate by Primary Diagnosis",
        ordered,
        ["primary_dx"] + READMISSION_COLUMNS,
        findings,
        rate_columns=["readmission_rate"],
    )


def icu_readmission_by_department(ctx: ReportContext) -> ResultTable:
    name = "icu_readmission_by_department"
    findings = FindingsCollector(name)

    enc = encounters_with_departments(ctx, findings)
    findings.check_case_variants(ctx, enc, "encounters", "icu_flag")
    findings.check_case_variants(ctx, enc, "encounters", "readmission_flag")

    grouped = rates(
        ctx,
        enc,
        "department_name",
        lambda frame: ctx.flag(frame["icu_flag"]) & ctx.flag(frame["readmission_flag"]),
        numerator="icu_readmit_cases",
        denominator="total_encounters",
        rate="icu_readmit_rate",
    )
    ordered = top_n(
        grouped, sort_key="icu_readmit_rate", direction="desc", tiebreak="total_encounters"
    )

    return finalize(
        name,
        "High-Acuity Hotspots (ICU + Readmission)",
        ordered,
        ["department_name", "total_encounters", "icu_readmit_cases", "icu_readmit_rate"],
        findings,
        rate_columns=["icu_readmit_rate"],
    )
