"""
Operational performance: admissions volume, patient flow and capacity.
"""

from caremetrics.core.aggregation import average_by, count_by, top_n
from caremetrics.core.contracts import ResultTable
from caremetrics.reporting.base import (
    FindingsCollector,
    ReportContext,
    apply_min_sample,
    encounters_with_departments,
    encounters_with_hospitals,
    finalize,
    rates,
)


def admissions_by_hospital_month(ctx: ReportContext) -> ResultTable:
    name = "admissions_by_hospital_month"
    findings = FindingsCollector(name)

    enc = encounters_with_hospitals(ctx, findings)
    admit = ctx.timestamp(enc["admission_datetime"])
    findings.check_unconvertible(
        admit, "encounters", "admission_datetime", "unparseable admission dates excluded"
    )

    enc = enc[admit.notna().values].copy()
    admit = admit[admit.notna()]
    enc["admit_year"] = admit.dt.year.astype(int).values
    enc["admit_month"] = admit.dt.month.astype(int).values

    counts = count_by(enc, ["hospital_name", "admit_year", "admit_month"], name="admissions")
    ordered = top_n(
        counts,
        sort_key=["admit_year", "admit_month", "admissions"],
        direction=["asc", "asc", "desc"],
        tiebreak=None,
    )

    return finalize(
        name,
        "Admissions by Hospital and Month",
        ordered,
        ["hospital_name", "admit_year", "admit_month", "admissions"],
        findings,
    )


def busiest_departments(ctx: ReportContext) -> ResultTable:
    name = "busiest_departments"
    findings = FindingsCollector(name)

    enc = encounters_with_departments(ctx, findings)
    counts = count_by(enc, "department_name", name="total_encounters")
    ordered = top_n(counts, sort_key="total_encounters", direction="desc", tiebreak=None)

    return finalize(
        name,
        "Busiest Departments",
        ordered,
        ["department_name", "total_encounters"],
        findings,
    )


def avg_los_by_hospital_department(ctx: ReportContext) -> ResultTable:
    name = "avg_los_by_hospital_department"
    findings = FindingsCollector(name)

    enc = encounters_with_hospitals(ctx, findings)
    los = ctx.number(enc["los"])
    findings.check_unconvertible(los, "encounters", "los", "non-numeric LOS excluded")
    enc = enc[los.notna().values]

    grouped = average_by(
        enc,
        ["hospital_name", "department_name"],
        "los",
        name="avg_los_days",
        count="encounter_count",
    )
    grouped = apply_min_sample(ctx, name, grouped, "encounter_count", findings)
    ordered = top_n(grouped, sort_key="avg_los_days", direction="desc", tiebreak="encounter_count")

    return finalize(
        name,
        "Average Length of Stay by Hospital and Department",
        ordered,
        ["hospital_name", "department_name", "encounter_count", "avg_los_days"],
        findings,
    )


def icu_utilisation_by_hospital(ctx: ReportContext) -> ResultTable:
    name = "icu_utilisation_by_hospital"
    findings = FindingsCollector(name)

    enc = encounters_with_hospitals(ctx, findings)
    findings.check_case_variants(ctx, enc, "encounters", "icu_flag")

    grouped = rates(
        ctx,
        enc,
        "hospital_name",
        "icu_flag",
        numerator="icu_encounters",
        denominator="total_encounters",
        rate="icu_utilisation_rate",
    )
    ordered = top_n(
        grouped, sort_key="icu_utilisation_rate", direction="desc", tiebreak="total_encounters"
    )

    return finalize(
        name,
        "ICU Utilisation Rate by Hospital",
        ordered,
        ["hospital_name", "total_encounters", "icu_encounters", "icu_utilisation_rate"],
        findings,
        rate_columns=["icu_utilisation_rate"],
    )


def peak_admission_days(ctx: ReportContext) -> ResultTable:
    name = "peak_admission_days"
    findings = FindingsCollector(name)

    enc = ctx.source.table("encounters")
    admit = ctx.timestamp(enc["admission_datetime"])
    findings.check_unconvertible(
        admit, "encounters", "admission_datetime", "unparseable admission dates excluded"
    )

    enc = enc[admit.notna().values].copy()
    enc["day_of_week"] = admit[admit.notna()].dt.day_name().values

    counts = count_by(enc, "day_of_week", name="admissions")
    ordered = top_n(counts, sort_key="admissions", direction="desc", tiebreak=None)

    return finalize(
        name,
        "Peak Admission Days",
        ordered,
        ["day_of_week", "admissions"],
        findings,
    )
