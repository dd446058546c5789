# =====================================================
# REPORT REGISTRY
# =====================================================

from caremetrics.reporting.operational import (
    admissions_by_hospital_month,
    avg_los_by_hospital_department,
    busiest_departments,
    icu_utilisation_by_hospital,
    peak_admission_days,
)
from caremetrics.reporting.risk import (
    icu_readmission_by_department,
    inpatient_readmission_by_department,
    readmission_by_diagnosis,
    readmission_rate_by_hospital,
    risk_hotspots,
)
from caremetrics.reporting.quality import (
    compliance_by_hospital_measure,
    compliance_by_practice_measure,
    lowest_compliance_measures,
)
from caremetrics.reporting.cost import (
    highest_cost_resources,
    profitability_by_specialty,
    surgical_cost_by_specialty,
)
from caremetrics.reporting.data_quality import (
    discharge_before_admission,
    invalid_encounter_dates,
    los_conversion_check,
    orphan_encounters,
    orphan_quality_records,
)

# =====================================================
# SECTION -> REPORTS (registry order is run order)
# =====================================================

REPORT_SECTIONS = {
    "operational": [
        admissions_by_hospital_month,
        busiest_departments,
        avg_los_by_hospital_department,
        icu_utilisation_by_hospital,
        peak_admission_days,
    ],
    "risk": [
        readmission_rate_by_hospital,
        inpatient_readmission_by_department,
        risk_hotspots,
        readmission_by_diagnosis,
        icu_readmission_by_department,
    ],
    "quality": [
        compliance_by_hospital_measure,
        compliance_by_practice_measure,
        lowest_compliance_measures,
    ],
    "cost": [
        surgical_cost_by_specialty,
        profitability_by_specialty,
        highest_cost_resources,
    ],
    "data_quality": [
        invalid_encounter_dates,
        discharge_before_admission,
        orphan_encounters,
        orphan_quality_records,
        los_conversion_check,
    ],
}

REPORT_REGISTRY = {
    builder.__name__: builder
    for builders in REPORT_SECTIONS.values()
    for builder in builders
}
