import pandas as pd
import pytest

from caremetrics.core.data_source import DataSource


ENCOUNTER_DEFAULTS = {
    "encounter_id": None,
    "department_id": None,
    "admission_datetime": "2024-01-01 08:00:00",
    "discharge_datetime": "2024-01-03 08:00:00",
    "los": "2",
    "readmission_flag": "N",
    "inpatient_readmission_flag": "N",
    "icu_flag": "N",
    "account_id": None,
}


def make_encounters(rows):
    """
    Fill every encounter column so tests only spell out what they assert on.
    """
    records = []
    for i, row in enumerate(rows, start=1):
        record = dict(ENCOUNTER_DEFAULTS)
        record["encounter_id"] = f"E{i:03d}"
        record.update(row)
        records.append(record)
    return pd.DataFrame(records)


@pytest.fixture
def hospitals():
    return pd.DataFrame({
        "hospital_id": ["1", "2"],
        "hospital_name": ["H1", "H2"],
    })


@pytest.fixture
def departments():
    return pd.DataFrame({
        "department_id": ["10", "20", "30", "40"],
        "department_name": ["Cardiology", "Oncology", "Emergency", "Ghost Ward"],
        "hospital_id": ["1", "1", "2", "99"],
    })


@pytest.fixture
def hotspot_encounters():
    """
    Cardiology: LOS 10, rate 0.5
    Oncology:   LOS 2,  rate 0.8
    Emergency:  LOS 8,  rate 0.1 (+1 non-numeric LOS row that must not count)
    """
    rows = (
        [{"department_id": "10", "los": "10", "readmission_flag": f} for f in ("Yes", "No")]
        + [{"department_id": "20", "los": "2", "readmission_flag": f} for f in ("Y", "Y", "1", "TRUE", "N")]
        + [{"department_id": "30", "los": "8", "readmission_flag": "Yes" if i == 0 else "0"} for i in range(10)]
        + [{"department_id": "30", "los": "n/a", "readmission_flag": "Yes"}]
    )
    return make_encounters(rows)


@pytest.fixture
def hotspot_source(hotspot_encounters, departments, hospitals):
    return DataSource.from_frames({
        "encounters": hotspot_encounters,
        "departments": departments,
        "hospitals": hospitals,
    })


@pytest.fixture
def quality_source(hospitals):
    measures = pd.DataFrame({
        "measure_name": ["Sepsis"] * 4 + ["Stroke"] * 2 + ["Sepsis"],
        "hospital_id": ["1", "1", "2", "2", "1", "1", "77"],
        "practice_id": ["P1", "P1", "P2", "P2", "P1", None, "P1"],
        "is_compliant": ["Y", "N", "Yes", "TRUE", "0", "1", "Y"],
    })
    practices = pd.DataFrame({
        "practice_id": ["P1", "P2"],
        "practice_name": ["Riverside", "Hillcrest"],
    })
    return DataSource.from_frames({
        "quality_measures": measures,
        "hospitals": hospitals,
        "practices": practices,
    })


@pytest.fixture
def surgical_source():
    surgeries = pd.DataFrame({
        "specialty": ["Ortho", "Ortho", "Ortho", "Cardiac", "Cardiac", "Derm"],
        "surgical_los": ["3", "4", "x", "5", "5", "1"],
        "total_cost": ["100", "200", "999", "500", "300", "50"],
        "total_profit": ["10", "20", "30", "-100", "40", "5"],
    })
    costs = pd.DataFrame({
        "resource_type": ["Implant", "Implant", "Drug", "Drug", "Drug"],
        "resource_name": ["Hip", "Hip", "Propofol", "Propofol", "Saline"],
        "resource_cost": ["1000", "3000", "20", "40", "2"],
    })
    return DataSource.from_frames({
        "surgical_encounters": surgeries,
        "surgical_costs": costs,
    })
