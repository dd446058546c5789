import pandas as pd
import pytest

from caremetrics.core.data_source import DataSource
from caremetrics.core.schema import TABLE_SCHEMAS


def test_source_headers_are_normalised():
    source = DataSource.from_frames({
        "dbo.Departments": pd.DataFrame({
            "Department ID": ["10"],
            "Department Name": ["Cardiology"],
            "Hospital ID": ["1"],
        }),
        "QualityMeasureData": pd.DataFrame({
            "Measure Name": ["Sepsis"],
            "Hospital ID": ["1"],
            "Practice ID": ["P1"],
            "IsCompliant": ["Y"],
        }),
    })

    assert list(source.table("departments").columns) == ["department_id", "department_name", "hospital_id"]
    assert source.table("quality_measures").loc[0, "is_compliant"] == "Y"


def test_workbook_encounter_headers():
    frame = pd.DataFrame({
        "Patient Encounter ID": ["E1"],
        "Department ID": ["10"],
        "Patient Admission Datetime": ["2024-01-01"],
        "Patient Discharge Datetime": ["2024-01-02"],
        "Patient LOS": ["1"],
        "Patient Readmission Flag": ["N"],
        "Patient Inpatient Readmission Flag": ["N"],
        "Patient InICU Flag": ["Y"],
        "Hospital Account ID": ["A1"],
    })

    encounters = DataSource.from_frames({"Encounters": frame}).table("encounters")

    assert list(encounters.columns) == TABLE_SCHEMAS["encounters"].column_names
    assert encounters.loc[0, "icu_flag"] == "Y"


def test_unknown_table_and_missing_columns():
    with pytest.raises(ValueError):
        DataSource.from_frames({"vitals": pd.DataFrame({"x": [1]})})

    with pytest.raises(ValueError):
        DataSource.from_frames({"hospitals": pd.DataFrame({"hospital_id": ["1"]})})


def test_absent_table_reads_as_empty():
    source = DataSource.from_frames({})
    practices = source.table("practices")

    assert practices.empty
    assert list(practices.columns) == ["practice_id", "practice_name"]
    assert not source.has_table("practices")

    with pytest.raises(KeyError):
        source.table("vitals")


def test_tables_are_read_only_snapshots():
    source = DataSource.from_records({"hospitals": [{"hospital_id": "1", "hospital_name": "H1"}]})

    source.table("hospitals").loc[0, "hospital_name"] = "changed"

    assert source.table("hospitals").loc[0, "hospital_name"] == "H1"


def test_csv_dir_keeps_raw_text(tmp_path):
    (tmp_path / "hospitals.csv").write_text("Hospital ID,Hospital Name\n007,North\n")

    source = DataSource.from_csv_dir(tmp_path)

    assert source.table("hospitals").loc[0, "hospital_id"] == "007"
    assert source.table_names == ["hospitals"]


def test_csv_dir_must_exist(tmp_path):
    with pytest.raises(FileNotFoundError):
        DataSource.from_csv_dir(tmp_path / "missing")
