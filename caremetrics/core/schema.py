"""
Table definitions for the hospital analytics snapshot.

Purpose:
- Give every input table a canonical, snake_case column vocabulary
- Accept the source workbook headers ("Patient LOS", "IsCompliant", ...)
- Resolve whatever header spelling a loader hands us to that vocabulary
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import pandas as pd


@dataclass(frozen=True)
class TableSchema:
    name: str
    # canonical column -> accepted source header aliases
    columns: Dict[str, Tuple[str, ...]]
    primary_key: Optional[str] = None

    @property
    def column_names(self) -> List[str]:
        return list(self.columns)


# =====================================================
# TABLE DEFINITIONS
# =====================================================

TABLE_SCHEMAS: Dict[str, TableSchema] = {
    "encounters": TableSchema(
        name="encounters",
        primary_key="encounter_id",
        columns={
            "encounter_id": ("patient_encounter_id", "encounter"),
            "department_id": ("dept_id",),
            "admission_datetime": ("patient_admission_datetime", "admit_datetime", "admission_date"),
            "discharge_datetime": ("patient_discharge_datetime", "discharge_date"),
            "los": ("patient_los", "length_of_stay"),
            "readmission_flag": ("patient_readmission_flag", "readmit", "readmitted"),
            "inpatient_readmission_flag": ("patient_inpatient_readmission_flag",),
            "icu_flag": ("patient_inicu_flag", "in_icu_flag", "icu"),
            "account_id": ("hospital_account_id",),
        },
    ),
    "departments": TableSchema(
        name="departments",
        primary_key="department_id",
        columns={
            "department_id": ("dept_id",),
            "department_name": ("dept_name", "department"),
            "hospital_id": (),
        },
    ),
    "hospitals": TableSchema(
        name="hospitals",
        primary_key="hospital_id",
        columns={
            "hospital_id": (),
            "hospital_name": ("hospital",),
        },
    ),
    "accounts": TableSchema(
        name="accounts",
        primary_key="account_id",
        columns={
            "account_id": ("hospital_account_id",),
            "primary_dx": ("primary_icd_diagnosis_code", "primary_diagnosis_code"),
        },
    ),
    "quality_measures": TableSchema(
        name="quality_measures",
        columns={
            "measure_name": ("measure",),
            "hospital_id": (),
            "practice_id": (),
            "is_compliant": ("iscompliant", "compliant", "compliance_flag"),
        },
    ),
    "practices": TableSchema(
        name="practices",
        primary_key="practice_id",
        columns={
            "practice_id": (),
            "practice_name": ("practice",),
        },
    ),
    "surgical_encounters": TableSchema(
        name="surgical_encounters",
        columns={
            "specialty": ("surgical_specialty",),
            "surgical_los": ("los",),
            "total_cost": ("surgical_total_cost",),
            "total_profit": ("surgical_total_profit",),
        },
    ),
    "surgical_costs": TableSchema(
        name="surgical_costs",
        columns={
            "resource_type": ("surgical_resource_type",),
            "resource_name": ("surgical_resource_name",),
            "resource_cost": ("surgical_resource_cost",),
        },
    ),
}

# source workbook table names
TABLE_ALIASES: Dict[str, str] = {
    "qualitymeasuredata": "quality_measures",
    "quality_measure_data": "quality_measures",
    "surgicalencounters": "surgical_encounters",
    "surgicalcosts": "surgical_costs",
}


def normalize_header(header) -> str:
    return str(header).strip().lower().replace(" ", "_").replace("-", "_")


def resolve_table_name(name: str) -> Optional[str]:
    key = normalize_header(name)
    if key.startswith("dbo."):
        key = key[len("dbo."):]
    if key in TABLE_SCHEMAS:
        return key
    return TABLE_ALIASES.get(key)


def get_schema(table: str) -> TableSchema:
    resolved = resolve_table_name(table)
    if resolved is None:
        raise KeyError(f"Unknown table: {table}")
    return TABLE_SCHEMAS[resolved]


# =====================================================
# COLUMN RESOLUTION
# =====================================================

def resolve_columns(df: pd.DataFrame, schema: TableSchema) -> Dict[str, str]:
    """
    Map actual dataframe headers to canonical column names.

    Resolution strategy:
    1. Exact match on the normalized header
    2. Alias match from the table schema

    Headers that match nothing are left out of the mapping.
    """
    mapping: Dict[str, str] = {}
    taken = set()

    normalized = {c: normalize_header(c) for c in df.columns}

    # 1. exact
    for original, norm in normalized.items():
        if norm in schema.columns and norm not in taken:
            mapping[original] = norm
            taken.add(norm)

    # 2. aliases
    for original, norm in normalized.items():
        if original in mapping:
            continue
        for canonical, aliases in schema.columns.items():
            if canonical in taken:
                continue
            if norm in aliases:
                mapping[original] = canonical
                taken.add(canonical)
                break

    return mapping


def missing_columns(df: pd.DataFrame, schema: TableSchema) -> List[str]:
    return [c for c in schema.column_names if c not in df.columns]


def empty_frame(schema: TableSchema) -> pd.DataFrame:
    return pd.DataFrame({c: pd.Series(dtype="object") for c in schema.column_names})


__all__ = [
    "TableSchema",
    "TABLE_SCHEMAS",
    "get_schema",
    "resolve_table_name",
    "resolve_columns",
    "missing_columns",
    "empty_frame",
    "normalize_header",
]
