from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

import pandas as pd


# =====================================================
# DATA-QUALITY TAXONOMY
# =====================================================

class FindingKind(str, Enum):
    UNCONVERTIBLE_VALUE = "unconvertible_value"
    ORPHAN_REFERENCE = "orphan_reference"
    INSUFFICIENT_SAMPLE = "insufficient_sample"
    EMPTY_DENOMINATOR = "empty_denominator"
    TEMPORAL_VIOLATION = "temporal_violation"


@dataclass(frozen=True)
class DataQualityFinding:
    """
    A data-quality condition observed while building a result.

    Findings are carried in the output; they are never raised.
    """
    kind: FindingKind
    count: int
    table: Optional[str] = None
    field: Optional[str] = None
    detail: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "count": self.count,
            "table": self.table,
            "field": self.field,
            "detail": self.detail,
        }


# =====================================================
# COERCION SUMMARY
# =====================================================

@dataclass(frozen=True)
class CoercionSummary:
    field: str
    kind: str
    total_records: int
    failed_records: int

    @property
    def converted_records(self) -> int:
        return self.total_records - self.failed_records

    @property
    def yield_ratio(self) -> Optional[float]:
        # None for an empty table: no evidence either way
        if self.total_records == 0:
            return None
        return self.converted_records / self.total_records


# =====================================================
# RESULT TABLE
# =====================================================

@dataclass
class ResultTable:
    name: str
    title: str
    columns: List[str]
    rows: pd.DataFrame
    findings: List[DataQualityFinding] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.rows)

    def to_records(self) -> List[Dict[str, Any]]:
        """
        Rows as plain dicts, missing metrics as None.
        """
        frame = self.rows[self.columns].astype(object)
        frame = frame.where(frame.notna(), None)
        return frame.to_dict(orient="records")
