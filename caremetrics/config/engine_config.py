from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .defaults import DEFAULT_CONFIG


def _default_truthy() -> List[str]:
    return list(DEFAULT_CONFIG["coercion"]["truthy_values"])


def _default_formats() -> List[str]:
    return list(DEFAULT_CONFIG["coercion"]["datetime_formats"])


def _default_min_sample() -> Dict[str, int]:
    return dict(DEFAULT_CONFIG["reports"]["min_sample"])


def _default_top_n() -> Dict[str, int]:
    return dict(DEFAULT_CONFIG["reports"]["top_n"])


# -------------------------------------------------
# COERCION CONFIG
# -------------------------------------------------
@dataclass(frozen=True)
class CoercionConfig:
    """
    How raw text fields are turned into typed values.

    truthy_values is a closed set matched case-sensitively.
    """
    truthy_values: List[str] = field(default_factory=_default_truthy)
    datetime_formats: List[str] = field(default_factory=_default_formats)
    datetime_fallback_parser: bool = False

    def truthy_set(self) -> frozenset:
        return frozenset(self.truthy_values)


# -------------------------------------------------
# REPORT CONFIG
# -------------------------------------------------
@dataclass(frozen=True)
class ReportConfig:
    rate_precision: Optional[int] = 4
    min_sample: Dict[str, int] = field(default_factory=_default_min_sample)
    top_n: Dict[str, int] = field(default_factory=_default_top_n)

    # -----------------------------
    # SAFE ACCESSORS
    # -----------------------------
    def min_sample_for(self, report: str, default: int = 0) -> int:
        return int(self.min_sample.get(report, default))

    def top_n_for(self, report: str) -> Optional[int]:
        value = self.top_n.get(report)
        return int(value) if value is not None else None


# -------------------------------------------------
# ENGINE CONFIG
# -------------------------------------------------
@dataclass(frozen=True)
class EngineConfig:
    """
    Global engine configuration.

    Rules:
    - every section always exists
    - no shared mutable defaults
    """
    coercion: CoercionConfig = field(default_factory=CoercionConfig)
    reports: ReportConfig = field(default_factory=ReportConfig)
    null_fk_is_orphan: bool = True
