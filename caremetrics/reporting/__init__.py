"""Reporting facade - named analytical result tables."""

from .facade import ReportingFacade
from .base import ReportContext
from .registry import REPORT_REGISTRY, REPORT_SECTIONS

__all__ = [
    "ReportingFacade",
    "ReportContext",
    "REPORT_REGISTRY",
    "REPORT_SECTIONS",
]
