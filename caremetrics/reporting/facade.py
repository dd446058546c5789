"""Runs the report registry against one DataSource snapshot."""

from typing import Dict, Iterable, List, Optional

from caremetrics.config.engine_config import EngineConfig
from caremetrics.core.contracts import ResultTable
from caremetrics.core.data_source import DataSource
from caremetrics.reporting.base import ReportContext
from caremetrics.reporting.registry import REPORT_REGISTRY, REPORT_SECTIONS
from caremetrics.utils.logger import get_logger

logger = get_logger(__name__)


class ReportingFacade:
    """
    Runs named analytical reports against one DataSource snapshot.

    Read-only: reports compose engine calls and ordering, nothing more.
    Holds no per-run state, so one instance can serve parallel callers.
    """

    def __init__(self, source: DataSource, config: Optional[EngineConfig] = None):
        if not isinstance(source, DataSource):
            raise TypeError("source must be a DataSource")
        self.context = ReportContext(source=source, config=config or EngineConfig())

    def available_reports(self, section: Optional[str] = None) -> List[str]:
        if section is None:
            return list(REPORT_REGISTRY)
        if section not in REPORT_SECTIONS:
            raise KeyError(f"Unknown report section: {section}")
        return [builder.__name__ for builder in REPORT_SECTIONS[section]]

    def run(self, name: str) -> ResultTable:
        builder = REPORT_REGISTRY.get(name)
        if builder is None:
            raise KeyError(f"Unknown report: {name}")
        logger.debug("Running report %s", name)
        return builder(self.context)

    def run_all(self, names: Optional[Iterable[str]] = None) -> Dict[str, ResultTable]:
        names = list(names) if names is not None else self.available_reports()
        return {name: self.run(name) for name in names}

    def run_section(self, section: str) -> Dict[str, ResultTable]:
        return self.run_all(self.available_reports(section))
