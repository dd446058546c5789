"""
Explicit data-source handle.

Every engine call receives the exact tables it needs through a DataSource;
there is no ambient "current database". The handle is read-only once built.
"""

import logging
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional

import pandas as pd

from caremetrics.core.schema import (
    TABLE_SCHEMAS,
    empty_frame,
    get_schema,
    missing_columns,
    resolve_columns,
    resolve_table_name,
)

logger = logging.getLogger(__name__)


def _normalize_table(name: str, df: pd.DataFrame) -> pd.DataFrame:
    schema = get_schema(name)
    if df.empty and len(df.columns) == 0:
        return empty_frame(schema)

    mapping = resolve_columns(df, schema)

    normalized = df.rename(columns=mapping)[list(mapping.values())].copy()
    normalized = normalized.reset_index(drop=True)

    missing = missing_columns(normalized, schema)
    if missing:
        raise ValueError(
            f"Table '{schema.name}' is missing required columns: {missing}"
        )

    return normalized[schema.column_names]


class DataSource:
    """
    Immutable snapshot of the input tables.

    Build one with `from_frames` or `from_csv_dir`; read tables with `table()`.
    """

    def __init__(self, tables: Mapping[str, pd.DataFrame]):
        self._tables = MappingProxyType(dict(tables))

    # -----------------------------
    # CONSTRUCTORS
    # -----------------------------
    @classmethod
    def from_frames(cls, frames: Mapping[str, pd.DataFrame]) -> "DataSource":
        tables: Dict[str, pd.DataFrame] = {}

        for name, df in frames.items():
            resolved = resolve_table_name(name)
            if resolved is None:
                raise ValueError(f"Unknown table: {name}")
            if not isinstance(df, pd.DataFrame):
                df = pd.DataFrame(df)
            tables[resolved] = _normalize_table(resolved, df)
            logger.debug("Loaded table %s (%d rows)", resolved, len(df))

        return cls(tables)

    @classmethod
    def from_records(cls, records: Mapping[str, Iterable[dict]]) -> "DataSource":
        return cls.from_frames(
            {name: pd.DataFrame(list(rows)) for name, rows in records.items()}
        )

    @classmethod
    def from_csv_dir(cls, path, tables: Optional[Iterable[str]] = None) -> "DataSource":
        """
        Read `<table>.csv` files from a directory, every column as raw text.
        """
        path = Path(path)
        if not path.is_dir():
            raise FileNotFoundError(f"Data directory not found: {path}")

        wanted = list(tables) if tables is not None else list(TABLE_SCHEMAS)
        frames: Dict[str, pd.DataFrame] = {}

        for name in wanted:
            csv_path = path / f"{name}.csv"
            if not csv_path.exists():
                logger.info("No CSV for table %s in %s", name, path)
                continue
            frames[name] = pd.read_csv(csv_path, dtype=str)

        return cls.from_frames(frames)

    # -----------------------------
    # ACCESSORS
    # -----------------------------
    def has_table(self, name: str) -> bool:
        resolved = resolve_table_name(name)
        return resolved is not None and resolved in self._tables

    def table(self, name: str) -> pd.DataFrame:
        resolved = resolve_table_name(name)
        if resolved is None:
            raise KeyError(f"Unknown table: {name}")
        if resolved not in self._tables:
            return empty_frame(TABLE_SCHEMAS[resolved])
        return self._tables[resolved].copy()

    @property
    def table_names(self):
        return list(self._tables)

    def __repr__(self):
        sizes = ", ".join(f"{k}={len(v)}" for k, v in self._tables.items())
        return f"DataSource({sizes})"
