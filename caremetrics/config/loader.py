import copy
from pathlib import Path
from typing import Optional

import yaml

from .defaults import DEFAULT_CONFIG
from caremetrics.config.engine_config import (
    CoercionConfig,
    EngineConfig,
    ReportConfig,
)


# -------------------------------------------------
# ENGINE CONFIG BUILDER
# -------------------------------------------------
def load_engine_config(cfg: Optional[dict] = None) -> EngineConfig:
    """
    Build a typed EngineConfig from a (merged) config dict.
    """
    cfg = cfg if cfg is not None else DEFAULT_CONFIG

    coercion_cfg = cfg.get("coercion", {})
    reports_cfg = cfg.get("reports", {})
    integrity_cfg = cfg.get("integrity", {})

    truthy = coercion_cfg.get(
        "truthy_values", DEFAULT_CONFIG["coercion"]["truthy_values"]
    )
    formats = coercion_cfg.get(
        "datetime_formats", DEFAULT_CONFIG["coercion"]["datetime_formats"]
    )

    if not isinstance(truthy, (list, tuple)) or not all(isinstance(v, str) for v in truthy):
        raise ValueError("coercion.truthy_values must be a list of strings")
    if not isinstance(formats, (list, tuple)) or not formats:
        raise ValueError("coercion.datetime_formats must be a non-empty list")

    min_sample = dict(reports_cfg.get("min_sample", {}))
    top_n = dict(reports_cfg.get("top_n", {}))
    for section, values in (("min_sample", min_sample), ("top_n", top_n)):
        for report, value in values.items():
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ValueError(
                    f"reports.{section}.{report} must be a non-negative integer"
                )

    return EngineConfig(
        coercion=CoercionConfig(
            truthy_values=list(truthy),
            datetime_formats=list(formats),
            datetime_fallback_parser=bool(
                coercion_cfg.get("datetime_fallback_parser", False)
            ),
        ),
        reports=ReportConfig(
            rate_precision=reports_cfg.get("rate_precision", 4),
            min_sample=min_sample,
            top_n=top_n,
        ),
        null_fk_is_orphan=bool(integrity_cfg.get("null_fk_is_orphan", True)),
    )


def _merge(base: dict, override: dict) -> dict:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value
    return base


# -------------------------------------------------
# MAIN CONFIG LOADER
# -------------------------------------------------
def load_config(path: Optional[str] = None) -> dict:
    """
    Load and merge user config with framework defaults.

    Rules:
    - Defaults ALWAYS win if user omits fields
    - nested sections merge key by key
    - the typed engine config is attached under "engine"
    """

    # -------------------------------------------------
    # 1. Load user config (if provided)
    # -------------------------------------------------
    user_config = {}

    if path:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path, "r", encoding="utf-8") as f:
            user_config = yaml.safe_load(f) or {}

        if not isinstance(user_config, dict):
            raise ValueError("Config file must contain a YAML dictionary")

    # -------------------------------------------------
    # 2. Merge with defaults
    # -------------------------------------------------
    config = _merge(copy.deepcopy(DEFAULT_CONFIG), user_config)

    config.setdefault("metadata", {})

    # -------------------------------------------------
    # 3. Attach typed engine config
    # -------------------------------------------------
    config["engine"] = load_engine_config(config)

    return config
