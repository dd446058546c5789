from .loader import load_config, load_engine_config
from .defaults import DEFAULT_CONFIG
from .engine_config import CoercionConfig, EngineConfig, ReportConfig

__all__ = [
    "load_config",
    "load_engine_config",
    "DEFAULT_CONFIG",
    "CoercionConfig",
    "EngineConfig",
    "ReportConfig",
]
