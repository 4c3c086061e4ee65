from .loader import load_config, load_config_with_overrides, validate_settings
from .schema import Correction, EngineSettings, Method

__all__ = [
    "load_config",
    "load_config_with_overrides",
    "validate_settings",
    "EngineSettings",
    "Method",
    "Correction",
]
