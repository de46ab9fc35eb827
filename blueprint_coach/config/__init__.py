# blueprint_coach/config/__init__.py
"""Configuration system for blueprint-coach."""

from .loader import get_config_dir, get_config_path, get_db_path, load_config
from .schema import (
    CoachConfig,
    ContextConfig,
    GenerationSettings,
    OutputConfig,
    ParsingConfig,
    RelayConfig,
    StorageConfig,
    ValidatorConfig,
)

__all__ = [
    "CoachConfig",
    "RelayConfig",
    "GenerationSettings",
    "ValidatorConfig",
    "ContextConfig",
    "ParsingConfig",
    "StorageConfig",
    "OutputConfig",
    "load_config",
    "get_config_dir",
    "get_config_path",
    "get_db_path",
]
