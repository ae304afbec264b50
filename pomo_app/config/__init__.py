"""
Configuration module.

Built-in defaults, YAML config file loading with override precedence and
validation of merged values.
"""
from .defaults import PomoConfig, get_default_config
from .loader import ConfigLoader, ensure_paths, get_config_path
from .validation import ConfigValidator, ValidationError

__all__ = [
    "ConfigLoader",
    "ConfigValidator",
    "PomoConfig",
    "ValidationError",
    "ensure_paths",
    "get_config_path",
    "get_default_config",
]
