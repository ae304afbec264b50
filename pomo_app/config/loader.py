"""Configuration loader with 3-tier parameter precedence."""

import os
from dataclasses import dataclass, fields, is_dataclass
from pathlib import Path
from typing import Any, Optional

import yaml

from ..errors import ConfigurationError
from ..logging.config import get_logger
from .defaults import DEFAULT_CONFIG_DIR, PomoConfig, get_default_config
from .validation import ConfigValidator

logger = get_logger(__name__)

CONFIG_PATH_ENV = "POMO_CONFIG"
CONFIG_FILE_NAME = "config.yaml"


def get_config_path() -> Path:
    """Config file location: ``$POMO_CONFIG`` or ``~/.pomo/config.yaml``."""
    override = os.environ.get(CONFIG_PATH_ENV)
    if override:
        return Path(override).expanduser()
    return Path(DEFAULT_CONFIG_DIR).expanduser() / CONFIG_FILE_NAME


@dataclass(frozen=True)
class ConfigLoader:
    """Manages configuration loading with 3-tier precedence."""

    config_path: Path
    defaults: PomoConfig

    @classmethod
    def create(cls, config_path: Optional[Path] = None) -> "ConfigLoader":
        """Create a ConfigLoader instance."""
        if config_path is None:
            config_path = get_config_path()

        return cls(
            config_path=Path(config_path).expanduser(),
            defaults=get_default_config(),
        )

    def load_file_config(self) -> dict[str, Any]:
        """Load overrides from the YAML config file, if it exists."""
        if not self.config_path.exists():
            return {}

        try:
            with open(self.config_path) as f:
                file_config = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(
                f"Unable to read config file: {e}",
                path=str(self.config_path),
            ) from e

        if file_config is None:
            return {}
        if not isinstance(file_config, dict):
            raise ConfigurationError(
                "Config file must contain a mapping",
                path=str(self.config_path),
            )
        return file_config

    def merge_config(self, overrides: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        """
        Merge configuration with 3-tier precedence.

        Priority order:
        1. Explicit overrides (highest priority)
        2. Config file values
        3. Built-in defaults (lowest priority)
        """
        config = self._dataclass_to_dict(self.defaults)

        config = self._deep_merge(config, self.load_file_config())

        if overrides:
            config = self._deep_merge(config, overrides)

        return config

    def load(self, overrides: Optional[dict[str, Any]] = None) -> PomoConfig:
        """
        Merge, validate and build the typed configuration.

        Raises:
            ConfigurationError: If any merged value is invalid
        """
        merged = self.merge_config(overrides)

        errors = ConfigValidator.validate_config(merged)
        if errors:
            error_msgs = [f"{err.field}: {err.message} (got: {err.value})" for err in errors]
            logger.error(
                "Configuration validation failed",
                config_path=str(self.config_path),
                errors=error_msgs
            )
            raise ConfigurationError(
                "Invalid configuration: " + "; ".join(error_msgs),
                errors=errors,
                path=str(self.config_path),
            )

        return self._dict_to_dataclass(PomoConfig, merged)

    def _dataclass_to_dict(self, obj: Any) -> dict[str, Any]:
        """Convert nested dataclasses to dictionary."""
        if hasattr(obj, '__dataclass_fields__'):
            result = {}
            for field_name, _field in obj.__dataclass_fields__.items():
                value = getattr(obj, field_name)
                if hasattr(value, '__dataclass_fields__'):
                    result[field_name] = self._dataclass_to_dict(value)
                elif isinstance(value, tuple):
                    result[field_name] = list(value)
                else:
                    result[field_name] = value
            return result
        return obj  # type: ignore[no-any-return]

    def _dict_to_dataclass(self, cls: type, data: dict[str, Any]) -> Any:
        """Build a (nested) frozen config dataclass, ignoring unknown keys."""
        kwargs = {}
        for f in fields(cls):
            if f.name not in data:
                continue
            value = data[f.name]
            nested_type = _nested_dataclass_type(cls, f.name)
            if nested_type is not None and isinstance(value, dict):
                value = self._dict_to_dataclass(nested_type, value)
            elif isinstance(value, list):
                value = tuple(value)
            kwargs[f.name] = value
        return cls(**kwargs)

    def _deep_merge(self, base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        """Deep merge two dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result


def _nested_dataclass_type(cls: type, field_name: str) -> Optional[type]:
    default = getattr(cls(), field_name)
    if is_dataclass(default):
        return type(default)
    return None


def ensure_paths(config: PomoConfig) -> None:
    """Create the directories the configured database and event log live in."""
    Path(config.db_path).expanduser().parent.mkdir(parents=True, exist_ok=True)
    if config.hooks.file.enabled:
        Path(config.hooks.file.output_path).expanduser().parent.mkdir(parents=True, exist_ok=True)
