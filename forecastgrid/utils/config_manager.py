"""
Configuration management utilities.
"""

import yaml
import json
import logging
import jsonschema
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Dict, Any, List, Optional

logger = logging.getLogger(__name__)


ENGINE_CONFIG_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "n_jobs": {"type": "integer", "minimum": 1},
        "prediction_suffix": {"type": "string", "minLength": 1},
        "horizon_column": {"type": "string", "minLength": 1},
        "drop_forecast_columns": {
            "type": "array",
            "items": {"type": "string"},
        },
        "log_level": {
            "type": "string",
            "enum": ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        },
    },
    "additionalProperties": False,
}


@dataclass
class EngineConfig:
    """Runtime settings shared by the trainer and the prediction engine."""
    n_jobs: int = 1
    prediction_suffix: str = "_pred"
    horizon_column: str = "horizon"
    drop_forecast_columns: List[str] = field(default_factory=lambda: ["horizon", "row_number"])
    log_level: str = "INFO"

    def __post_init__(self):
        # The step tag column is never a model feature.
        columns = list(self.drop_forecast_columns)
        if self.horizon_column not in columns:
            columns.insert(0, self.horizon_column)
        self.drop_forecast_columns = columns

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EngineConfig":
        """Create from an already validated dictionary."""
        return cls(**data)


class ConfigManager:
    """
    Manages loading, validation, and merging of configurations.
    """

    def __init__(self, config_dir: Optional[str] = None, schema_dir: Optional[str] = None):
        self.config_dir = Path(config_dir) if config_dir else Path("config")
        self.schema_dir = Path(schema_dir) if schema_dir else self.config_dir / "schemas"

    def load_config(self, config_name: str, schema_name: Optional[str] = None) -> Dict[str, Any]:
        """
        Load a configuration file (YAML or JSON).
        Optionally validate against a schema.

        Args:
            config_name: Name of config file (e.g. 'engine.yaml')
            schema_name: Name of schema file (e.g. 'engine_schema.json')

        Returns:
            Loaded configuration dictionary
        """
        config_path = self.config_dir / config_name

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, "r") as f:
            if config_path.suffix in (".yaml", ".yml"):
                config = yaml.safe_load(f) or {}
            elif config_path.suffix == ".json":
                config = json.load(f)
            else:
                raise ValueError(f"Unsupported configuration format: {config_path.suffix}")

        if schema_name:
            self.validate_config(config, schema_name)

        return config

    def load_engine_config(
        self,
        config_name: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> EngineConfig:
        """
        Build an EngineConfig from defaults, an optional file and optional overrides.

        Args:
            config_name: Name of a YAML/JSON file in the config directory
            overrides: Values applied on top of the file contents

        Returns:
            Validated EngineConfig
        """
        config = EngineConfig().to_dict()
        if config_name:
            config = self.merge_configs(config, self.load_config(config_name))
        if overrides:
            config = self.merge_configs(config, overrides)

        self._validate(config, ENGINE_CONFIG_SCHEMA, "engine config")
        return EngineConfig.from_dict(config)

    def validate_config(self, config: Dict[str, Any], schema_name: str) -> None:
        """
        Validate configuration against a schema file.

        Args:
            config: Configuration dictionary
            schema_name: Name of schema file
        """
        schema_path = self.schema_dir / schema_name

        if not schema_path.exists():
            raise FileNotFoundError(f"Schema file not found: {schema_path}")

        with open(schema_path, "r") as f:
            schema = json.load(f)

        self._validate(config, schema, schema_name)

    def _validate(self, config: Dict[str, Any], schema: Dict[str, Any], label: str) -> None:
        try:
            jsonschema.validate(instance=config, schema=schema)
            logger.debug(f"Configuration successfully validated against {label}")
        except jsonschema.exceptions.ValidationError as e:
            path_str = " -> ".join(str(p) for p in e.path) if e.path else "root"
            error_msg = f"Configuration validation failed at '{path_str}': {e.message}"
            logger.error(error_msg)
            raise ValueError(error_msg) from e

    def merge_configs(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """
        Deep merge two configurations.

        Args:
            base: Base configuration
            override: Override configuration

        Returns:
            Merged configuration
        """
        merged = base.copy()
        for key, value in override.items():
            if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
                merged[key] = self.merge_configs(merged[key], value)
            else:
                merged[key] = value
        return merged

    def get_value(self, config: Dict[str, Any], path: str, default: Any = None) -> Any:
        """
        Get a value from configuration using dot notation.

        Args:
            config: Configuration dictionary
            path: Dot-separated path (e.g., 'engine.n_jobs')
            default: Default value if path not found

        Returns:
            Value at path or default
        """
        current = config

        for key in path.split('.'):
            if isinstance(current, dict) and key in current:
                current = current[key]
            else:
                return default

        return current

    def set_value(self, config: Dict[str, Any], path: str, value: Any) -> None:
        """
        Set a value in configuration using dot notation.
        Creates intermediate dictionaries if they don't exist.

        Args:
            config: Configuration dictionary (modified in-place)
            path: Dot-separated path
            value: Value to set
        """
        keys = path.split('.')
        current = config

        for key in keys[:-1]:
            if key not in current or not isinstance(current[key], dict):
                current[key] = {}
            current = current[key]

        current[keys[-1]] = value
