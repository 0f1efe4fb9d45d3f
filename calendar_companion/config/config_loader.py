"""Configuration loader for YAML files."""

import os
import re
from pathlib import Path
from typing import Any

import yaml

from .config_schema import AppConfig

_ENV_REFERENCE = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


def expand_env_references(value: Any) -> Any:
    """
    Replace ``${NAME}`` references in string values with environment variables.

    Unset variables expand to an empty string. Nested dicts and lists are
    walked recursively; other values are returned unchanged.

    Args:
        value: Parsed YAML value

    Returns:
        Value with environment references expanded
    """
    if isinstance(value, str):
        return _ENV_REFERENCE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {key: expand_env_references(item) for key, item in value.items()}
    if isinstance(value, list):
        return [expand_env_references(item) for item in value]
    return value


class ConfigLoader:
    """Load and validate configuration from YAML files."""

    @staticmethod
    def load_config(path: str = "config.yaml") -> AppConfig:
        """
        Load configuration from YAML file.

        Args:
            path: Path to configuration file

        Returns:
            Validated AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(config_path, "r", encoding="utf-8") as f:
            config_dict = yaml.safe_load(f)

        if not config_dict:
            raise ValueError("Configuration file is empty")

        return ConfigLoader.from_dict(config_dict)

    @staticmethod
    def from_dict(config_dict: dict) -> AppConfig:
        """
        Build a validated AppConfig from an already parsed mapping.

        Args:
            config_dict: Configuration dictionary

        Returns:
            Validated AppConfig instance
        """
        if not isinstance(config_dict, dict):
            raise ValueError("Configuration must be a mapping")

        config = AppConfig(**expand_env_references(config_dict))
        config.validate()
        return config


def load_config(path: str = "config.yaml") -> AppConfig:
    """
    Convenience function to load configuration.

    Args:
        path: Path to configuration file

    Returns:
        Validated AppConfig instance
    """
    return ConfigLoader.load_config(path)
