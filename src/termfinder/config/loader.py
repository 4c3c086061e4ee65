"""Configuration loading with YAML parsing and validation."""

from pathlib import Path
from typing import Any, Mapping

import pydantic_yaml
from pydantic import ValidationError
from ruamel.yaml.error import YAMLError

from termfinder.errors import ConfigurationError

from .schema import EngineSettings


def validate_settings(settings: EngineSettings | Mapping[str, Any] | None) -> EngineSettings:
    """
    Validate settings passed as a model or a plain mapping.

    Args:
        settings: EngineSettings instance or dict of raw values

    Returns:
        Validated EngineSettings instance

    Raises:
        ConfigurationError: If settings are missing or invalid
    """
    if settings is None:
        raise ConfigurationError("You did not provide engine settings")

    if isinstance(settings, EngineSettings):
        return settings

    try:
        return EngineSettings.model_validate(dict(settings))
    except ValidationError as e:
        raise ConfigurationError(f"Invalid engine settings: {e}") from e


def load_config(config_path: Path | str) -> EngineSettings:
    """
    Load and validate engine configuration from YAML file.

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Validated EngineSettings instance

    Raises:
        FileNotFoundError: If config file doesn't exist
        ConfigurationError: If config is invalid
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "r") as f:
        yaml_content = f.read()

    try:
        config = pydantic_yaml.parse_yaml_raw_as(EngineSettings, yaml_content)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid config file {config_path}: {e}") from e
    except YAMLError as e:
        raise ConfigurationError(f"Malformed YAML in config file {config_path}: {e}") from e

    return config


def load_config_with_overrides(
    config_path: Path | str,
    overrides: dict[str, Any],
) -> EngineSettings:
    """
    Load config from YAML and apply dictionary overrides.

    Useful for per-run overrides such as switching aspect or method.

    Args:
        config_path: Path to YAML configuration file
        overrides: Dictionary of values to override

    Returns:
        Validated EngineSettings with overrides applied

    Raises:
        FileNotFoundError: If config file doesn't exist
        ConfigurationError: If an override names an unknown setting or the
            final config is invalid
    """
    config = load_config(config_path)

    config_dict = config.model_dump()

    for key, value in overrides.items():
        if key not in EngineSettings.model_fields:
            allowed = ", ".join(EngineSettings.model_fields)
            raise ConfigurationError(
                f"Unknown setting {key!r} in overrides. Use one of: {allowed}"
            )
        config_dict[key] = value

    return validate_settings(config_dict)
