"""Configuration loading utilities."""

from pathlib import Path

import yaml
from loguru import logger
from pydantic import ValidationError

from autoinvite.config.schema import Config
from autoinvite.errors import ConfigError

DEFAULT_CONFIG_FILE = "config.yaml"


def get_config_path(path: str | Path | None = None) -> Path:
    """Get the configuration file path."""
    return Path(path or DEFAULT_CONFIG_FILE).expanduser()


def load_config(config_path: str | Path | None = None) -> Config:
    """
    Load configuration from a YAML file.

    Args:
        config_path: Optional path to config file. Uses ./config.yaml if not provided.

    Returns:
        Validated configuration object.

    Raises:
        ConfigError: If the file is missing, is not valid YAML, or fails validation.
    """
    path = get_config_path(config_path)

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"Config file not found: {path}") from e
    except OSError as e:
        raise ConfigError(f"Unable to read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping at the top level")

    try:
        config = Config.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config in {path}:\n{e}") from e

    logger.debug("Loaded config from {} ({} servers)", path, len(config.servers))
    return config
