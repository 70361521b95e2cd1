"""Configuration module for autoinvite."""

from autoinvite.config.loader import load_config, get_config_path
from autoinvite.config.schema import Config, Homeserver

__all__ = ["Config", "Homeserver", "load_config", "get_config_path"]
