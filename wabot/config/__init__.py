"""Configuration for wabot."""

from wabot.config.schema import Config
from wabot.config.loader import load_config, save_config, get_config_path

__all__ = ["Config", "load_config", "save_config", "get_config_path"]
