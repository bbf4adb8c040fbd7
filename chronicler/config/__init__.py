"""Configuration module for chronicler."""

from chronicler.config.loader import get_config_path, load_config
from chronicler.config.schema import Config

__all__ = ["Config", "load_config", "get_config_path"]
