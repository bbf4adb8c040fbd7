"""Configuration loading."""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import ValidationError

from chronicler.config.schema import Config
from chronicler.logging import get_logger

logger = get_logger(__name__)


def get_config_path() -> Path:
    """Default configuration file location."""
    return Path.home() / ".chronicler" / "config.json"


def load_config(config_path: Path | None = None) -> Config:
    """
    Load configuration from a JSON file.

    A missing file yields the defaults. Invalid JSON or schema violations
    raise, since the process cannot run on a half-read configuration.

    Args:
        config_path: Optional path to config file. Uses default if not provided.

    Returns:
        Loaded configuration object.
    """
    path = config_path or get_config_path()
    if not path.exists():
        logger.info("Config file not found, using defaults", path=str(path))
        return Config()

    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        return Config.model_validate(data)
    except (json.JSONDecodeError, ValidationError) as e:
        logger.error("Failed to load config", path=str(path), error=str(e))
        raise


def save_config(config: Config, config_path: Path | None = None) -> None:
    """Write *config* as camelCase JSON."""
    path = config_path or get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    data = config.model_dump(by_alias=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
