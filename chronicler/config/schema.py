"""Configuration schema using Pydantic."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

_ENV_REF = re.compile(r"^\$\{?([A-Za-z_][A-Za-z0-9_]*)\}?$")


def _resolve_env(value: str) -> str:
    """Resolve ``$VAR`` / ``${VAR}`` references; unset variables return the input."""
    if not value:
        return value
    m = _ENV_REF.match(value.strip())
    if not m:
        return value
    return os.environ.get(m.group(1), value)


class Base(BaseModel):
    """Base model accepting both camelCase and snake_case keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DiscordConfig(Base):
    token: str = ""
    trigger_role_ids: list[str] = Field(default_factory=list)

    @property
    def resolved_token(self) -> str:
        return _resolve_env(self.token)


class ProviderConfig(Base):
    """Generative API credentials."""

    api_key: str = ""
    api_base: str | None = None
    extra_headers: dict[str, str] = Field(default_factory=dict)

    @property
    def resolved_api_key(self) -> str:
        return _resolve_env(self.api_key)


class ModelsConfig(Base):
    """Model tiers, tried in order."""

    reply: list[str] = Field(default_factory=lambda: [
        "gemini/gemini-2.5-pro",
        "gemini/gemini-2.5-flash",
        "gemini/gemini-2.5-flash-lite",
    ])
    # The lightest tier is left out: a memory written by it is worse than waiting.
    memory: list[str] = Field(default_factory=lambda: [
        "gemini/gemini-2.5-pro",
        "gemini/gemini-2.5-flash",
    ])
    describe: str = "gemini/gemini-2.5-flash-lite"


class HistoryConfig(Base):
    high_water: int = 2000
    low_water: int = 1000
    truncate_length: int = 50

    @model_validator(mode="after")
    def _check_marks(self) -> "HistoryConfig":
        if self.low_water < 0 or self.low_water >= self.high_water:
            raise ValueError(
                f"history.lowWater ({self.low_water}) must be >= 0 and below highWater ({self.high_water})"
            )
        if self.truncate_length < 4:
            raise ValueError("history.truncateLength must be at least 4")
        return self


class ReplyConfig(Base):
    probability: float = Field(default=1 / 400, ge=0.0, le=1.0)
    temperature: float = 0.9
    max_output_tokens: int | None = None


class MediaConfig(Base):
    retry_delay: float = 5.0
    settle_delay: float = 1.0
    max_output_tokens: int = 200
    fetch_timeout: float = 30.0
    request_extras: dict[str, Any] = Field(default_factory=lambda: {"reasoning_effort": "disable"})


class StorageConfig(Base):
    data_dir: str = "~/.chronicler/data"
    write_readable: bool = True

    @property
    def data_path(self) -> Path:
        return Path(self.data_dir).expanduser()


class PromptsConfig(Base):
    """Optional prompt files; packaged defaults are used when unset."""

    reply_path: str | None = None
    memory_path: str | None = None


class LoggingConfig(Base):
    json_output: bool = True
    level: str = "INFO"


def _default_safety_settings() -> list[dict[str, str]]:
    return [
        {"category": "HARM_CATEGORY_HATE_SPEECH", "threshold": "OFF"},
        {"category": "HARM_CATEGORY_SEXUALLY_EXPLICIT", "threshold": "OFF"},
        {"category": "HARM_CATEGORY_DANGEROUS_CONTENT", "threshold": "OFF"},
        {"category": "HARM_CATEGORY_HARASSMENT", "threshold": "OFF"},
        {"category": "HARM_CATEGORY_CIVIC_INTEGRITY", "threshold": "OFF"},
    ]


class Config(Base):
    """Root configuration for chronicler."""

    discord: DiscordConfig = Field(default_factory=DiscordConfig)
    provider: ProviderConfig = Field(default_factory=ProviderConfig)
    models: ModelsConfig = Field(default_factory=ModelsConfig)
    history: HistoryConfig = Field(default_factory=HistoryConfig)
    reply: ReplyConfig = Field(default_factory=ReplyConfig)
    media: MediaConfig = Field(default_factory=MediaConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    prompts: PromptsConfig = Field(default_factory=PromptsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    safety_settings: list[dict[str, str]] = Field(default_factory=_default_safety_settings)

    @property
    def data_path(self) -> Path:
        return self.storage.data_path
