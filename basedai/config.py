from __future__ import annotations

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import AliasChoices, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful assistant. Use the available tools when a question needs current or external "
    "information, and answer in plain words once you have what you need."
)


class ConfigurationError(RuntimeError):
    pass


def get_config(**overrides) -> Config:
    try:
        return Config(**overrides)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


class Config(BaseSettings):
    app_name: str = "BasedAI"
    model_name: str
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    ai_character_name: str = "BasedAI"

    host: str = "127.0.0.1"
    port: int = Field(8080, ge=1, le=65535)

    ollama_base_url: str = "http://localhost:11434/v1"
    brave_api_key: str | None = Field(
        None,
        validation_alias=AliasChoices("basedai_brave_api_key", "brave_api_key"),
    )

    max_tool_rounds: int = Field(10, ge=1)
    tool_timeout_seconds: float = Field(30.0, gt=0)
    http_timeout_seconds: float = Field(10.0, gt=0)
    parallel_tool_calls: bool = True
    default_timezone: str = "UTC"
    browse_max_chars: int = Field(2000, ge=1)

    model_config = SettingsConfigDict(
        env_prefix="basedai_",
        case_sensitive=False,
        frozen=True,
        populate_by_name=True,
    )

    @field_validator("model_name")
    @classmethod
    def _model_name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("model_name must not be empty")
        return value.strip()

    @field_validator("default_timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {value}") from e
        return value
