"""Application settings powered by Pydantic BaseSettings."""

from typing import Annotated

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_USER_AGENT = "fetchplus/0.1"


class AppSettings(BaseSettings):
    """Centralized environment configuration."""

    model_config = SettingsConfigDict(
        env_prefix="FETCHPLUS_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = Field(default="INFO")
    log_json: bool = Field(default=True)
    user_agent: str = Field(default=DEFAULT_USER_AGENT)
    timeout_seconds: Annotated[float, Field(gt=0.0, le=300.0)] = DEFAULT_TIMEOUT_SECONDS


def get_settings() -> AppSettings:
    """Get a settings instance."""
    return AppSettings()
