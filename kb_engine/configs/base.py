"""
Shared settings base for kb-engine.

Every config module subclasses BaseSettings so that all of them read the
same `.env` file, match variable names case-insensitively and ignore keys
meant for other modules. Process-wide fields live here.

Dependencies: pydantic_settings
System role: Common ancestor of every kb-engine settings class
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings as PydanticBaseSettings, SettingsConfigDict

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class BaseSettings(PydanticBaseSettings):
    """Settings read from the environment and `.env`."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    environment: str = Field(
        default="local",
        description="Deployment name shown in startup logs (local, staging, production)",
    )
    log_level: LogLevel = Field(
        default="INFO",
        description="Root log level for the API and the Celery worker",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        return value.upper() if isinstance(value, str) else value
