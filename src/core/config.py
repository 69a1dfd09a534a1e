"""Application settings for the session extraction library."""

import os
from functools import lru_cache
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=(".env"), env_file_encoding="utf-8")

    # App
    APP_NAME: str = "HifzLog"
    ENVIRONMENT: str = "development"  # development | production | test
    LOG_LEVEL: str | None = None  # overrides the environment default when set

    # AI / LLM provider configuration
    # GEMINI_API_KEY is optional; prefer storing secrets in .env.dev/.env.prod
    LLM_PROVIDER: Literal["gemini", "azure_openai"] = "gemini"
    GEMINI_API_KEY: str | None = None
    AZURE_OPENAI_ENDPOINT: str | None = None
    AZURE_OPENAI_API_KEY: str | None = None
    AZURE_OPENAI_API_VERSION: str | None = None

    # Model used for conversational session extraction
    EXTRACTION_MODEL: str = "gemini-2.5-flash"
    # Transport timeout for one extraction call, handed to the model client
    EXTRACTION_TIMEOUT_SECONDS: float = 30.0

    @field_validator("EXTRACTION_TIMEOUT_SECONDS")
    @classmethod
    def _positive_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("EXTRACTION_TIMEOUT_SECONDS must be positive")
        return v

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def _normalize_log_level(cls, v: object) -> str | None:
        """Accept any casing for LOG_LEVEL and treat blank as unset."""
        if v is None:
            return None
        s = str(v).strip().upper()
        if not s:
            return None
        if s not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid LOG_LEVEL: {v!r}")
        return s


@lru_cache
def get_settings() -> Settings:
    env = os.getenv("ENVIRONMENT", "development").lower()
    if env not in {"development", "production", "test"}:
        raise ValueError("ENVIRONMENT must be 'development', 'production', or 'test'")

    if env == "production":
        env_file = ".env.prod"
    elif env == "development":
        env_file = ".env.dev"
    else:
        # test environment - no env file needed, use defaults
        env_file = ""

    # The Settings initializer accepts a runtime-only `_env_file` kwarg used by
    # pydantic-settings; mypy's stub doesn't allow this call argument.
    return Settings(_env_file=env_file or None)  # type: ignore[call-arg]
