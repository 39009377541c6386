"""Application configuration for the listing studio API."""
from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    app_env: str = Field(default="development")
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="text")
    cors_allow_origins: Annotated[list[str], NoDecode] = Field(default_factory=lambda: ["*"])

    data_dir: Path = Field(default=Path("data"))
    listings_file: str = Field(default="listings.json")
    uploads_dir: Path = Field(default=Path("uploads"))
    upload_max_bytes: int = Field(default=12 * 1024 * 1024, ge=1)

    gemini_api_key: str = Field(default="")
    gemini_model: str = Field(default="gemini-2.0-flash")
    gemini_model_fallbacks: Annotated[list[str], NoDecode] = Field(default_factory=lambda: [
        "gemini-2.0-flash-lite",
        "gemini-1.5-flash-latest",
        "gemini-1.5-pro-latest",
    ])
    gemini_temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    copywriter_allow_placeholder: bool = Field(default=False)

    ai_rate_limit_max: int = Field(default=30, ge=1)
    ai_rate_limit_window_seconds: int = Field(default=15 * 60, ge=1)

    pdf_render_timeout_seconds: float = Field(default=30.0, gt=0)
    pdf_max_concurrency: int = Field(default=2, ge=1)

    @field_validator("gemini_model_fallbacks", "cors_allow_origins", mode="before")
    @classmethod
    def _split_csv(cls, value: object) -> object:
        """Allow comma-separated env values for list settings."""

        if isinstance(value, str):
            if value.lstrip().startswith("["):
                return json.loads(value)
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @property
    def listings_path(self) -> Path:
        return self.data_dir / self.listings_file


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""

    return Settings()


settings = get_settings()
