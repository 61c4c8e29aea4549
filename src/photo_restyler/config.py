"""Application configuration."""

import os
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

MAX_STYLE_COUNT = 6


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    storage_bucket: str = "photos"
    gemini_api_key: str
    gemini_image_model: str = "gemini-2.5-flash-image"
    gemini_image_size: str | None = None
    openai_api_key: str | None = None
    openai_model: str = "gpt-5.2"
    openai_reasoning_effort: str | None = None
    openai_store: bool = False
    style_planner: Literal["static", "caption"] = "static"
    style_count: int = Field(default=4, ge=1, le=MAX_STYLE_COUNT)
    generation_timeout_seconds: float = Field(default=540.0, gt=0)
    upload_max_attempts: int = Field(default=3, ge=1)
    upload_initial_delay_seconds: float = Field(default=1.0, ge=0)
    upload_backoff_factor: float = Field(default=2.0, ge=1)
    variant_upload_attempts: int = Field(default=1, ge=1)
    image_download_timeout_seconds: float = 30.0
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
