"""
Application configuration loaded from environment variables.
"""
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Stripe (required for every request)
    stripe_api_key: str = ""
    stripe_max_network_retries: int = 3
    stripe_timeout_seconds: int = 30

    # OpenAI image edit (optional; generation endpoint is disabled without it)
    openai_api_key: Optional[str] = None
    openai_base_url: Optional[str] = None
    openai_image_model: str = "gpt-image-1"
    openai_image_size: str = "1024x1024"
    openai_output_format: str = "png"

    # Timeouts and retries
    api_timeout_seconds: int = 120
    max_retries: int = 3
    retry_base_wait_seconds: float = 2.0

    # Checkout
    currency: str = "usd"

    # File upload
    max_upload_bytes: int = 20 * 1024 * 1024

    # Public base URL (for tunnels / production); falls back to the request URL
    public_base_url: Optional[str] = None


@lru_cache
def get_settings() -> Settings:
    return Settings()
