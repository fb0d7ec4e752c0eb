"""Application-level settings."""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

Environment = Literal["development", "test", "staging", "production"]


class AppSettings(BaseSettings):
    """HTTP application settings.

    Environment variables use APP_ prefix.
    Example: APP_ENVIRONMENT=production, APP_PORT=8000
    """

    title: str = Field(default="Marketplace BFF", description="OpenAPI title")
    environment: Environment = Field(
        default="development",
        description="Deployment environment; production masks internal errors",
    )
    host: str = Field(default="0.0.0.0", description="Bind address for uvicorn")
    port: int = Field(default=8000, ge=1, le=65535, description="Bind port for uvicorn")
    debug: bool = Field(default=False, description="Enable debug mode")
    request_id_header: str = Field(
        default="X-Request-ID",
        description="Header carrying the correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
        env_ignore_empty=True,
    )

    @property
    def is_production(self) -> bool:
        return self.environment == "production"
