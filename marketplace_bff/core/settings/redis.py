"""Redis cache configuration settings."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RedisSettings(BaseSettings):
    """Redis response cache settings.

    Environment variables use REDIS_ prefix.
    Example: REDIS_URL="redis://localhost:6379/0", REDIS_ENABLED=false

    When disabled or unreachable the response cache runs degraded and every
    lookup is a miss.
    """

    enabled: bool = Field(default=True, description="Connect to Redis at startup")
    url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL",
    )
    max_connections: int = Field(
        default=50,
        ge=1,
        le=1000,
        description="Maximum Redis connection pool size",
    )
    socket_timeout: float = Field(
        default=2.0,
        ge=0.1,
        le=30.0,
        description="Redis socket timeout in seconds (for operations)",
    )
    socket_connect_timeout: float = Field(
        default=2.0,
        ge=0.1,
        le=30.0,
        description="Redis socket connection timeout in seconds",
    )
    key_prefix: str = Field(
        default="marketplace",
        description="Namespace prepended to every cache key",
    )
    default_ttl: int = Field(
        default=3600,
        ge=0,
        description="Default cache TTL in seconds (1 hour)",
    )

    model_config = SettingsConfigDict(
        env_prefix="REDIS_",
        env_file=".env",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
        env_ignore_empty=True,
    )

    def connection_pool_kwargs(self) -> dict[str, object]:
        """Keyword arguments for ``ConnectionPool.from_url``."""
        return {
            "max_connections": self.max_connections,
            "socket_timeout": self.socket_timeout,
            "socket_connect_timeout": self.socket_connect_timeout,
            "decode_responses": True,
        }
