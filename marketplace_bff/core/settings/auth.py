"""Access token verification settings."""

from __future__ import annotations

from typing import Annotated

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class AuthSettings(BaseSettings):
    """JWT access token settings.

    Environment variables use AUTH_ prefix.
    Example: AUTH_JWT_SECRET=change-me, AUTH_ACCESS_TOKEN_TTL=900

    ``previous_secrets`` keeps tokens signed with a rotated-out key valid
    until they expire.
    """

    jwt_secret: SecretStr = Field(
        default=SecretStr("dev-insecure-secret-change-me"),
        description="HMAC secret used to sign and verify access tokens",
    )
    previous_secrets: Annotated[list[SecretStr], NoDecode] = Field(
        default_factory=list,
        description="Older secrets still accepted for verification",
    )
    algorithm: str = Field(default="HS256", description="JWT signing algorithm")
    issuer: str = Field(default="marketplace-api", description="Expected iss claim")
    audience: str = Field(default="marketplace-client", description="Expected aud claim")
    access_token_ttl: int = Field(
        default=900,
        ge=60,
        le=86400,
        description="Access token lifetime in seconds (15 minutes)",
    )
    leeway: int = Field(
        default=0,
        ge=0,
        le=300,
        description="Clock skew tolerance in seconds when checking exp/iat",
    )

    model_config = SettingsConfigDict(
        env_prefix="AUTH_",
        env_file=".env",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
        env_ignore_empty=True,
    )

    @field_validator("previous_secrets", mode="before")
    @classmethod
    def split_secrets(cls, value: object) -> object:
        """Accept a comma separated string from the environment."""
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    def verification_keys(self) -> list[str]:
        """Keys accepted for verification, current key first."""
        return [self.jwt_secret.get_secret_value()] + [
            secret.get_secret_value() for secret in self.previous_secrets
        ]
