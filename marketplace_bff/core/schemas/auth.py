"""Authentication schemas.

``TokenClaims`` mirrors the signed access token payload; ``Identity`` is the
request-scoped principal derived from it.
"""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field


class TokenClaims(BaseModel):
    """Decoded access token payload.

    Claim names follow the wire format shared with the auth endpoints.
    """

    sub: str = Field(min_length=1, max_length=255, description="Subject (user id)")
    email: str = Field(min_length=3, max_length=320, description="User email")
    is_admin: bool = Field(default=False, alias="isAdmin", description="Privileged flag")
    iat: int = Field(ge=0, description="Issued at timestamp")
    exp: int = Field(ge=0, description="Expiration timestamp")

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    def to_identity(self) -> Identity:
        return Identity(
            subject_id=self.sub,
            email=self.email,
            is_privileged=self.is_admin,
            issued_at=datetime.fromtimestamp(self.iat, tz=UTC),
            expires_at=datetime.fromtimestamp(self.exp, tz=UTC),
        )


class Identity(BaseModel):
    """Authenticated principal for a single request.

    Built once from a verified credential and never mutated afterwards.

    Example:
        identity = Identity(
            subject_id="u1",
            email="buyer@example.com",
            is_privileged=False,
            issued_at=now,
            expires_at=now + timedelta(minutes=15),
        )
    """

    subject_id: str
    email: str
    is_privileged: bool = False
    issued_at: datetime
    expires_at: datetime

    model_config = ConfigDict(frozen=True)

    def owns(self, owner_id: str | None) -> bool:
        """Whether this identity is the owner of a resource."""
        return owner_id is not None and owner_id == self.subject_id
