"""Bearer token issuing and verification.

Verification fails closed: every failure mode (missing or malformed header,
wrong scheme, bad signature, wrong issuer or audience, expiry, invalid claim
set) produces ``None`` and the request proceeds anonymously. Operations that
need an identity reject it later through the authorization guard.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

import jwt
from pydantic import ValidationError

from marketplace_bff.core.schemas.auth import Identity, TokenClaims
from marketplace_bff.core.settings import get_auth_settings
from marketplace_bff.infra.metrics.tracking import track_token_verification

if TYPE_CHECKING:
    from marketplace_bff.core.settings import AuthSettings

logger = logging.getLogger(__name__)

BEARER_SCHEME = "bearer"


def extract_bearer(authorization: str | None) -> str | None:
    """Pull the token out of an ``Authorization: Bearer <token>`` header.

    The header must consist of exactly the scheme and the token.
    """
    if not authorization:
        return None
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != BEARER_SCHEME:
        return None
    return parts[1]


class TokenService:
    """Issue and verify HMAC-signed access tokens.

    Verification tries the current key first and then each rotated-out key,
    so tokens minted before a key rotation stay valid until they expire.

    Example:
        service = TokenService()
        token = service.issue_access_token("u1", "buyer@example.com")
        identity = service.resolve_identity(f"Bearer {token}")
    """

    def __init__(self, settings: AuthSettings | None = None) -> None:
        self.settings = settings or get_auth_settings()

    def issue_access_token(
        self,
        subject_id: str,
        email: str,
        is_privileged: bool = False,
        *,
        now: datetime | None = None,
        ttl: timedelta | None = None,
    ) -> str:
        """Mint a signed access token for a subject."""
        issued = now or datetime.now(UTC)
        lifetime = ttl if ttl is not None else timedelta(seconds=self.settings.access_token_ttl)
        payload = {
            "sub": subject_id,
            "email": email,
            "isAdmin": is_privileged,
            "iss": self.settings.issuer,
            "aud": self.settings.audience,
            "iat": int(issued.timestamp()),
            "exp": int((issued + lifetime).timestamp()),
        }
        return jwt.encode(
            payload,
            self.settings.jwt_secret.get_secret_value(),
            algorithm=self.settings.algorithm,
        )

    def verify(self, token: str) -> Identity | None:
        """Verify a raw token and build the identity it asserts."""
        for key in self.settings.verification_keys():
            try:
                payload = jwt.decode(
                    token,
                    key,
                    algorithms=[self.settings.algorithm],
                    issuer=self.settings.issuer,
                    audience=self.settings.audience,
                    leeway=self.settings.leeway,
                    options={"require": ["exp", "iat", "sub", "iss", "aud"]},
                )
            except jwt.InvalidSignatureError:
                continue
            except jwt.ExpiredSignatureError:
                track_token_verification("expired")
                logger.info("Rejected expired access token")
                return None
            except jwt.PyJWTError as e:
                track_token_verification("invalid")
                logger.warning("Rejected access token", extra={"reason": type(e).__name__})
                return None
            break
        else:
            track_token_verification("bad_signature")
            logger.warning("Rejected access token", extra={"reason": "InvalidSignatureError"})
            return None

        try:
            claims = TokenClaims.model_validate(payload)
        except ValidationError:
            track_token_verification("bad_claims")
            logger.warning("Rejected access token", extra={"reason": "claims"})
            return None

        track_token_verification("ok")
        return claims.to_identity()

    def resolve_identity(self, authorization: str | None) -> Identity | None:
        """Resolve the identity for one inbound request.

        Returns:
            The verified identity, or ``None`` for anonymous requests and
            for every kind of invalid credential.
        """
        if authorization is None:
            return None
        token = extract_bearer(authorization)
        if token is None:
            track_token_verification("malformed")
            logger.warning("Malformed Authorization header")
            return None
        return self.verify(token)


__all__ = ["TokenService", "extract_bearer"]
