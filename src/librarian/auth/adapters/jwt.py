"""JWT adapter for self-issued login tokens."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import jwt
from jwt.exceptions import InvalidTokenError

from ...logging import get_logger
from .base import AuthenticationError, Principal

logger = get_logger(__name__)


class JWTAuthAdapter:
    """HMAC-signed JWT adapter.

    Tokens carry `sub` (user id) and `username`. An `exp` claim is only added
    when `token_expiry_hours` is set; tokens without one never expire.
    """

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        issuer: str = "librarian",
        audience: str = "librarian-api",
        token_expiry_hours: int | None = None,
    ):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.issuer = issuer
        self.audience = audience
        self.token_expiry_hours = token_expiry_hours

    def _decode(self, token: str) -> dict:
        return jwt.decode(
            token,
            self.secret_key,
            algorithms=[self.algorithm],
            issuer=self.issuer,
            audience=self.audience,
            options={
                "require": ["sub", "iss", "aud"],
                "verify_exp": True,
                "verify_nbf": True,
                "verify_iat": True,
            },
        )

    async def verify_token(self, token: str) -> Principal:
        """Verify a JWT token and return the principal."""
        try:
            payload = self._decode(token)

            username = payload.get("username")
            if not username:
                raise AuthenticationError("Missing 'username' claim in token")

            return Principal(
                subject=str(payload["sub"]),
                username=username,
                claims=payload,
            )

        except AuthenticationError:
            raise
        except InvalidTokenError as e:
            logger.warning("JWT token validation failed", error=str(e))
            raise AuthenticationError("Invalid token") from e
        except Exception as e:
            logger.error(f"Unexpected error verifying JWT token: {e}")
            raise AuthenticationError("Token verification failed") from e

    async def issue_token(self, user_id: str, claims: dict | None = None) -> str:
        """Issue a new JWT token."""
        now = datetime.now(UTC)

        payload = {
            "iss": self.issuer,
            "aud": self.audience,
            "iat": now,
            "nbf": now,
            "sub": str(user_id),
        }

        if self.token_expiry_hours is not None:
            payload["exp"] = now + timedelta(hours=self.token_expiry_hours)

        if claims:
            payload.update(claims)

        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)
