"""Password hashing and login token handling."""

from __future__ import annotations

import secrets
from functools import lru_cache

from passlib.context import CryptContext
from starlette.concurrency import run_in_threadpool

from ..config import settings
from ..logging import get_logger
from .adapters.base import AuthenticationError, Principal, TokenAdapter
from .adapters.jwt import JWTAuthAdapter

logger = get_logger(__name__)

# Stored for users created without a password; no password ever verifies against it
UNUSABLE_PASSWORD_HASH = "!"


class CredentialService:
    """Hashes passwords with bcrypt and issues/verifies signed login tokens.

    bcrypt is CPU bound, so hashing and verification run in the threadpool
    instead of on the event loop.
    """

    def __init__(self, token_adapter: TokenAdapter, bcrypt_rounds: int = 10):
        self.token_adapter = token_adapter
        self._pwd_ctx = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=bcrypt_rounds,
        )

    async def hash_password(self, password: str) -> str:
        return await run_in_threadpool(self._pwd_ctx.hash, password)

    async def verify_password(self, password: str, password_hash: str | None) -> bool:
        if not password_hash or password_hash == UNUSABLE_PASSWORD_HASH:
            return False
        try:
            return bool(await run_in_threadpool(self._pwd_ctx.verify, password, password_hash))
        except (ValueError, TypeError) as e:
            logger.warning("Stored password hash could not be checked", error=str(e))
            return False

    async def dummy_verify(self) -> None:
        """Spend the time of one real verification without checking anything."""
        await run_in_threadpool(self._pwd_ctx.dummy_verify)

    async def issue_token(self, user_id: str, username: str) -> str:
        return await self.token_adapter.issue_token(user_id, claims={"username": username})

    async def resolve_principal(self, token: str | None) -> Principal | None:
        """Return the principal for a token, or None when it is absent or invalid."""
        if not token:
            return None
        try:
            return await self.token_adapter.verify_token(token)
        except AuthenticationError as e:
            logger.info("Ignoring unusable bearer token", error=str(e))
            return None


def get_credential_service() -> CredentialService:
    """Create the credential service from settings."""
    secret_key = settings.jwt_secret
    if not secret_key:
        if settings.environment.lower() in ("production", "prod"):
            raise ValueError("JWT secret key is required. Set LIBRARIAN_JWT_SECRET.")
        secret_key = secrets.token_urlsafe(32)
        logger.warning(
            "LIBRARIAN_JWT_SECRET not set, using an ephemeral signing key",
            note="Tokens will stop verifying when the process restarts",
        )

    adapter = JWTAuthAdapter(
        secret_key=secret_key,
        algorithm=settings.jwt_algorithm,
        issuer=settings.jwt_issuer,
        audience=settings.jwt_audience,
        token_expiry_hours=settings.token_expiry_hours,
    )
    return CredentialService(adapter, bcrypt_rounds=settings.bcrypt_rounds)


@lru_cache(maxsize=1)
def get_credential_service_cached() -> CredentialService:
    """Process-wide credential service (one signing key per process)."""
    return get_credential_service()
