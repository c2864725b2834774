"""Bearer token resolution for incoming operations."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ..logging import get_logger
from .context import AuthContext
from .credentials import CredentialService

logger = get_logger(__name__)


def extract_bearer_token(authorization: str | None) -> str | None:
    """Pull the token out of an `Authorization: Bearer <token>` value.

    Matching on the scheme is case-insensitive. Anything else yields None.
    """
    if not authorization:
        return None

    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer":
        logger.warning("Invalid authorization format received")
        return None

    token = token.strip()
    return token or None


async def get_auth_context(
    credentials: CredentialService,
    authorization: str | None = None,
) -> AuthContext:
    """
    Build the authentication context for one operation.

    A missing, malformed, expired or forged token gives an unauthenticated
    context rather than a rejected request. Operations that need a principal
    refuse to run later on.
    """
    token = extract_bearer_token(authorization)
    principal = await credentials.resolve_principal(token)

    if principal is not None:
        logger.debug(
            "Principal resolved for request",
            subject=principal["subject"],
            username=principal["username"],
        )

    return AuthContext(principal=principal, token=token if principal else None)


def authorization_from_connection_params(params: Mapping[str, Any] | None) -> str | None:
    """Find the authorization value a websocket client sent in its init payload.

    Clients send either `{"authorization": "Bearer ..."}` or nest it under
    `headers`, as Apollo and graphql-ws clients do.
    """
    if not params:
        return None

    for key in ("authorization", "Authorization"):
        value = params.get(key)
        if isinstance(value, str):
            return value

    headers = params.get("headers")
    if isinstance(headers, Mapping):
        return authorization_from_connection_params(headers)

    return None
