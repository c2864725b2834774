"""
Shared access control logic for GraphQL resolvers
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import strawberry

from ..auth.context import AuthContext
from ..auth.middleware import authorization_from_connection_params, get_auth_context
from ..logging import bind_principal, get_logger
from .errors import not_authenticated

if TYPE_CHECKING:
    from ..auth.adapters.base import Principal

logger = get_logger(__name__)


async def get_auth_context_from_info(info: strawberry.Info) -> AuthContext:
    """
    Return the auth context of the operation behind `info`.

    HTTP operations get theirs from the Authorization header when the context
    is built. Websocket clients may instead send the token in their
    connection_init payload, which only shows up once the connection is
    acknowledged, so it is resolved here on first use.
    """
    context = info.context
    auth_context: AuthContext | None = context.get("auth")
    if auth_context is not None and auth_context.is_authenticated:
        return auth_context

    authorization = authorization_from_connection_params(context.get("connection_params"))
    if authorization:
        auth_context = await get_auth_context(context["credentials"], authorization)
        context["auth"] = auth_context
        if auth_context.user_id:
            bind_principal(auth_context.user_id, auth_context.username)

    return auth_context or AuthContext(principal=None, token=None)


def require_authenticated(auth_context: AuthContext | None) -> Principal:
    """Return the acting principal or refuse the operation."""
    if auth_context is None or auth_context.principal is None:
        logger.info("Rejected unauthenticated mutation")
        raise not_authenticated()
    return auth_context.principal
