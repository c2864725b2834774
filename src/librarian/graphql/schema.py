"""
Main GraphQL schema definition using Strawberry
"""

from typing import Any

import strawberry
from fastapi.requests import HTTPConnection
from graphql import validate_schema as gql_validate_schema
from strawberry.fastapi import GraphQLRouter
from strawberry.subscriptions import GRAPHQL_TRANSPORT_WS_PROTOCOL, GRAPHQL_WS_PROTOCOL

from ..auth.credentials import CredentialService
from ..auth.middleware import get_auth_context
from ..config import settings
from ..events.bus import NotificationBus
from ..logging import bind_principal, get_logger
from .context import build_context
from .mutations.root import Mutation
from .queries.root import Query
from .subscriptions.root import Subscription

logger = get_logger(__name__)

# Create the GraphQL schema
schema = strawberry.Schema(
    query=Query,
    mutation=Mutation,
    subscription=Subscription,
)


def validate_schema() -> None:
    """Validate the GraphQL schema at startup.

    Catches unresolved type references early, so the server fails fast
    instead of erroring on the first request.

    Raises:
        Exception: If the schema is invalid or has unresolved types
    """
    try:
        graphql_schema = schema._schema

        errors = gql_validate_schema(graphql_schema)
        if errors:
            error_messages = [str(e) for e in errors]
            raise Exception(f"GraphQL schema validation failed: {'; '.join(error_messages)}")

        from graphql import get_introspection_query, graphql_sync

        result = graphql_sync(graphql_schema, get_introspection_query())
        if result.errors:
            error_messages = [str(e) for e in result.errors]
            raise Exception(f"GraphQL introspection failed: {'; '.join(error_messages)}")

        logger.info("GraphQL schema validation successful")

    except Exception as e:
        logger.error("GraphQL schema validation failed", error=str(e))
        raise


def create_graphql_router(
    bus: NotificationBus, credentials: CredentialService
) -> GraphQLRouter[dict[str, Any], None]:
    """Create a GraphQL router for FastAPI.

    The bus and credential service are shared by every operation; the auth
    context and data loaders are built fresh for each request or websocket
    connection.
    """

    async def get_context(connection: HTTPConnection) -> dict[str, Any]:
        """Get the context for GraphQL resolvers."""
        auth = await get_auth_context(credentials, connection.headers.get("authorization"))
        if auth.user_id:
            bind_principal(auth.user_id, auth.username)
        return build_context(auth=auth, bus=bus, credentials=credentials, request=connection)

    return GraphQLRouter(
        schema,
        path="/graphql",
        graphiql=settings.debug,
        context_getter=get_context,
        subscription_protocols=[GRAPHQL_TRANSPORT_WS_PROTOCOL, GRAPHQL_WS_PROTOCOL],
    )
