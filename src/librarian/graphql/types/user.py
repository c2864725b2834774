"""
User GraphQL type definitions
"""

import strawberry


@strawberry.type
class User:
    """User type for GraphQL API. The password hash is never exposed."""

    id: strawberry.ID
    username: str
    favorite_genre: str


@strawberry.type
class Token:
    """Signed login token, sent back as `Authorization: Bearer <value>`."""

    value: str
