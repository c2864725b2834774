"""
Root GraphQL subscription definitions
"""

from collections.abc import AsyncGenerator
from contextlib import aclosing

import strawberry

from ..types.book import Book


@strawberry.type
class Subscription:
    """Root GraphQL subscription type."""

    @strawberry.subscription
    async def book_added(self, info: strawberry.Info) -> AsyncGenerator[Book, None]:
        """Books added from the moment the subscription starts."""
        from ..resolvers.book import subscribe_book_added

        async with aclosing(subscribe_book_added(info)) as books:
            async for book in books:
                yield book
