from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import TYPE_CHECKING

import strawberry
from sqlalchemy.exc import SQLAlchemyError

from ...catalog import repository
from ...catalog.validation import validate_book_input
from ...database.connection import get_async_session
from ...dbmodels import Books
from ...events.models import BOOK_ADDED, BookAdded, BookSnapshot
from ...logging import get_logger
from ..access_control import get_auth_context_from_info, require_authenticated
from ..context import get_bus
from ..errors import invalid_input, persist_failed

if TYPE_CHECKING:
    from ...events.bus import NotificationBus
    from ..types.book import Book

logger = get_logger(__name__)


def book_from_snapshot(snapshot: BookSnapshot) -> Book:
    from ..types.author import Author as AuthorType
    from ..types.book import Book as BookType

    return BookType(
        id=strawberry.ID(str(snapshot.id)),
        title=snapshot.title,
        published=snapshot.published,
        genres=list(snapshot.genres),
        author=AuthorType(
            id=strawberry.ID(str(snapshot.author.id)),
            name=snapshot.author.name,
            born=snapshot.author.born,
        ),
    )


def book_from_model(book: Books) -> Book:
    return book_from_snapshot(BookSnapshot.from_model(book))


def publish_book_added(bus: NotificationBus, snapshot: BookSnapshot) -> None:
    """Announce a new book. A failing bus is logged and never fails the mutation."""
    try:
        bus.publish(BOOK_ADDED, BookAdded(book=snapshot))
    except Exception as e:
        logger.error("Failed to publish book added event", book_id=str(snapshot.id), error=str(e))


# Query resolvers
async def resolve_book_count(info: strawberry.Info) -> int:
    async with get_async_session() as session:
        return await repository.count_books(session)


async def resolve_all_books(
    info: strawberry.Info, author: str | None = None, genre: str | None = None
) -> list[Book]:
    """
    Resolve books, optionally filtered by exact author name and by genre.

    An author name that matches nobody gives an empty list, not every book.
    Both filters must hold when both are given; an empty string filters nothing.
    """
    async with get_async_session() as session:
        author_id = None
        if author:
            author_row = await repository.find_author_by_name(session, author)
            if author_row is None:
                logger.debug("Unknown author in book filter", author_name=author)
                return []
            author_id = author_row.id

        books = await repository.find_books(session, author_id=author_id, genre=genre)

    return [book_from_model(book) for book in books]


# Mutation resolvers
async def add_book(
    info: strawberry.Info,
    title: str,
    author: str,
    published: int,
    genres: list[str],
) -> Book:
    """
    Add a book, creating its author on first mention.

    Authentication and input checks happen before anything is written. The
    author lookup-or-create and the book insert share one transaction.
    """
    auth_context = await get_auth_context_from_info(info)
    require_authenticated(auth_context)

    args = {"title": title, "author": author, "published": published, "genres": list(genres)}

    validation = validate_book_input(title, author, genres)
    if not validation.ok:
        logger.info("Rejected book input", violation=validation.violation.value)
        raise invalid_input(validation.message, {validation.field: args[validation.field]})

    try:
        async with get_async_session() as session:
            author_row, created = await repository.find_or_create_author(session, author)
            if created:
                logger.info("Author created", author_id=str(author_row.id), author_name=author)

            book = await repository.insert_book(
                session,
                title=title,
                published=published,
                author=author_row,
                genres=genres,
            )
            await session.commit()
            snapshot = BookSnapshot.from_model(book)
    except SQLAlchemyError as e:
        logger.error("Failed to add book", title=title, author_name=author, error=str(e))
        raise persist_failed("Could not add book", args, e) from e

    logger.info(
        "Book added",
        book_id=str(snapshot.id),
        title=snapshot.title,
        author_id=str(snapshot.author.id),
    )

    publish_book_added(get_bus(info), snapshot)
    return book_from_snapshot(snapshot)


# Subscription resolvers
async def subscribe_book_added(info: strawberry.Info) -> AsyncGenerator[Book, None]:
    """Yield every book added after this subscriber started listening."""
    stream = await get_bus(info).subscribe(BOOK_ADDED)
    logger.info("Subscriber listening for added books")
    try:
        async for event in stream:
            yield book_from_snapshot(event.book)
    finally:
        await stream.aclose()
        logger.info("Subscriber stopped listening for added books")
