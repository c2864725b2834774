"""Repository helpers for books, authors and users."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..dbmodels import Authors, BookGenres, Books, Users
from ..logging import get_logger

logger = get_logger(__name__)


def _books_with_author():
    return select(Books).options(
        selectinload(Books.author),
        selectinload(Books.genre_entries),
    )


# Reads


async def count_books(session: AsyncSession) -> int:
    result = await session.execute(select(func.count()).select_from(Books))
    return result.scalar_one()


async def count_authors(session: AsyncSession) -> int:
    result = await session.execute(select(func.count()).select_from(Authors))
    return result.scalar_one()


async def count_books_by_author(
    session: AsyncSession, author_ids: Iterable[UUID]
) -> dict[UUID, int]:
    """Number of books referencing each author; authors without books are absent."""
    ids = list(author_ids)
    if not ids:
        return {}
    stmt = (
        select(Books.author_id, func.count(Books.id))
        .where(Books.author_id.in_(ids))
        .group_by(Books.author_id)
    )
    result = await session.execute(stmt)
    return {author_id: count for author_id, count in result.all()}


async def find_books(
    session: AsyncSession,
    *,
    author_id: UUID | None = None,
    genre: str | None = None,
) -> list[Books]:
    """Books matching every given filter, with their author populated.

    `genre` matches books whose genre list contains it. An empty genre
    filters nothing, as no stored genre can be empty.
    """
    stmt = _books_with_author()
    if author_id is not None:
        stmt = stmt.where(Books.author_id == author_id)
    if genre:
        stmt = stmt.where(Books.genre_entries.any(BookGenres.genre == genre))
    stmt = stmt.order_by(Books.created_at, Books.id)

    result = await session.execute(stmt)
    return list(result.scalars().all())


async def find_authors(session: AsyncSession) -> list[Authors]:
    result = await session.execute(select(Authors).order_by(Authors.created_at, Authors.id))
    return list(result.scalars().all())


async def find_author_by_name(session: AsyncSession, name: str) -> Authors | None:
    result = await session.execute(select(Authors).where(Authors.name == name))
    return result.scalar_one_or_none()


async def find_user_by_username(session: AsyncSession, username: str) -> Users | None:
    result = await session.execute(select(Users).where(Users.username == username))
    return result.scalar_one_or_none()


# Writes


async def insert_author(session: AsyncSession, *, name: str, born: int | None = None) -> Authors:
    author = Authors(name=name, born=born)
    session.add(author)
    await session.flush()
    return author


async def find_or_create_author(session: AsyncSession, name: str) -> tuple[Authors, bool]:
    """Return the author called `name`, creating it when missing.

    The insert runs in a savepoint. When a concurrent operation created the
    same name first, the unique constraint rejects ours and the winner's row
    is returned instead. The boolean is True when this call created the row.
    """
    author = await find_author_by_name(session, name)
    if author is not None:
        return author, False

    try:
        async with session.begin_nested():
            author = await insert_author(session, name=name)
        return author, True
    except IntegrityError:
        existing = await find_author_by_name(session, name)
        if existing is None:
            raise
        logger.info("Author created concurrently, reusing existing row", author_name=name)
        return existing, False


async def insert_book(
    session: AsyncSession,
    *,
    title: str,
    published: int,
    author: Authors,
    genres: Sequence[str],
) -> Books:
    book = Books(
        title=title,
        published=published,
        author=author,
        genre_entries=[
            BookGenres(position=position, genre=genre) for position, genre in enumerate(genres)
        ],
    )
    session.add(book)
    await session.flush()
    return book


async def update_author(session: AsyncSession, author: Authors, *, born: int | None) -> Authors:
    author.born = born
    await session.flush()
    return author


async def insert_user(
    session: AsyncSession,
    *,
    username: str,
    password_hash: str,
    favorite_genre: str | None,
) -> Users:
    user = Users(username=username, password_hash=password_hash, favorite_genre=favorite_genre)
    session.add(user)
    await session.flush()
    return user
