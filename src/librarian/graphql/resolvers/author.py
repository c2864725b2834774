from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

import strawberry
from sqlalchemy.exc import SQLAlchemyError

from ...catalog import repository
from ...catalog.validation import validate_author_edit
from ...database.connection import get_async_session
from ...dbmodels import Authors
from ...logging import get_logger
from ..access_control import get_auth_context_from_info, require_authenticated
from ..context import get_loaders
from ..errors import invalid_input, persist_failed

if TYPE_CHECKING:
    from ..types.author import Author

logger = get_logger(__name__)


def author_from_model(author: Authors) -> Author:
    from ..types.author import Author as AuthorType

    return AuthorType(id=strawberry.ID(str(author.id)), name=author.name, born=author.born)


# Query resolvers
async def resolve_author_count(info: strawberry.Info) -> int:
    async with get_async_session() as session:
        return await repository.count_authors(session)


async def resolve_all_authors(info: strawberry.Info) -> list[Author]:
    async with get_async_session() as session:
        authors = await repository.find_authors(session)
    return [author_from_model(author) for author in authors]


# Field resolvers
async def resolve_author_book_count(author: Author, info: strawberry.Info) -> int:
    """Count the books referencing an author, batched per request."""
    return await get_loaders(info).book_count_loader.load(UUID(str(author.id)))


# Mutation resolvers
async def edit_author(info: strawberry.Info, name: str, set_born_to: int) -> Author | None:
    """
    Set the birth year of the author called `name`.

    Returns None when no author has that exact name.
    """
    auth_context = await get_auth_context_from_info(info)
    require_authenticated(auth_context)

    validation = validate_author_edit(name, set_born_to)
    if not validation.ok:
        raise invalid_input(validation.message, {validation.field: name})

    try:
        async with get_async_session() as session:
            author = await repository.find_author_by_name(session, name)
            if author is None:
                logger.info("Author not found for edit", author_name=name)
                return None

            author = await repository.update_author(session, author, born=set_born_to)
            await session.commit()
    except SQLAlchemyError as e:
        logger.error("Failed to edit author", author_name=name, error=str(e))
        raise persist_failed(
            "Editing Author failed", {"name": name, "setBornTo": set_born_to}, e
        ) from e

    logger.info(
        "Author edited",
        author_id=str(author.id),
        author_name=author.name,
        born=author.born,
    )
    return author_from_model(author)
