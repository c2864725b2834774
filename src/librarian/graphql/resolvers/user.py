from __future__ import annotations

from typing import TYPE_CHECKING

import strawberry
from sqlalchemy.exc import SQLAlchemyError

from ...auth.credentials import UNUSABLE_PASSWORD_HASH
from ...catalog import repository
from ...database.connection import get_async_session
from ...dbmodels import Users
from ...logging import get_logger
from ..access_control import get_auth_context_from_info
from ..context import get_credentials, get_settings
from ..errors import persist_failed

if TYPE_CHECKING:
    from ..types.user import User

logger = get_logger(__name__)


def user_from_model(user: Users, default_favorite_genre: str) -> User:
    """Convert a stored user, filling in the favorite genre when none was saved."""
    from ..types.user import User as UserType

    return UserType(
        id=strawberry.ID(str(user.id)),
        username=user.username,
        favorite_genre=user.favorite_genre or default_favorite_genre,
    )


async def resolve_current_user(info: strawberry.Info) -> User | None:
    """Profile of the user behind the request token, or None when anonymous."""
    auth_context = await get_auth_context_from_info(info)
    if not auth_context.is_authenticated:
        return None

    async with get_async_session() as session:
        user = await repository.find_user_by_username(session, auth_context.username)

    if user is None:
        logger.info("Token refers to a user that no longer exists", username=auth_context.username)
        return None

    return user_from_model(user, get_settings(info).default_favorite_genre)


async def create_user(
    info: strawberry.Info,
    username: str,
    favorite_genre: str,
    password: str | None = None,
) -> User:
    """
    Register a user. Only a bcrypt hash of the password is stored.

    Without a password the account gets a hash nothing verifies against, so
    it exists but cannot log in.
    """
    credentials = get_credentials(info)
    if password is None:
        password_hash = UNUSABLE_PASSWORD_HASH
    else:
        password_hash = await credentials.hash_password(password)

    try:
        async with get_async_session() as session:
            user = await repository.insert_user(
                session,
                username=username,
                password_hash=password_hash,
                favorite_genre=favorite_genre,
            )
            await session.commit()
    except SQLAlchemyError as e:
        logger.error("Failed to create user", username=username, error=str(e))
        raise persist_failed("Creating the user failed", {"username": username}, e) from e

    logger.info("User created", user_id=str(user.id), username=username)
    return user_from_model(user, get_settings(info).default_favorite_genre)
