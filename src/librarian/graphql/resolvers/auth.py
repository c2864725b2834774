from __future__ import annotations

from typing import TYPE_CHECKING

import strawberry

from ...catalog import repository
from ...database.connection import get_async_session
from ...logging import get_logger
from ..context import get_credentials
from ..errors import invalid_credentials

if TYPE_CHECKING:
    from ..types.user import Token

logger = get_logger(__name__)


async def login(info: strawberry.Info, username: str, password: str) -> Token:
    """
    Exchange a username and password for a signed token.

    Unknown users and wrong passwords fail identically. A dummy hash check
    runs for unknown users so both paths also take about as long.
    """
    from ..types.user import Token as TokenType

    credentials = get_credentials(info)

    async with get_async_session() as session:
        user = await repository.find_user_by_username(session, username)

    if user is None:
        await credentials.dummy_verify()
        is_correct_password = False
    else:
        is_correct_password = await credentials.verify_password(password, user.password_hash)

    if not is_correct_password:
        logger.info("Login failed", username=username)
        raise invalid_credentials()

    token = await credentials.issue_token(str(user.id), user.username)
    logger.info("User logged in", user_id=str(user.id), username=user.username)
    return TokenType(value=token)
