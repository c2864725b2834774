"""Base token adapter interface and types."""

from __future__ import annotations

from typing import NotRequired, Protocol, TypedDict


class Principal(TypedDict):
    """Identity extracted from an incoming token."""

    subject: str  # user id (sub)
    username: str
    claims: NotRequired[dict]


class TokenAdapter(Protocol):
    """Signs and verifies the bearer tokens handed out by `login`."""

    async def verify_token(self, token: str) -> Principal:
        """
        Verify a token and return the principal identity.

        Raises:
            AuthenticationError: If token is invalid or expired
        """
        ...

    async def issue_token(self, user_id: str, claims: dict | None = None) -> str:
        """
        Issue a new signed token for a user.

        Args:
            user_id: User ID stored in the 'sub' claim
            claims: Additional claims to include

        Returns:
            Signed token string
        """
        ...


class AuthenticationError(Exception):
    """Raised when authentication fails."""

    pass
