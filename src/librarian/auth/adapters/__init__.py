"""Token adapters."""

from .base import AuthenticationError, Principal, TokenAdapter
from .jwt import JWTAuthAdapter

__all__ = [
    "AuthenticationError",
    "JWTAuthAdapter",
    "Principal",
    "TokenAdapter",
]
