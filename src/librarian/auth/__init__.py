"""Authentication for Librarian: password hashing, login tokens and request principals."""

from .adapters.base import AuthenticationError, Principal, TokenAdapter
from .context import AuthContext
from .credentials import CredentialService, get_credential_service, get_credential_service_cached
from .middleware import get_auth_context

__all__ = [
    "AuthContext",
    "AuthenticationError",
    "CredentialService",
    "Principal",
    "TokenAdapter",
    "get_auth_context",
    "get_credential_service",
    "get_credential_service_cached",
]
