"""Authentication context for request handling."""

from __future__ import annotations

from dataclasses import dataclass

from .adapters.base import Principal


@dataclass
class AuthContext:
    """Runtime authentication context for a request."""

    principal: Principal | None
    token: str | None

    @property
    def is_authenticated(self) -> bool:
        """Check if the request is authenticated."""
        return self.principal is not None

    @property
    def user_id(self) -> str | None:
        return self.principal["subject"] if self.principal else None

    @property
    def username(self) -> str | None:
        return self.principal["username"] if self.principal else None

