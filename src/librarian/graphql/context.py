"""
Per-operation context handed to every resolver.

The context is a plain dict so that Strawberry can add its own keys (such as
`connection_params` for websocket subscriptions) next to ours.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import strawberry

from ..auth.context import AuthContext
from ..config import Settings, settings
from .loaders import Loaders

if TYPE_CHECKING:
    from ..auth.credentials import CredentialService
    from ..events.bus import NotificationBus


def build_context(
    *,
    auth: AuthContext,
    bus: NotificationBus,
    credentials: CredentialService,
    request: Any = None,
    app_settings: Settings | None = None,
) -> dict[str, Any]:
    return {
        "request": request,
        "auth": auth,
        "bus": bus,
        "credentials": credentials,
        "loaders": Loaders(),
        "settings": app_settings or settings,
    }


def get_bus(info: strawberry.Info) -> NotificationBus:
    return info.context["bus"]


def get_credentials(info: strawberry.Info) -> CredentialService:
    return info.context["credentials"]


def get_loaders(info: strawberry.Info) -> Loaders:
    return info.context["loaders"]


def get_settings(info: strawberry.Info) -> Settings:
    return info.context.get("settings") or settings
