"""
Structured logging for the catalog service, built on structlog.

Every event logged while an operation runs carries its request id, the
GraphQL operation name once the middleware has read it, and the acting user's
id and username once a bearer token has resolved.
"""

import logging
import sys
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

import structlog

request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)
operation_ctx: ContextVar[str | None] = ContextVar("graphql_operation", default=None)
user_id_ctx: ContextVar[str | None] = ContextVar("user_id", default=None)
username_ctx: ContextVar[str | None] = ContextVar("username", default=None)

# Third-party loggers held above the application level
LIBRARY_LOG_LEVELS = {
    # passlib logs a traceback whenever it probes the bcrypt version
    "passlib": logging.ERROR,
    "aiosqlite": logging.WARNING,
}


class CatalogContextProcessor:
    """Copy the current operation's identity into each event dict.

    Fields a caller passes explicitly are left alone.
    """

    fields = (
        ("request_id", request_id_ctx),
        ("graphql_operation", operation_ctx),
        ("user_id", user_id_ctx),
        ("username", username_ctx),
    )

    def __call__(self, logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        _ = logger, method_name
        for key, var in self.fields:
            value = var.get()
            if value is not None:
                event_dict.setdefault(key, value)
        return event_dict


def quiet_library_loggers() -> None:
    for name, level in LIBRARY_LOG_LEVELS.items():
        logging.getLogger(name).setLevel(level)


def configure_logging(debug: bool = False, level: str | None = None) -> None:
    """Route structlog through stdlib logging on stdout.

    Debug mode renders coloured console lines; otherwise each event is one
    JSON object. `level` (e.g. "warning") overrides the level implied by
    `debug`.
    """
    if level:
        log_level = logging.getLevelName(level.upper())
    else:
        log_level = logging.DEBUG if debug else logging.INFO

    logging.basicConfig(level=log_level, stream=sys.stdout, format="%(message)s", force=True)
    quiet_library_loggers()

    processors: list[Any] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        CatalogContextProcessor(),
        structlog.processors.TimeStamper(fmt="ISO", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if debug:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))
    else:
        processors.append(structlog.processors.JSONRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    return structlog.get_logger(name)


def generate_request_id() -> str:
    return uuid.uuid4().hex[:16]


@contextmanager
def request_scope(request_id: str | None = None) -> Iterator[str]:
    """Give the enclosed work a request id and a clean identity.

    A client-supplied id is kept so that logs can be correlated across
    services. Everything bound inside the scope is undone on exit.
    """
    request_id = request_id or generate_request_id()
    tokens = [
        (request_id_ctx, request_id_ctx.set(request_id)),
        (operation_ctx, operation_ctx.set(None)),
        (user_id_ctx, user_id_ctx.set(None)),
        (username_ctx, username_ctx.set(None)),
    ]
    try:
        yield request_id
    finally:
        for var, token in reversed(tokens):
            var.reset(token)


def bind_operation(operation_name: str | None) -> None:
    operation_ctx.set(operation_name)


def bind_principal(user_id: str | None, username: str | None) -> None:
    """Attribute the rest of the current operation's logs to a user."""
    user_id_ctx.set(user_id)
    username_ctx.set(username)
