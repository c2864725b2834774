"""
Errors raised by catalog resolvers.

Every error is scoped to the operation that raised it. The client sees the
message plus `extensions` with a stable `code`, the error `kind` and any
diagnostic context (`invalidArgs`, `error`).
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any

from graphql import GraphQLError

# Error code shared by every catalog error, as clients already match on it
BAD_USER_INPUT = "BAD_USER_INPUT"


class ErrorKind(Enum):
    UNAUTHENTICATED = "UNAUTHENTICATED"
    INVALID_INPUT = "INVALID_INPUT"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    PERSIST_FAILED = "PERSIST_FAILED"


class CatalogError(GraphQLError):
    """A failed catalog operation with a fixed kind and open diagnostic context."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        context: Mapping[str, Any] | None = None,
        cause: BaseException | None = None,
    ):
        self.kind = kind
        self.context = dict(context or {})
        self.cause = cause

        extensions: dict[str, Any] = {"code": BAD_USER_INPUT, "kind": kind.value}
        extensions.update(self.context)
        if cause is not None:
            extensions["error"] = str(cause)

        super().__init__(message, extensions=extensions, original_error=cause)


def not_authenticated() -> CatalogError:
    return CatalogError(ErrorKind.UNAUTHENTICATED, "not authenticated")


def invalid_input(message: str, invalid_args: Mapping[str, Any]) -> CatalogError:
    return CatalogError(ErrorKind.INVALID_INPUT, message, context={"invalidArgs": dict(invalid_args)})


def invalid_credentials() -> CatalogError:
    # Same message and shape for unknown users and wrong passwords
    return CatalogError(ErrorKind.INVALID_CREDENTIALS, "wrong credentials")


def persist_failed(
    message: str, invalid_args: Mapping[str, Any], cause: BaseException
) -> CatalogError:
    return CatalogError(
        ErrorKind.PERSIST_FAILED,
        message,
        context={"invalidArgs": dict(invalid_args)},
        cause=cause,
    )
