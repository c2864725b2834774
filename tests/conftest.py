"""
Shared pytest fixtures and configuration for all tests.
"""

import os

# Settings are read at import time, so configure them before librarian loads
os.environ.setdefault("LIBRARIAN_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LIBRARIAN_DEBUG", "false")
os.environ.setdefault("LIBRARIAN_JWT_SECRET", "test-secret-key-for-testing-only-0123456789")
os.environ.setdefault("LIBRARIAN_EVENT_BUS_BACKEND", "memory")

from collections.abc import AsyncGenerator, Generator  # noqa: E402
from typing import Any  # noqa: E402
from unittest.mock import MagicMock  # noqa: E402
from uuid import uuid4  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
import strawberry  # noqa: E402

from librarian.auth.adapters.jwt import JWTAuthAdapter  # noqa: E402
from librarian.auth.context import AuthContext  # noqa: E402
from librarian.auth.credentials import CredentialService  # noqa: E402
from librarian.events.bus import InMemoryNotificationBus  # noqa: E402
from librarian.graphql.context import build_context  # noqa: E402

TEST_SECRET = "test-secret-key-for-testing-only-0123456789"


@pytest.fixture(autouse=True)
def reset_environment() -> Generator[None, None, None]:
    """Reset environment variables for each test."""
    original_env = os.environ.copy()
    yield
    os.environ.clear()
    os.environ.update(original_env)


@pytest_asyncio.fixture
async def db(tmp_path) -> AsyncGenerator[None, None]:
    """Fresh file-backed catalog database; each session gets its own connection."""
    from librarian.database.connection import create_tables, dispose_database, init_database

    init_database(f"sqlite+aiosqlite:///{tmp_path / 'catalog.db'}", force_reinit=True)
    await create_tables()
    yield
    await dispose_database()


@pytest.fixture
def jwt_adapter() -> JWTAuthAdapter:
    return JWTAuthAdapter(
        secret_key=TEST_SECRET,
        issuer="test-librarian",
        audience="test-api",
    )


@pytest.fixture
def credentials(jwt_adapter: JWTAuthAdapter) -> CredentialService:
    # Lowest bcrypt cost keeps hashing fast in tests
    return CredentialService(jwt_adapter, bcrypt_rounds=4)


@pytest.fixture
def bus() -> InMemoryNotificationBus:
    return InMemoryNotificationBus(queue_size=10)


@pytest.fixture
def principal() -> dict[str, Any]:
    return {"subject": str(uuid4()), "username": "librarian", "claims": {}}


@pytest.fixture
def auth_context(principal) -> AuthContext:
    """Create an authenticated context."""
    return AuthContext(principal=principal, token="test-token")


@pytest.fixture
def make_info(bus, credentials):
    """Build mock GraphQL info objects carrying a real resolver context."""

    def _make(auth: AuthContext | None = None) -> MagicMock:
        info = MagicMock(spec=strawberry.Info)
        info.context = build_context(
            auth=auth or AuthContext(principal=None, token=None),
            bus=bus,
            credentials=credentials,
        )
        return info

    return _make


@pytest.fixture
def anonymous_info(make_info) -> MagicMock:
    return make_info()


@pytest.fixture
def authenticated_info(make_info, auth_context) -> MagicMock:
    return make_info(auth_context)
