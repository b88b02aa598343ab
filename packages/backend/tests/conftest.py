"""Test fixtures — one in-memory Mongo per test, apps built around it.

Learn: Testing pattern for the container-based app:

1. Each test gets a fresh mongomock_motor database (motor API, in memory),
   so there is nothing to roll back and no cross-test pollution.
2. The container is wired exactly like production (wire()), only the
   database handle differs. bcrypt rounds drop to 4 to keep tests fast.
3. Clients override get_current_user_optional to act as an anonymous
   visitor, a regular user, or an admin without logging in first.
   Each client gets its own app instance, so overrides never leak.
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

from mercadito.app_logging import AppLogger
from mercadito.auth.dependencies import get_current_user_optional
from mercadito.config import Settings
from mercadito.containers import wire
from mercadito.main import create_app
from mercadito.schemas.auth import Identity

ADMIN = Identity(
    id="000000000000000000000001",
    email="admin@example.com",
    first_name="Ada",
    role="admin",
)
USER = Identity(
    id="000000000000000000000002",
    email="buyer@example.com",
    first_name="Bruno",
    role="user",
)


@pytest.fixture()
def settings():
    return Settings(
        mongo_url="mongodb://localhost:27017",
        session_secret="test-secret-for-signing-session-cookies",
        environment="development",
        log_level="debug",
        admin_email="boss@example.com",
        _env_file=None,
    )


@pytest.fixture()
def db():
    return AsyncMongoMockClient()["mercadito_test"]


@pytest.fixture()
def logger():
    return AppLogger("mercadito.test", level="debug")


@pytest.fixture()
def container(settings, db, logger):
    return wire(settings, db, logger, password_rounds=4)


def _app(container, identity=None):
    app = create_app(container, check_store=False)
    if identity is not None:
        app.dependency_overrides[get_current_user_optional] = lambda: identity
    return app


@pytest.fixture()
def make_app(container):
    """Build an app around the shared container, optionally as someone."""
    def _make(identity=None):
        return _app(container, identity)
    return _make


@pytest_asyncio.fixture()
async def client(container):
    """Anonymous HTTP client (real session cookie handling)."""
    transport = ASGITransport(app=_app(container))
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture()
async def user_client(container):
    transport = ASGITransport(app=_app(container, USER))
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture()
async def admin_client(container):
    transport = ASGITransport(app=_app(container, ADMIN))
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
