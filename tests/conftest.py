"""Shared test fixtures.

JWT_SECRET has no default in Settings; set it before anything imports config.
"""

# ruff: noqa: E402

import os

os.environ.setdefault("JWT_SECRET", "test-secret-not-for-production")

import uuid
from collections.abc import AsyncIterator, Callable, Iterator
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from src.main import app
from src.mp_common.database import get_db_session
from src.mp_gateway.auth.dependencies import get_current_user
from src.mp_gateway.user.db_models import UserModel


def _make_user(role: str, vendor_id: str | None = None) -> UserModel:
    return UserModel(
        id=uuid.uuid4(),
        email=f"{role.lower()}@example.com",
        role=role,
        vendor_id=vendor_id,
        is_active=True,
    )


@pytest.fixture
def admin_user() -> UserModel:
    return _make_user("ADMIN")


@pytest.fixture
def vendor_user() -> UserModel:
    return _make_user("VENDOR", vendor_id="V-1")


@pytest.fixture
def customer_user() -> UserModel:
    return _make_user("CUSTOMER")


@pytest.fixture
def db_session() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def client_for(db_session: AsyncMock) -> Callable[[UserModel], AsyncClient]:
    """Build an HTTP client authenticated as `user`, with a mocked DB session."""

    def _build(user: UserModel) -> AsyncClient:
        app.dependency_overrides[get_current_user] = lambda: user
        app.dependency_overrides[get_db_session] = lambda: db_session
        return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")

    return _build


@pytest.fixture
async def client() -> AsyncIterator[AsyncClient]:
    """Unauthenticated async HTTP client for testing FastAPI endpoints."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture(autouse=True)
def _clear_overrides() -> Iterator[None]:
    yield
    app.dependency_overrides.clear()
