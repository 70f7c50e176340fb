"""Shared test fixtures."""

from collections.abc import AsyncGenerator, Iterator
from unittest.mock import MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from src.cs_common.database import get_db_session
from src.cs_gateway.auth.dependencies import CurrentUser, get_current_user
from src.main import app


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for testing FastAPI endpoints."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def db_override() -> Iterator[MagicMock]:
    """Replace the request-scoped session with a stub the services never reach."""
    db = MagicMock()

    async def _session() -> AsyncGenerator[MagicMock, None]:
        yield db

    app.dependency_overrides[get_db_session] = _session
    yield db
    app.dependency_overrides.pop(get_db_session, None)


@pytest.fixture
def login() -> Iterator:
    """Call ``login(user_id, is_admin=False)`` to skip JWT checks for the test."""

    def _login(user_id: str = "user-1", is_admin: bool = False) -> CurrentUser:
        user = CurrentUser(user_id=user_id, is_admin=is_admin)
        app.dependency_overrides[get_current_user] = lambda: user
        return user

    yield _login
    app.dependency_overrides.pop(get_current_user, None)
