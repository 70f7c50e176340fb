"""Unit tests for JWT verification and the auth dependencies."""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from fastapi.security import HTTPAuthorizationCredentials
from jose import jwt

from config.settings import settings
from src.cs_common.errors import ForbiddenError, UnauthorizedError
from src.cs_gateway.auth.dependencies import CurrentUser, get_current_user, require_admin
from src.cs_gateway.auth.jwt_handler import decode_access_token


def make_token(secret: str | None = None, **claims: object) -> str:
    payload: dict[str, object] = {
        "sub": "user-123",
        "exp": datetime.now(timezone.utc) + timedelta(minutes=5),
    }
    payload.update(claims)
    return jwt.encode(payload, secret or settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def test_decode_valid_token() -> None:
    payload = decode_access_token(make_token())
    assert payload["sub"] == "user-123"


def test_wrong_secret_raises() -> None:
    with pytest.raises(UnauthorizedError):
        decode_access_token(make_token(secret="someone-else"))


def test_expired_token_raises() -> None:
    token = make_token(exp=datetime.now(timezone.utc) - timedelta(seconds=1))
    with pytest.raises(UnauthorizedError):
        decode_access_token(token)


def test_missing_subject_raises() -> None:
    with pytest.raises(UnauthorizedError):
        decode_access_token(make_token(sub=""))


def test_garbage_token_raises() -> None:
    with pytest.raises(UnauthorizedError):
        decode_access_token("not.a.jwt")


def test_audience_enforced_when_configured() -> None:
    with patch.object(settings, "JWT_AUDIENCE", "clubshares"):
        assert decode_access_token(make_token(aud="clubshares"))["sub"] == "user-123"
        with pytest.raises(UnauthorizedError):
            decode_access_token(make_token(aud="elsewhere"))


class TestDependencies:
    @pytest.mark.asyncio
    async def test_missing_credentials(self) -> None:
        with pytest.raises(UnauthorizedError):
            await get_current_user(None)

    @pytest.mark.asyncio
    async def test_regular_user(self) -> None:
        creds = HTTPAuthorizationCredentials(scheme="Bearer", credentials=make_token())
        user = await get_current_user(creds)
        assert user == CurrentUser(user_id="user-123", is_admin=False)

    @pytest.mark.asyncio
    async def test_admin_role(self) -> None:
        creds = HTTPAuthorizationCredentials(
            scheme="Bearer", credentials=make_token(role="admin")
        )
        user = await get_current_user(creds)
        assert user.is_admin
        assert await require_admin(user) is user

    @pytest.mark.asyncio
    async def test_non_admin_forbidden(self) -> None:
        with pytest.raises(ForbiddenError):
            await require_admin(CurrentUser(user_id="u1"))
