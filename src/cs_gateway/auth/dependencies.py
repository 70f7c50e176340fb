"""FastAPI dependencies: get_current_user and require_admin.

Usage in any protected router:
    from src.cs_gateway.auth.dependencies import get_current_user

    @router.get("/protected")
    async def protected(user: CurrentUser = Depends(get_current_user)):
        ...
"""

from dataclasses import dataclass

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.cs_common.errors import ForbiddenError, UnauthorizedError
from src.cs_gateway.auth.jwt_handler import decode_access_token

# auto_error=False so a missing header goes through our own 401 envelope
_bearer = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class CurrentUser:
    user_id: str
    is_admin: bool = False


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> CurrentUser:
    if credentials is None:
        raise UnauthorizedError()
    payload = decode_access_token(credentials.credentials)
    return CurrentUser(user_id=str(payload["sub"]), is_admin=payload.get("role") == "admin")


async def require_admin(
    current_user: CurrentUser = Depends(get_current_user),
) -> CurrentUser:
    """Only callers whose token carries ``role: admin``; 403 otherwise."""
    if not current_user.is_admin:
        raise ForbiddenError()
    return current_user
