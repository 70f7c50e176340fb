"""JWT verification.

Tokens are issued by the external identity provider; this service only
verifies them. HS256 with the shared JWT_SECRET by default; ``sub`` is the
user id and a ``role`` claim of "admin" grants the admin endpoints.
"""

from typing import Any

from jose import JWTError, jwt

from config.settings import settings
from src.cs_common.errors import UnauthorizedError


def decode_access_token(token: str) -> dict[str, Any]:
    """Decode and validate a Bearer token; UnauthorizedError on any failure."""
    options = {"verify_aud": settings.JWT_AUDIENCE is not None}
    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],  # Explicit list prevents algorithm confusion
            audience=settings.JWT_AUDIENCE,
            options=options,
        )
    except JWTError:
        raise UnauthorizedError() from None

    if not payload.get("sub"):
        raise UnauthorizedError()
    return payload
