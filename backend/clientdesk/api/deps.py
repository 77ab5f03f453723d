from typing import Annotated
from uuid import UUID

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from clientdesk.core.errors import ErrorCode, unauthorized
from clientdesk.core.security import decode_access_token
from clientdesk.db.session import get_db
from clientdesk.models.user import User
from clientdesk.services.login_throttle import LoginThrottle

security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    if credentials is None:
        raise unauthorized("Not authenticated")

    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise unauthorized("Invalid authentication token", code=ErrorCode.INVALID_TOKEN)

    try:
        user_id = UUID(str(payload.get("sub")))
    except ValueError:
        raise unauthorized("Invalid token payload", code=ErrorCode.INVALID_TOKEN)

    user = await db.get(User, user_id)
    if user is None:
        raise unauthorized("User not found")

    return user


def get_login_throttle(request: Request) -> LoginThrottle:
    """The application-wide login throttle built at startup."""
    return request.app.state.login_throttle


__all__ = ["get_current_user", "get_db", "get_login_throttle"]
