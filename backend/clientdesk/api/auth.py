import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from clientdesk.api.deps import get_db, get_login_throttle
from clientdesk.core.errors import from_domain_error
from clientdesk.core.exceptions import InvalidCredentialsError, TooManyAttemptsError
from clientdesk.core.security import create_access_token, verify_password
from clientdesk.models.user import User
from clientdesk.schemas.auth import LoginRequest, LoginResponse
from clientdesk.services.login_throttle import LoginThrottle
from clientdesk.utils.crud import CRUDOperations

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/authentication", tags=["authentication"])

user_crud = CRUDOperations(User, "User")


async def check_login_credentials(
    db: AsyncSession,
    email: str,
    password: str,
    attempt: int,
) -> LoginResponse | None:
    """Verify an email/password pair and issue a token on success."""
    user = await user_crud.get_by_email(db, email)

    # Unknown emails still pay for a bcrypt verification
    if not verify_password(password, user.password_hash if user else None):
        logger.info("Invalid credentials on login attempt %d", attempt)
        return None

    return LoginResponse(
        email=user.email,
        name=user.name,
        user_id=user.id,
        token=create_access_token(data={"sub": str(user.id)}),
    )


@router.post("/login", response_model=LoginResponse)
async def login(
    request: LoginRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    throttle: Annotated[LoginThrottle, Depends(get_login_throttle)],
):
    email = request.email.lower()

    async def verify(attempt: int) -> LoginResponse | None:
        return await check_login_credentials(db, email, request.password, attempt)

    try:
        result = await throttle.authenticate(email, verify)
    except (TooManyAttemptsError, InvalidCredentialsError) as e:
        raise from_domain_error(e)

    return result
