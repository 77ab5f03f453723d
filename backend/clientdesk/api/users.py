"""User management API."""

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from clientdesk.api.common import check_new_password, listing_request
from clientdesk.api.deps import get_current_user, get_db, get_login_throttle
from clientdesk.core.errors import ErrorCode, conflict, unauthorized
from clientdesk.core.security import get_password_hash, verify_password
from clientdesk.models.user import User
from clientdesk.schemas.user import (
    IdResponse,
    LockStatusResponse,
    PasswordChange,
    UserCreate,
    UserResponse,
    UserUpdate,
)
from clientdesk.services.listing import FieldKind, ListingFields, PageResult, list_page
from clientdesk.services.login_throttle import LoginThrottle
from clientdesk.utils.crud import CRUDOperations

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])

user_crud = CRUDOperations(User, "User")

USER_LISTING_FIELDS = ListingFields(
    sortable={
        "name": FieldKind.STRING,
        "email": FieldKind.STRING,
        "created_at": FieldKind.DATE,
    },
    searchable=frozenset({"name", "email"}),
    default_search_field="email",
)


@router.get("", response_model=PageResult[UserResponse])
async def list_users(
    db: Annotated[AsyncSession, Depends(get_db)],
    _: Annotated[User, Depends(get_current_user)],
    page_number: int = 1,
    page_size: int | None = None,
    sort: str | None = None,
    search: str | None = None,
):
    """List users one page at a time.

    ``sort`` takes ``<field>[:asc|desc]``; ``search`` takes
    ``[<field>:]<keyword>`` and matches case-insensitively.
    """
    page_request = listing_request(USER_LISTING_FIELDS, page_number, page_size, sort, search)
    users = await user_crud.get_all(db)
    return list_page(users, page_request, USER_LISTING_FIELDS, UserResponse.model_validate)


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    data: UserCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
):
    check_new_password(data.password, data.password_confirm)

    email = data.email.lower()
    if await user_crud.email_is_registered(db, email):
        raise conflict("Email is already registered", details={"email": email})

    user = await user_crud.create(
        db,
        {
            "name": data.name,
            "email": email,
            "password_hash": get_password_hash(data.password),
        },
    )
    logger.info("User %s created by %s", user.id, current_user.id)
    return UserResponse.model_validate(user)


@router.get("/lock-status/{email}", response_model=LockStatusResponse)
async def get_lock_status(
    email: str,
    throttle: Annotated[LoginThrottle, Depends(get_login_throttle)],
    _: Annotated[User, Depends(get_current_user)],
):
    """Get the login throttle state for an email."""
    lock = throttle.status(email)
    return LockStatusResponse(
        email=lock.identifier,
        locked=lock.locked,
        attempts=lock.attempts,
        retry_after_seconds=lock.retry_after_seconds,
    )


@router.post("/lock-status/{email}/unlock")
async def unlock_login(
    email: str,
    throttle: Annotated[LoginThrottle, Depends(get_login_throttle)],
    current_user: Annotated[User, Depends(get_current_user)],
):
    """Clear the login attempts recorded for an email."""
    cleared = throttle.reset(email)
    logger.info("Login attempts for an account cleared by %s (had record: %s)", current_user.id, cleared)
    return {"success": True, "email": email.lower(), "cleared": cleared}


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    _: Annotated[User, Depends(get_current_user)],
):
    user = await user_crud.get_or_404(db, user_id)
    return UserResponse.model_validate(user)


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: UUID,
    data: UserUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    _: Annotated[User, Depends(get_current_user)],
):
    user = await user_crud.get_or_404(db, user_id)

    email = data.email.lower()
    if await user_crud.email_is_registered(db, email, exclude_id=user.id):
        raise conflict("Email is already registered", details={"email": email})

    user = await user_crud.update(db, user, {"name": data.name, "email": email})
    return UserResponse.model_validate(user)


@router.delete("/{user_id}", response_model=IdResponse)
async def delete_user(
    user_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
):
    user = await user_crud.get_or_404(db, user_id)
    await user_crud.delete(db, user)
    logger.info("User %s deleted by %s", user_id, current_user.id)
    return IdResponse(id=user_id)


@router.post("/{user_id}/change-password", response_model=IdResponse)
async def change_user_password(
    user_id: UUID,
    data: PasswordChange,
    db: Annotated[AsyncSession, Depends(get_db)],
    _: Annotated[User, Depends(get_current_user)],
):
    """Change a user's password after checking the old one."""
    user = await user_crud.get_or_404(db, user_id)

    check_new_password(data.password_new, data.password_confirm)

    if not verify_password(data.password_old, user.password_hash):
        raise unauthorized("Wrong password", code=ErrorCode.INVALID_CREDENTIALS)

    await user_crud.change_password(db, user, get_password_hash(data.password_new))
    return IdResponse(id=user_id)
