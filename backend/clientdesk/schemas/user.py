from uuid import UUID

from pydantic import BaseModel, EmailStr, Field


class UserBase(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    email: EmailStr


class UserCreate(UserBase):
    password: str
    password_confirm: str


class UserUpdate(UserBase):
    pass


class PasswordChange(BaseModel):
    password_old: str
    password_new: str
    password_confirm: str


class UserResponse(BaseModel):
    id: UUID
    name: str
    email: str

    class Config:
        from_attributes = True


class IdResponse(BaseModel):
    id: UUID


class LockStatusResponse(BaseModel):
    email: str
    locked: bool
    attempts: int
    retry_after_seconds: int | None = None
