from uuid import UUID

from pydantic import BaseModel, EmailStr


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class LoginResponse(BaseModel):
    email: str
    name: str
    user_id: UUID
    token: str
    token_type: str = "bearer"
