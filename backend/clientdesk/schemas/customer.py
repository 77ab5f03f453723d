from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from clientdesk.models.customer import PaymentStatus


class CustomerBase(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    phone_number: str | None = Field(default=None, max_length=32)
    total_purchase: float | None = Field(default=None, ge=0)
    city: str | None = Field(default=None, max_length=100)
    payment_status: PaymentStatus | None = None


class CustomerCreate(CustomerBase):
    password: str
    password_confirm: str


class CustomerUpdate(CustomerBase):
    pass


class CustomerResponse(BaseModel):
    id: UUID
    name: str
    email: str
    phone_number: str | None = None
    city: str | None = None
    total_purchase: float | None = None
    payment_status: str | None = None

    class Config:
        from_attributes = True
