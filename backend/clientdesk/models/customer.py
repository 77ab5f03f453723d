from enum import Enum

from sqlalchemy import Float, String
from sqlalchemy.orm import Mapped, mapped_column

from clientdesk.db.base import Base, TimestampMixin, UUIDMixin


class PaymentStatus(str, Enum):
    PAID = "paid"
    UNPAID = "unpaid"
    NONE = "none"


class Customer(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "customers"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    phone_number: Mapped[str | None] = mapped_column(String(32), nullable=True)
    total_purchase: Mapped[float | None] = mapped_column(Float, nullable=True)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    # Stored as plain text; allowed values are enforced by the request schemas
    payment_status: Mapped[str | None] = mapped_column(String(16), nullable=True)

    def __repr__(self) -> str:
        return f"<Customer {self.email}>"
