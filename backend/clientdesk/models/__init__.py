from clientdesk.models.customer import Customer, PaymentStatus
from clientdesk.models.user import User

__all__ = [
    "Customer",
    "PaymentStatus",
    "User",
]
