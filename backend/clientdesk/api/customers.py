"""Customer management API."""

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from clientdesk.api.common import check_new_password, listing_request
from clientdesk.api.deps import get_current_user, get_db
from clientdesk.core.errors import ErrorCode, conflict, unauthorized
from clientdesk.core.security import get_password_hash, verify_password
from clientdesk.models.customer import Customer
from clientdesk.models.user import User
from clientdesk.schemas.customer import CustomerCreate, CustomerResponse, CustomerUpdate
from clientdesk.schemas.user import IdResponse, PasswordChange
from clientdesk.services.listing import FieldKind, ListingFields, PageResult, list_page
from clientdesk.utils.crud import CRUDOperations

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/customers", tags=["customers"])

customer_crud = CRUDOperations(Customer, "Customer")

CUSTOMER_LISTING_FIELDS = ListingFields(
    sortable={
        "name": FieldKind.STRING,
        "email": FieldKind.STRING,
        "phone_number": FieldKind.STRING,
        "city": FieldKind.STRING,
        "payment_status": FieldKind.STRING,
        "total_purchase": FieldKind.NUMERIC,
        "created_at": FieldKind.DATE,
    },
    searchable=frozenset({"name", "email", "phone_number", "city", "payment_status"}),
    default_search_field="email",
)


def _customer_fields(data: CustomerCreate | CustomerUpdate) -> dict:
    return {
        "name": data.name,
        "email": data.email.lower(),
        "phone_number": data.phone_number,
        "total_purchase": data.total_purchase,
        "city": data.city,
        "payment_status": data.payment_status.value if data.payment_status else None,
    }


@router.get("", response_model=PageResult[CustomerResponse])
async def list_customers(
    db: Annotated[AsyncSession, Depends(get_db)],
    _: Annotated[User, Depends(get_current_user)],
    page_number: int = 1,
    page_size: int | None = None,
    sort: str | None = None,
    search: str | None = None,
):
    """List customers one page at a time.

    ``total_purchase`` sorts numerically; the other text fields sort
    case-insensitively.
    """
    page_request = listing_request(CUSTOMER_LISTING_FIELDS, page_number, page_size, sort, search)
    customers = await customer_crud.get_all(db)
    return list_page(customers, page_request, CUSTOMER_LISTING_FIELDS, CustomerResponse.model_validate)


@router.post("", response_model=CustomerResponse, status_code=status.HTTP_201_CREATED)
async def create_customer(
    data: CustomerCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
):
    check_new_password(data.password, data.password_confirm)

    fields = _customer_fields(data)
    if await customer_crud.email_is_registered(db, fields["email"]):
        raise conflict("Email is already registered", details={"email": fields["email"]})

    fields["password_hash"] = get_password_hash(data.password)
    customer = await customer_crud.create(db, fields)
    logger.info("Customer %s created by %s", customer.id, current_user.id)
    return CustomerResponse.model_validate(customer)


@router.get("/{customer_id}", response_model=CustomerResponse)
async def get_customer(
    customer_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    _: Annotated[User, Depends(get_current_user)],
):
    customer = await customer_crud.get_or_404(db, customer_id)
    return CustomerResponse.model_validate(customer)


@router.put("/{customer_id}", response_model=CustomerResponse)
async def update_customer(
    customer_id: UUID,
    data: CustomerUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    _: Annotated[User, Depends(get_current_user)],
):
    customer = await customer_crud.get_or_404(db, customer_id)

    fields = _customer_fields(data)
    if await customer_crud.email_is_registered(db, fields["email"], exclude_id=customer.id):
        raise conflict("Email is already registered", details={"email": fields["email"]})

    customer = await customer_crud.update(db, customer, fields)
    return CustomerResponse.model_validate(customer)


@router.delete("/{customer_id}", response_model=IdResponse)
async def delete_customer(
    customer_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
):
    customer = await customer_crud.get_or_404(db, customer_id)
    await customer_crud.delete(db, customer)
    logger.info("Customer %s deleted by %s", customer_id, current_user.id)
    return IdResponse(id=customer_id)


@router.post("/{customer_id}/change-password", response_model=IdResponse)
async def change_customer_password(
    customer_id: UUID,
    data: PasswordChange,
    db: Annotated[AsyncSession, Depends(get_db)],
    _: Annotated[User, Depends(get_current_user)],
):
    customer = await customer_crud.get_or_404(db, customer_id)

    check_new_password(data.password_new, data.password_confirm)

    if not verify_password(data.password_old, customer.password_hash):
        raise unauthorized("Wrong password", code=ErrorCode.INVALID_CREDENTIALS)

    await customer_crud.change_password(db, customer, get_password_hash(data.password_new))
    return IdResponse(id=customer_id)
