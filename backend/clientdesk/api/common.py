"""Request helpers shared by the user and customer routers."""

from clientdesk.core.config import settings
from clientdesk.core.errors import invalid_password, validation_error
from clientdesk.core.security import validate_password_complexity
from clientdesk.services.listing import ListingFields, PageRequest


def check_new_password(password: str, password_confirm: str) -> None:
    """Reject a new password that is unconfirmed or too weak."""
    if password != password_confirm:
        raise invalid_password("Password confirmation mismatched")

    is_valid, error_msg = validate_password_complexity(password)
    if not is_valid:
        raise validation_error(error_msg, details={"field": "password"})


def listing_request(
    fields: ListingFields,
    page_number: int,
    page_size: int | None,
    sort: str | None,
    search: str | None,
) -> PageRequest:
    return PageRequest.from_query(
        fields,
        page_number=page_number,
        page_size=settings.DEFAULT_PAGE_SIZE if page_size is None else page_size,
        sort=sort,
        search=search,
    )
