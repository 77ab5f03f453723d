"""
Listing query processing: search, sort and paginate a materialized collection.

The processor is generic over the entity shape. Each resource declares the
fields that may be sorted (with their semantic kind) and the fields that may
be searched; everything else about the entity is opaque and reaches the
response only through the caller's projection.
"""

import math
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

from clientdesk.core.exceptions import InvalidArgumentError

E = TypeVar("E")
P = TypeVar("P")

DEFAULT_PAGE_SIZE = 10


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"

    @classmethod
    def parse(cls, value: str | None) -> "SortOrder":
        """Anything other than ``desc`` sorts ascending."""
        if value and value.strip().lower() == cls.DESC.value:
            return cls.DESC
        return cls.ASC


class FieldKind(str, Enum):
    STRING = "string"
    NUMERIC = "numeric"
    DATE = "date"


def _string_key(value: Any) -> str:
    return str(value).casefold()


def _numeric_key(value: Any) -> float:
    return float(value)


def _date_key(value: Any) -> float:
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.timestamp()
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc).timestamp()
    raise TypeError(f"Cannot sort {type(value).__name__} as a date")


SORT_KEYS: dict[FieldKind, Callable[[Any], Any]] = {
    FieldKind.STRING: _string_key,
    FieldKind.NUMERIC: _numeric_key,
    FieldKind.DATE: _date_key,
}


@dataclass(frozen=True)
class ListingFields:
    """Fields of a resource that listing requests may refer to."""

    sortable: Mapping[str, FieldKind]
    searchable: frozenset[str]
    default_search_field: str | None = None


@dataclass
class PageRequest:
    page_number: int = 1
    page_size: int = DEFAULT_PAGE_SIZE
    sort_field: str | None = None
    sort_order: SortOrder = SortOrder.ASC
    search_field: str | None = None
    search_keyword: str | None = None

    @classmethod
    def from_query(
        cls,
        fields: ListingFields,
        page_number: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
        sort: str | None = None,
        search: str | None = None,
    ) -> "PageRequest":
        """Build a request from ``sort=<field>[:<order>]`` and ``search=[<field>:]<keyword>``.

        A bare search keyword applies to the resource's default search field.
        A prefix shaped like a field name selects that field, even when the
        resource does not allow it, so validation can reject it.
        """
        sort_field = None
        sort_order = SortOrder.ASC
        if sort:
            sort_field, _, order = sort.partition(":")
            sort_field = sort_field.strip() or None
            sort_order = SortOrder.parse(order)

        search_field = None
        search_keyword = None
        if search:
            head, sep, tail = search.partition(":")
            if sep and head.strip().isidentifier():
                search_field, search_keyword = head.strip(), tail
            else:
                search_field, search_keyword = fields.default_search_field, search

        return cls(
            page_number=page_number,
            page_size=page_size,
            sort_field=sort_field,
            sort_order=sort_order,
            search_field=search_field,
            search_keyword=search_keyword or None,
        )


class PageResult(BaseModel, Generic[P]):
    page_number: int
    page_size: int
    count: int
    total_pages: int
    has_previous_page: bool
    has_next_page: bool
    data: list[P]


def field_value(entity: Any, name: str) -> Any:
    if isinstance(entity, Mapping):
        return entity.get(name)
    return getattr(entity, name, None)


def _validate(request: PageRequest, fields: ListingFields) -> None:
    if request.page_size <= 0:
        raise InvalidArgumentError("page_size must be a positive integer", field="page_size")
    if request.page_number <= 0:
        raise InvalidArgumentError("page_number must be a positive integer", field="page_number")
    if request.sort_field is not None and request.sort_field not in fields.sortable:
        raise InvalidArgumentError(
            f"Cannot sort by '{request.sort_field}'. Allowed: {sorted(fields.sortable)}",
            field="sort",
        )
    if request.search_field is not None and request.search_field not in fields.searchable:
        raise InvalidArgumentError(
            f"Cannot search by '{request.search_field}'. Allowed: {sorted(fields.searchable)}",
            field="search",
        )


def filter_records(records: list[E], search_field: str | None, keyword: str | None) -> list[E]:
    """Keep records whose ``search_field`` contains ``keyword``, ignoring case."""
    if not search_field or not keyword:
        return records
    needle = keyword.casefold()
    return [
        record
        for record in records
        if (value := field_value(record, search_field)) is not None
        and needle in str(value).casefold()
    ]


def sort_records(records: list[E], sort_field: str | None, kind: FieldKind, order: SortOrder) -> list[E]:
    """Stable sort by ``sort_field``. Records missing the field go last."""
    if not sort_field:
        return records
    key = SORT_KEYS[kind]
    present = [r for r in records if field_value(r, sort_field) is not None]
    missing = [r for r in records if field_value(r, sort_field) is None]
    try:
        # reverse=True keeps equal elements in their original order
        present = sorted(
            present,
            key=lambda r: key(field_value(r, sort_field)),
            reverse=order is SortOrder.DESC,
        )
    except (TypeError, ValueError) as e:
        raise InvalidArgumentError(
            f"Field '{sort_field}' holds values that cannot be sorted as {kind.value}",
            field="sort",
        ) from e
    return present + missing


def list_page(
    all_records: Iterable[E],
    request: PageRequest,
    fields: ListingFields,
    project: Callable[[E], P],
) -> PageResult[P]:
    """Filter, sort and slice ``all_records`` into one page.

    Raises:
        InvalidArgumentError: non-positive page size or number, or a sort or
            search field the resource does not allow
    """
    _validate(request, fields)

    records = filter_records(list(all_records), request.search_field, request.search_keyword)
    if request.sort_field:
        records = sort_records(records, request.sort_field, fields.sortable[request.sort_field], request.sort_order)

    total_count = len(records)
    total_pages = math.ceil(total_count / request.page_size)
    start = (request.page_number - 1) * request.page_size
    page = records[start:start + request.page_size]

    return PageResult(
        page_number=request.page_number,
        page_size=request.page_size,
        count=len(page),
        total_pages=total_pages,
        has_previous_page=request.page_number > 1,
        has_next_page=start + request.page_size < total_count,
        data=[project(record) for record in page],
    )
