"""Tests for listing search, sort and pagination."""

from dataclasses import dataclass
from datetime import datetime, timezone

import pytest

from clientdesk.core.exceptions import InvalidArgumentError
from clientdesk.services.listing import (
    FieldKind,
    ListingFields,
    PageRequest,
    SortOrder,
    filter_records,
    list_page,
    sort_records,
)

FIELDS = ListingFields(
    sortable={
        "name": FieldKind.STRING,
        "email": FieldKind.STRING,
        "total_purchase": FieldKind.NUMERIC,
        "created_at": FieldKind.DATE,
    },
    searchable=frozenset({"name", "email"}),
    default_search_field="email",
)


@dataclass
class Record:
    name: str
    email: str
    total_purchase: float | None = None
    created_at: datetime | None = None


def identity(record):
    return record


def emails(result):
    return [r.email for r in result.data]


@pytest.fixture
def twelve_users():
    # Deliberately out of order
    order = [7, 2, 11, 0, 5, 9, 1, 10, 3, 8, 6, 4]
    return [Record(name=f"User {i}", email=f"user{i:02d}@example.com") for i in order]


class TestPagination:
    def test_first_page_sorted_by_email(self, twelve_users):
        request = PageRequest(page_number=1, page_size=5, sort_field="email")

        result = list_page(twelve_users, request, FIELDS, identity)

        assert emails(result) == [f"user{i:02d}@example.com" for i in range(5)]
        assert result.count == 5
        assert result.total_pages == 3
        assert result.has_next_page is True
        assert result.has_previous_page is False

    def test_last_page_holds_remainder(self, twelve_users):
        request = PageRequest(page_number=3, page_size=5, sort_field="email")

        result = list_page(twelve_users, request, FIELDS, identity)

        assert emails(result) == ["user10@example.com", "user11@example.com"]
        assert result.count == 2
        assert result.has_next_page is False
        assert result.has_previous_page is True

    def test_page_beyond_end_is_empty(self, twelve_users):
        request = PageRequest(page_number=4, page_size=5)

        result = list_page(twelve_users, request, FIELDS, identity)

        assert result.data == []
        assert result.count == 0
        assert result.total_pages == 3
        assert result.has_next_page is False
        assert result.has_previous_page is True

    def test_exact_multiple_has_no_next_page(self, twelve_users):
        request = PageRequest(page_number=2, page_size=6)

        result = list_page(twelve_users, request, FIELDS, identity)

        assert result.total_pages == 2
        assert result.has_next_page is False

    def test_empty_collection(self):
        result = list_page([], PageRequest(), FIELDS, identity)

        assert result.data == []
        assert result.total_pages == 0
        assert result.has_next_page is False
        assert result.has_previous_page is False

    def test_pages_reconstruct_sorted_collection(self, twelve_users):
        collected = []
        for page_number in range(1, 4):
            request = PageRequest(page_number=page_number, page_size=5, sort_field="email", sort_order=SortOrder.DESC)
            collected.extend(emails(list_page(twelve_users, request, FIELDS, identity)))

        assert collected == sorted((r.email for r in twelve_users), reverse=True)

    def test_unsorted_keeps_input_order(self, twelve_users):
        result = list_page(twelve_users, PageRequest(page_size=12), FIELDS, identity)

        assert emails(result) == [r.email for r in twelve_users]

    def test_projection_applied(self, twelve_users):
        result = list_page(twelve_users, PageRequest(page_size=2, sort_field="email"), FIELDS, lambda r: r.name)

        assert result.data == ["User 0", "User 1"]

    @pytest.mark.parametrize("page_size", [0, -1])
    def test_non_positive_page_size_rejected(self, twelve_users, page_size):
        with pytest.raises(InvalidArgumentError) as exc_info:
            list_page(twelve_users, PageRequest(page_size=page_size), FIELDS, identity)
        assert exc_info.value.field == "page_size"

    def test_non_positive_page_number_rejected(self, twelve_users):
        with pytest.raises(InvalidArgumentError) as exc_info:
            list_page(twelve_users, PageRequest(page_number=0), FIELDS, identity)
        assert exc_info.value.field == "page_number"

    def test_unknown_sort_field_rejected(self, twelve_users):
        with pytest.raises(InvalidArgumentError) as exc_info:
            list_page(twelve_users, PageRequest(sort_field="password_hash"), FIELDS, identity)
        assert exc_info.value.field == "sort"

    def test_unknown_search_field_rejected(self, twelve_users):
        request = PageRequest(search_field="total_purchase", search_keyword="1")
        with pytest.raises(InvalidArgumentError) as exc_info:
            list_page(twelve_users, request, FIELDS, identity)
        assert exc_info.value.field == "search"


class TestSearch:
    def test_keyword_matches_ignoring_case(self):
        records = [
            Record("one", "abc@x.com"),
            Record("two", "ABC@x.com"),
            Record("three", "xaBcx@x.com"),
            Record("four", "abd@x.com"),
        ]

        matched = filter_records(records, "email", "ABC")

        assert [r.name for r in matched] == ["one", "two", "three"]

    def test_keyword_is_not_a_pattern(self):
        records = [Record("dot", "a.b@x.com"), Record("plain", "axb@x.com")]

        assert [r.name for r in filter_records(records, "email", "a.b")] == ["dot"]

    def test_missing_value_never_matches(self):
        records = [{"name": None, "email": "a@x.com"}, {"name": "Ann", "email": "b@x.com"}]

        assert filter_records(records, "name", "an") == [records[1]]

    def test_no_keyword_returns_everything(self, twelve_users):
        assert filter_records(twelve_users, "email", None) == twelve_users

    def test_search_then_paginate(self, twelve_users):
        request = PageRequest(page_size=2, sort_field="email", search_field="email", search_keyword="USER1")

        result = list_page(twelve_users, request, FIELDS, identity)

        assert emails(result) == ["user10@example.com", "user11@example.com"]
        assert result.total_pages == 1


class TestSort:
    def test_string_sort_ignores_case(self):
        records = [Record("b", "b@x.com"), Record("A", "a@x.com"), Record("c", "c@x.com")]

        ordered = sort_records(records, "name", FieldKind.STRING, SortOrder.ASC)

        assert [r.name for r in ordered] == ["A", "b", "c"]

    def test_numeric_sort_is_not_lexicographic(self):
        records = [Record("a", "a", 100.0), Record("b", "b", 9.5), Record("c", "c", 20)]

        ordered = sort_records(records, "total_purchase", FieldKind.NUMERIC, SortOrder.ASC)

        assert [r.total_purchase for r in ordered] == [9.5, 20, 100.0]

    def test_stable_for_equal_keys_ascending(self):
        records = [Record("same", f"{i}@x.com") for i in range(5)]

        ordered = sort_records(records, "name", FieldKind.STRING, SortOrder.ASC)

        assert ordered == records

    def test_stable_for_equal_keys_descending(self):
        records = [
            Record("b", "first@x.com"),
            Record("a", "x@x.com"),
            Record("b", "second@x.com"),
        ]

        ordered = sort_records(records, "name", FieldKind.STRING, SortOrder.DESC)

        assert [r.email for r in ordered] == ["first@x.com", "second@x.com", "x@x.com"]

    @pytest.mark.parametrize("order", [SortOrder.ASC, SortOrder.DESC])
    def test_missing_values_sort_last(self, order):
        records = [Record("a", "a", None), Record("b", "b", 5), Record("c", "c", 1)]

        ordered = sort_records(records, "total_purchase", FieldKind.NUMERIC, order)

        assert ordered[-1].name == "a"

    def test_date_sort(self):
        records = [
            Record("late", "l", created_at=datetime(2024, 5, 1, tzinfo=timezone.utc)),
            Record("early", "e", created_at=datetime(2023, 1, 1)),
            Record("iso", "i", created_at="2023-06-01T00:00:00+00:00"),
        ]

        ordered = sort_records(records, "created_at", FieldKind.DATE, SortOrder.ASC)

        assert [r.name for r in ordered] == ["early", "iso", "late"]

    def test_unsortable_values_rejected(self):
        records = [Record("a", "a", "lots"), Record("b", "b", 5)]

        with pytest.raises(InvalidArgumentError):
            sort_records(records, "total_purchase", FieldKind.NUMERIC, SortOrder.ASC)


class TestPageRequestFromQuery:
    def test_defaults(self):
        request = PageRequest.from_query(FIELDS)

        assert request.page_number == 1
        assert request.page_size == 10
        assert request.sort_field is None
        assert request.sort_order is SortOrder.ASC
        assert request.search_field is None
        assert request.search_keyword is None

    @pytest.mark.parametrize(
        "sort,field,order",
        [
            ("email", "email", SortOrder.ASC),
            ("email:desc", "email", SortOrder.DESC),
            ("email:DESC", "email", SortOrder.DESC),
            ("email:sideways", "email", SortOrder.ASC),
        ],
    )
    def test_sort_parsing(self, sort, field, order):
        request = PageRequest.from_query(FIELDS, sort=sort)

        assert request.sort_field == field
        assert request.sort_order is order

    def test_search_with_field(self):
        request = PageRequest.from_query(FIELDS, search="name:ann")

        assert request.search_field == "name"
        assert request.search_keyword == "ann"

    def test_bare_keyword_uses_default_field(self):
        request = PageRequest.from_query(FIELDS, search="example.com")

        assert request.search_field == "email"
        assert request.search_keyword == "example.com"

    def test_unknown_field_prefix_kept_for_validation(self):
        request = PageRequest.from_query(FIELDS, search="password_hash:abc")

        assert request.search_field == "password_hash"
        assert request.search_keyword == "abc"
        with pytest.raises(InvalidArgumentError) as exc_info:
            list_page([], request, FIELDS, identity)
        assert exc_info.value.field == "search"

    def test_colon_after_non_field_text_is_keyword(self):
        request = PageRequest.from_query(FIELDS, search="12:30")

        assert request.search_field == "email"
        assert request.search_keyword == "12:30"
