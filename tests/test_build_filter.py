"""Tests for CriteriaQueryBuilder.build_filter."""

from __future__ import annotations

from datetime import date

import pytest

from hr_criteria import (
    AndPredicate,
    CriteriaQueryBuilder,
    FilterField,
    FilterOperator,
    InvalidFilterError,
    OrPredicate,
    QueryTarget,
    UnknownFieldError,
)

from conftest import EMPLOYEE_FIELDS, RecordingStore

# -- omitted criteria --------------------------------------------------------


def test_no_fields_is_match_all(builder, target, employees):
    predicate = builder.build_filter(target, [])
    assert predicate.is_match_all
    assert all(predicate.matches(row) for row in employees)


def test_all_null_fields_is_match_all(builder, target, employees):
    predicate = builder.build_filter(
        target,
        [
            FilterField.equals("status", None),
            FilterField.contains("last_name", None),
            FilterField.between("salary", None, None),
            FilterField.in_set("department.id", None),
            FilterField.greater_than("salary", None),
        ],
    )
    assert predicate.is_match_all
    assert predicate.to_dict() == {"op": "and", "conditions": []}
    assert sum(predicate.matches(row) for row in employees) == len(employees)


def test_blank_contains_is_not_applied():
    assert not FilterField.contains("last_name", "   ").is_applied


def test_null_checks_are_always_applied(builder, target, employees):
    predicate = builder.build_filter(target, [FilterField.is_null("manager_id")])
    assert [row["id"] for row in employees if predicate.matches(row)] == [1]

    predicate = builder.build_filter(target, [FilterField.is_not_null("manager_id")])
    assert sum(predicate.matches(row) for row in employees) == len(employees) - 1


def test_single_field_is_not_wrapped(builder, target):
    predicate = builder.build_filter(
        target,
        [FilterField.equals("status", "ACTIVE"), FilterField.equals("email", None)],
    )
    assert not isinstance(predicate, AndPredicate)
    assert predicate.to_dict() == {"op": "equals", "attr": "status", "val": "ACTIVE"}


def test_fields_are_conjunctive(builder, target, employees):
    predicate = builder.build_filter(
        target,
        [
            FilterField.equals("status", "ACTIVE"),
            FilterField.equals("department.name", "Engineering"),
            FilterField.equals("last_name", "Smith"),
        ],
    )
    ids = [row["id"] for row in employees if predicate.matches(row)]
    # even (ACTIVE), even → department index 0, multiple of 3 → Smith
    assert ids == [6, 12, 18, 24, 30]


# -- comparison operators ----------------------------------------------------


def test_equals_and_not_equals(builder, target, employees):
    eq = builder.build_filter(target, [FilterField.equals("department.id", 2)])
    ne = builder.build_filter(target, [FilterField.not_equals("department.id", 2)])
    for row in employees:
        assert eq.matches(row) != ne.matches(row)


def test_not_equals_does_not_match_missing_value(builder, target):
    predicate = builder.build_filter(target, [FilterField.not_equals("manager_id", 5)])
    assert predicate.matches({"manager_id": 1})
    assert not predicate.matches({"manager_id": None})


def test_contains_is_case_insensitive(builder, target, employees):
    predicate = builder.build_filter(target, [FilterField.contains("last_name", "SMI")])
    matched = [row for row in employees if predicate.matches(row)]
    assert matched
    assert all(row["last_name"] == "Smith" for row in matched)

    lower = builder.build_filter(target, [FilterField.contains("last_name", "smi")])
    assert [r for r in employees if lower.matches(r)] == matched


def test_contains_requires_a_string(builder, target):
    with pytest.raises(InvalidFilterError):
        builder.build_filter(target, [FilterField("last_name", "contains", 42)])


def test_open_ended_bounds(builder, target):
    predicate = builder.build_filter(
        target,
        [
            FilterField.at_least("salary", 50_000),
            FilterField.less_than("salary", 52_000),
        ],
    )
    assert predicate.matches({"salary": 50_000})
    assert predicate.matches({"salary": 51_999})
    assert not predicate.matches({"salary": 52_000})
    assert not predicate.matches({"salary": None})


# -- between -----------------------------------------------------------------


@pytest.mark.parametrize(
    ("low", "high"),
    [(45_000, 50_000), (41_000, 41_000), (0, 100_000)],
)
def test_between_is_inclusive(builder, target, employees, low, high):
    predicate = builder.build_filter(target, [FilterField.between("salary", low, high)])
    for row in employees:
        assert predicate.matches(row) == (low <= row["salary"] <= high)


def test_between_inverted_range_raises(builder, target):
    with pytest.raises(InvalidFilterError) as exc_info:
        builder.build_filter(target, [FilterField.between("salary", 50_000, 40_000)])
    assert exc_info.value.path == "salary"


def test_between_dates():
    store = RecordingStore({"id", "hire_date"})
    builder = CriteriaQueryBuilder(store)
    target = builder.target("employees")
    predicate = builder.build_filter(
        target,
        [FilterField.between("hire_date", date(2024, 1, 1), date(2024, 12, 31))],
    )
    assert predicate.matches({"hire_date": date(2024, 1, 1)})
    assert predicate.matches({"hire_date": date(2024, 12, 31)})
    assert not predicate.matches({"hire_date": date(2025, 1, 1)})


def test_between_with_one_bound_degrades_to_comparison():
    field = FilterField.between("salary", 50_000, None)
    assert field.op is FilterOperator.GREATER_EQUAL
    field = FilterField.between("salary", None, 50_000)
    assert field.op is FilterOperator.LESS_EQUAL


@pytest.mark.parametrize("value", [(1,), (1, 2, 3), "ab", 5])
def test_between_malformed_pair_raises(builder, target, value):
    with pytest.raises(InvalidFilterError):
        builder.build_filter(target, [FilterField("salary", "between", value)])


def test_between_incomparable_bounds_raise(builder, target):
    with pytest.raises(InvalidFilterError):
        builder.build_filter(target, [FilterField.between("salary", 1, "x")])


# -- in_set ------------------------------------------------------------------


def test_in_set_matches_exactly_the_set(builder, target, employees):
    wanted = {3, 7, 11}
    predicate = builder.build_filter(target, [FilterField.in_set("id", wanted)])
    assert {row["id"] for row in employees if predicate.matches(row)} == wanted


def test_in_set_empty_raises(builder, target):
    with pytest.raises(InvalidFilterError, match="at least one value"):
        builder.build_filter(target, [FilterField.in_set("id", [])])


def test_in_set_rejects_string(builder, target):
    with pytest.raises(InvalidFilterError):
        builder.build_filter(target, [FilterField.in_set("status", "ACTIVE")])


def test_in_set_accepts_generators(builder, target, employees):
    predicate = builder.build_filter(
        target, [FilterField.in_set("id", (i for i in range(1, 4)))]
    )
    assert sum(predicate.matches(row) for row in employees) == 3


# -- unknown fields ----------------------------------------------------------


def test_unknown_field_raises_before_store_access():
    store = RecordingStore(EMPLOYEE_FIELDS)
    builder = CriteriaQueryBuilder(store)
    target = builder.target("employees")

    with pytest.raises(UnknownFieldError) as exc_info:
        builder.search(target, [FilterField.equals("nonexistent.path", 1)])

    assert exc_info.value.path == "nonexistent.path"
    assert not store.queried


def test_unknown_field_raises_even_when_value_is_null(builder, target):
    with pytest.raises(UnknownFieldError):
        builder.build_filter(target, [FilterField.equals("nonexistent", None)])


def test_unknown_field_suggests_close_matches(builder, target):
    with pytest.raises(UnknownFieldError) as exc_info:
        builder.build_filter(target, [FilterField.equals("departmnt.name", "x")])
    assert "department.name" in exc_info.value.suggestions


def test_invalid_filter_raises_before_store_access():
    store = RecordingStore(EMPLOYEE_FIELDS)
    builder = CriteriaQueryBuilder(store)
    target = builder.target("employees")

    with pytest.raises(InvalidFilterError):
        builder.search(target, [FilterField.in_set("id", [])])
    assert not store.queried


# -- text search -------------------------------------------------------------


def test_text_search_ors_across_fields(builder, target, employees):
    predicate = builder.text_search(target, ["first_name", "email"], "name07")
    assert isinstance(predicate, OrPredicate)
    assert [row["id"] for row in employees if predicate.matches(row)] == [7]

    by_email = builder.text_search(target, ["first_name", "email"], "USER12@")
    assert [row["id"] for row in employees if by_email.matches(row)] == [12]


@pytest.mark.parametrize("term", [None, "", "   "])
def test_blank_text_search_matches_all(builder, target, term):
    assert builder.text_search(target, ["first_name"], term).is_match_all


def test_text_search_validates_paths(builder, target):
    with pytest.raises(UnknownFieldError):
        builder.text_search(target, ["nickname"], "x")


def test_target_requires_primary_key():
    with pytest.raises(UnknownFieldError):
        QueryTarget.of("things", {"name"})
