"""Tests for the predicate tree, its combinators and dict round-trip."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from hr_criteria import (
    AndPredicate,
    FieldPredicate,
    FilterOperator,
    InvalidFilterError,
    NotPredicate,
    OrPredicate,
    PredicateFactory,
    UnknownFieldError,
    match_all,
    resolve_path,
)


@pytest.fixture
def active(registry):
    return FieldPredicate("status", "equals", "ACTIVE", registry=registry)


@pytest.fixture
def rich(registry):
    return FieldPredicate("salary", ">", 60_000, registry=registry)


def test_operator_aliases():
    assert FilterOperator.parse("=") is FilterOperator.EQUALS
    assert FilterOperator.parse(">=") is FilterOperator.GREATER_EQUAL
    assert FilterOperator.parse("like") is FilterOperator.CONTAINS
    assert FilterOperator.parse(" IN ") is FilterOperator.IN_SET
    with pytest.raises(ValueError):
        FilterOperator.parse("approximately")


def test_logical_operator_is_not_a_leaf(registry):
    with pytest.raises(InvalidFilterError):
        FieldPredicate("status", "and", None, registry=registry)


def test_combinators(active, rich):
    row = {"status": "ACTIVE", "salary": 50_000}
    assert not (active & rich).matches(row)
    assert (active | rich).matches(row)
    assert (active & ~rich).matches(row)
    assert isinstance(~active, NotPredicate)


def test_and_flattens_and_drops_match_all(active, rich):
    combined = (match_all() & active) & rich
    assert isinstance(combined, AndPredicate)
    assert combined.predicates == (active, rich)
    assert (match_all() & active) is active


def test_empty_or_matches_nothing():
    assert not OrPredicate().matches({})
    assert match_all().matches({})


def test_or_containing_match_all_is_match_all(active):
    assert OrPredicate(active, match_all()).is_match_all


def test_resolve_path_mappings_and_objects():
    row = {"department": SimpleNamespace(name="Sales", parent={"id": 3})}
    assert resolve_path(row, "department.name") == "Sales"
    assert resolve_path(row, "department.parent.id") == 3
    assert resolve_path(row, "department.missing") is None
    assert resolve_path({"department": None}, "department.name") is None


def test_collection_paths_match_any_element(registry):
    row = {"breaks": [{"break_type": "LUNCH_BREAK"}, {"break_type": "COFFEE_BREAK"}]}
    assert resolve_path(row, "breaks.break_type") == ["LUNCH_BREAK", "COFFEE_BREAK"]
    predicate = FieldPredicate(
        "breaks.break_type", "equals", "COFFEE_BREAK", registry=registry
    )
    assert predicate.matches(row)
    assert not predicate.matches({"breaks": []})


def test_round_trip_through_dict(registry, active, rich):
    tree = (active & ~rich) | FieldPredicate(
        "id", "in_set", (1, 2, 3), registry=registry
    )
    data = tree.to_dict()
    rebuilt = PredicateFactory.from_dict(data, registry=registry)

    assert rebuilt.to_dict() == data
    for row in (
        {"id": 1, "status": "INACTIVE", "salary": 99_000},
        {"id": 9, "status": "ACTIVE", "salary": 10_000},
        {"id": 9, "status": "ACTIVE", "salary": 99_000},
    ):
        assert rebuilt.matches(row) == tree.matches(row)


def test_null_check_dict_has_no_value(registry):
    predicate = FieldPredicate("manager_id", "is_null", registry=registry)
    assert predicate.to_dict() == {"op": "is_null", "attr": "manager_id"}


@pytest.mark.parametrize(
    "data",
    [
        {},
        {"op": "approximately", "attr": "x"},
        {"op": "equals"},
        {"op": "or", "conditions": "nope"},
        {"op": "not", "conditions": []},
        ["not", "a", "mapping"],
    ],
)
def test_factory_rejects_malformed(registry, data):
    with pytest.raises(InvalidFilterError):
        PredicateFactory.from_dict(data, registry=registry)


def test_factory_checks_allowed_fields(registry):
    data = {"op": "and", "conditions": [{"op": "=", "attr": "ssn", "val": "x"}]}
    with pytest.raises(UnknownFieldError) as exc_info:
        PredicateFactory.from_dict(
            data, registry=registry, allowed_fields={"id", "status"}, entity="employees"
        )
    assert exc_info.value.entity == "employees"


def test_registry_rejects_unregistered_operator(registry):
    registry.unregister(FilterOperator.CONTAINS)
    predicate = FieldPredicate("name", "contains", "x", registry=registry)
    with pytest.raises(ValueError, match="Unsupported operator"):
        predicate.matches({"name": "x"})
