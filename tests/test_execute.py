"""Tests for paginate_and_sort / execute and the convenience wrappers."""

from __future__ import annotations

import time
from typing import Any

import pytest

from hr_criteria import (
    BuilderConfig,
    CriteriaQueryBuilder,
    FilterField,
    InMemoryStore,
    InvalidPageRequestError,
    PageRequest,
    QueryTimeoutError,
    SortOrder,
    SortSpec,
    StoreExecutionError,
    UnknownFieldError,
)

from conftest import EMPLOYEE_FIELDS, RecordingStore, make_employees

# salaries 41_000 .. 63_000 → ids 1..23
TWENTY_THREE = [FilterField.between("salary", 41_000, 63_000)]


def _query(builder, target, page: int, size: int = 10, sort: str = "last_name"):
    predicate = builder.build_filter(target, TWENTY_THREE)
    return builder.paginate_and_sort(
        predicate, SortSpec.parse(sort), PageRequest(page, size), target=target
    )


def test_count_and_window_share_the_predicate(builder, target):
    pages = [builder.execute(_query(builder, target, p)) for p in range(3)]

    assert [len(p.items) for p in pages] == [10, 10, 3]
    assert {p.total for p in pages} == {23}
    assert {p.total_pages for p in pages} == {3}


def test_pages_partition_the_result_without_gaps(builder, target):
    seen: list[int] = []
    for p in range(3):
        seen.extend(row["id"] for row in builder.execute(_query(builder, target, p)))

    assert len(seen) == len(set(seen)) == 23
    assert set(seen) == set(range(1, 24))


def test_pagination_is_repeatable(builder, target):
    first = [builder.execute(_query(builder, target, p)).items for p in range(3)]
    second = [builder.execute(_query(builder, target, p)).items for p in range(3)]
    assert first == second


def test_primary_key_breaks_ties(builder, target):
    query = _query(builder, target, 0)
    assert query.sort == (SortOrder.asc("last_name"), SortOrder.asc("id"))

    rows = builder.execute(query).items
    jones = [row["id"] for row in rows if row["last_name"] == "Jones"]
    assert jones == sorted(jones)


def test_primary_key_not_duplicated(builder, target):
    query = _query(builder, target, 0, sort="-id")
    assert query.sort == (SortOrder.desc("id"),)
    assert [row["id"] for row in builder.execute(query)] == list(range(23, 13, -1))


def test_tie_break_can_be_disabled(memory_store):
    builder = CriteriaQueryBuilder(
        memory_store, config=BuilderConfig(tie_break_on_primary_key=False)
    )
    target = builder.target("employees")
    query = builder.paginate_and_sort(
        builder.build_filter(target, []), None, PageRequest(0, 5), target=target
    )
    assert query.sort == ()


def test_sort_falls_back_to_page_request(builder, target):
    page = PageRequest.of(0, 5, "-salary")
    query = builder.paginate_and_sort(
        builder.build_filter(target, []), None, page, target=target
    )
    assert query.sort[0] == SortOrder.desc("salary")
    assert builder.execute(query).items[0]["id"] == 30


def test_unknown_sort_field_raises(builder, target):
    with pytest.raises(UnknownFieldError):
        _query(builder, target, 0, sort="nickname")


def test_unsortable_field_raises(memory_store):
    builder = CriteriaQueryBuilder(memory_store)
    target = builder.target("employees", sortable={"id", "last_name"})
    with pytest.raises(InvalidPageRequestError):
        _query(builder, target, 0, sort="salary")


def test_empty_result_is_not_an_error(builder, target):
    result = builder.search(target, [FilterField.equals("last_name", "Nobody")])
    assert result.items == []
    assert result.total == 0
    assert result.total_pages == 0


def test_page_past_the_end_skips_select():
    store = RecordingStore(EMPLOYEE_FIELDS, make_employees(23))
    builder = CriteriaQueryBuilder(store)
    target = builder.target("employees")

    result = builder.search(target, [], PageRequest(5, 10))

    assert result.items == []
    assert result.total == 23
    assert [name for name, _ in store.calls] == ["describe_schema", "run_count"]


def test_count_and_select_receive_same_predicate():
    store = RecordingStore(EMPLOYEE_FIELDS, make_employees(23))
    builder = CriteriaQueryBuilder(store)
    target = builder.target("employees")

    builder.search(target, [FilterField.equals("status", "ACTIVE")])

    predicates = [pred for name, pred in store.calls if name.startswith("run_")]
    assert len(predicates) == 2
    assert predicates[0] is predicates[1]


def test_search_uses_default_page_size(memory_store):
    builder = CriteriaQueryBuilder(
        memory_store, config=BuilderConfig(default_page_size=7)
    )
    result = builder.search(builder.target("employees"), [])
    assert result.size == 7
    assert len(result.items) == 7
    assert result.total == 30


def test_count_and_exists(builder, target):
    assert builder.count(target) == 30
    assert builder.count(target, [FilterField.equals("status", "ACTIVE")]) == 15
    assert builder.exists(target, [FilterField.equals("id", 30)])
    assert not builder.exists(target, [FilterField.equals("id", 31)])


def test_stream_yields_every_row_in_order(builder, target):
    rows = list(
        builder.stream(
            target,
            [FilterField.equals("status", "ACTIVE")],
            sort=SortSpec.parse("-id"),
            batch_size=4,
        )
    )
    assert [row["id"] for row in rows] == list(range(30, 0, -2))


# -- failures ----------------------------------------------------------------


class SlowStore(InMemoryStore):
    def run_count(self, entity: str, predicate: Any, *, deadline: Any = None) -> int:
        total = super().run_count(entity, predicate, deadline=deadline)
        time.sleep(0.05)
        return total


def test_deadline_exceeded_raises_timeout_error(employees):
    store = SlowStore()
    store.add_table("employees", employees)
    builder = CriteriaQueryBuilder(store)
    target = builder.target("employees")

    with pytest.raises(TimeoutError) as exc_info:
        builder.search(target, [], timeout=0.01)

    assert isinstance(exc_info.value, QueryTimeoutError)
    assert exc_info.value.stage == "select"


def test_default_timeout_from_config(employees):
    store = SlowStore()
    store.add_table("employees", employees)
    builder = CriteriaQueryBuilder(store, config=BuilderConfig(default_timeout=0.01))

    with pytest.raises(QueryTimeoutError):
        builder.search(builder.target("employees"), [])


def test_generous_deadline_succeeds(builder, target):
    assert builder.search(target, [], timeout=30).total == 30


def test_non_positive_timeout_rejected(builder, target):
    with pytest.raises(ValueError):
        builder.search(target, [], timeout=0)


def test_store_failure_is_surfaced_unchanged():
    error = RuntimeError("connection reset")
    store = RecordingStore(EMPLOYEE_FIELDS, error=error)
    builder = CriteriaQueryBuilder(store)
    target = builder.target("employees")

    with pytest.raises(RuntimeError) as exc_info:
        builder.search(target, [])

    assert exc_info.value is error
    # not retried
    assert [name for name, _ in store.calls].count("run_count") == 1


def test_memory_store_wraps_evaluation_errors():
    store = InMemoryStore()
    store.add_table("mixed", [{"id": 1, "v": 1}, {"id": 2, "v": "a"}])
    builder = CriteriaQueryBuilder(store)
    target = builder.target("mixed")

    with pytest.raises(StoreExecutionError) as exc_info:
        builder.search(target, [FilterField.greater_than("v", 0)])
    assert exc_info.value.stage == "count"
    assert isinstance(exc_info.value.__cause__, TypeError)


def test_unknown_entity_is_a_store_error(builder):
    with pytest.raises(StoreExecutionError):
        builder.target("payroll")
