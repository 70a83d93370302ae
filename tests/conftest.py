"""Shared fixtures for the criteria builder tests."""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from hr_criteria import CriteriaQueryBuilder, InMemoryStore
from hr_criteria.hr import Base, DepartmentModel, EmployeeModel, EmployeeStatus
from hr_criteria.operators_memory import build_default_registry
from hr_criteria.sqlalchemy import setup_sqlite_engine

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy.orm import Session

EMPLOYEE_FIELDS = {
    "id",
    "first_name",
    "last_name",
    "email",
    "salary",
    "status",
    "manager_id",
    "department.id",
    "department.name",
}


class RecordingStore:
    """Store stub that records every call and serves canned results."""

    def __init__(
        self,
        fields: set[str],
        rows: list[Any] | None = None,
        *,
        error: BaseException | None = None,
    ) -> None:
        self.fields = fields
        self.rows = rows or []
        self.error = error
        self.calls: list[tuple[str, Any]] = []

    @property
    def queried(self) -> bool:
        return any(name != "describe_schema" for name, _ in self.calls)

    def describe_schema(self, entity: str) -> set[str]:
        self.calls.append(("describe_schema", entity))
        return set(self.fields)

    def run_count(self, entity: str, predicate: Any, *, deadline: Any = None) -> int:
        self.calls.append(("run_count", predicate))
        if self.error is not None:
            raise self.error
        return sum(1 for row in self.rows if predicate.matches(row))

    def run_select(
        self,
        entity: str,
        predicate: Any,
        sort: Any,
        offset: int,
        limit: int,
        *,
        deadline: Any = None,
    ) -> list[Any]:
        self.calls.append(("run_select", predicate))
        if self.error is not None:
            raise self.error
        matched = [row for row in self.rows if predicate.matches(row)]
        return matched[offset : offset + limit]


def make_employees(count: int) -> list[dict[str, Any]]:
    """Rows with predictable values: even ids ACTIVE, salaries 1000 apart."""
    departments = [{"id": 1, "name": "Engineering"}, {"id": 2, "name": "Sales"}]
    return [
        {
            "id": i,
            "first_name": f"Name{i:02d}",
            "last_name": "Smith" if i % 3 == 0 else "Jones",
            "email": f"user{i}@example.com",
            "salary": 40_000 + i * 1_000,
            "status": "ACTIVE" if i % 2 == 0 else "INACTIVE",
            "manager_id": None if i == 1 else 1,
            "department": departments[i % 2],
        }
        for i in range(1, count + 1)
    ]


@pytest.fixture
def registry():
    """Default in-memory operator registry."""
    return build_default_registry()


@pytest.fixture
def employees() -> list[dict[str, Any]]:
    return make_employees(30)


@pytest.fixture
def memory_store(employees: list[dict[str, Any]]) -> InMemoryStore:
    store = InMemoryStore()
    store.add_table("employees", employees)
    return store


@pytest.fixture
def builder(memory_store: InMemoryStore) -> CriteriaQueryBuilder:
    return CriteriaQueryBuilder(memory_store)


@pytest.fixture
def target(builder: CriteriaQueryBuilder):
    return builder.target("employees")


@pytest.fixture
def recording_store(employees: list[dict[str, Any]]) -> RecordingStore:
    return RecordingStore(EMPLOYEE_FIELDS, employees)


# -- SQLite ------------------------------------------------------------------


@pytest.fixture
def session_factory() -> Iterator[sessionmaker[Session]]:
    """In-memory SQLite with the HR tables; one connection per thread."""
    engine = create_engine("sqlite://")
    setup_sqlite_engine(engine)
    Base.metadata.create_all(engine)
    yield sessionmaker(engine)
    engine.dispose()


def seed_employees(
    factory: sessionmaker[Session], rows: list[dict[str, Any]]
) -> None:
    """Persist ``make_employees`` rows as departments and employees."""
    departments = {row["department"]["id"]: row["department"] for row in rows}
    with factory() as session:
        session.add_all(
            DepartmentModel(id=d["id"], department_code=f"D{d['id']}", name=d["name"])
            for d in departments.values()
        )
        session.add_all(
            EmployeeModel(
                id=row["id"],
                employee_id=f"E{row['id']:03d}",
                first_name=row["first_name"],
                last_name=row["last_name"],
                email=row["email"],
                salary=Decimal(row["salary"]),
                status=EmployeeStatus(row["status"]),
                manager_id=row["manager_id"],
                department_id=row["department"]["id"],
            )
            for row in rows
        )
        session.commit()
