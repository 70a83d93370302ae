"""
Tabular store port and the in-memory implementation.

The query builder needs exactly three things from persistence: the set
of field paths an entity exposes, an exact count for a predicate, and
one sorted page window for the same predicate.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from .exceptions import QueryTimeoutError, StoreExecutionError
from .predicates import resolve_path

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from .pagination import SortOrder
    from .predicates import Predicate

logger = logging.getLogger("hr_criteria.store")


@runtime_checkable
class TabularStore(Protocol):
    """Minimal read interface the criteria builder executes against."""

    def describe_schema(self, entity: str) -> set[str]:
        """Return every field path that may be filtered or sorted on."""
        ...

    def run_count(
        self,
        entity: str,
        predicate: Predicate,
        *,
        deadline: float | None = None,
    ) -> int:
        """Count rows of *entity* matching *predicate*."""
        ...

    def run_select(
        self,
        entity: str,
        predicate: Predicate,
        sort: Sequence[SortOrder],
        offset: int,
        limit: int,
        *,
        deadline: float | None = None,
    ) -> list[Any]:
        """Return the sorted ``[offset, offset + limit)`` window."""
        ...


def check_deadline(deadline: float | None, entity: str, stage: str) -> None:
    """Raise :class:`QueryTimeoutError` if the monotonic *deadline* passed."""
    if deadline is not None and time.monotonic() >= deadline:
        logger.warning("Deadline exceeded on %s during %s", entity, stage)
        raise QueryTimeoutError(entity, stage)


def remaining_seconds(deadline: float | None) -> float | None:
    if deadline is None:
        return None
    return max(0.0, deadline - time.monotonic())


class InMemoryStore:
    """
    Store over Python rows (mappings or plain objects).

    Dot-separated paths resolve through nested mappings and attributes.
    Sorting is stable and multi-key, with ``None`` ordered before any
    value when ascending (after when descending).
    """

    def __init__(self) -> None:
        self._tables: dict[str, list[Any]] = {}
        self._schemas: dict[str, set[str]] = {}

    def add_table(
        self,
        entity: str,
        rows: Iterable[Any],
        *,
        fields: Iterable[str] | None = None,
    ) -> None:
        """
        Register *rows* under *entity*.

        Without explicit *fields* the schema is inferred from the keys of
        mapping rows, nested mappings contributing dotted paths.
        """
        data = list(rows)
        self._tables[entity] = data
        self._schemas[entity] = (
            set(fields) if fields is not None else _infer_fields(data)
        )

    def insert(self, entity: str, row: Any) -> None:
        self._table(entity).append(row)

    def describe_schema(self, entity: str) -> set[str]:
        self._table(entity)
        return set(self._schemas[entity])

    def run_count(
        self,
        entity: str,
        predicate: Predicate,
        *,
        deadline: float | None = None,
    ) -> int:
        check_deadline(deadline, entity, "count")
        rows = self._table(entity)
        try:
            return sum(1 for row in rows if predicate.matches(row))
        except (TypeError, ValueError) as exc:
            raise StoreExecutionError(entity, "count", exc) from exc

    def run_select(
        self,
        entity: str,
        predicate: Predicate,
        sort: Sequence[SortOrder],
        offset: int,
        limit: int,
        *,
        deadline: float | None = None,
    ) -> list[Any]:
        check_deadline(deadline, entity, "select")
        rows = self._table(entity)
        try:
            matched = [row for row in rows if predicate.matches(row)]
            # Successive stable sorts, least significant key first
            for order in reversed(list(sort)):
                matched.sort(
                    key=lambda row, path=order.path: _sort_key(resolve_path(row, path)),
                    reverse=order.descending,
                )
        except (TypeError, ValueError) as exc:
            raise StoreExecutionError(entity, "select", exc) from exc
        check_deadline(deadline, entity, "select")
        return matched[offset : offset + limit]

    def _table(self, entity: str) -> list[Any]:
        try:
            return self._tables[entity]
        except KeyError:
            raise StoreExecutionError(
                entity, "lookup", KeyError(f"no table registered as '{entity}'")
            ) from None


def _sort_key(value: Any) -> tuple[bool, Any]:
    return (value is not None, value if value is not None else 0)


def _infer_fields(rows: Iterable[Any], prefix: str = "") -> set[str]:
    fields: set[str] = set()
    for row in rows:
        if not isinstance(row, Mapping):
            continue
        for key, value in row.items():
            path = f"{prefix}{key}"
            fields.add(path)
            if isinstance(value, Mapping):
                fields |= _infer_fields([value], prefix=f"{path}.")
    return fields
