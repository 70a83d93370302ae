"""
FilterField: one optional, typed filter unit.

A field whose ``value`` is ``None`` is *not applied*: the builder leaves
it out of the predicate instead of comparing against NULL.  This is the
explicit form of the ``(:param IS NULL OR field = :param)`` idiom, so a
search form can pass every criterion through unconditionally.

``is_null`` / ``is_not_null`` carry no value and are always applied.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .operators import FilterOperator

if TYPE_CHECKING:
    from collections.abc import Iterable


@dataclass(frozen=True)
class FilterField:
    """
    Attributes:
        path: Dot-separated field path (``department.id``).
        op: Comparison operator.
        value: Operand; a ``(low, high)`` pair for ``between``, a finite
            collection for ``in_set``, unused for null checks.
    """

    path: str
    op: FilterOperator = FilterOperator.EQUALS
    value: Any = None

    def __post_init__(self) -> None:
        if not isinstance(self.op, FilterOperator):
            object.__setattr__(self, "op", FilterOperator.parse(self.op))

    @property
    def is_applied(self) -> bool:
        """False when the caller left this criterion empty."""
        if not self.op.takes_value:
            return True
        return self.value is not None

    # -- helper constructors -------------------------------------------------

    @classmethod
    def equals(cls, path: str, value: Any) -> FilterField:
        return cls(path, FilterOperator.EQUALS, value)

    @classmethod
    def not_equals(cls, path: str, value: Any) -> FilterField:
        return cls(path, FilterOperator.NOT_EQUALS, value)

    @classmethod
    def contains(cls, path: str, value: str | None) -> FilterField:
        # Blank search text is treated as "not supplied"
        if isinstance(value, str) and not value.strip():
            value = None
        return cls(path, FilterOperator.CONTAINS, value)

    @classmethod
    def greater_than(cls, path: str, value: Any) -> FilterField:
        return cls(path, FilterOperator.GREATER_THAN, value)

    @classmethod
    def less_than(cls, path: str, value: Any) -> FilterField:
        return cls(path, FilterOperator.LESS_THAN, value)

    @classmethod
    def at_least(cls, path: str, value: Any) -> FilterField:
        return cls(path, FilterOperator.GREATER_EQUAL, value)

    @classmethod
    def at_most(cls, path: str, value: Any) -> FilterField:
        return cls(path, FilterOperator.LESS_EQUAL, value)

    @classmethod
    def between(cls, path: str, low: Any, high: Any) -> FilterField:
        """
        Inclusive range.  Both bounds missing means "not applied"; a
        single missing bound degrades to an open-ended comparison.
        """
        if low is None and high is None:
            return cls(path, FilterOperator.BETWEEN, None)
        if high is None:
            return cls.at_least(path, low)
        if low is None:
            return cls.at_most(path, high)
        return cls(path, FilterOperator.BETWEEN, (low, high))

    @classmethod
    def in_set(cls, path: str, values: Iterable[Any] | None) -> FilterField:
        if values is None:
            return cls(path, FilterOperator.IN_SET, None)
        if isinstance(values, str | bytes):
            # Validated (and rejected) by the builder
            return cls(path, FilterOperator.IN_SET, values)
        return cls(path, FilterOperator.IN_SET, tuple(values))

    @classmethod
    def is_null(cls, path: str) -> FilterField:
        return cls(path, FilterOperator.IS_NULL)

    @classmethod
    def is_not_null(cls, path: str) -> FilterField:
        return cls(path, FilterOperator.IS_NOT_NULL)
