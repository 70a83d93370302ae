"""Built-in SQL operators and the shared default registry."""

from __future__ import annotations

import operator
from typing import TYPE_CHECKING, Any, cast

from ..operators import FilterOperator
from .strategy import SQLAlchemyOperator, SQLAlchemyOperatorRegistry

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy.sql.elements import ColumnElement


class ColumnComparison(SQLAlchemyOperator):
    """
    Applies a Python comparison to the column. SQLAlchemy overloads the
    operators, so ``operator.ne(col, v)`` renders ``col != :v`` and, like
    the in-memory evaluator, never matches ``NULL``.
    """

    def __init__(
        self, name: FilterOperator, compare: Callable[[Any, Any], Any]
    ) -> None:
        self._name = name
        self._compare = compare

    @property
    def name(self) -> FilterOperator:
        return self._name

    def apply(self, column: Any, value: Any) -> ColumnElement[bool]:
        return cast("ColumnElement[bool]", self._compare(column, value))


class BetweenOperator(SQLAlchemyOperator):
    name = FilterOperator.BETWEEN

    def apply(self, column: Any, value: Any) -> ColumnElement[bool]:
        low, high = value
        return cast("ColumnElement[bool]", column.between(low, high))


class InSetOperator(SQLAlchemyOperator):
    name = FilterOperator.IN_SET

    def apply(self, column: Any, value: Any) -> ColumnElement[bool]:
        return cast("ColumnElement[bool]", column.in_(list(value)))


class ContainsOperator(SQLAlchemyOperator):
    """Renders ``lower(col) LIKE '%' || lower(:v) || '%'``, wildcards escaped."""

    name = FilterOperator.CONTAINS

    def apply(self, column: Any, value: Any) -> ColumnElement[bool]:
        return cast(
            "ColumnElement[bool]", column.icontains(str(value), autoescape=True)
        )


class NullCheck(SQLAlchemyOperator):
    def __init__(self, *, negate: bool = False) -> None:
        self._negate = negate

    @property
    def name(self) -> FilterOperator:
        return FilterOperator.IS_NOT_NULL if self._negate else FilterOperator.IS_NULL

    def apply(self, column: Any, _value: Any) -> ColumnElement[bool]:
        clause = column.is_not(None) if self._negate else column.is_(None)
        return cast("ColumnElement[bool]", clause)


def build_default_sqla_registry() -> SQLAlchemyOperatorRegistry:
    """Create a fresh registry with every built-in SQL operator."""
    registry = SQLAlchemyOperatorRegistry()
    registry.register_all(
        ColumnComparison(FilterOperator.EQUALS, operator.eq),
        ColumnComparison(FilterOperator.NOT_EQUALS, operator.ne),
        ColumnComparison(FilterOperator.GREATER_THAN, operator.gt),
        ColumnComparison(FilterOperator.LESS_THAN, operator.lt),
        ColumnComparison(FilterOperator.GREATER_EQUAL, operator.ge),
        ColumnComparison(FilterOperator.LESS_EQUAL, operator.le),
        BetweenOperator(),
        InSetOperator(),
        ContainsOperator(),
        NullCheck(),
        NullCheck(negate=True),
    )
    return registry


DEFAULT_SQLA_REGISTRY: SQLAlchemyOperatorRegistry = build_default_sqla_registry()
