"""
SQL counterpart of :mod:`hr_criteria.evaluator`: each strategy turns one
operator into a boolean SQLAlchemy clause over a mapped column.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from ..registry import OperatorRegistry

if TYPE_CHECKING:
    from sqlalchemy import ColumnElement

    from ..operators import FilterOperator


class SQLAlchemyOperator(ABC):
    @property
    @abstractmethod
    def name(self) -> FilterOperator: ...

    @abstractmethod
    def apply(self, column: Any, value: Any) -> ColumnElement[bool]:
        """*column* is an instrumented attribute, *value* the filter operand."""


class SQLAlchemyOperatorRegistry(OperatorRegistry[SQLAlchemyOperator]):
    backend = "SQLAlchemy"

    def apply(
        self,
        name: FilterOperator,
        column: Any,
        value: Any,
    ) -> ColumnElement[bool]:
        return self.require(name).apply(column, value)
