"""
In-memory evaluation strategies.

A :class:`MemoryOperator` decides one operator for a value already
resolved from the row; :class:`MemoryOperatorRegistry` picks the
strategy for each predicate leaf.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from .registry import OperatorRegistry

if TYPE_CHECKING:
    from .operators import FilterOperator


class MemoryOperator(ABC):
    @property
    @abstractmethod
    def name(self) -> FilterOperator: ...

    @abstractmethod
    def evaluate(self, field_value: Any, condition_value: Any) -> bool:
        """*field_value* comes from the row, *condition_value* from the filter."""


class MemoryOperatorRegistry(OperatorRegistry[MemoryOperator]):
    """
    Usage::

        registry = build_default_registry()
        registry.evaluate(FilterOperator.GREATER_THAN, row_salary, 50_000)
    """

    backend = "in-memory evaluation"

    def evaluate(
        self,
        name: FilterOperator,
        field_value: Any,
        condition_value: Any,
    ) -> bool:
        return self.require(name).evaluate(field_value, condition_value)
