"""Binary comparisons: equals, not_equals, >, <, >=, <=."""

from __future__ import annotations

import operator
from typing import TYPE_CHECKING, Any

from ..evaluator import MemoryOperator
from ..operators import FilterOperator

if TYPE_CHECKING:
    from collections.abc import Callable


class Comparison(MemoryOperator):
    """
    A comparison that never matches a missing field value, the way SQL
    treats ``NULL`` (so ``not_equals`` skips rows without the field).
    """

    def __init__(
        self, name: FilterOperator, compare: Callable[[Any, Any], Any]
    ) -> None:
        self._name = name
        self._compare = compare

    @property
    def name(self) -> FilterOperator:
        return self._name

    def evaluate(self, field_value: Any, condition_value: Any) -> bool:
        if field_value is None:
            return False
        return bool(self._compare(field_value, condition_value))


COMPARISONS: tuple[Comparison, ...] = (
    Comparison(FilterOperator.EQUALS, operator.eq),
    Comparison(FilterOperator.NOT_EQUALS, operator.ne),
    Comparison(FilterOperator.GREATER_THAN, operator.gt),
    Comparison(FilterOperator.LESS_THAN, operator.lt),
    Comparison(FilterOperator.GREATER_EQUAL, operator.ge),
    Comparison(FilterOperator.LESS_EQUAL, operator.le),
)
