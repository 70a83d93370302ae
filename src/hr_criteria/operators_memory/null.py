"""is_null / is_not_null: the only operators that match a missing value."""

from __future__ import annotations

from typing import Any

from ..evaluator import MemoryOperator
from ..operators import FilterOperator


class NullCheck(MemoryOperator):
    def __init__(self, *, negate: bool = False) -> None:
        self._negate = negate

    @property
    def name(self) -> FilterOperator:
        return FilterOperator.IS_NOT_NULL if self._negate else FilterOperator.IS_NULL

    def evaluate(self, field_value: Any, _condition_value: Any) -> bool:
        return (field_value is None) != self._negate
