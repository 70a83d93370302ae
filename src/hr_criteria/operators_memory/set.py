"""Inclusive ranges and set membership."""

from __future__ import annotations

from typing import Any

from ..evaluator import MemoryOperator
from ..operators import FilterOperator


class BetweenOperator(MemoryOperator):
    name = FilterOperator.BETWEEN

    def evaluate(self, field_value: Any, condition_value: Any) -> bool:
        if field_value is None:
            return False
        low, high = condition_value
        return bool(low <= field_value <= high)


class InSetOperator(MemoryOperator):
    name = FilterOperator.IN_SET

    def evaluate(self, field_value: Any, condition_value: Any) -> bool:
        return field_value is not None and field_value in condition_value
