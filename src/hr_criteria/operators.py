from __future__ import annotations

from enum import Enum


class FilterOperator(str, Enum):
    """Comparison and logical operators understood by the query builder."""

    # Comparison
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    GREATER_EQUAL = "greater_equal"
    LESS_EQUAL = "less_equal"

    # Range / membership
    BETWEEN = "between"
    IN_SET = "in_set"

    # String
    CONTAINS = "contains"

    # Null checks
    IS_NULL = "is_null"
    IS_NOT_NULL = "is_not_null"

    # Logical
    AND = "and"
    OR = "or"
    NOT = "not"

    @classmethod
    def parse(cls, value: FilterOperator | str) -> FilterOperator:
        """Resolve an operator from its value or one of the common aliases."""
        if isinstance(value, FilterOperator):
            return value
        key = value.strip().lower()
        return cls(_ALIASES.get(key, key))

    @property
    def is_logical(self) -> bool:
        return self in _LOGICAL

    @property
    def takes_value(self) -> bool:
        return self not in _VALUELESS


_LOGICAL: frozenset[FilterOperator] = frozenset(
    {FilterOperator.AND, FilterOperator.OR, FilterOperator.NOT}
)
_VALUELESS: frozenset[FilterOperator] = frozenset(
    {FilterOperator.IS_NULL, FilterOperator.IS_NOT_NULL}
)

# Map common spellings to FilterOperator values
_ALIASES: dict[str, str] = {
    "=": "equals",
    "==": "equals",
    "eq": "equals",
    "!=": "not_equals",
    "ne": "not_equals",
    ">": "greater_than",
    "gt": "greater_than",
    "<": "less_than",
    "lt": "less_than",
    ">=": "greater_equal",
    "gte": "greater_equal",
    "<=": "less_equal",
    "lte": "less_equal",
    "in": "in_set",
    "icontains": "contains",
    "like": "contains",
    "null": "is_null",
    "not_null": "is_not_null",
}
