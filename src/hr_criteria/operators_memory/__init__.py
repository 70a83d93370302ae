"""
Built-in in-memory operators.

Usage::

    from hr_criteria.operators_memory import build_default_registry

    registry = build_default_registry()
    registry.evaluate(FilterOperator.CONTAINS, "Engineering", "eng")  # True
"""

from __future__ import annotations

from ..evaluator import MemoryOperatorRegistry
from .null import NullCheck
from .set import BetweenOperator, InSetOperator
from .standard import COMPARISONS
from .string import ContainsOperator


def build_default_registry() -> MemoryOperatorRegistry:
    """Create a fresh registry populated with every built-in operator."""
    registry = MemoryOperatorRegistry()
    registry.register_all(
        *COMPARISONS,
        BetweenOperator(),
        InSetOperator(),
        ContainsOperator(),
        NullCheck(),
        NullCheck(negate=True),
    )
    return registry


__all__ = [
    "build_default_registry",
    "MemoryOperatorRegistry",
]
