"""Operator strategy registry shared by the in-memory and SQL backends."""

from __future__ import annotations

from typing import TYPE_CHECKING, Generic, Protocol, TypeVar

if TYPE_CHECKING:
    from .operators import FilterOperator


class _Named(Protocol):
    @property
    def name(self) -> FilterOperator: ...


S = TypeVar("S", bound=_Named)


class OperatorRegistry(Generic[S]):
    """
    Strategies keyed by the :class:`FilterOperator` they implement.

    Registering a strategy for an operator that already has one replaces
    it, which is how callers override a built-in.
    """

    backend: str = "this backend"

    def __init__(self) -> None:
        self._strategies: dict[FilterOperator, S] = {}

    def register(self, strategy: S) -> None:
        self._strategies[strategy.name] = strategy

    def register_all(self, *strategies: S) -> None:
        for strategy in strategies:
            self.register(strategy)

    def unregister(self, name: FilterOperator) -> None:
        self._strategies.pop(name, None)

    def get(self, name: FilterOperator) -> S | None:
        return self._strategies.get(name)

    def has(self, name: FilterOperator) -> bool:
        return name in self._strategies

    @property
    def supported_operators(self) -> set[FilterOperator]:
        return set(self._strategies)

    def require(self, name: FilterOperator) -> S:
        """
        Raises:
            ValueError: no strategy is registered for *name*.
        """
        strategy = self._strategies.get(name)
        if strategy is None:
            raise ValueError(f"Unsupported operator for {self.backend}: {name}")
        return strategy
