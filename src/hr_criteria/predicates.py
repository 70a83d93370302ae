"""
Predicate tree.

A predicate is a boolean condition over stored rows.  Leaves compare one
field path against a value; ``AndPredicate`` / ``OrPredicate`` /
``NotPredicate`` compose them.  An ``AndPredicate`` with no children is
the match-all predicate (the conjunction identity).

Every node evaluates in memory via ``matches(row)`` and serialises to a
JSON-compatible dict via ``to_dict()``; the SQLAlchemy compiler consumes
that dict, so both backends share one tree.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from .exceptions import InvalidFilterError, UnknownFieldError
from .operators import FilterOperator

if TYPE_CHECKING:
    from collections.abc import Collection

    from .evaluator import MemoryOperatorRegistry


class Predicate(ABC):
    """Base class for predicates with logical operator support."""

    @abstractmethod
    def matches(self, row: Any) -> bool:
        """Return True if *row* satisfies this predicate."""
        ...

    @abstractmethod
    def to_dict(self) -> dict[str, Any]:
        ...

    @property
    def is_match_all(self) -> bool:
        return False

    def __and__(self, other: Predicate) -> Predicate:
        return AndPredicate(self, other).simplify()

    def __or__(self, other: Predicate) -> Predicate:
        return OrPredicate(self, other)

    def __invert__(self) -> NotPredicate:
        return NotPredicate(self)


class FieldPredicate(Predicate):
    """
    Predicate that checks a single field value.

    Delegates in-memory evaluation to a :class:`MemoryOperatorRegistry`,
    which must be passed in explicitly.
    """

    def __init__(
        self,
        path: str,
        op: FilterOperator | str,
        value: Any = None,
        *,
        registry: MemoryOperatorRegistry,
    ) -> None:
        self.path = path
        self.op = FilterOperator.parse(op)
        if self.op.is_logical:
            raise InvalidFilterError(f"'{self.op.value}' is not a field operator", path)
        self.value = value
        if registry is None:
            raise ValueError(
                "registry parameter is required. "
                "Use build_default_registry() from operators_memory to create one."
            )
        self._registry = registry

    def matches(self, row: Any) -> bool:
        actual = resolve_path(row, self.path)
        if isinstance(actual, list):
            # Collection traversal: any element satisfying the leaf is enough
            return any(
                self._registry.evaluate(self.op, item, self.value) for item in actual
            )
        return self._registry.evaluate(self.op, actual, self.value)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"op": self.op.value, "attr": self.path}
        if self.op.takes_value:
            value = self.value
            data["val"] = list(value) if isinstance(value, tuple | frozenset) else value
        return data

    def __repr__(self) -> str:
        return f"FieldPredicate({self.path!r}, {self.op.value!r}, {self.value!r})"


class AndPredicate(Predicate):
    """Logical AND.  No children means "match every row"."""

    def __init__(self, *predicates: Predicate) -> None:
        self.predicates = predicates

    @property
    def is_match_all(self) -> bool:
        return all(p.is_match_all for p in self.predicates)

    def matches(self, row: Any) -> bool:
        return all(p.matches(row) for p in self.predicates)

    def simplify(self) -> Predicate:
        """Drop match-all children and flatten nested ANDs."""
        flat: list[Predicate] = []
        for p in self.predicates:
            if p.is_match_all:
                continue
            if isinstance(p, AndPredicate):
                flat.extend(p.predicates)
            else:
                flat.append(p)
        if len(flat) == 1:
            return flat[0]
        return AndPredicate(*flat)

    def to_dict(self) -> dict[str, Any]:
        return {
            "op": "and",
            "conditions": [p.to_dict() for p in self.predicates],
        }

    def __repr__(self) -> str:
        return f"AndPredicate{self.predicates!r}"


class OrPredicate(Predicate):
    """Logical OR.  No children matches nothing."""

    def __init__(self, *predicates: Predicate) -> None:
        self.predicates = predicates

    @property
    def is_match_all(self) -> bool:
        return any(p.is_match_all for p in self.predicates)

    def matches(self, row: Any) -> bool:
        return any(p.matches(row) for p in self.predicates)

    def to_dict(self) -> dict[str, Any]:
        return {
            "op": "or",
            "conditions": [p.to_dict() for p in self.predicates],
        }

    def __repr__(self) -> str:
        return f"OrPredicate{self.predicates!r}"


class NotPredicate(Predicate):
    def __init__(self, predicate: Predicate) -> None:
        self.predicate = predicate

    def matches(self, row: Any) -> bool:
        return not self.predicate.matches(row)

    def to_dict(self) -> dict[str, Any]:
        return {"op": "not", "conditions": [self.predicate.to_dict()]}

    def __repr__(self) -> str:
        return f"NotPredicate({self.predicate!r})"


def match_all() -> AndPredicate:
    return AndPredicate()


# -- field resolution --------------------------------------------------------


def resolve_path(obj: Any, path: str) -> Any:
    """
    Resolve a dot-separated path on *obj*.

    Supports mappings and attribute access (``department.name``) and
    implicit list traversal (``breaks.break_type`` on a list of breaks
    returns ``[b.break_type for b in breaks]``).
    """
    for index, part in enumerate(path.split(".")):
        if obj is None:
            return None
        if isinstance(obj, list | tuple):
            rest = ".".join(path.split(".")[index:])
            return [resolve_path(item, rest) for item in obj]
        obj = obj.get(part) if isinstance(obj, Mapping) else getattr(obj, part, None)
    return obj


# -- deserialisation ---------------------------------------------------------


class PredicateFactory:
    """
    Build predicate trees from their dict / ``to_dict()`` representation.

    Leaf: ``{"op": "equals", "attr": "status", "val": "ACTIVE"}``.
    Composite: ``{"op": "and", "conditions": [...]}``.
    """

    @staticmethod
    def from_dict(
        data: Mapping[str, Any],
        *,
        registry: MemoryOperatorRegistry,
        allowed_fields: Collection[str] | None = None,
        entity: str = "<predicate>",
    ) -> Predicate:
        """
        Create a predicate tree from a dictionary.

        Raises:
            InvalidFilterError: malformed node or unknown operator.
            UnknownFieldError: ``attr`` outside *allowed_fields*.
        """
        return PredicateFactory._build(
            data,
            registry=registry,
            allowed_fields=allowed_fields,
            entity=entity,
            path="<root>",
        )

    @staticmethod
    def _build(
        data: Any,
        *,
        registry: MemoryOperatorRegistry,
        allowed_fields: Collection[str] | None,
        entity: str,
        path: str,
    ) -> Predicate:
        if not isinstance(data, Mapping):
            raise InvalidFilterError(
                f"expected a mapping, got {type(data).__name__}", path
            )
        raw_op = data.get("op")
        if not raw_op or not isinstance(raw_op, str):
            raise InvalidFilterError("missing or empty 'op' key", path)
        try:
            op = FilterOperator.parse(raw_op)
        except ValueError as exc:
            raise InvalidFilterError(f"unknown operator '{raw_op}'", path) from exc

        if op.is_logical:
            conditions = data.get("conditions", [])
            if not isinstance(conditions, list):
                raise InvalidFilterError("'conditions' must be a list", path)
            children = [
                PredicateFactory._build(
                    child,
                    registry=registry,
                    allowed_fields=allowed_fields,
                    entity=entity,
                    path=f"{path}.conditions[{idx}]",
                )
                for idx, child in enumerate(conditions)
            ]
            if op is FilterOperator.AND:
                return AndPredicate(*children)
            if op is FilterOperator.OR:
                return OrPredicate(*children)
            if len(children) != 1:
                raise InvalidFilterError("'not' takes exactly one condition", path)
            return NotPredicate(children[0])

        attr = data.get("attr")
        if not attr or not isinstance(attr, str):
            raise InvalidFilterError("leaf is missing 'attr'", path)
        if allowed_fields is not None and attr not in allowed_fields:
            raise UnknownFieldError(attr, entity, allowed_fields)

        value = data.get("val")
        if op in (FilterOperator.BETWEEN, FilterOperator.IN_SET) and isinstance(
            value, list
        ):
            value = tuple(value)
        return FieldPredicate(attr, op, value, registry=registry)
