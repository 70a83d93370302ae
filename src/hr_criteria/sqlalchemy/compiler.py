"""
Compile a predicate tree into a SQLAlchemy filter expression.

The compiler walks the ``Predicate.to_dict()`` form and delegates each
leaf to a :class:`SQLAlchemyOperatorRegistry`.  Dotted paths follow
relationships: a many-to-one hop compiles to ``has()``, a collection hop
to ``any()``, so the filter never multiplies the selected rows.

``order_by_columns`` resolves sort paths, outer-joining many-to-one
relationships once per distinct prefix.  NULLs sort first ascending and
last descending, as in the in-memory store.

Under ``not`` every column leaf is guarded with ``IS NOT NULL`` so it
evaluates to false rather than unknown on a missing value: SQL would
otherwise drop the row where the in-memory evaluator keeps it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import ColumnElement, Select, and_, false, inspect, not_, or_, true
from sqlalchemy.orm import aliased

from ..exceptions import (
    InvalidFilterError,
    InvalidPageRequestError,
    UnknownFieldError,
)
from ..operators import FilterOperator
from .operators import DEFAULT_SQLA_REGISTRY

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from ..pagination import SortOrder
    from ..predicates import Predicate
    from .strategy import SQLAlchemyOperatorRegistry


def compile_predicate(
    model: type[Any],
    predicate: Predicate,
    *,
    registry: SQLAlchemyOperatorRegistry | None = None,
) -> ColumnElement[bool]:
    """Compile *predicate* against the mapped class *model*."""
    return build_sqla_filter(model, predicate.to_dict(), registry=registry)


def build_sqla_filter(
    model: type[Any],
    data: Mapping[str, Any],
    *,
    registry: SQLAlchemyOperatorRegistry | None = None,
) -> ColumnElement[bool]:
    """
    Build a SQLAlchemy filter expression from a predicate dictionary.

    Args:
        model: The SQLAlchemy mapped class.
        data: Dictionary produced by ``Predicate.to_dict()``.
        registry: Optional custom operator registry.  Falls back to
            ``DEFAULT_SQLA_REGISTRY``.
    """
    return _compile_node(model, data, registry or DEFAULT_SQLA_REGISTRY)


def _compile_node(
    model: type[Any],
    data: Mapping[str, Any],
    registry: SQLAlchemyOperatorRegistry,
    negated: bool = False,
) -> ColumnElement[bool]:
    op = FilterOperator.parse(data.get("op", ""))

    if op is FilterOperator.AND:
        conditions = [
            _compile_node(model, c, registry, negated)
            for c in data.get("conditions", [])
        ]
        return and_(*conditions) if conditions else true()

    if op is FilterOperator.OR:
        conditions = [
            _compile_node(model, c, registry, negated)
            for c in data.get("conditions", [])
        ]
        return or_(*conditions) if conditions else false()

    if op is FilterOperator.NOT:
        conditions = data.get("conditions", [])
        if len(conditions) != 1:
            raise InvalidFilterError("'not' takes exactly one condition")
        return not_(_compile_node(model, conditions[0], registry, negated=True))

    return _compile_leaf(model, data, op, registry, negated)


def _compile_leaf(
    model: type[Any],
    data: Mapping[str, Any],
    op: FilterOperator,
    registry: SQLAlchemyOperatorRegistry,
    negated: bool,
) -> ColumnElement[bool]:
    attr: str | None = data.get("attr")
    val = data.get("val")
    if not attr:
        raise InvalidFilterError(f"Predicate leaf missing 'attr': {dict(data)}")

    # Relationship traversal (e.g. "department.name")
    if "." in attr:
        rel_name, nested_attr = attr.split(".", 1)
        rel_attr = _attribute(model, rel_name, attr)
        prop = getattr(rel_attr, "property", None)
        if prop is None or not hasattr(prop, "mapper"):
            raise UnknownFieldError(attr, _model_name(model), _column_keys(model))

        target_model = prop.mapper.class_
        nested = {"op": op.value, "attr": nested_attr, "val": val}
        inner = _compile_node(target_model, nested, registry)
        if prop.uselist:
            return cast("ColumnElement[bool]", rel_attr.any(inner))
        return cast("ColumnElement[bool]", rel_attr.has(inner))

    column = _attribute(model, attr, attr)
    if op is FilterOperator.BETWEEN or op is FilterOperator.IN_SET:
        val = tuple(val)
    clause = registry.apply(op, column, val)
    if negated and op.takes_value:
        return and_(column.is_not(None), clause)
    return clause


def order_by_columns(
    stmt: Select[Any],
    model: type[Any],
    sort: Sequence[SortOrder],
) -> Select[Any]:
    """Apply *sort* to *stmt*, joining many-to-one paths as needed."""
    joined: dict[str, Any] = {}
    clauses: list[Any] = []
    for order in sort:
        parts = order.path.split(".")
        entity: Any = model
        cls: type[Any] = model
        prefix = ""
        for part in parts[:-1]:
            prefix = f"{prefix}.{part}" if prefix else part
            rel_attr = _attribute(cls, part, order.path)
            prop = getattr(rel_attr, "property", None)
            if prop is None or not hasattr(prop, "mapper"):
                raise UnknownFieldError(
                    order.path, _model_name(model), _column_keys(cls)
                )
            if prop.uselist:
                raise InvalidPageRequestError(
                    f"Cannot sort by '{order.path}': '{part}' is a collection"
                )
            cls = prop.mapper.class_
            if prefix not in joined:
                alias = aliased(cls)
                stmt = stmt.outerjoin(alias, getattr(entity, part))
                joined[prefix] = alias
            entity = joined[prefix]
        column = getattr(entity, parts[-1])
        clauses.append(
            column.desc().nulls_last()
            if order.descending
            else column.asc().nulls_first()
        )
    return stmt.order_by(*clauses) if clauses else stmt


def _attribute(model: type[Any], name: str, full_path: str) -> Any:
    column = getattr(model, name, None)
    if column is None or not hasattr(column, "property"):
        raise UnknownFieldError(full_path, _model_name(model), _column_keys(model))
    return column


def _model_name(model: type[Any]) -> str:
    return getattr(model, "__tablename__", model.__name__)


def _column_keys(model: type[Any]) -> list[str]:
    return [attr.key for attr in inspect(model).attrs]
