"""Derive a :class:`QueryTarget` from a SQLAlchemy mapped class."""

from __future__ import annotations

from typing import Any

from sqlalchemy import inspect

from ..schema import QueryTarget


def model_field_paths(
    model: type[Any], *, depth: int = 1
) -> tuple[set[str], set[str]]:
    """
    Collect column paths of *model*, following relationships *depth* hops.

    Returns:
        ``(fields, sortable)``.  Paths that cross a collection relationship
        are filterable but not sortable.
    """
    fields: set[str] = set()
    sortable: set[str] = set()
    _collect(model, "", depth, True, fields, sortable)
    return fields, sortable


def _collect(
    model: type[Any],
    prefix: str,
    depth: int,
    scalar: bool,
    fields: set[str],
    sortable: set[str],
) -> None:
    mapper = inspect(model)
    for column_attr in mapper.column_attrs:
        path = f"{prefix}{column_attr.key}"
        fields.add(path)
        if scalar:
            sortable.add(path)
    if depth <= 0:
        return
    for rel in mapper.relationships:
        _collect(
            rel.mapper.class_,
            f"{prefix}{rel.key}.",
            depth - 1,
            scalar and not rel.uselist,
            fields,
            sortable,
        )


def primary_key_path(model: type[Any]) -> str:
    mapper = inspect(model)
    columns = mapper.primary_key
    if len(columns) != 1:
        raise ValueError(
            f"{model.__name__} must have a single-column primary key, "
            f"found {len(columns)}"
        )
    return mapper.get_property_by_column(columns[0]).key


def target_for_model(
    model: type[Any],
    *,
    depth: int = 1,
    entity: str | None = None,
) -> QueryTarget:
    fields, sortable = model_field_paths(model, depth=depth)
    return QueryTarget(
        entity=entity or model.__tablename__,
        fields=frozenset(fields),
        primary_key=primary_key_path(model),
        sortable=frozenset(sortable),
    )
