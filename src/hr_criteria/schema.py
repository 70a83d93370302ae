"""QueryTarget: the entity a query runs against and its known field paths."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .exceptions import UnknownFieldError

if TYPE_CHECKING:
    from collections.abc import Iterable


@dataclass(frozen=True)
class QueryTarget:
    """
    Attributes:
        entity: Store-level name of the entity (table / collection).
        fields: Every dot-separated path that may be filtered on.
        primary_key: Unique path used to break ordering ties, so that
            repeated page requests over unchanged data are stable.
        sortable: Paths that may appear in a sort; ``None`` means every
            field in ``fields``.  Paths through to-many relationships are
            filterable but not sortable.
    """

    entity: str
    fields: frozenset[str]
    primary_key: str = "id"
    sortable: frozenset[str] | None = None

    def __post_init__(self) -> None:
        if self.primary_key not in self.fields:
            raise UnknownFieldError(self.primary_key, self.entity, self.fields)

    @classmethod
    def of(
        cls,
        entity: str,
        fields: Iterable[str],
        *,
        primary_key: str = "id",
        sortable: Iterable[str] | None = None,
    ) -> QueryTarget:
        return cls(
            entity,
            frozenset(fields),
            primary_key,
            frozenset(sortable) if sortable is not None else None,
        )

    def has_field(self, path: str) -> bool:
        return path in self.fields

    def require_field(self, path: str) -> None:
        if path not in self.fields:
            raise UnknownFieldError(path, self.entity, self.fields)

    def is_sortable(self, path: str) -> bool:
        if self.sortable is None:
            return path in self.fields
        return path in self.sortable
