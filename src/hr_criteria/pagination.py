"""
Sorting and pagination value objects.

``PageRequest`` is validated on construction, so a request that exists
is always usable: zero-based ``page``, positive ``size``.
``PageResult`` carries the rows of one page window together with the
exact total count of the filter they were drawn from.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from .exceptions import InvalidPageRequestError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence

T = TypeVar("T")
U = TypeVar("U")


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class SortOrder:
    path: str
    direction: SortDirection = SortDirection.ASC

    @property
    def descending(self) -> bool:
        return self.direction is SortDirection.DESC

    @classmethod
    def asc(cls, path: str) -> SortOrder:
        return cls(path, SortDirection.ASC)

    @classmethod
    def desc(cls, path: str) -> SortOrder:
        return cls(path, SortDirection.DESC)


@dataclass(frozen=True)
class SortSpec:
    """Ordered sort directives; empty means natural store order."""

    orders: tuple[SortOrder, ...] = ()

    def __iter__(self) -> Iterator[SortOrder]:
        return iter(self.orders)

    def __len__(self) -> int:
        return len(self.orders)

    def __bool__(self) -> bool:
        return bool(self.orders)

    @property
    def paths(self) -> list[str]:
        return [o.path for o in self.orders]

    def then(self, order: SortOrder) -> SortSpec:
        return SortSpec((*self.orders, order))

    @classmethod
    def of(cls, *orders: SortOrder | str) -> SortSpec:
        """Accept ``SortOrder`` values or ``"name"`` / ``"-name"`` strings."""
        return cls(tuple(_coerce_order(o) for o in orders))

    @classmethod
    def parse(cls, raw: str | Sequence[str] | None) -> SortSpec:
        """
        Parse sort parameters.

        Accepts ``"-timestamp,name"`` (a leading ``-`` means descending),
        ``"timestamp,desc"`` (a single field with an explicit direction)
        or a list of either form.
        """
        if not raw:
            return cls()
        if isinstance(raw, str):
            parts = [p.strip() for p in raw.split(",") if p.strip()]
            if len(parts) == 2 and parts[1].lower() in ("asc", "desc"):
                return cls((SortOrder(parts[0], SortDirection(parts[1].lower())),))
            return cls(tuple(_coerce_order(p) for p in parts))
        orders: list[SortOrder] = []
        for item in raw:
            orders.extend(cls.parse(item).orders)
        return cls(tuple(orders))

    def to_param(self) -> str:
        return ",".join(f"-{o.path}" if o.descending else o.path for o in self.orders)


def _coerce_order(item: SortOrder | str) -> SortOrder:
    if isinstance(item, SortOrder):
        return item
    item = item.strip()
    direction = SortDirection.ASC
    if item[:1] in ("-", "+"):
        if item[0] == "-":
            direction = SortDirection.DESC
        item = item[1:]
    if not item:
        raise InvalidPageRequestError("Empty sort field")
    return SortOrder(item, direction)


@dataclass(frozen=True)
class PageRequest:
    """
    Attributes:
        page: Zero-based page index.
        size: Rows per page, strictly positive.
        sort: Sort directives applied before slicing.
    """

    page: int = 0
    size: int = 20
    sort: SortSpec = field(default_factory=SortSpec)

    def __post_init__(self) -> None:
        if isinstance(self.page, bool) or not isinstance(self.page, int):
            raise InvalidPageRequestError(
                f"Page index must be an integer: {self.page!r}"
            )
        if isinstance(self.size, bool) or not isinstance(self.size, int):
            raise InvalidPageRequestError(
                f"Page size must be an integer: {self.size!r}"
            )
        if self.page < 0:
            raise InvalidPageRequestError(
                f"Page index must not be negative: {self.page}"
            )
        if self.size <= 0:
            raise InvalidPageRequestError(f"Page size must be positive: {self.size}")

    @property
    def offset(self) -> int:
        return self.page * self.size

    @property
    def limit(self) -> int:
        return self.size

    def next(self) -> PageRequest:
        return PageRequest(self.page + 1, self.size, self.sort)

    def with_sort(self, sort: SortSpec) -> PageRequest:
        return PageRequest(self.page, self.size, sort)

    @classmethod
    def of(cls, page: int, size: int, *sort: SortOrder | str) -> PageRequest:
        return cls(page, size, SortSpec.of(*sort))

    @classmethod
    def from_params(
        cls,
        params: Mapping[str, Any],
        *,
        page_key: str = "page",
        size_key: str = "size",
        sort_key: str = "sort",
        default_size: int = 20,
        max_size: int = 100,
    ) -> PageRequest:
        """
        Parse request query parameters.

        Sizes above *max_size* are clamped; anything non-numeric, a
        negative page or a non-positive size is rejected.
        """
        page = _int_param(params.get(page_key), page_key, default=0)
        size = _int_param(params.get(size_key), size_key, default=default_size)
        if size > max_size:
            size = max_size
        return cls(page, size, SortSpec.parse(params.get(sort_key)))


def _int_param(raw: Any, name: str, *, default: int) -> int:
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise InvalidPageRequestError(f"'{name}' must be an integer: {raw!r}") from exc


@dataclass(frozen=True)
class PageResult(Generic[T]):
    """
    One page window of a filtered query.

    ``total`` counts every row matching the filter, independent of the
    window, so it is identical on every page of the same query.
    """

    items: list[T]
    total: int
    page: int
    size: int

    @property
    def total_pages(self) -> int:
        if self.total == 0:
            return 0
        return math.ceil(self.total / self.size)

    @property
    def is_first(self) -> bool:
        return self.page == 0

    @property
    def is_last(self) -> bool:
        return self.page >= self.total_pages - 1

    @property
    def has_next(self) -> bool:
        return self.page + 1 < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.page > 0

    @property
    def is_empty(self) -> bool:
        return not self.items

    def __iter__(self) -> Iterator[T]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def map(self, fn: Callable[[T], U]) -> PageResult[U]:
        return PageResult(
            [fn(item) for item in self.items], self.total, self.page, self.size
        )

    def to_dict(self, serialize: Callable[[T], Any] | None = None) -> dict[str, Any]:
        """Response body shape: content plus paging metadata."""
        content: Iterable[Any] = (
            (serialize(i) for i in self.items) if serialize else self.items
        )
        return {
            "content": list(content),
            "page": self.page,
            "size": self.size,
            "total_elements": self.total,
            "total_pages": self.total_pages,
            "first": self.is_first,
            "last": self.is_last,
            "has_next": self.has_next,
            "has_previous": self.has_previous,
        }
