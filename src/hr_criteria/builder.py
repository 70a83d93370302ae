"""
Criteria query builder.

Turns caller-supplied criteria into one executable query::

    builder = CriteriaQueryBuilder(store)
    target = builder.target("audit_log")

    predicate = builder.build_filter(
        target,
        [
            FilterField.equals("action_type", action_type),   # None → skipped
            FilterField.between("timestamp", since, until),
            FilterField.in_set("http_method", ["POST", "PUT"]),
        ],
    )
    query = builder.paginate_and_sort(
        predicate, SortSpec.parse("-timestamp"), PageRequest(0, 20), target=target
    )
    page = builder.execute(query, timeout=2.0)

Every caller-input error is raised while building, before the store is
touched.  Count and page window are computed from the same predicate,
and the primary key is appended to the sort so paging is deterministic.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Collection, Mapping, Sequence
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any

from .config import BuilderConfig
from .exceptions import InvalidFilterError, InvalidPageRequestError
from .operators import FilterOperator
from .operators_memory import build_default_registry
from .pagination import PageRequest, PageResult, SortOrder, SortSpec
from .predicates import AndPredicate, FieldPredicate, OrPredicate, Predicate
from .schema import QueryTarget

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from .evaluator import MemoryOperatorRegistry
    from .fields import FilterField
    from .store import TabularStore

logger = logging.getLogger("hr_criteria.builder")


@dataclass(frozen=True)
class Query:
    """A validated, windowed query ready for :meth:`CriteriaQueryBuilder.execute`."""

    target: QueryTarget
    predicate: Predicate
    sort: tuple[SortOrder, ...]
    page: int
    size: int

    @property
    def offset(self) -> int:
        return self.page * self.size

    @property
    def limit(self) -> int:
        return self.size


class CriteriaQueryBuilder:
    """
    Stateless between calls: every method works only on its arguments,
    so one instance may be shared by concurrent callers.
    """

    def __init__(
        self,
        store: TabularStore,
        *,
        registry: MemoryOperatorRegistry | None = None,
        config: BuilderConfig | None = None,
    ) -> None:
        self._store = store
        self._registry = registry if registry is not None else build_default_registry()
        self._config = config or BuilderConfig()

    @property
    def config(self) -> BuilderConfig:
        return self._config

    @property
    def registry(self) -> MemoryOperatorRegistry:
        return self._registry

    def target(
        self,
        entity: str,
        *,
        primary_key: str = "id",
        sortable: Iterable[str] | None = None,
    ) -> QueryTarget:
        """Describe *entity* using the schema the store reports."""
        return QueryTarget.of(
            entity,
            self._store.describe_schema(entity),
            primary_key=primary_key,
            sortable=sortable,
        )

    # -- filter --------------------------------------------------------------

    def build_filter(
        self,
        target: QueryTarget,
        fields: Iterable[FilterField],
    ) -> Predicate:
        """
        Fold the applied fields into one AND predicate.

        Fields without a value are skipped, so an all-empty criteria set
        yields the match-all predicate.

        Raises:
            UnknownFieldError: a path is not in ``target.fields``.
            InvalidFilterError: inverted range, empty set, bad operand.
        """
        leaves: list[Predicate] = []
        for f in fields:
            target.require_field(f.path)
            if not f.is_applied:
                continue
            leaves.append(self._leaf(f.path, f.op, f.value))
        predicate = AndPredicate(*leaves).simplify()
        logger.debug("Built filter on %s: %s", target.entity, predicate.to_dict())
        return predicate

    def _leaf(self, path: str, op: FilterOperator, value: Any) -> FieldPredicate:
        if op.is_logical:
            raise InvalidFilterError(f"'{op.value}' is not a field operator", path)
        if op is FilterOperator.BETWEEN:
            value = _validate_range(path, value)
        elif op is FilterOperator.IN_SET:
            value = _validate_set(path, value)
        elif op is FilterOperator.CONTAINS:
            if not isinstance(value, str):
                raise InvalidFilterError("'contains' needs a string value", path)
        elif not op.takes_value:
            value = None
        return FieldPredicate(path, op, value, registry=self._registry)

    # -- reusable combinators ------------------------------------------------

    def overlaps(
        self,
        target: QueryTarget,
        start_path: str,
        end_path: str,
        start: Any,
        end: Any,
    ) -> Predicate:
        """
        Stored ``[start_path, end_path]`` intersects candidate ``[start, end]``.

        Both intervals are inclusive, so touching endpoints overlap:
        ``stored.start <= end AND stored.end >= start``.
        """
        target.require_field(start_path)
        target.require_field(end_path)
        if start is None or end is None:
            raise InvalidFilterError("overlap needs both interval bounds", start_path)
        _validate_range(start_path, (start, end))
        return AndPredicate(
            FieldPredicate(
                start_path, FilterOperator.LESS_EQUAL, end, registry=self._registry
            ),
            FieldPredicate(
                end_path, FilterOperator.GREATER_EQUAL, start, registry=self._registry
            ),
        )

    def covers(
        self,
        target: QueryTarget,
        start_path: str,
        end_path: str,
        instant: Any,
    ) -> Predicate:
        """Stored interval contains *instant*; a degenerate overlap."""
        return self.overlaps(target, start_path, end_path, instant, instant)

    def text_search(
        self,
        target: QueryTarget,
        paths: Sequence[str],
        term: str | None,
    ) -> Predicate:
        """Case-insensitive *term* in any of *paths*; blank term matches all."""
        for path in paths:
            target.require_field(path)
        if term is None or not term.strip():
            return AndPredicate()
        if not paths:
            raise InvalidFilterError("text search needs at least one field")
        return OrPredicate(
            *(
                FieldPredicate(
                    p, FilterOperator.CONTAINS, term.strip(), registry=self._registry
                )
                for p in paths
            )
        )

    # -- paging --------------------------------------------------------------

    def paginate_and_sort(
        self,
        predicate: Predicate,
        sort: SortSpec | Sequence[SortOrder] | None,
        page: PageRequest,
        *,
        target: QueryTarget,
    ) -> Query:
        """
        Attach ordering and the page window.

        *sort* falls back to ``page.sort`` when ``None``.  The target's
        primary key is appended as the final tie-breaker unless the sort
        already names it.

        Raises:
            UnknownFieldError: a sort path is not a known field.
            InvalidPageRequestError: a sort path is known but not sortable.
        """
        orders = list(page.sort if sort is None else sort)
        for order in orders:
            target.require_field(order.path)
            if not target.is_sortable(order.path):
                raise InvalidPageRequestError(
                    f"Field '{order.path}' on '{target.entity}' is not sortable"
                )
        if self._config.tie_break_on_primary_key and target.primary_key not in {
            o.path for o in orders
        }:
            orders.append(SortOrder.asc(target.primary_key))
        return Query(target, predicate, tuple(orders), page.page, page.size)

    # -- execution -----------------------------------------------------------

    def execute(self, query: Query, *, timeout: float | None = None) -> PageResult[Any]:
        """
        Run the count and the page-window select for *query*.

        Args:
            timeout: Seconds for both store calls together; falls back to
                ``config.default_timeout``.  Expiry raises
                :class:`~hr_criteria.exceptions.QueryTimeoutError`.

        Store failures propagate unchanged; nothing is retried.
        """
        deadline = self._deadline(timeout)
        entity = query.target.entity
        started = time.perf_counter()
        total = self._store.run_count(entity, query.predicate, deadline=deadline)
        if total == 0 or query.offset >= total:
            items: list[Any] = []
        else:
            items = list(
                self._store.run_select(
                    entity,
                    query.predicate,
                    query.sort,
                    query.offset,
                    query.limit,
                    deadline=deadline,
                )
            )
        logger.debug(
            "Executed %s page=%d size=%d: %d/%d rows in %.2fms",
            entity,
            query.page,
            query.size,
            len(items),
            total,
            (time.perf_counter() - started) * 1000,
        )
        return PageResult(items, total, query.page, query.size)

    def search(
        self,
        target: QueryTarget,
        fields: Iterable[FilterField],
        page: PageRequest | None = None,
        *,
        extra: Predicate | None = None,
        timeout: float | None = None,
    ) -> PageResult[Any]:
        """Build, paginate and execute in one call."""
        predicate = self.build_filter(target, fields)
        if extra is not None:
            predicate = predicate & extra
        page = page or PageRequest(0, self._config.default_page_size)
        query = self.paginate_and_sort(predicate, None, page, target=target)
        return self.execute(query, timeout=timeout)

    def count(
        self,
        target: QueryTarget,
        fields: Iterable[FilterField] = (),
        *,
        extra: Predicate | None = None,
        timeout: float | None = None,
    ) -> int:
        """Exact number of rows matching the criteria."""
        predicate = self.build_filter(target, fields)
        if extra is not None:
            predicate = predicate & extra
        return self._store.run_count(
            target.entity, predicate, deadline=self._deadline(timeout)
        )

    def exists(
        self,
        target: QueryTarget,
        fields: Iterable[FilterField] = (),
        *,
        extra: Predicate | None = None,
        timeout: float | None = None,
    ) -> bool:
        return self.count(target, fields, extra=extra, timeout=timeout) > 0

    def stream(
        self,
        target: QueryTarget,
        fields: Iterable[FilterField] = (),
        *,
        extra: Predicate | None = None,
        sort: SortSpec | Sequence[SortOrder] = (),
        batch_size: int | None = None,
        timeout: float | None = None,
    ) -> Iterator[Any]:
        """
        Yield every matching row, one page window at a time.

        Each window is a separate :meth:`execute`, so *timeout* applies
        per batch rather than to the whole iteration.
        """
        predicate = self.build_filter(target, fields)
        if extra is not None:
            predicate = predicate & extra
        page = PageRequest(0, batch_size or self._config.max_page_size)
        query = self.paginate_and_sort(predicate, sort, page, target=target)
        while True:
            result = self.execute(query, timeout=timeout)
            yield from result.items
            if not result.has_next:
                return
            page = page.next()
            query = replace(query, page=page.page)

    def page_request(self, params: Mapping[str, Any]) -> PageRequest:
        """Parse ``page`` / ``size`` / ``sort`` using the configured limits."""
        return PageRequest.from_params(
            params,
            default_size=self._config.default_page_size,
            max_size=self._config.max_page_size,
        )

    def _deadline(self, timeout: float | None) -> float | None:
        if timeout is None:
            timeout = self._config.default_timeout
        if timeout is None:
            return None
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        return time.monotonic() + timeout


def _validate_range(path: str, value: Any) -> tuple[Any, Any]:
    if isinstance(value, str | bytes) or not isinstance(value, Sequence):
        raise InvalidFilterError("'between' needs a (low, high) pair", path)
    if len(value) != 2:
        raise InvalidFilterError(
            f"'between' needs exactly two bounds, got {len(value)}", path
        )
    low, high = value
    if low is None or high is None:
        raise InvalidFilterError("'between' bounds must not be null", path)
    try:
        inverted = low > high
    except TypeError as exc:
        raise InvalidFilterError(
            f"'between' bounds are not comparable: {low!r}, {high!r}", path
        ) from exc
    if inverted:
        raise InvalidFilterError(
            f"low bound {low!r} is greater than high bound {high!r}", path
        )
    return (low, high)


def _validate_set(path: str, value: Any) -> tuple[Any, ...]:
    if isinstance(value, str | bytes) or not isinstance(value, Collection):
        raise InvalidFilterError("'in_set' needs a finite collection of values", path)
    if len(value) == 0:
        raise InvalidFilterError("'in_set' needs at least one value", path)
    return tuple(value)
