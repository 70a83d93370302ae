"""
SQLAlchemy implementation of the tabular store port.

Entities are mapped classes registered under their table name.  Count and
page window are two statements built from one compiled predicate, each
run in a short-lived session from the injected factory.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any

from sqlalchemy import func, select, text
from sqlalchemy.exc import SQLAlchemyError

from ..exceptions import QueryTimeoutError, StoreExecutionError
from ..store import check_deadline, remaining_seconds
from .compiler import compile_predicate, order_by_columns
from .introspection import model_field_paths

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from sqlalchemy import Result, Select
    from sqlalchemy.orm import Session

    from ..pagination import SortOrder
    from ..predicates import Predicate
    from .strategy import SQLAlchemyOperatorRegistry

logger = logging.getLogger("hr_criteria.sqlalchemy")


class SQLAlchemyStore:
    """
    Store over mapped SQLAlchemy models.

    Usage::

        store = SQLAlchemyStore(sessionmaker(engine))
        store.register(EmployeeModel)              # entity "employees"
        builder = CriteriaQueryBuilder(store)

    Args:
        session_factory: Zero-argument callable returning a ``Session``
            usable as a context manager (a ``sessionmaker`` qualifies).
        registry: SQLAlchemy operator registry; defaults to the built-ins.
        relationship_depth: How many relationship hops ``describe_schema``
            follows when listing field paths.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        *,
        registry: SQLAlchemyOperatorRegistry | None = None,
        relationship_depth: int = 1,
    ) -> None:
        self._session_factory = session_factory
        self._registry = registry
        self._relationship_depth = relationship_depth
        self._models: dict[str, type[Any]] = {}

    def register(self, model: type[Any], *, entity: str | None = None) -> str:
        """Expose *model* under *entity* (its table name by default)."""
        name = entity or model.__tablename__
        self._models[name] = model
        return name

    def register_all(self, *models: type[Any]) -> None:
        for model in models:
            self.register(model)

    def model_for(self, entity: str) -> type[Any]:
        try:
            return self._models[entity]
        except KeyError:
            raise StoreExecutionError(
                entity, "lookup", KeyError(f"no model registered as '{entity}'")
            ) from None

    def describe_schema(self, entity: str) -> set[str]:
        fields, _ = model_field_paths(
            self.model_for(entity), depth=self._relationship_depth
        )
        return fields

    def run_count(
        self,
        entity: str,
        predicate: Predicate,
        *,
        deadline: float | None = None,
    ) -> int:
        model = self.model_for(entity)
        stmt = (
            select(func.count())
            .select_from(model)
            .where(compile_predicate(model, predicate, registry=self._registry))
        )
        total = self._run(entity, "count", stmt, deadline, lambda r: r.scalar_one())
        return int(total)

    def run_select(
        self,
        entity: str,
        predicate: Predicate,
        sort: Sequence[SortOrder],
        offset: int,
        limit: int,
        *,
        deadline: float | None = None,
    ) -> list[Any]:
        model = self.model_for(entity)
        stmt = select(model).where(
            compile_predicate(model, predicate, registry=self._registry)
        )
        stmt = order_by_columns(stmt, model, sort).offset(offset).limit(limit)
        return self._run(
            entity, "select", stmt, deadline, lambda r: list(r.scalars().all())
        )

    def _run(
        self,
        entity: str,
        stage: str,
        stmt: Select[Any],
        deadline: float | None,
        extract: Callable[[Result[Any]], Any],
    ) -> Any:
        check_deadline(deadline, entity, stage)
        started = time.perf_counter()
        with self._session_factory() as session:
            try:
                self._apply_statement_timeout(session, deadline)
                # Rows are read while the session is open and returned detached
                rows = extract(session.execute(stmt))
            except SQLAlchemyError as exc:
                if deadline is not None and time.monotonic() >= deadline:
                    logger.warning("%s on %s cancelled by deadline", stage, entity)
                    raise QueryTimeoutError(entity, stage) from exc
                logger.exception("%s on %s failed", stage, entity)
                raise StoreExecutionError(entity, stage, exc) from exc
        logger.debug(
            "%s on %s took %.2fms",
            stage,
            entity,
            (time.perf_counter() - started) * 1000,
        )
        check_deadline(deadline, entity, stage)
        return rows

    @staticmethod
    def _apply_statement_timeout(session: Session, deadline: float | None) -> None:
        remaining = remaining_seconds(deadline)
        if remaining is None:
            return
        if session.get_bind().dialect.name != "postgresql":
            return
        # SET LOCAL takes no bind parameters; the value is an int we computed
        millis = max(1, int(remaining * 1000))
        session.execute(text(f"SET LOCAL statement_timeout = {millis}"))
