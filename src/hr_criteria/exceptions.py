"""
Criteria exception hierarchy.

All exceptions inherit from ``CriteriaError`` and provide ``to_dict()``
for API-friendly error responses.  Caller-input errors
(``UnknownFieldError``, ``InvalidFilterError``,
``InvalidPageRequestError``) are raised before the store is touched;
``QueryTimeoutError`` and ``StoreExecutionError`` surface failures of
the store itself and are never retried here.
"""

from __future__ import annotations

from difflib import get_close_matches
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterable


class CriteriaError(Exception):
    """Base exception for all criteria query errors."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.__class__.__name__,
            "message": str(self),
        }


class UnknownFieldError(CriteriaError):
    """
    Field path not present in the queried entity's schema.

    Uses fuzzy matching to suggest similar valid paths.

    Example error message::

        Unknown field 'departement.id' on 'employee'.
        Did you mean one of these?
          • department.id

        Available fields: department.id, email, first_name, ...
    """

    def __init__(
        self,
        path: str,
        entity: str,
        available_fields: Iterable[str],
        cutoff: float = 0.6,
    ) -> None:
        self.path = path
        self.entity = entity
        self.available_fields = sorted(available_fields)
        self.suggestions = get_close_matches(
            path, self.available_fields, n=5, cutoff=cutoff
        )
        super().__init__(self._build_message())

    def _build_message(self) -> str:
        lines = [f"Unknown field '{self.path}' on '{self.entity}'."]
        if self.suggestions:
            lines.append("Did you mean one of these?")
            for s in self.suggestions:
                lines.append(f"  • {s}")

        preview = ", ".join(self.available_fields[:15])
        if len(self.available_fields) > 15:
            preview += ", ..."
        lines.append(f"Available fields: {preview}")
        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "UNKNOWN_FIELD",
            "field": self.path,
            "entity": self.entity,
            "suggestions": self.suggestions,
            "available_fields": self.available_fields,
        }


class InvalidFilterError(CriteriaError):
    """A filter is malformed (inverted range, empty set, missing value)."""

    def __init__(self, message: str, path: str | None = None) -> None:
        self.message = message
        self.path = path
        super().__init__(f"{path}: {message}" if path else message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "INVALID_FILTER",
            "message": self.message,
            "field": self.path,
        }


class InvalidPageRequestError(CriteriaError):
    """Page index, page size or sort directive is not acceptable."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "INVALID_PAGE_REQUEST",
            "message": str(self),
        }


class QueryTimeoutError(CriteriaError, TimeoutError):
    """The deadline passed before the store finished the query."""

    def __init__(self, entity: str, stage: str) -> None:
        self.entity = entity
        self.stage = stage
        super().__init__(f"Query on '{entity}' exceeded its deadline during {stage}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "QUERY_TIMEOUT",
            "entity": self.entity,
            "stage": self.stage,
        }


class StoreExecutionError(CriteriaError):
    """The underlying store failed to run a query."""

    def __init__(self, entity: str, stage: str, cause: BaseException) -> None:
        self.entity = entity
        self.stage = stage
        self.cause = cause
        super().__init__(f"{stage} on '{entity}' failed: {cause}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "STORE_EXECUTION_ERROR",
            "entity": self.entity,
            "stage": self.stage,
            "message": str(self.cause),
        }


class HierarchyCycleError(CriteriaError):
    """Parent references form a cycle, so no root is reachable."""

    def __init__(self, node_ids: Iterable[Any]) -> None:
        self.node_ids = sorted(node_ids, key=repr)
        super().__init__(
            "Hierarchy contains a cycle through: "
            + ", ".join(repr(n) for n in self.node_ids)
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "HIERARCHY_CYCLE",
            "nodes": self.node_ids,
        }
