from .builder import CriteriaQueryBuilder, Query
from .config import BuilderConfig
from .evaluator import MemoryOperator, MemoryOperatorRegistry
from .exceptions import (
    CriteriaError,
    HierarchyCycleError,
    InvalidFilterError,
    InvalidPageRequestError,
    QueryTimeoutError,
    StoreExecutionError,
    UnknownFieldError,
)
from .fields import FilterField
from .hierarchy import HierarchyNode, descendants_of, walk_hierarchy
from .operators import FilterOperator
from .operators_memory import build_default_registry
from .pagination import PageRequest, PageResult, SortDirection, SortOrder, SortSpec
from .predicates import (
    AndPredicate,
    FieldPredicate,
    NotPredicate,
    OrPredicate,
    Predicate,
    PredicateFactory,
    match_all,
    resolve_path,
)
from .schema import QueryTarget
from .store import InMemoryStore, TabularStore

__all__ = [
    # Builder
    "CriteriaQueryBuilder",
    "Query",
    "BuilderConfig",
    # Criteria
    "FilterField",
    "FilterOperator",
    "QueryTarget",
    "PageRequest",
    "PageResult",
    "SortDirection",
    "SortOrder",
    "SortSpec",
    # Predicates
    "Predicate",
    "FieldPredicate",
    "AndPredicate",
    "OrPredicate",
    "NotPredicate",
    "PredicateFactory",
    "match_all",
    "resolve_path",
    # Evaluator / strategy
    "MemoryOperator",
    "MemoryOperatorRegistry",
    "build_default_registry",
    # Stores
    "TabularStore",
    "InMemoryStore",
    # Hierarchy
    "HierarchyNode",
    "walk_hierarchy",
    "descendants_of",
    # Exceptions
    "CriteriaError",
    "UnknownFieldError",
    "InvalidFilterError",
    "InvalidPageRequestError",
    "QueryTimeoutError",
    "StoreExecutionError",
    "HierarchyCycleError",
]
