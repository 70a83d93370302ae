"""
SQLAlchemy backend: predicate compilation, model introspection and the
``SQLAlchemyStore`` implementation of the tabular store port.
"""

from .compiler import build_sqla_filter, compile_predicate, order_by_columns
from .introspection import model_field_paths, primary_key_path, target_for_model
from .operators import DEFAULT_SQLA_REGISTRY, build_default_sqla_registry
from .sqlite import setup_sqlite_engine
from .store import SQLAlchemyStore
from .strategy import SQLAlchemyOperator, SQLAlchemyOperatorRegistry

__all__ = [
    "SQLAlchemyStore",
    # Compilation
    "build_sqla_filter",
    "compile_predicate",
    "order_by_columns",
    # Introspection
    "model_field_paths",
    "primary_key_path",
    "target_for_model",
    # Engine setup
    "setup_sqlite_engine",
    # Operator strategy
    "SQLAlchemyOperator",
    "SQLAlchemyOperatorRegistry",
    "DEFAULT_SQLA_REGISTRY",
    "build_default_sqla_registry",
]
