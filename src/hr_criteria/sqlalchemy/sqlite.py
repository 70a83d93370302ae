"""SQLite connection setup for the SQL backend."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import event

if TYPE_CHECKING:
    from sqlalchemy import Engine


def _unicode_lower(value: Any) -> Any:
    return value.lower() if isinstance(value, str) else value


def setup_sqlite_engine(engine: Engine) -> None:
    """
    Replace SQLite's ASCII-only ``lower()`` with Python's on every new
    connection, so ``contains`` folds ``É`` the way the in-memory store
    does.

    Register before the first connection is opened (before
    ``create_all``); connections already in the pool are not touched.
    """
    listen_engine = getattr(engine, "sync_engine", engine)

    @event.listens_for(listen_engine, "connect")
    def _register_lower(dbapi_conn: Any, _connection_record: Any) -> None:
        dbapi_conn.create_function("lower", 1, _unicode_lower, deterministic=True)
