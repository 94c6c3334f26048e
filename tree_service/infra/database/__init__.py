"""Database engine and session wiring."""

from tree_service.infra.database.session import (
    create_engine,
    create_session_factory,
    enable_sqlite_savepoints,
    init_models,
    session_scope,
)

__all__ = [
    "create_engine",
    "create_session_factory",
    "enable_sqlite_savepoints",
    "init_models",
    "session_scope",
]
