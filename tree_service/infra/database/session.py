"""Async engine and session factory built from DatabaseSettings."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from tree_service.core.database.base import Base
from tree_service.core.database.hierarchy.exceptions import CascadeIncompleteError
from tree_service.core.settings import get_db_settings

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from tree_service.core.settings import DatabaseSettings

logger = logging.getLogger(__name__)


def enable_sqlite_savepoints(engine: AsyncEngine) -> None:
    """Let SQLAlchemy emit BEGIN itself on SQLite connections.

    The sqlite3 driver opens transactions lazily and ignores SAVEPOINT
    bookkeeping, which breaks ``begin_nested()``. Turning off the driver's
    own transaction handling and issuing BEGIN from the ``begin`` event
    makes savepoints behave as on other backends.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_transactions(dbapi_connection: Any, connection_record: Any) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN")


def create_engine(db_settings: DatabaseSettings | None = None) -> AsyncEngine:
    """Create the async engine.

    Args:
        db_settings: Connection settings (environment-derived by default)
    """
    db_settings = db_settings or get_db_settings()
    engine = create_async_engine(db_settings.url, echo=db_settings.echo)
    if engine.dialect.name == "sqlite":
        # Cascades write each batch under a SAVEPOINT
        enable_sqlite_savepoints(engine)
    logger.info(
        "Database engine created",
        extra={"dialect": engine.dialect.name, "operation": "db.engine"},
    )
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory for tree work.

    ``expire_on_commit=False`` keeps attribute history readable after a
    commit; with expired attributes every rearrange would see "changed" and
    async attribute loads would fail. Autoflush stays off so a cascade
    controls exactly when its batches are written.
    """
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def init_models(engine: AsyncEngine) -> None:
    """Create every table registered on ``Base.metadata`` (idempotent)."""
    # Register models on the metadata
    import tree_service.core.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables ensured", extra={"operation": "db.init_models"})


@asynccontextmanager
async def session_scope(
    factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    """Yield a session that commits on success and rolls back on error.

    A ``CascadeIncompleteError`` is the exception: the move and every
    completed cascade batch are committed before the error is re-raised,
    so a later ``save(..., cascade=FORCE)`` only has the rest to repair.

    Example:
        async with session_scope(factory) as session:
            await repo.save(session, node)
    """
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except CascadeIncompleteError as exc:
            logger.warning(
                "Committing partial cascade",
                extra={
                    "root_id": exc.root_id,
                    "updated": len(exc.updated_ids),
                    "failed_ids": exc.failed_ids,
                    "operation": "db.session_scope",
                },
            )
            await session.commit()
            raise
        except Exception:
            await session.rollback()
            raise


__all__ = [
    "create_engine",
    "create_session_factory",
    "enable_sqlite_savepoints",
    "init_models",
    "session_scope",
]
