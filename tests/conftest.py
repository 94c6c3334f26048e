"""Pytest configuration and shared fixtures.

Organization:
    - Settings Fixtures: cache resets and explicit TreeSettings
    - Database Fixtures: in-memory SQLite engine and session
    - Tree Fixtures: repositories and small prebuilt trees
"""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator
from typing import TYPE_CHECKING, Any

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from tree_service.core.database.base import Base
from tree_service.core.database.hierarchy import RearrangeHooks, TreeRepository
from tree_service.core.models import Node
from tree_service.core.settings import (
    TreeSettings,
    get_db_settings,
    get_logging_settings,
    get_tree_settings,
)
from tree_service.infra.database import enable_sqlite_savepoints
from tree_service.infra.logging import clear_log_context

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

# Keep test runs independent of a developer's .env
os.environ.setdefault("DB_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LOG_JSON_LOGS", "false")


# ============================================================================
# Settings Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def _reset_settings_and_context():
    """Clear cached settings and log context around every test."""
    get_tree_settings.cache_clear()
    get_db_settings.cache_clear()
    get_logging_settings.cache_clear()
    clear_log_context()
    yield
    get_tree_settings.cache_clear()
    get_db_settings.cache_clear()
    get_logging_settings.cache_clear()
    clear_log_context()


@pytest.fixture
def tree_settings() -> TreeSettings:
    """Default tree settings, independent of the environment."""
    return TreeSettings(
        dangling_parent_policy="strict",
        cascade_batch_size=1,
        leaves_warning_threshold=10_000,
    )


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine]:
    """Create async SQLAlchemy engine with in-memory SQLite and all tables."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    enable_sqlite_savepoints(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
async def db_session(db_engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    """Session configured like the production factory (no expiry, no autoflush)."""
    session_maker = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    async with session_maker() as session:
        try:
            yield session
        finally:
            await session.rollback()


# ============================================================================
# Tree Fixtures
# ============================================================================


@pytest.fixture
def hooks() -> RearrangeHooks:
    return RearrangeHooks()


@pytest.fixture
def repo(tree_settings: TreeSettings, hooks: RearrangeHooks) -> TreeRepository[Node]:
    """Tree repository without a disposal strategy."""
    return TreeRepository(Node, hooks=hooks, settings=tree_settings)


@pytest.fixture
def make_node(db_session: AsyncSession, repo: TreeRepository[Node]):
    """Factory saving a node under an optional parent.

    Example:
        root = await make_node("root")
        child = await make_node("child", parent=root)
    """

    async def _make(name: str, parent: Node | None = None, **payload: Any) -> Node:
        node = Node(parent_id=parent.id if parent else None, payload={"name": name, **payload})
        return await repo.save(db_session, node)

    return _make


@pytest.fixture
async def sample_tree(make_node) -> dict[str, Node]:
    """Small tree used across query and disposal tests.

        a
        ├── b
        │   ├── d
        │   │   └── f
        │   └── e
        └── c
        g          (second root)
    """
    a = await make_node("a")
    b = await make_node("b", parent=a)
    c = await make_node("c", parent=a)
    d = await make_node("d", parent=b)
    e = await make_node("e", parent=b)
    f = await make_node("f", parent=d)
    g = await make_node("g")
    return {"a": a, "b": b, "c": c, "d": d, "e": e, "f": f, "g": g}
