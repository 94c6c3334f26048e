"""Minimal generic repository for SQLAlchemy models.

Provides the store primitives the tree layer is built on: fetch by id,
query by filter descriptions, persist, delete and bulk delete. Session is
always explicit. For queries not covered here, use the session directly.

Example:
    from tree_service.core.database import BaseRepository, EqualityFilter

    repo = BaseRepository(Node)
    node = await repo.get(session, node_id)
    roots = await repo.find(session, EqualityFilter(Node.parent_id, None))
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy import func, select
from sqlalchemy import delete as sql_delete

from tree_service.core.database.exceptions import InvalidFilterError, NotFoundError
from tree_service.core.database.filters import PredicateFilter
from tree_service.infra.logging import get_lazy_logger

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy.ext.asyncio import AsyncSession
    from sqlalchemy.orm import InstrumentedAttribute

    from tree_service.core.database.filters import StatementFilter

# Bulk deletes above this size are logged at WARNING (audit-worthy)
BULK_DELETE_WARNING_THRESHOLD = 10


class BaseRepository[T]:
    """Minimal generic repository for CRUD operations.

    Provides:
        - get(session, id) -> T | None
        - get_or_raise(session, id) -> T (raises NotFoundError)
        - find(session, *filters) -> Sequence[T]
        - count(session, *filters) -> int
        - create(session, instance) -> T
        - delete(session, instance) -> None
        - bulk_delete(session, *filters) -> int
    """

    __slots__ = ("model", "_logger", "_lazy")

    def __init__(self, model: type[T]) -> None:
        """Initialize repository with model class.

        Args:
            model: SQLAlchemy model class (e.g., Node)
        """
        self.model = model
        # Standard logger for INFO/WARNING/ERROR
        self._logger = logging.getLogger(f"repository.{model.__name__}")
        # Lazy logger for DEBUG (zero overhead when DEBUG disabled)
        self._lazy = get_lazy_logger(f"repository.{model.__name__}")

    async def get(self, session: AsyncSession, id: Any) -> T | None:  # noqa: A002
        """Get entity by primary key.

        Returns the instance already in the session's identity map when
        there is one, so unflushed changes are visible.

        Args:
            session: Database session
            id: Primary key value

        Returns:
            Entity if found, None otherwise
        """
        instance = await session.get(self.model, id)
        self._lazy.debug(
            lambda: f"db.get: {self.model.__name__}({id}) -> {'found' if instance else 'not found'}"
        )
        return instance

    async def get_or_raise(self, session: AsyncSession, id: Any) -> T:  # noqa: A002
        """Get entity by primary key or raise NotFoundError.

        Raises:
            NotFoundError: If entity doesn't exist
        """
        instance = await self.get(session, id)
        if instance is None:
            self._logger.info(
                "Entity not found",
                extra={
                    "entity": self.model.__name__,
                    "id": str(id),
                    "operation": "db.get_or_raise",
                },
            )
            raise NotFoundError(self.model.__name__, {"id": id})
        return instance

    async def find(self, session: AsyncSession, *filters: StatementFilter) -> Sequence[T]:
        """Run a query built from filter descriptions.

        Args:
            session: Database session
            *filters: Filters applied in order (predicates, then ordering)

        Returns:
            Matching entities

        Example:
            children = await repo.find(
                session,
                EqualityFilter(Node.parent_id, parent.id),
                OrderBy(Node.id),
            )
        """
        stmt = select(self.model)
        for filter_obj in filters:
            stmt = filter_obj.apply(stmt)
        result = await session.execute(stmt)
        items = result.scalars().all()

        self._lazy.debug(
            lambda: f"db.find: {self.model.__name__}{list(filters)} -> {len(items)} items"
        )
        return items

    async def count(self, session: AsyncSession, *filters: StatementFilter) -> int:
        """Count entities matching the filters."""
        stmt = select(self.model)
        for filter_obj in filters:
            stmt = filter_obj.apply(stmt)
        count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
        return (await session.execute(count_stmt)).scalar_one()

    async def values(
        self,
        session: AsyncSession,
        attr: InstrumentedAttribute[Any],
        *filters: StatementFilter,
        distinct: bool = True,
    ) -> list[Any]:
        """Fetch a single column instead of whole entities.

        Example:
            parent_ids = await repo.values(session, Node.parent_id)
        """
        stmt = select(attr)
        if distinct:
            stmt = stmt.distinct()
        for filter_obj in filters:
            stmt = filter_obj.apply(stmt)
        result = await session.execute(stmt)
        return list(result.scalars().all())

    async def create(self, session: AsyncSession, instance: T) -> T:
        """Persist a new entity.

        Adds to session and flushes to get generated values (like id).
        """
        session.add(instance)
        await session.flush()

        entity_id = getattr(instance, "id", None)
        self._lazy.debug(lambda: f"db.create: {self.model.__name__}(id={entity_id})")
        return instance

    async def delete(self, session: AsyncSession, instance: T) -> None:
        """Delete an entity.

        Args:
            session: Database session
            instance: Entity to delete
        """
        entity_id = getattr(instance, "id", None)
        await session.delete(instance)
        await session.flush()

        self._logger.info(
            "Entity deleted",
            extra={"entity": self.model.__name__, "id": str(entity_id), "operation": "db.delete"},
        )

    async def bulk_delete(self, session: AsyncSession, *filters: PredicateFilter) -> int:
        """Delete every entity matching the filters in a single statement.

        Does not load entities and fires no ORM events. Instances of deleted
        rows already in the session are expunged.

        Args:
            session: Database session
            *filters: Predicate filters (combined with AND)

        Returns:
            Number of rows deleted

        Raises:
            InvalidFilterError: If no filter is given or a filter has no WHERE clause
        """
        if not filters:
            raise InvalidFilterError("bulk_delete requires at least one filter")
        for filter_obj in filters:
            if not isinstance(filter_obj, PredicateFilter):
                raise InvalidFilterError(
                    "bulk_delete only accepts predicate filters",
                    filter_name=type(filter_obj).__name__,
                )

        # rowcount is not reliable when the session syncs through RETURNING
        deleted_count = await self.count(session, *filters)
        stmt = sql_delete(self.model).where(*(f.clause() for f in filters))
        await session.execute(stmt.execution_options(synchronize_session="fetch"))
        await session.flush()

        if deleted_count > BULK_DELETE_WARNING_THRESHOLD:
            self._logger.warning(
                "Bulk delete executed",
                extra={
                    "entity": self.model.__name__,
                    "deleted": deleted_count,
                    "operation": "db.bulk_delete",
                },
            )
        else:
            self._lazy.debug(
                lambda: f"db.bulk_delete: {self.model.__name__}{list(filters)} -> {deleted_count} deleted"
            )
        return deleted_count


__all__ = [
    "BaseRepository",
]
