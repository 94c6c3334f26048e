"""Depth-first propagation of a changed ancestor path to descendants.

When a node's path changes, every descendant's cached path embeds the old
prefix. The propagator walks the children of the moved node, rearranges
each one through the same step a regular save uses (hooks included), and
descends only into children whose own path changed.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from tree_service.core.database.exceptions import RepositoryError
from tree_service.core.database.filters import OrderBy
from tree_service.core.database.hierarchy.criteria import children_of
from tree_service.core.database.hierarchy.exceptions import CascadeIncompleteError
from tree_service.infra.logging import get_lazy_logger, log_context

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from tree_service.core.database.hierarchy.rearrange import RearrangeResult

type RearrangeStep = Callable[[AsyncSession, Any], Awaitable[RearrangeResult]]

logger = logging.getLogger(__name__)
_lazy = get_lazy_logger(__name__)


@dataclass(slots=True)
class CascadeReport:
    """Summary of one cascade.

    Attributes:
        root_id: Node whose path change started the cascade
        updated_ids: Descendants written in completed batches, in visit order
        max_depth: Deepest depth reached (the root's own depth when nothing moved)
    """

    root_id: str
    updated_ids: list[str] = field(default_factory=list)
    max_depth: int = 0

    @property
    def updated_count(self) -> int:
        return len(self.updated_ids)


class CascadePropagator:
    """Re-save every stale descendant of a node, depth first.

    Args:
        model: Tree model class
        step: Coroutine that runs hooks and rearranges one node
        batch_size: Nodes written per SAVEPOINT (1 = one savepoint per node)

    Example:
        >>> propagator = CascadePropagator(Node, repo.rearrange_node, batch_size=1)
        >>> report = await propagator.propagate(session, moved)
        >>> report.updated_ids
        ['0190...', '0190...']
    """

    __slots__ = ("model", "step", "batch_size")

    def __init__(self, model: type[Any], step: RearrangeStep, batch_size: int = 1) -> None:
        self.model = model
        self.step = step
        self.batch_size = max(1, batch_size)

    async def propagate(
        self,
        session: AsyncSession,
        root: Any,
        *,
        force: bool = False,
    ) -> CascadeReport:
        """Walk the subtree below ``root`` and refresh every cached path.

        ``root`` must already be flushed with its new path. With
        ``force=True`` the walk descends into every child, not only those
        whose path changed, which repairs a subtree left stale by an
        interrupted cascade.

        Each batch is rearranged and flushed under its own SAVEPOINT. A
        failing batch is rolled back on its own (its nodes are expired and
        reload from the store on next access); the root and every earlier
        batch stay written in the enclosing transaction, which remains
        usable for a retry or a commit.

        Raises:
            CascadeIncompleteError: A store error stopped the walk.
                ``updated_ids`` are the nodes of completed batches.
        """
        root_id = root.id
        report = CascadeReport(root_id=root_id, max_depth=root.depth)
        # Nodes whose children still need visiting; popped LIFO for pre-order
        stack: list[Any] = [root]
        batch_ids: list[str] = []
        current_id: str | None = None

        with log_context(cascade_root=root_id):
            try:
                while stack:
                    batch_ids = []
                    async with session.begin_nested():
                        while stack and len(batch_ids) < self.batch_size:
                            current = stack.pop()
                            if current is not root:
                                current_id = current.id
                                result = await self.step(session, current)
                                session.add(current)
                                batch_ids.append(current_id)
                                current_id = None
                                report.max_depth = max(report.max_depth, result.depth)
                                if not (force or result.path_changed):
                                    continue

                            children = await self._children(session, current)
                            # Reverse so the first child is visited first
                            stack.extend(reversed(children))
                    report.updated_ids.extend(batch_ids)
                    _lazy.debug(lambda: f"tree.cascade: batch written {batch_ids}")
            except (SQLAlchemyError, RepositoryError) as exc:
                failed_ids = list(batch_ids)
                if current_id is not None:
                    failed_ids.append(current_id)
                logger.error(
                    "Cascade failed",
                    extra={
                        "root_id": root_id,
                        "updated": report.updated_count,
                        "failed_ids": failed_ids,
                        "error": str(exc),
                        "operation": "tree.cascade",
                    },
                )
                raise CascadeIncompleteError(root_id, report.updated_ids, failed_ids) from exc

            if report.updated_ids:
                logger.info(
                    "Cascade complete",
                    extra={
                        "root_id": root_id,
                        "updated": report.updated_count,
                        "max_depth": report.max_depth,
                        "operation": "tree.cascade",
                    },
                )
        return report

    async def _children(self, session: AsyncSession, node: Any) -> list[Any]:
        stmt = children_of(self.model, node.id).apply(select(self.model))
        stmt = OrderBy(self.model.id).apply(stmt)
        result = await session.execute(stmt)
        children = list(result.scalars().all())
        _lazy.debug(lambda: f"tree.cascade: {node.id} has {len(children)} children")
        return children


__all__ = ["CascadePropagator", "CascadeReport", "RearrangeStep"]
