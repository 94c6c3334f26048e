"""Repository for models that mix in TreeMixin.

Extends BaseRepository with a ``save`` that keeps the cached ancestor path
consistent, a ``destroy`` that applies a disposal strategy, and the full
set of tree queries.

Save pipeline for one node:
    1. before_rearrange hooks
    2. Rearranger recomputes ancestor_ids and depth (cycle check)
    3. after_rearrange hooks
    4. validate() (override point for model validation)
    5. flush
    6. cascade to descendants, depending on the CascadeDecision

Example:
    >>> repo = TreeRepository(Node, disposal=DisposalStrategy.MOVE_CHILDREN_TO_PARENT)
    >>> root = await repo.save(session, Node(payload={"name": "root"}))
    >>> child = await repo.save(session, Node(parent_id=root.id))
    >>> [n.id for n in await repo.ancestors(session, child)] == [root.id]
    True
"""

from __future__ import annotations

import logging
from collections import defaultdict, deque
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Literal

from tree_service.core.database.filters import OrderBy
from tree_service.core.database.hierarchy import criteria
from tree_service.core.database.hierarchy.cascade import CascadePropagator, CascadeReport
from tree_service.core.database.hierarchy.disposal import DisposalStrategy, dispose
from tree_service.core.database.hierarchy.exceptions import DanglingParentError
from tree_service.core.database.hierarchy.hooks import RearrangeHooks
from tree_service.core.database.hierarchy.path import validate_id
from tree_service.core.database.hierarchy.rearrange import Rearranger, RearrangeResult
from tree_service.core.database.inspection import is_new
from tree_service.core.database.repository import BaseRepository
from tree_service.core.database.utils import new_record_id
from tree_service.core.settings import get_tree_settings

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from tree_service.core.database.hierarchy.mixins import TreeMixin
    from tree_service.core.settings import TreeSettings

TraversalOrder = Literal["depth_first", "breadth_first"]


class CascadeDecision(StrEnum):
    """Whether ``save`` propagates to descendants.

    AUTO cascades when the node's persisted path changed. FORCE always
    walks the whole subtree (repairs stale descendants). SKIP never
    cascades and leaves descendants stale.
    """

    AUTO = "auto"
    FORCE = "force"
    SKIP = "skip"


class TreeRepository[T: TreeMixin](BaseRepository[T]):
    """Tree-aware repository.

    Args:
        model: Model class mixing in TreeMixin
        hooks: Rearrange hooks (a fresh empty registry by default)
        disposal: Strategy applied by ``destroy``; None leaves children dangling
        settings: Tree settings (loaded from the environment by default)
    """

    __slots__ = ("hooks", "disposal", "settings", "_rearranger", "_propagator")

    def __init__(
        self,
        model: type[T],
        *,
        hooks: RearrangeHooks | None = None,
        disposal: DisposalStrategy | None = None,
        settings: TreeSettings | None = None,
    ) -> None:
        super().__init__(model)
        self.hooks = hooks if hooks is not None else RearrangeHooks()
        self.disposal = DisposalStrategy(disposal) if disposal is not None else None
        self.settings = settings or get_tree_settings()
        self._rearranger = Rearranger(model, self.settings)
        self._propagator = CascadePropagator(
            model, self.rearrange_node, batch_size=self.settings.cascade_batch_size
        )

    # =========================================================================
    # Write path
    # =========================================================================

    async def validate(self, session: AsyncSession, node: T) -> None:
        """Model validation hook, runs after rearranging. Override to add rules."""

    async def rearrange_node(self, session: AsyncSession, node: T) -> RearrangeResult:
        """Run hooks, rearrange and validate one node without flushing it."""
        await self.hooks.run_before(session, node)
        result = await self._rearranger.rearrange(session, node)
        await self.hooks.run_after(session, node)
        await self.validate(session, node)
        return result

    async def save(
        self,
        session: AsyncSession,
        node: T,
        *,
        cascade: CascadeDecision = CascadeDecision.AUTO,
    ) -> T:
        """Rearrange, persist and (when needed) cascade a node.

        Args:
            session: Database session
            node: Node to save (new or persistent)
            cascade: Cascade decision for this call

        Returns:
            The saved node, with ``id``, ``ancestor_ids`` and ``depth`` set

        Raises:
            CyclicParentError: The parent assignment would create a cycle
            DanglingParentError: The parent is missing under the strict policy
            CascadeIncompleteError: The node was saved but its subtree was not
        """
        if getattr(node, "id", None) is None:
            node.id = new_record_id()  # type: ignore[attr-defined]
        validate_id(node.id)  # type: ignore[attr-defined]
        was_new = is_new(node)

        result = await self.rearrange_node(session, node)
        session.add(node)
        await session.flush()
        self._lazy.debug(
            lambda: f"tree.save: {self.model.__name__}({node.id}) depth={node.depth} changed={result.path_changed}"  # type: ignore[attr-defined]
        )

        decision = CascadeDecision(cascade)
        if decision is CascadeDecision.FORCE or (
            decision is CascadeDecision.AUTO and result.path_changed and not was_new
        ):
            await self.rearrange_children(
                session, node, force=decision is CascadeDecision.FORCE
            )
        return node

    async def rearrange_children(
        self,
        session: AsyncSession,
        node: T,
        *,
        force: bool = False,
    ) -> CascadeReport:
        """Cascade the node's current path to its descendants.

        ``node`` must already be flushed. With ``force=True`` every
        descendant is visited even when an intermediate path did not change.
        """
        return await self._propagator.propagate(session, node, force=force)

    async def destroy(self, session: AsyncSession, node: T) -> None:
        """Apply the configured disposal strategy, then delete the node."""
        if self.disposal is not None:
            await dispose(self.disposal, self, session, node)
        await self.delete(session, node)

    # =========================================================================
    # Navigation
    # =========================================================================

    async def parent(self, session: AsyncSession, node: T) -> T | None:
        """Parent node, or None for a root (or a dangling reference)."""
        if node.parent_id is None:
            return None
        return await self.get(session, node.parent_id)

    async def children(self, session: AsyncSession, node: T) -> list[T]:
        """Direct children, ordered by id."""
        node_id = getattr(node, "id", None)
        if node_id is None:
            return []
        return list(
            await self.find(session, criteria.children_of(self.model, node_id), OrderBy(self.model.id))  # type: ignore[attr-defined]
        )

    async def is_leaf(self, session: AsyncSession, node: T) -> bool:
        """True when no node currently names this one as its parent."""
        node_id = getattr(node, "id", None)
        if node_id is None:
            return True
        return await self.count(session, criteria.children_of(self.model, node_id)) == 0

    async def root(self, session: AsyncSession, node: T) -> T:
        """Root of the node's tree; the node itself when it is a root.

        Uses the cached path when present and falls back to walking parents
        for rows whose path was never cached.

        Raises:
            NotFoundError: The cached root no longer exists
            DanglingParentError: An uncached parent chain hits a missing parent
        """
        path = node.cached_path
        if path:
            return await self.get_or_raise(session, path[0])
        if node.is_root:
            return node

        parent = await self.parent(session, node)
        if parent is None:
            raise DanglingParentError(getattr(node, "id", None), node.parent_id)  # type: ignore[arg-type]
        return await self.root(session, parent)

    async def roots(self, session: AsyncSession) -> list[T]:
        """Every root, ordered by id (creation order for UUID v7 ids)."""
        return list(
            await self.find(session, criteria.roots_of(self.model), OrderBy(self.model.id))  # type: ignore[attr-defined]
        )

    async def first_root(self, session: AsyncSession) -> T | None:
        """First root by id, or None for an empty collection."""
        roots = await self.roots(session)
        return roots[0] if roots else None

    async def ancestors(self, session: AsyncSession, node: T) -> list[T]:
        """Ancestors, root first."""
        if not node.cached_path:
            return []
        return list(
            await self.find(session, criteria.ancestors_of(self.model, node), OrderBy(self.model.depth))
        )

    async def ancestors_and_self(self, session: AsyncSession, node: T) -> list[T]:
        return [*await self.ancestors(session, node), node]

    async def descendants(self, session: AsyncSession, node: T) -> list[T]:
        """Every node below ``node``, shallowest first."""
        return list(
            await self.find(
                session,
                criteria.descendants_of(self.model, node),
                OrderBy([self.model.depth, self.model.id]),  # type: ignore[attr-defined]
            )
        )

    async def descendants_and_self(self, session: AsyncSession, node: T) -> list[T]:
        return [node, *await self.descendants(session, node)]

    async def siblings(self, session: AsyncSession, node: T) -> list[T]:
        """Nodes sharing the parent, excluding ``node``."""
        return list(
            await self.find(session, criteria.siblings_of(self.model, node), OrderBy(self.model.id))  # type: ignore[attr-defined]
        )

    async def siblings_and_self(self, session: AsyncSession, node: T) -> list[T]:
        return list(
            await self.find(
                session,
                criteria.siblings_of(self.model, node, include_self=True),
                OrderBy(self.model.id),  # type: ignore[attr-defined]
            )
        )

    async def leaves(self, session: AsyncSession, node: T | None = None) -> list[T]:
        """Nodes with no children, globally or below ``node``.

        Runs two queries: one collecting every referenced parent id in the
        collection, one excluding them. The first is O(collection size)
        even for a small subtree, and the exclusion list is sent as bound
        parameters; a warning is logged past ``leaves_warning_threshold``.
        """
        referenced = [
            pid for pid in await self.values(session, self.model.parent_id) if pid is not None
        ]
        threshold = self.settings.leaves_warning_threshold
        if threshold and len(referenced) > threshold:
            self._logger.warning(
                "Large leaves scan",
                extra={
                    "entity": self.model.__name__,
                    "referenced_parents": len(referenced),
                    "threshold": threshold,
                    "operation": "tree.leaves",
                },
            )

        filters: list[Any] = [criteria.excluding_ids(self.model, referenced)]
        if node is not None:
            filters.append(criteria.descendants_of(self.model, node))
        filters.append(OrderBy([self.model.depth, self.model.id]))  # type: ignore[attr-defined]
        return list(await self.find(session, *filters))

    async def traverse(
        self,
        session: AsyncSession,
        node: T,
        order: TraversalOrder = "depth_first",
    ) -> list[T]:
        """The subtree rooted at ``node``, including ``node``.

        ``depth_first`` is pre-order, ``breadth_first`` is level order.
        Siblings are visited by id. The subtree is loaded with one query
        and walked in memory.

        Raises:
            ValueError: Unknown traversal order
        """
        if order not in ("depth_first", "breadth_first"):
            raise ValueError(f"Unknown traversal order: {order!r}")

        by_parent: dict[str, list[T]] = defaultdict(list)
        for descendant in await self.descendants(session, node):
            by_parent[descendant.parent_id].append(descendant)  # type: ignore[index]
        for siblings in by_parent.values():
            siblings.sort(key=lambda n: n.id)  # type: ignore[attr-defined]

        visited: list[T] = []
        if order == "depth_first":
            stack = [node]
            while stack:
                current = stack.pop()
                visited.append(current)
                stack.extend(reversed(by_parent.get(current.id, [])))  # type: ignore[attr-defined]
        else:
            queue = deque([node])
            while queue:
                current = queue.popleft()
                visited.append(current)
                queue.extend(by_parent.get(current.id, []))  # type: ignore[attr-defined]
        return visited


__all__ = ["CascadeDecision", "TraversalOrder", "TreeRepository"]
