"""Strategies for the children of a node that is being removed.

Removing a node leaves its children pointing at a missing parent unless
something resolves them first. The owner picks one strategy explicitly
(TreeRepository(disposal=...)) or calls one of the coroutines below from
its own removal code. With no strategy the children are left dangling.

| Strategy                | Children end up                    | Hooks per child |
|-------------------------|------------------------------------|-----------------|
| NULLIFY_CHILDREN        | roots, subtrees cascaded           | yes             |
| MOVE_CHILDREN_TO_PARENT | under the removed node's parent    | yes             |
| DESTROY_CHILDREN        | removed, recursively, same process | yes             |
| DELETE_DESCENDANTS      | removed by one bulk DELETE         | no              |
"""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from tree_service.core.database.hierarchy.criteria import descendants_of

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from sqlalchemy.ext.asyncio import AsyncSession

    from tree_service.core.database.hierarchy.repository import TreeRepository

logger = logging.getLogger(__name__)


class DisposalStrategy(StrEnum):
    """What happens to a node's children when the node is removed."""

    NULLIFY_CHILDREN = "nullify_children"
    MOVE_CHILDREN_TO_PARENT = "move_children_to_parent"
    DESTROY_CHILDREN = "destroy_children"
    DELETE_DESCENDANTS = "delete_descendants"


async def nullify_children(repo: TreeRepository[Any], session: AsyncSession, node: Any) -> None:
    """Turn every child into a root and save it (its subtree cascades)."""
    for child in await repo.children(session, node):
        child.parent_id = None
        await repo.save(session, child)


async def move_children_to_parent(
    repo: TreeRepository[Any], session: AsyncSession, node: Any
) -> None:
    """Re-attach every child to the node's own parent (roots stay roots)."""
    for child in await repo.children(session, node):
        child.parent_id = node.parent_id
        await repo.save(session, child)


async def destroy_children(repo: TreeRepository[Any], session: AsyncSession, node: Any) -> None:
    """Destroy every child through ``repo.destroy``, strategy and hooks included."""
    for child in await repo.children(session, node):
        await repo.destroy(session, child)


async def delete_descendants(repo: TreeRepository[Any], session: AsyncSession, node: Any) -> None:
    """Delete the whole subtree below the node in a single statement.

    No hooks run and no rows are loaded.
    """
    deleted = await repo.bulk_delete(session, descendants_of(repo.model, node))
    logger.info(
        "Descendants deleted",
        extra={"node_id": node.id, "deleted": deleted, "operation": "tree.delete_descendants"},
    )


type DisposalHandler = Callable[[TreeRepository[Any], AsyncSession, Any], Awaitable[None]]

STRATEGY_HANDLERS: dict[DisposalStrategy, DisposalHandler] = {
    DisposalStrategy.NULLIFY_CHILDREN: nullify_children,
    DisposalStrategy.MOVE_CHILDREN_TO_PARENT: move_children_to_parent,
    DisposalStrategy.DESTROY_CHILDREN: destroy_children,
    DisposalStrategy.DELETE_DESCENDANTS: delete_descendants,
}


async def dispose(
    strategy: DisposalStrategy | str,
    repo: TreeRepository[Any],
    session: AsyncSession,
    node: Any,
) -> None:
    """Run ``strategy`` for ``node``.

    Raises:
        ValueError: Unknown strategy name
    """
    handler = STRATEGY_HANDLERS[DisposalStrategy(strategy)]
    await handler(repo, session, node)


__all__ = [
    "STRATEGY_HANDLERS",
    "DisposalHandler",
    "DisposalStrategy",
    "delete_descendants",
    "destroy_children",
    "dispose",
    "move_children_to_parent",
    "nullify_children",
]
